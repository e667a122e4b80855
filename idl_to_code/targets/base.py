"""
Base classes for target languages.

A target knows the grammar of one output language: it validates rendered
fragments and splits them into declarations, spells schema types, and lays
out the fixed parts of a generated file.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from ..types import TypeSpec

# Resolves a user-defined type to its (possibly qualified) name
TypeResolver = Callable[[TypeSpec], str]


class DeclarationKind(Enum):
    IMPORT = "import"
    TYPE = "type"
    CONSTANT = "constant"
    VARIABLE = "variable"
    FUNCTION = "function"


@dataclass(frozen=True)
class ImportSpec:
    """An imported module.

    Attributes:
        path: Module path (``go.uber.org/zap``, ``collections.abc``)
        alias: Local name the file refers to the import by
        member: Imported member for ``from path import member`` imports
        explicit_alias: Whether the alias must be written out in the import
    """

    path: str
    alias: str
    member: str | None = None
    explicit_alias: bool = False

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.path, self.member)


@dataclass
class Declaration:
    """A single top-level construct of a parsed fragment.

    Attributes:
        kind: What kind of construct this is
        keys: Collision keys declared by the construct, in source order
        source: Source text, including its leading doc comment
        imports: Imported modules, for import declarations only
    """

    kind: DeclarationKind
    keys: tuple[str, ...]
    source: str
    imports: list[ImportSpec] = field(default_factory=list)

    @property
    def key(self) -> str | None:
        """Primary collision key."""
        return self.keys[0] if self.keys else None


class Target(ABC):
    """Abstract base class for output languages."""

    #: Language identifier used in configuration
    language: str = ""

    #: Names that may be declared again in every file of a package
    reentrant_names: frozenset[str] = frozenset()

    #: Prefix of line comments
    comment_prefix: str = "//"

    @abstractmethod
    def parse(self, fragment: str) -> list[Declaration]:
        """Parse a rendered fragment into declarations.

        Args:
            fragment: Rendered source text

        Returns:
            Declarations in source order

        Raises:
            CompileError: If the fragment is not valid for the grammar
            UnsupportedDeclarationError: If the fragment contains a
                top-level construct that is not a declaration
        """

    @abstractmethod
    def package_header(self, package_name: str) -> str:
        """Return the header that names the package, possibly empty."""

    @abstractmethod
    def import_block(self, imports: Iterable[ImportSpec]) -> str:
        """Render the canonical import listing for a file."""

    @abstractmethod
    def default_alias(self, path: str) -> str:
        """Return the natural local name of an imported module."""

    @abstractmethod
    def declared_name(self, spec: TypeSpec) -> str:
        """Return the identifier a user-defined type is declared under."""

    @abstractmethod
    def constant_name(self, name: str) -> str:
        """Return the identifier a schema constant is declared under."""

    @abstractmethod
    def type_reference(self, spec: TypeSpec, resolve: TypeResolver) -> str:
        """Spell a reference to a value of the given type."""

    @abstractmethod
    def type_reference_ptr(self, spec: TypeSpec, resolve: TypeResolver) -> str:
        """Spell a reference to an optional value of the given type."""

    def module_separator(self) -> str:
        return "/"

    def is_unbound_alias(self, alias: str) -> bool:
        """Check if an import alias binds no name (blank and dot imports)."""
        return False

    def shares_alias(self, existing: ImportSpec, spec: ImportSpec) -> bool:
        """Check if two imports of different paths may bind the same alias."""
        return False

    def banner(self, version: str) -> str:
        """Return the generated-code banner placed at the top of each file."""
        return f"{self.comment_prefix} Code generated by idl-to-code v{version}. DO NOT EDIT.\n{self.comment_prefix} @generated\n"

    def comment(self, text: str) -> str:
        """Format a documentation block.

        Returns an empty string for empty text, otherwise the commented
        lines followed by a trailing newline so the result can be placed
        right before the documented declaration.
        """
        if not text:
            return ""
        lines = []
        for line in text.split("\n"):
            lines.append(f"{self.comment_prefix} {line}" if line else self.comment_prefix)
        return "\n".join(lines) + "\n"

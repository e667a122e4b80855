"""
Declaration generator for a single package.

A Generator renders templates into source fragments, validates them
against the target grammar, and admits their declarations into the
package being generated. Declarations accumulate until ``write`` flushes
them, with their imports, as one file of the package:

    generator = Generator(GeneratorConfig(package_name="shared", import_path="example.com/shared"))
    generator.declare("type <: name :> int32", {"name": "Status"})
    with open("types.go", "w") as f:
        generator.write(f)

The package namespace and the mangled helper names live as long as the
generator; imports and pending declarations are reset by every write.
"""

from __future__ import annotations

import functools
import io
import logging
from collections.abc import Callable, Mapping
from typing import Any, TextIO

from . import __version__
from .config import GeneratorConfig
from .errors import ConflictError, SinkWriteError, TypeLookupError
from .importer import ImportRegistry
from .mangler import Mangler
from .namespace import Namespace
from .naming import go_case
from .package_importer import PackageImporter
from .targets import Declaration, DeclarationKind, get_target
from .templates import TemplateRenderer
from .types import (
    Constant,
    TypeSpec,
    is_hashable,
    is_primitive_type,
    is_reference_type,
    is_struct_type,
    is_user_defined,
)

logger = logging.getLogger(__name__)

# Builds extra template functions for a generator
TemplateOption = Callable[["Generator"], Mapping[str, Callable[..., Any]]]

# External helper generators (wire encoding, equality, ...) receive the
# generator as their first argument
Helper = Callable[..., str]


def template_func(name: str, function: Callable[..., Any], bind_generator: bool = False) -> TemplateOption:
    """Make a function available to a template under the given name.

    Args:
        name: Name the template calls the function by
        function: The function
        bind_generator: Pass the generator as the function's first argument

    Returns:
        A template option for ``text_template``, ``declare`` and
        ``ensure_declared``
    """

    def option(generator: Generator) -> Mapping[str, Callable[..., Any]]:
        if bind_generator:
            return {name: functools.partial(function, generator)}
        return {name: function}

    return option


class Generator:
    """Generates the declarations of one package, possibly over several files.

    Not thread-safe: calls on one instance must be serialized. Separate
    instances share no state and may generate different packages
    concurrently.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        package_importer: PackageImporter | None = None,
        helpers: Mapping[str, Helper] | None = None,
    ):
        """Initialize the generator.

        Args:
            config: Generator configuration
            package_importer: Maps schema files to module paths. Without
                one, every type and constant is assumed to be local.
            helpers: Expression helpers exposed to templates by name
        """
        if not config.package_name:
            raise ValueError("package_name is required")

        self.config = config
        self.target = get_target(config.language)
        self.namespace = Namespace()
        self.mangler = Mangler(self.namespace)
        self.renderer = TemplateRenderer()
        self.package_importer = package_importer
        self.helpers = dict(helpers or {})

        if config.reentrant_names is None:
            self.reentrant_names = self.target.reentrant_names
        else:
            self.reentrant_names = frozenset(config.reentrant_names)

        self._decls: list[Declaration] = []
        self._importer = self._new_importer()

    @property
    def package_name(self) -> str:
        return self.config.package_name

    @property
    def import_path(self) -> str:
        return self.config.import_path

    @property
    def importer(self) -> ImportRegistry:
        """Import registry of the file being generated."""
        return self._importer

    @property
    def pending(self) -> list[Declaration]:
        """Declarations waiting for the next write, in admission order."""
        return list(self._decls)

    def _new_importer(self) -> ImportRegistry:
        return ImportRegistry(self.namespace.child(), self.target)

    def mangle_type(self, spec: TypeSpec) -> str:
        """Return a package-unique name for helpers of the given type."""
        return self.mangler.mangle_type(spec)

    def import_module(self, path: str) -> str:
        """Import a module into the current file and return its alias."""
        return self._importer.import_module(path)

    def lookup_type_name(self, spec: TypeSpec) -> str:
        """Return the name code in this package uses for a user-defined type.

        The type's module is imported when it is not the package being
        generated.

        Raises:
            TypeLookupError: If the type is not user-defined
        """
        if not is_user_defined(spec):
            raise TypeLookupError(f"lookup_type_name called with native type {spec!r}")
        return self._qualify(spec.file, self.target.declared_name(spec))

    def lookup_constant_name(self, constant: Constant) -> str:
        """Return the name code in this package uses for a schema constant."""
        return self._qualify(constant.file, self.target.constant_name(constant.name))

    def _qualify(self, schema_file: str, name: str) -> str:
        if self.package_importer is None:
            return name
        module = self.package_importer.package(schema_file)
        if module == self.import_path:
            return name
        return f"{self.import_module(module)}.{name}"

    def type_name(self, spec: TypeSpec) -> str:
        """Return the name of a type, whether native or user-defined."""
        if is_user_defined(spec):
            return self.lookup_type_name(spec)
        return self.target.type_reference(spec, self.lookup_type_name)

    def type_reference(self, spec: TypeSpec) -> str:
        return self.target.type_reference(spec, self.lookup_type_name)

    def type_reference_ptr(self, spec: TypeSpec) -> str:
        return self.target.type_reference_ptr(spec, self.lookup_type_name)

    def template_functions(self, *options: TemplateOption) -> dict[str, Callable[..., Any]]:
        """Assemble the functions available to one template rendering."""
        # Variables allocated by one template never shadow package names
        scope = self.namespace.child()
        functions: dict[str, Callable[..., Any]] = {
            "format_doc": self.target.comment,
            "go_case": go_case,
            "declared_name": self.target.declared_name,
            "import_module": self.import_module,
            "mangle_type": self.mangle_type,
            "type_name": self.type_name,
            "type_reference": self.type_reference,
            "type_reference_ptr": self.type_reference_ptr,
            "constant_name": self.lookup_constant_name,
            "new_var": scope.new_name,
            "new_namespace": self.namespace.child,
            "is_hashable": is_hashable,
            "is_primitive_type": is_primitive_type,
            "is_struct_type": is_struct_type,
            "is_reference_type": is_reference_type,
        }
        for name, helper in self.helpers.items():
            functions[name] = functools.partial(helper, self)
        for option in options:
            functions.update(option(self))
        return functions

    def text_template(self, source: str, data: Any, *options: TemplateOption) -> str:
        """Render a template without declaring anything."""
        return self.renderer.render(source, data, self.template_functions(*options))

    def declare(self, source: str, data: Any, *options: TemplateOption, strict: bool = True) -> None:
        """Render a template and include its declarations in the package.

        Imports written by the template are merged into the current file.
        Every other declaration must have names not yet declared in the
        package. With ``strict=False``, declarations whose names are
        already taken are skipped instead.

        With ``atomic_declare`` enabled, a call that raises, including
        through a helper or a package importer, leaves the package and the
        current file as they were.

        Args:
            source: Template source
            data: Template data
            *options: Extra template functions
            strict: Fail on names that are already declared

        Raises:
            TemplateError: If the template cannot be rendered
            CompileError: If the rendered code does not parse
            UnsupportedDeclarationError: If the rendered code has a
                top-level construct that is not a declaration
            ConflictError: If a name is already declared (strict only)
            ImportConflictError: If an explicit import collides with an
                existing alias, whatever the policy
        """
        atomic = self.config.atomic_declare
        snapshot = self._importer.snapshot()
        reserved: list[str] = []
        admitted: list[Declaration] = []

        try:
            fragment = self.text_template(source, data, *options)
            for decl in self.target.parse(fragment):
                if decl.kind is DeclarationKind.IMPORT:
                    for spec in decl.imports:
                        self._importer.add_import_spec(spec)
                    continue

                if not self._reserve(decl, reserved, strict):
                    logger.debug("Skipping %s %s, already declared", decl.kind.value, decl.key)
                    continue

                if atomic:
                    admitted.append(decl)
                else:
                    self._decls.append(decl)
        except BaseException:
            if atomic:
                for key in reserved:
                    self.namespace.forget(key)
                self._importer.restore(snapshot)
            raise

        self._decls.extend(admitted)
        for decl in admitted:
            logger.debug("Declared %s %s", decl.kind.value, ", ".join(decl.keys) or "_")

    def _reserve(self, decl: Declaration, reserved: list[str], strict: bool) -> bool:
        """Reserve every name of a declaration, or none of them."""
        taken = []
        for key in decl.keys:
            try:
                self.namespace.reserve(key)
            except ConflictError as e:
                for name in taken:
                    self.namespace.forget(name)
                if strict:
                    raise ConflictError(f"could not declare {decl.kind.value} {key!r}: {e}", name=key) from e
                return False
            taken.append(key)
        reserved.extend(taken)
        return True

    def ensure_declared(self, source: str, data: Any, *options: TemplateOption) -> None:
        """Like ``declare``, but silently skips names that are already declared."""
        self.declare(source, data, *options, strict=False)

    def write(self, sink: TextIO) -> None:
        """Write the pending declarations as one file and start a new file.

        The file holds the generated-code banner, the package header, the
        import block, and the declarations in the order they were
        admitted, separated by blank lines.

        Raises:
            SinkWriteError: If the sink fails. The sink may hold a partial
                file and the pending declarations are kept.
        """
        parts = [
            self.target.banner(__version__),
            self.target.package_header(self.package_name),
            self._importer.emit(),
        ]
        parts.extend(decl.source for decl in self._decls)
        sections = [part.strip("\n") for part in parts if part.strip()]

        try:
            for index, section in enumerate(sections):
                if index:
                    sink.write("\n")
                sink.write(section + "\n")
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"could not write generated file: {e}") from e

        logger.info(
            "Wrote %d declarations and %d imports for package %s",
            len(self._decls),
            len(self._importer),
            self.package_name,
        )
        self._decls = []
        self._importer = self._new_importer()
        for name in self.reentrant_names:
            self.namespace.forget(name)

    def write_to_string(self) -> str:
        """Write the pending file into a string."""
        buffer = io.StringIO()
        self.write(buffer)
        return buffer.getvalue()

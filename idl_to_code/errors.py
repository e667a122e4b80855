"""
Exceptions raised while generating declarations.

Every error raised by this package derives from GenerationError so that
callers can stop a whole generation run with a single except clause.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for all code generation failures."""

    pass


class TemplateError(GenerationError):
    """Raised when a template cannot be parsed or rendered.

    This can happen when:
    - The template has malformed control syntax
    - The template references data absent from the context
    """

    pass


class CompileError(GenerationError):
    """Raised when rendered code is not valid for the target grammar.

    Attributes:
        source: The rendered fragment that failed to parse
    """

    def __init__(self, message: str, source: str):
        super().__init__(f"{message}:\n{source}")
        self.source = source


class ConflictError(GenerationError):
    """Raised when a name is already reserved.

    Attributes:
        name: The name (or collision key) that was already taken
    """

    def __init__(self, message: str, name: str):
        super().__init__(message)
        self.name = name


class ImportConflictError(ConflictError):
    """Raised when an explicit import collides with an existing alias.

    Unlike other conflicts this one is never ignored.
    """

    pass


class UnsupportedDeclarationError(GenerationError):
    """Raised for top-level constructs that are not declarations."""

    pass


class SinkWriteError(GenerationError):
    """Raised when writing a generated file to its sink fails."""

    pass


class TypeLookupError(GenerationError):
    """Raised when a type or constant cannot be mapped to a qualified name."""

    pass

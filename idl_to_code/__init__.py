"""IDL to Code Generator

Declaration-emission core of a schema-to-source code generator. Renders
templates filled with schema type metadata, validates the rendered code
against the target grammar, and assembles the declarations into the
files of a generated package.
"""

__version__ = "0.1.0"

from .config import GeneratorConfig
from .errors import (
    CompileError,
    ConflictError,
    GenerationError,
    ImportConflictError,
    SinkWriteError,
    TemplateError,
    TypeLookupError,
    UnsupportedDeclarationError,
)
from .generator import Generator, TemplateOption, template_func
from .namespace import Namespace
from .package_importer import PackageImporter, PrefixPackageImporter

__all__ = [
    "Generator",
    "GeneratorConfig",
    "TemplateOption",
    "template_func",
    "Namespace",
    "PackageImporter",
    "PrefixPackageImporter",
    "GenerationError",
    "TemplateError",
    "CompileError",
    "ConflictError",
    "ImportConflictError",
    "UnsupportedDeclarationError",
    "SinkWriteError",
    "TypeLookupError",
]

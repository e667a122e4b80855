"""
Mapping from schema files to the modules generated for them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from .errors import TypeLookupError


class PackageImporter(ABC):
    """Resolves the module path generated for a schema file."""

    @abstractmethod
    def package(self, schema_file: str) -> str:
        """Return the module path for the given schema file.

        Raises:
            TypeLookupError: If the file cannot be mapped to a module
        """


class PrefixPackageImporter(PackageImporter):
    """Places each schema file's module under a common prefix.

    A schema file ``<schema_root>/shared/types.thrift`` maps to
    ``<import_prefix>/shared/types`` (or ``prefix.shared.types`` with a
    ``"."`` separator).
    """

    def __init__(self, import_prefix: str, schema_root: str, separator: str = "/"):
        self.import_prefix = import_prefix
        self.schema_root = PurePosixPath(schema_root)
        self.separator = separator

    def package(self, schema_file: str) -> str:
        try:
            relative = PurePosixPath(schema_file).relative_to(self.schema_root)
        except ValueError:
            raise TypeLookupError(f"{schema_file!r} is not inside the schema root {str(self.schema_root)!r}") from None

        parts = [part.replace("-", "_") for part in relative.with_suffix("").parts]
        if self.import_prefix:
            parts.insert(0, self.import_prefix)
        return self.separator.join(parts)

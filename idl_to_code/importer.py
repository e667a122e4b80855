"""
Per-file registry of imported modules and their local aliases.
"""

from __future__ import annotations

import logging

from .errors import ImportConflictError
from .namespace import Namespace
from .targets import ImportSpec, Target

logger = logging.getLogger(__name__)


class ImportRegistry:
    """Tracks the modules imported by one generated file.

    Aliases are reserved in a namespace scoped under the package namespace:
    they never shadow a package-level declaration, but they stay local to
    the file and disappear with the registry.
    """

    def __init__(self, namespace: Namespace, target: Target):
        self._namespace = namespace
        self._target = target
        self._imports: dict[tuple[str, str | None], ImportSpec] = {}
        self._aliases: dict[str, ImportSpec] = {}

    def __len__(self) -> int:
        return len(self._imports)

    @property
    def imports(self) -> list[ImportSpec]:
        return list(self._imports.values())

    def alias_of(self, path: str) -> str | None:
        """Return the alias a module path was imported under, if any."""
        spec = self._imports.get((path, None))
        return spec.alias if spec is not None else None

    def import_module(self, path: str) -> str:
        """Ensure the module is imported and return its alias.

        Importing the same path again returns the same alias. A new import
        uses the module's natural short name, followed by a counter when
        that name is already in use in this file or in the package.

        Args:
            path: Module path to import

        Returns:
            Name the generated code must use to refer to the module
        """
        existing = self._imports.get((path, None))
        if existing is not None:
            return existing.alias

        base = self._target.default_alias(path)
        alias = self._namespace.new_name(base)
        if alias != base:
            logger.debug("Importing %s as %s, %s is already taken", path, alias, base)
        self._add(ImportSpec(path, alias))
        return alias

    def add_import_spec(self, spec: ImportSpec) -> None:
        """Merge an import written out literally by a template.

        Raises:
            ImportConflictError: If the path is already imported under a
                different alias, or the alias is already in use
        """
        existing = self._imports.get(spec.key)
        if existing is not None:
            if existing.alias == spec.alias:
                return
            raise ImportConflictError(
                f"cannot import {spec.path!r} as {spec.alias!r}: already imported as {existing.alias!r}",
                name=spec.alias,
            )

        if self._target.is_unbound_alias(spec.alias):
            self._imports[spec.key] = spec
            return

        if self._namespace.is_taken(spec.alias):
            owner = self._aliases.get(spec.alias)
            if owner is not None and self._target.shares_alias(owner, spec):
                # "import os" and "import os.path" both bind os
                self._imports[spec.key] = spec
                return
            reason = f"alias used by {owner.path!r}" if owner is not None else "name declared in the package"
            raise ImportConflictError(f"cannot import {spec.path!r} as {spec.alias!r}: {reason}", name=spec.alias)

        self._namespace.reserve(spec.alias)
        self._add(spec)

    def _add(self, spec: ImportSpec) -> None:
        self._imports[spec.key] = spec
        self._aliases[spec.alias] = spec

    def emit(self) -> str:
        """Return the import block for the file, or an empty string."""
        if not self._imports:
            return ""
        return self._target.import_block(self._imports.values())

    def snapshot(self) -> dict[tuple[str, str | None], ImportSpec]:
        return dict(self._imports)

    def restore(self, snapshot: dict[tuple[str, str | None], ImportSpec]) -> None:
        """Drop every import added since the snapshot was taken."""
        for key, spec in list(self._imports.items()):
            if key in snapshot:
                continue
            del self._imports[key]
            if self._aliases.get(spec.alias) is spec:
                del self._aliases[spec.alias]
                self._namespace.forget(spec.alias)

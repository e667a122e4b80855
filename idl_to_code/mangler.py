"""
Stable, collision-free names for compiler-generated helpers.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from .namespace import Namespace
from .naming import go_case
from .types import ListSpec, MapSpec, NativeType, SetSpec, TypeSpec

logger = logging.getLogger(__name__)


def _base_name(spec: TypeSpec) -> str:
    if isinstance(spec, NativeType):
        return go_case(spec.name)
    if isinstance(spec, ListSpec):
        return f"List_{_base_name(spec.value_spec)}"
    if isinstance(spec, SetSpec):
        return f"Set_{_base_name(spec.value_spec)}"
    if isinstance(spec, MapSpec):
        return f"Map_{_base_name(spec.key_spec)}_{_base_name(spec.value_spec)}"
    # Same-named types of different schema files stay apart: a.thrift Foo -> A_Foo
    module = PurePosixPath(spec.file).stem if spec.file else ""
    if module:
        return f"{go_case(module)}_{go_case(spec.name)}"
    return go_case(spec.name)


class Mangler:
    """Derives helper names from type descriptors.

    Names are reserved in the package namespace and memoized by type
    identity, so the same type always maps to the same name for the
    whole generation run, even across files.
    """

    def __init__(self, namespace: Namespace):
        self._namespace = namespace
        self._names: dict[TypeSpec, str] = {}

    def mangle_type(self, spec: TypeSpec) -> str:
        """Return the unique helper name for the given type.

        Args:
            spec: Type descriptor to name

        Returns:
            A name like ``_Map_String_I32`` or ``_Shared_Foo``. A numeric
            suffix is added only when the name is already declared in the
            package.
        """
        name = self._names.get(spec)
        if name is None:
            name = self._namespace.new_name("_" + _base_name(spec))
            self._names[spec] = name
            logger.debug("Mangled %r as %s", spec, name)
        return name

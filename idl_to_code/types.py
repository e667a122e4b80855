"""
Descriptors for the types and constants produced by the schema compiler.

Descriptors are frozen dataclasses: two descriptors describing the same
type compare and hash equal, which is what makes mangled names stable.
Annotations are carried along but do not take part in equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NativeKind(str, Enum):
    """Built-in schema types."""

    BOOL = "bool"
    BYTE = "byte"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    DOUBLE = "double"
    STRING = "string"
    BINARY = "binary"


class StructKind(str, Enum):
    STRUCT = "struct"
    UNION = "union"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class NativeType:
    """A built-in type. Native types are not defined in any schema file."""

    kind: NativeKind

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def file(self) -> str:
        return ""


@dataclass(frozen=True)
class ListSpec:
    value_spec: TypeSpec

    @property
    def file(self) -> str:
        return ""


@dataclass(frozen=True)
class SetSpec:
    value_spec: TypeSpec

    @property
    def file(self) -> str:
        return ""


@dataclass(frozen=True)
class MapSpec:
    key_spec: TypeSpec
    value_spec: TypeSpec

    @property
    def file(self) -> str:
        return ""


@dataclass(frozen=True)
class FieldSpec:
    """A single field of a struct."""

    id: int
    name: str
    type: TypeSpec
    required: bool = False
    doc: str = field(default="", compare=False)


@dataclass(frozen=True)
class StructSpec:
    """A user-defined struct, union or exception."""

    name: str
    file: str
    kind: StructKind = StructKind.STRUCT
    fields: tuple[FieldSpec, ...] = ()
    doc: str = field(default="", compare=False)
    annotations: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class EnumItem:
    name: str
    value: int


@dataclass(frozen=True)
class EnumSpec:
    name: str
    file: str
    items: tuple[EnumItem, ...] = ()
    doc: str = field(default="", compare=False)
    annotations: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class TypedefSpec:
    name: str
    file: str
    target: TypeSpec
    doc: str = field(default="", compare=False)
    annotations: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Constant:
    """A named constant defined in a schema file."""

    name: str
    file: str
    type: TypeSpec
    value: Any = field(default=None, compare=False)
    doc: str = field(default="", compare=False)


TypeSpec = NativeType | ListSpec | SetSpec | MapSpec | StructSpec | EnumSpec | TypedefSpec

USER_DEFINED = (StructSpec, EnumSpec, TypedefSpec)


def is_user_defined(spec: TypeSpec) -> bool:
    return isinstance(spec, USER_DEFINED)


def root_spec(spec: TypeSpec) -> TypeSpec:
    """Follow typedefs down to the type they alias."""
    while isinstance(spec, TypedefSpec):
        spec = spec.target
    return spec


def is_primitive_type(spec: TypeSpec) -> bool:
    """Check if the type is represented by a primitive value (not binary)."""
    spec = root_spec(spec)
    if isinstance(spec, NativeType):
        return spec.kind != NativeKind.BINARY
    return isinstance(spec, EnumSpec)


def is_hashable(spec: TypeSpec) -> bool:
    """Check if values of the type can be used as map keys."""
    return is_primitive_type(spec)


def is_struct_type(spec: TypeSpec) -> bool:
    return isinstance(root_spec(spec), StructSpec)


def is_reference_type(spec: TypeSpec) -> bool:
    """Check if values of the type are already references (nil-able)."""
    spec = root_spec(spec)
    if isinstance(spec, NativeType):
        return spec.kind == NativeKind.BINARY
    return isinstance(spec, (ListSpec, SetSpec, MapSpec))


BOOL = NativeType(NativeKind.BOOL)
BYTE = NativeType(NativeKind.BYTE)
I8 = NativeType(NativeKind.I8)
I16 = NativeType(NativeKind.I16)
I32 = NativeType(NativeKind.I32)
I64 = NativeType(NativeKind.I64)
DOUBLE = NativeType(NativeKind.DOUBLE)
STRING = NativeType(NativeKind.STRING)
BINARY = NativeType(NativeKind.BINARY)

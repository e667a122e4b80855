"""
Go target.

Uses tree-sitter and tree-sitter-go to validate rendered fragments and
split them into top-level declarations.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

import tree_sitter_go as ts_go
from tree_sitter import Language, Node, Parser

from ..errors import CompileError, TypeLookupError, UnsupportedDeclarationError
from ..naming import go_case, is_identifier
from ..types import (
    ListSpec,
    MapSpec,
    NativeKind,
    NativeType,
    SetSpec,
    TypeSpec,
    is_hashable,
    is_reference_type,
    is_struct_type,
)
from .base import Declaration, DeclarationKind, ImportSpec, Target, TypeResolver

# Fragments only hold top-level declarations, the grammar wants a package clause first
_SYNTHETIC_HEADER = "package idltocode\n\n"
_SYNTHETIC_HEADER_LINES = 2

_NATIVE_TYPES = {
    NativeKind.BOOL: "bool",
    NativeKind.BYTE: "int8",
    NativeKind.I8: "int8",
    NativeKind.I16: "int16",
    NativeKind.I32: "int32",
    NativeKind.I64: "int64",
    NativeKind.DOUBLE: "float64",
    NativeKind.STRING: "string",
    NativeKind.BINARY: "[]byte",
}

_MAJOR_VERSION = re.compile(r"^v[0-9]+$")

# Blank and dot imports do not bind a name
_UNBOUND_ALIASES = {"_", "."}


def _text(node: Node) -> str:
    return node.text.decode("utf8")


def _specs(node: Node, kinds: tuple[str, ...]) -> Iterator[Node]:
    """Yield the specs of a declaration, looking through grouped spec lists."""
    for child in node.named_children:
        if child.type in kinds:
            yield child
        elif child.type.endswith("_spec_list"):
            yield from _specs(child, kinds)


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _receiver_type(node: Node) -> str:
    """Return the bare receiver type name of a method declaration."""
    receiver = node.child_by_field_name("receiver")
    for param in receiver.named_children:
        type_node = param.child_by_field_name("type")
        if type_node is not None:
            name = _text(type_node).lstrip("*( ").rstrip(") ")
            return name.split("[", 1)[0].strip()
    return ""


class GoTarget(Target):
    """Target for Go source files."""

    language = "go"
    reentrant_names = frozenset({"init"})
    comment_prefix = "//"

    def __init__(self):
        self._parser = Parser(Language(ts_go.language()))

    def parse(self, fragment: str) -> list[Declaration]:
        # The last declaration needs a terminator, fragments usually lack one
        source = (_SYNTHETIC_HEADER + fragment + "\n").encode("utf8")
        tree = self._parser.parse(source)
        root = tree.root_node

        if root.has_error:
            error = _first_error(root)
            last_line = fragment.count("\n") + 1
            if error is None:
                line = last_line
            else:
                line = min(max(error.start_point[0] - _SYNTHETIC_HEADER_LINES + 1, 1), last_line)
            raise CompileError(f"could not parse generated code at line {line}", fragment)

        # [start_byte, end_byte, node] for every declaration, doc comments included
        pieces: list[list] = []
        doc_start = None
        doc_end = None
        last_row = -1
        for index, node in enumerate(root.named_children):
            if node.type == "package_clause":
                if index:
                    raise UnsupportedDeclarationError(f"package clause in generated code: {_text(node)}")
                continue
            if node.type == "comment":
                if pieces and doc_start is None and node.start_point[0] == last_row:
                    # Trailing comment on the same line as the previous declaration
                    pieces[-1][1] = node.end_byte
                else:
                    if doc_start is None:
                        doc_start = node.start_byte
                    doc_end = node.end_byte
                continue
            start = node.start_byte if doc_start is None else doc_start
            doc_start = None
            pieces.append([start, node.end_byte, node])
            last_row = node.end_point[0]

        if doc_start is not None:
            if not pieces:
                raise UnsupportedDeclarationError(f"comment without a declaration: {fragment.strip()}")
            # Comments after the last declaration stay with it
            pieces[-1][1] = doc_end

        return [self._declaration(node, source[start:end].decode("utf8")) for start, end, node in pieces]

    def _declaration(self, node: Node, text: str) -> Declaration:
        kind = node.type
        if kind == "function_declaration":
            name = _text(node.child_by_field_name("name"))
            return Declaration(DeclarationKind.FUNCTION, (name,), text)

        if kind == "method_declaration":
            # Methods are recorded as "Receiver:Method" so that unrelated types
            # may define methods with the same name
            name = _text(node.child_by_field_name("name"))
            return Declaration(DeclarationKind.FUNCTION, (f"{_receiver_type(node)}:{name}",), text)

        if kind == "type_declaration":
            names = tuple(_text(spec.child_by_field_name("name")) for spec in _specs(node, ("type_spec", "type_alias")))
            return Declaration(DeclarationKind.TYPE, names, text)

        if kind in ("const_declaration", "var_declaration"):
            spec_kind = "const_spec" if kind == "const_declaration" else "var_spec"
            names = []
            for spec in _specs(node, (spec_kind,)):
                names.extend(_text(name) for name in spec.children_by_field_name("name"))
            decl_kind = DeclarationKind.CONSTANT if kind == "const_declaration" else DeclarationKind.VARIABLE
            return Declaration(decl_kind, tuple(n for n in names if n != "_"), text)

        if kind == "import_declaration":
            imports = [self._import_spec(spec) for spec in _specs(node, ("import_spec",))]
            return Declaration(DeclarationKind.IMPORT, (), text, imports=imports)

        raise UnsupportedDeclarationError(f"unknown declaration: {text}")

    def _import_spec(self, node: Node) -> ImportSpec:
        path = _text(node.child_by_field_name("path"))[1:-1]
        name = node.child_by_field_name("name")
        if name is None:
            return ImportSpec(path, self.default_alias(path))
        return ImportSpec(path, _text(name), explicit_alias=True)

    def package_header(self, package_name: str) -> str:
        return f"package {package_name}\n"

    def default_alias(self, path: str) -> str:
        parts = [part for part in path.split("/") if part]
        if not parts:
            return "pkg"
        name = parts[-1]
        if len(parts) > 1 and _MAJOR_VERSION.match(name):
            name = parts[-2]
        # gopkg.in/yaml.v2 is imported as yaml
        name = name.split(".", 1)[0]
        name = re.sub(r"[^0-9A-Za-z_]", "_", name)
        if not name or name[0].isdigit():
            name = "_" + name
        return name

    def _import_line(self, spec: ImportSpec) -> str:
        if spec.explicit_alias or spec.alias != self.default_alias(spec.path):
            return f'{spec.alias} "{spec.path}"'
        return f'"{spec.path}"'

    def import_block(self, imports: Iterable[ImportSpec]) -> str:
        specs = sorted(imports, key=lambda spec: (spec.path, spec.alias))
        if not specs:
            return ""
        if len(specs) == 1:
            return f"import {self._import_line(specs[0])}\n"

        # Standard library paths have no dot in their first element
        stdlib = [spec for spec in specs if "." not in spec.path.split("/", 1)[0]]
        others = [spec for spec in specs if spec not in stdlib]
        groups = ["\n".join(f"\t{self._import_line(spec)}" for spec in group) for group in (stdlib, others) if group]
        return "import (\n" + "\n\n".join(groups) + "\n)\n"

    def is_unbound_alias(self, alias: str) -> bool:
        return alias in _UNBOUND_ALIASES

    def declared_name(self, spec: TypeSpec) -> str:
        annotated = getattr(spec, "annotations", {}).get("go.name")
        if annotated is not None:
            if not is_identifier(annotated):
                raise TypeLookupError(f"go.name annotation {annotated!r} on {spec.name!r} is not a valid Go identifier")
            return annotated
        return go_case(spec.name)

    def constant_name(self, name: str) -> str:
        return go_case(name)

    def type_reference(self, spec: TypeSpec, resolve: TypeResolver) -> str:
        if isinstance(spec, NativeType):
            return _NATIVE_TYPES[spec.kind]
        if isinstance(spec, ListSpec):
            return "[]" + self.type_reference(spec.value_spec, resolve)
        if isinstance(spec, SetSpec):
            value = self.type_reference(spec.value_spec, resolve)
            if is_hashable(spec.value_spec):
                return f"map[{value}]struct{{}}"
            return "[]" + value
        if isinstance(spec, MapSpec):
            key = self.type_reference(spec.key_spec, resolve)
            value = self.type_reference(spec.value_spec, resolve)
            if is_hashable(spec.key_spec):
                return f"map[{key}]{value}"
            return f"[]struct{{Key {key}; Value {value}}}"
        name = resolve(spec)
        if is_struct_type(spec):
            return "*" + name
        return name

    def type_reference_ptr(self, spec: TypeSpec, resolve: TypeResolver) -> str:
        reference = self.type_reference(spec, resolve)
        if is_reference_type(spec) or is_struct_type(spec):
            return reference
        return "*" + reference

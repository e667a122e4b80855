"""
Python target.

Uses Python's built-in ast module to validate rendered fragments and
split them into top-level declarations.
"""

from __future__ import annotations

import ast
import sys
from collections.abc import Iterable

from ..errors import CompileError, TypeLookupError, UnsupportedDeclarationError
from ..naming import go_case, is_identifier, snake_case
from ..types import ListSpec, MapSpec, NativeKind, NativeType, SetSpec, TypeSpec
from .base import Declaration, DeclarationKind, ImportSpec, Target, TypeResolver

_NATIVE_TYPES = {
    NativeKind.BOOL: "bool",
    NativeKind.BYTE: "int",
    NativeKind.I8: "int",
    NativeKind.I16: "int",
    NativeKind.I32: "int",
    NativeKind.I64: "int",
    NativeKind.DOUBLE: "float",
    NativeKind.STRING: "str",
    NativeKind.BINARY: "bytes",
}

# Import groups, in output order
_FUTURE, _STDLIB, _THIRD_PARTY, _LOCAL = range(4)


def _assigned_names(target: ast.expr) -> list[str]:
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        names = []
        for element in target.elts:
            names.extend(_assigned_names(element))
        return names
    raise UnsupportedDeclarationError(f"unsupported assignment target: {ast.unparse(target)}")


def _split_module(path: str) -> tuple[str, str]:
    """Split a dotted module path into its parent package and last element."""
    index = path.rfind(".")
    if index < 0:
        return "", path
    parent = path[:index]
    if not parent.strip("."):
        # Relative imports keep their leading dots: ".models" -> (".", "models")
        parent = path[: index + 1]
    return parent, path[index + 1 :]


def _binds_top_package(spec: ImportSpec) -> bool:
    """Check if a spec is a plain ``import a.b`` binding its top-level package."""
    return spec.member is None and not spec.explicit_alias and spec.alias == spec.path.split(".", 1)[0]


def _import_group(spec: ImportSpec) -> int:
    if spec.path.startswith("."):
        return _LOCAL
    top = spec.path.split(".", 1)[0]
    if top == "__future__":
        return _FUTURE
    if top in sys.stdlib_module_names:
        return _STDLIB
    return _THIRD_PARTY


class PythonTarget(Target):
    """Target for Python modules."""

    language = "python"
    reentrant_names = frozenset()
    comment_prefix = "#"

    def parse(self, fragment: str) -> list[Declaration]:
        try:
            module = ast.parse(fragment)
        except SyntaxError as e:
            raise CompileError(f"could not parse generated code at line {e.lineno}: {e.msg}", fragment) from e

        lines = fragment.splitlines(keepends=True)
        declarations = []
        previous_end = 0
        for node in module.body:
            decorators = getattr(node, "decorator_list", [])
            first = min([node.lineno] + [d.lineno for d in decorators]) - 1
            # Comment lines directly above a declaration belong to it
            while first > previous_end and lines[first - 1].lstrip().startswith("#"):
                first -= 1
            text = "".join(lines[first : node.end_lineno]).rstrip("\n")
            previous_end = node.end_lineno
            declarations.append(self._declaration(node, text))
        return declarations

    def _declaration(self, node: ast.stmt, text: str) -> Declaration:
        if isinstance(node, ast.Import):
            imports = []
            for alias in node.names:
                if alias.asname:
                    imports.append(ImportSpec(alias.name, alias.asname, explicit_alias=True))
                else:
                    # "import a.b" binds "a"
                    imports.append(ImportSpec(alias.name, alias.name.split(".", 1)[0]))
            return Declaration(DeclarationKind.IMPORT, (), text, imports=imports)

        if isinstance(node, ast.ImportFrom):
            module = "." * node.level + (node.module or "")
            imports = []
            for alias in node.names:
                if alias.name == "*":
                    raise UnsupportedDeclarationError(f"star imports are not supported: {text}")
                imports.append(ImportSpec(module, alias.asname or alias.name, member=alias.name, explicit_alias=alias.asname is not None))
            return Declaration(DeclarationKind.IMPORT, (), text, imports=imports)

        if isinstance(node, ast.ClassDef):
            return Declaration(DeclarationKind.TYPE, (node.name,), text)

        if isinstance(node, ast.TypeAlias):
            return Declaration(DeclarationKind.TYPE, (node.name.id,), text)

        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            return Declaration(DeclarationKind.FUNCTION, (node.name,), text)

        if isinstance(node, (ast.Assign, ast.AnnAssign)):
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            names = []
            for target in targets:
                names.extend(_assigned_names(target))
            names = [name for name in names if name != "_"]
            if names and all(name.isupper() for name in names):
                kind = DeclarationKind.CONSTANT
            else:
                kind = DeclarationKind.VARIABLE
            return Declaration(kind, tuple(names), text)

        raise UnsupportedDeclarationError(f"unknown declaration: {text}")

    def package_header(self, package_name: str) -> str:
        return ""

    def module_separator(self) -> str:
        return "."

    def default_alias(self, path: str) -> str:
        return path.rsplit(".", 1)[-1] or path

    def shares_alias(self, existing: ImportSpec, spec: ImportSpec) -> bool:
        # "import a.b" and "import a.c" bind the same package object a
        return _binds_top_package(existing) and _binds_top_package(spec)

    def _statement(self, spec: ImportSpec) -> tuple[str | None, str]:
        """Return (from-module, imported clause) for an import spec.

        The from-module is None for plain ``import`` statements.
        """
        if spec.member is not None:
            if spec.alias == spec.member:
                return spec.path, spec.member
            return spec.path, f"{spec.member} as {spec.alias}"
        if spec.alias == spec.path:
            return None, spec.path
        if not spec.explicit_alias and spec.alias == spec.path.split(".", 1)[0]:
            return None, spec.path
        parent, last = _split_module(spec.path)
        if "." in spec.path and parent:
            if spec.alias == last:
                return parent, last
            return parent, f"{last} as {spec.alias}"
        return None, f"{spec.path} as {spec.alias}"

    def import_block(self, imports: Iterable[ImportSpec]) -> str:
        groups: dict[int, tuple[set[str], dict[str, set[str]]]] = {}
        for spec in imports:
            plain, froms = groups.setdefault(_import_group(spec), (set(), {}))
            module, clause = self._statement(spec)
            if module is None:
                plain.add(f"import {clause}")
            else:
                froms.setdefault(module, set()).add(clause)

        blocks = []
        for group in sorted(groups):
            plain, froms = groups[group]
            lines = sorted(plain)
            for module in sorted(froms):
                lines.append(f"from {module} import {', '.join(sorted(froms[module]))}")
            blocks.append("\n".join(lines))
        if not blocks:
            return ""
        return "\n\n".join(blocks) + "\n"

    def declared_name(self, spec: TypeSpec) -> str:
        annotated = getattr(spec, "annotations", {}).get("py.name")
        if annotated is not None:
            if not is_identifier(annotated):
                raise TypeLookupError(f"py.name annotation {annotated!r} on {spec.name!r} is not a valid Python identifier")
            return annotated
        return go_case(spec.name)

    def constant_name(self, name: str) -> str:
        return snake_case(name).upper()

    def type_reference(self, spec: TypeSpec, resolve: TypeResolver) -> str:
        if isinstance(spec, NativeType):
            return _NATIVE_TYPES[spec.kind]
        if isinstance(spec, ListSpec):
            return f"list[{self.type_reference(spec.value_spec, resolve)}]"
        if isinstance(spec, SetSpec):
            return f"set[{self.type_reference(spec.value_spec, resolve)}]"
        if isinstance(spec, MapSpec):
            return f"dict[{self.type_reference(spec.key_spec, resolve)}, {self.type_reference(spec.value_spec, resolve)}]"
        return resolve(spec)

    def type_reference_ptr(self, spec: TypeSpec, resolve: TypeResolver) -> str:
        return f"{self.type_reference(spec, resolve)} | None"

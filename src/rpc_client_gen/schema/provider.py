"""Schema derivation from class and alias declarations in the project sources.

Documents follow the JSON schema draft-07 layout: a ``$ref`` to the requested
type plus a ``definitions`` map holding it and every project type it uses.
"""

import ast
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from rpc_client_gen.analysis.project import AstProject, SourceModule
from rpc_client_gen.analysis.types import (
    ASYNC_LIKE,
    LIST_LIKE,
    MAPPING_LIKE,
    TRANSPARENT_WRAPPERS,
    TUPLE_LIKE,
    parse_annotation,
    symbol_name,
    type_arguments,
)
from rpc_client_gen.errors import SchemaDerivationError
from rpc_client_gen.schema.base import JSON_SCHEMA_DRAFT, TYPE_PARAMETER_KEY, TYPE_PARAMETERS_KEY

logger = logging.getLogger(__name__)

JSON_PRIMITIVES: dict[str, dict[str, Any]] = {
    "str": {"type": "string"},
    "bytes": {"type": "string"},
    "UUID": {"type": "string", "format": "uuid"},
    "datetime": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
    "time": {"type": "string", "format": "time"},
    "Path": {"type": "string"},
    "EmailStr": {"type": "string", "format": "email"},
    "HttpUrl": {"type": "string", "format": "uri"},
    "AnyUrl": {"type": "string", "format": "uri"},
    "int": {"type": "integer"},
    "float": {"type": "number"},
    "Decimal": {"type": "number"},
    "timedelta": {"type": "number"},
    "bool": {"type": "boolean"},
    "None": {"type": "null"},
    "NoneType": {"type": "null"},
    "dict": {"type": "object"},
    "Dict": {"type": "object"},
    "list": {"type": "array"},
    "List": {"type": "array"},
    "Any": {},
    "object": {},
}

ENUM_BASES = frozenset({"Enum", "StrEnum", "IntEnum", "Flag", "IntFlag"})
FIELD_FACTORIES = frozenset({"Field", "field", "attrib", "ib"})
GENERIC_BASES = frozenset({"Generic", "Protocol"})


class SchemaSession(ABC):
    def __enter__(self) -> "SchemaSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def derive_schema(self, type_name: str) -> dict[str, Any]: ...


class SchemaProvider(ABC):
    @abstractmethod
    def open(self, pattern: str, project_root: Path) -> SchemaSession:
        """Acquire a session scoped to the controller files matching *pattern*."""


def _has_default(value: ast.expr | None) -> bool:
    """Whether a class-level field assignment gives the field a default."""
    if value is None:
        return False
    if isinstance(value, ast.Call) and symbol_name(value.func) in FIELD_FACTORIES:
        if any(kw.arg in ("default", "default_factory", "factory") for kw in value.keywords):
            return True
        if value.args:
            first = value.args[0]
            return not (isinstance(first, ast.Constant) and first.value is Ellipsis)
        return False
    return True


def _is_class_var(annotation: ast.expr) -> bool:
    target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    return symbol_name(target) == "ClassVar"


def _is_not_required(annotation: ast.expr) -> bool:
    return isinstance(annotation, ast.Subscript) and symbol_name(annotation.value) == "NotRequired"


def _type_parameters(node: ast.ClassDef) -> list[str]:
    """Type parameters a class declares, from ``class X[T]`` or a ``Generic[T]`` base."""
    names = [param.name for param in getattr(node, "type_params", ())]
    for base in node.bases:
        if isinstance(base, ast.Subscript) and symbol_name(base.value) in GENERIC_BASES:
            names.extend(arg.id for arg in type_arguments(base) if isinstance(arg, ast.Name))
    return list(dict.fromkeys(names))


class AstSchemaSession(SchemaSession):
    def __init__(self, project: AstProject):
        self.project = project
        self._type_params: frozenset[str] = frozenset()

    def close(self) -> None:
        self.project.close()

    def derive_schema(self, type_name: str) -> dict[str, Any]:
        found = self.project.find_declaration(type_name)
        if found is None:
            raise SchemaDerivationError(f"No type named {type_name!r} reachable from {self.project.pattern}")

        definitions: dict[str, Any] = {}
        self._define(type_name, found, definitions)
        return {
            "$schema": JSON_SCHEMA_DRAFT,
            "$ref": f"#/definitions/{type_name}",
            "definitions": definitions,
        }

    def _define(self, name: str, found: tuple[SourceModule, ast.AST], definitions: dict) -> None:
        if name in definitions:
            return
        definitions[name] = {}  # placeholder for self-referencing types
        module, declaration = found
        outer = self._type_params
        try:
            if isinstance(declaration, ast.ClassDef):
                self._type_params = frozenset(_type_parameters(declaration))
                definitions[name] = self._class_schema(module, declaration, definitions)
            else:
                self._type_params = frozenset()
                definitions[name] = self._type_schema(declaration, definitions)
        finally:
            self._type_params = outer

    def _reference(self, name: str, definitions: dict) -> dict[str, Any]:
        found = self.project.find_declaration(name)
        if found is None:
            logger.debug("Type %s is not declared in the project; leaving it unconstrained", name)
            return {}
        self._define(name, found, definitions)
        return {"$ref": f"#/definitions/{name}"}

    # -- annotations ----------------------------------------------------------

    def _type_schema(self, node: ast.expr, definitions: dict) -> dict[str, Any]:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, str):
                return self._type_schema(parse_annotation(node.value), definitions)
            return {"type": "null"} if node.value is None else {}

        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return {"anyOf": [self._type_schema(m, definitions) for m in (node.left, node.right)]}

        if isinstance(node, (ast.Name, ast.Attribute)):
            name = symbol_name(node)
            if name in self._type_params:
                return {TYPE_PARAMETER_KEY: name}
            if name in JSON_PRIMITIVES:
                return dict(JSON_PRIMITIVES[name])
            return self._reference(name, definitions)

        if isinstance(node, ast.Subscript):
            return self._generic_schema(symbol_name(node.value), type_arguments(node), definitions)

        return {}

    def _generic_schema(self, name: str, args: list[ast.expr], definitions: dict) -> dict[str, Any]:
        if name == "Optional":
            return {"anyOf": [self._type_schema(args[0], definitions), {"type": "null"}]}
        if name == "Union":
            return {"anyOf": [self._type_schema(a, definitions) for a in args]}
        if name in TRANSPARENT_WRAPPERS:
            return self._type_schema(args[0], definitions)
        if name == "Literal":
            values = [a.value for a in args if isinstance(a, ast.Constant)]
            schema: dict[str, Any] = {"enum": values}
            if values and all(isinstance(v, str) for v in values):
                schema["type"] = "string"
            elif values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
                schema["type"] = "integer"
            return schema
        if name in LIST_LIKE:
            return {"type": "array", "items": self._type_schema(args[0], definitions)}
        if name in TUPLE_LIKE:
            if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
                return {"type": "array", "items": self._type_schema(args[0], definitions)}
            return {
                "type": "array",
                "items": [self._type_schema(a, definitions) for a in args],
                "minItems": len(args),
                "maxItems": len(args),
            }
        if name in MAPPING_LIKE:
            value = self._type_schema(args[1], definitions) if len(args) > 1 else {}
            return {"type": "object", "additionalProperties": value}
        if name in ASYNC_LIKE:
            return self._type_schema(args[-1], definitions)
        return self._reference(name, definitions)

    # -- classes --------------------------------------------------------------

    def _class_schema(self, module: SourceModule, node: ast.ClassDef, definitions: dict) -> dict[str, Any]:
        if any(symbol_name(base) in ENUM_BASES for base in node.bases):
            return self._enum_schema(node)

        fields, optional = self._collect_fields(node, set())
        properties = {name: self._type_schema(annotation, definitions) for name, annotation in fields.items()}

        schema: dict[str, Any] = {
            "type": "object",
            "properties": properties,
            "required": [name for name in fields if name not in optional],
            "additionalProperties": False,
        }
        type_params = _type_parameters(node)
        if type_params:
            schema[TYPE_PARAMETERS_KEY] = type_params
        docstring = ast.get_docstring(node)
        if docstring:
            schema["description"] = docstring
        return schema

    def _collect_fields(self, node: ast.ClassDef, seen: set[str]) -> tuple[dict[str, ast.expr], set[str]]:
        """Annotated fields of a class, inherited project fields first."""
        seen.add(node.name)
        fields: dict[str, ast.expr] = {}
        optional: set[str] = set()

        for base in node.bases:
            base_name = symbol_name(base.value if isinstance(base, ast.Subscript) else base)
            if base_name in seen:
                continue
            found = self.project.find_declaration(base_name)
            if found is not None and isinstance(found[1], ast.ClassDef):
                base_fields, base_optional = self._collect_fields(found[1], seen)
                fields.update(base_fields)
                optional |= base_optional

        total = all(
            not (kw.arg == "total" and isinstance(kw.value, ast.Constant) and kw.value.value is False)
            for kw in node.keywords
        )

        for stmt in node.body:
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue
            name = stmt.target.id
            if name.startswith("_") or _is_class_var(stmt.annotation):
                continue
            fields[name] = stmt.annotation
            if not total or _is_not_required(stmt.annotation) or _has_default(stmt.value):
                optional.add(name)
            else:
                optional.discard(name)
        return fields, optional

    def _enum_schema(self, node: ast.ClassDef) -> dict[str, Any]:
        values = [
            stmt.value.value
            for stmt in node.body
            if isinstance(stmt, ast.Assign) and isinstance(stmt.value, ast.Constant)
        ]
        schema: dict[str, Any] = {"enum": values}
        if values and all(isinstance(v, str) for v in values):
            schema["type"] = "string"
        elif values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            schema["type"] = "integer"
        return schema


class AstSchemaProvider(SchemaProvider):
    """Derives schemas statically from pydantic models, dataclasses, TypedDicts, enums and aliases."""

    def open(self, pattern: str, project_root: Path) -> AstSchemaSession:
        return AstSchemaSession(AstProject(pattern, project_root))

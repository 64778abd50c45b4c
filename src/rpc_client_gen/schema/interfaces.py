"""TypeScript declarations synthesized from structural schemas."""

import re

from rpc_client_gen.analysis.types import ts_string_literal
from rpc_client_gen.schema.base import TYPE_PARAMETER_KEY, TYPE_PARAMETERS_KEY

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def map_json_schema_type(schema: dict) -> str:
    """Map one JSON schema node to TypeScript type text."""
    if isinstance(schema.get(TYPE_PARAMETER_KEY), str):
        return schema[TYPE_PARAMETER_KEY]

    schema_type = schema.get("type")

    if schema_type == "string":
        enum = schema.get("enum")
        if isinstance(enum, list) and enum:
            return " | ".join(ts_string_literal(str(value)) for value in enum)
        return "string"
    if schema_type in ("number", "integer"):
        return "number"
    if schema_type == "boolean":
        return "boolean"
    if schema_type == "array":
        items = schema.get("items")
        item_type = map_json_schema_type(items if isinstance(items, dict) else {})
        return f"({item_type})[]" if " | " in item_type else f"{item_type}[]"
    if schema_type == "object":
        return "Record<string, any>"
    return "any"


def _property_key(name: str) -> str:
    return name if _IDENTIFIER.match(name) else ts_string_literal(name)


def _type_parameter_list(definition: dict) -> str:
    """``<T = any, U = any>`` for a generic definition, empty otherwise."""
    params = definition.get(TYPE_PARAMETERS_KEY) or []
    if not params:
        return ""
    return "<" + ", ".join(f"{param} = any" for param in params) + ">"


def generate_typescript_interface(type_name: str, schema: dict) -> str:
    """Render the declaration for *type_name* from its schema document.

    Object definitions become interfaces; enums and aliases become type aliases.
    Generic classes keep their type parameters, each defaulting to ``any`` so
    the bare name stays usable.
    """
    definition = (schema.get("definitions") or {}).get(type_name)
    if not definition:
        return f"export interface {type_name} {{\n\t// No schema definition found\n}}"

    if definition.get("type") != "object" and "properties" not in definition:
        return f"export type {type_name} = {map_json_schema_type(definition)}"

    properties = definition.get("properties") or {}
    required = definition.get("required") or []

    lines = [f"export interface {type_name}{_type_parameter_list(definition)} {{"]
    for prop_name, prop_schema in properties.items():
        optional = "" if prop_name in required else "?"
        lines.append(f"\t{_property_key(prop_name)}{optional}: {map_json_schema_type(prop_schema)}")
    lines.append("}")
    return "\n".join(lines)

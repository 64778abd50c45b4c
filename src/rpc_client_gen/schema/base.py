"""Schema records produced by the schema generator."""

from typing import Any

from pydantic import BaseModel, ConfigDict

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"

# Extension keys: a generic class lists its type parameters, and a property
# typed by one of them refers to it by name.
TYPE_PARAMETERS_KEY = "x-type-parameters"
TYPE_PARAMETER_KEY = "x-type-parameter"


def fallback_schema() -> dict[str, Any]:
    """Document substituted when a type's schema cannot be derived."""
    return {"type": "object", "properties": {}, "required": []}


class SchemaRecord(BaseModel):
    """A referenced type, its structural schema and the TypeScript text derived from it."""

    model_config = ConfigDict(frozen=True)

    type: str
    document: dict[str, Any]
    typescript_type: str | None = None

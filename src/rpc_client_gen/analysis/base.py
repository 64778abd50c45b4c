"""Data models shared by the analysis and generation stages.

The host's route table carries no static types; the route analyzer joins it
with the controller sources and produces EnrichedRoute objects that every
later stage reads but never modifies.
"""

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, field_validator


class ParameterSource(str, Enum):
    """Where a handler parameter is read from in the incoming request."""

    PATH = "path"
    QUERY = "query"
    BODY = "body"
    HEADER = "header"
    CUSTOM = "custom"
    UNKNOWN = "unknown"


SOURCE_ALIASES = {
    "path": ParameterSource.PATH,
    "param": ParameterSource.PATH,
    "params": ParameterSource.PATH,
    "query": ParameterSource.QUERY,
    "body": ParameterSource.BODY,
    "header": ParameterSource.HEADER,
    "headers": ParameterSource.HEADER,
    "custom": ParameterSource.CUSTOM,
    "req": ParameterSource.CUSTOM,
    "request": ParameterSource.CUSTOM,
    "context": ParameterSource.CUSTOM,
    "ctx": ParameterSource.CUSTOM,
}


class _Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    data: str | None = None  # ":id", "page", "x-api-key" ...
    metatype: str | None = None  # declared type name from the host, if any


class PathParameter(_Parameter):
    source: Literal[ParameterSource.PATH] = ParameterSource.PATH


class QueryParameter(_Parameter):
    source: Literal[ParameterSource.QUERY] = ParameterSource.QUERY


class BodyParameter(_Parameter):
    source: Literal[ParameterSource.BODY] = ParameterSource.BODY


class HeaderParameter(_Parameter):
    source: Literal[ParameterSource.HEADER] = ParameterSource.HEADER


class CustomParameter(_Parameter):
    source: Literal[ParameterSource.CUSTOM] = ParameterSource.CUSTOM


class OpaqueParameter(_Parameter):
    """A parameter whose source token is not recognized; keeps the raw data."""

    source: Literal[ParameterSource.UNKNOWN] = ParameterSource.UNKNOWN
    token: str = ""
    raw: dict[str, Any] = {}


ParameterDescriptor = Union[
    PathParameter, QueryParameter, BodyParameter, HeaderParameter, CustomParameter, OpaqueParameter
]

_PARAMETER_CLASSES = {
    ParameterSource.PATH: PathParameter,
    ParameterSource.QUERY: QueryParameter,
    ParameterSource.BODY: BodyParameter,
    ParameterSource.HEADER: HeaderParameter,
    ParameterSource.CUSTOM: CustomParameter,
}


def parse_parameter(raw: dict | _Parameter) -> ParameterDescriptor:
    """Build the right parameter variant from a raw route-table entry."""
    if isinstance(raw, _Parameter):
        return raw

    token = str(raw.get("source", raw.get("type", ""))).strip().lower()
    data = raw.get("data")
    metatype = raw.get("metatype")
    if isinstance(metatype, dict):
        metatype = metatype.get("name")

    fields = {
        "index": raw["index"],
        "data": data if isinstance(data, str) else None,
        "metatype": str(metatype) if metatype else None,
    }

    source = SOURCE_ALIASES.get(token)
    if source is None:
        extra = {k: v for k, v in raw.items() if k not in ("index", "source", "type", "data", "metatype")}
        if data is not None and not isinstance(data, str):
            extra["data"] = data
        return OpaqueParameter(token=token, raw=extra, **fields)
    return _PARAMETER_CLASSES[source](**fields)


class RouteEntry(BaseModel):
    """One route from the host's route table; no static type information."""

    model_config = ConfigDict(frozen=True)

    controller: str
    handler: str
    method: str
    prefix: str = ""
    version: str = ""
    route: str = ""
    path: str = ""
    parameters: tuple[ParameterDescriptor, ...] = ()

    @field_validator("prefix", "version", "route", "path", mode="before")
    @classmethod
    def _coerce_segment(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("parameters", mode="before")
    @classmethod
    def _parse_parameters(cls, value: Any) -> tuple:
        return tuple(parse_parameter(p) for p in (value or ()))


class TypedParameter(BaseModel):
    """A route parameter paired with its declared name and type text."""

    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    type: str
    required: bool
    metadata: ParameterDescriptor

    @property
    def source(self) -> ParameterSource:
        return self.metadata.source

    @property
    def data(self) -> str | None:
        return self.metadata.data


class EnrichedRoute(BaseModel):
    """A RouteEntry joined with the static types of its handler."""

    model_config = ConfigDict(frozen=True)

    controller: str
    handler: str
    method: str
    prefix: str = ""
    version: str = ""
    route: str = ""
    path: str = ""
    full_path: str
    returns: str | None = None
    parameters: tuple[TypedParameter, ...] | None = None

"""Client generator: renders the typed TypeScript client module."""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict

from rpc_client_gen.analysis.base import EnrichedRoute, ParameterSource, TypedParameter
from rpc_client_gen.analysis.paths import path_tokens
from rpc_client_gen.errors import ClientEmissionError
from rpc_client_gen.generator.templates import (
    CLIENT_CLASS_NAME,
    render_client_base,
    render_header,
    render_shared_types,
)
from rpc_client_gen.generator.validator import IDENTIFIER, controller_property_name, validate_routes
from rpc_client_gen.schema.base import SchemaRecord

logger = logging.getLogger(__name__)

# Order of the RequestOptions type arguments.
FACET_SOURCES = (ParameterSource.PATH, ParameterSource.QUERY, ParameterSource.BODY, ParameterSource.HEADER)

class GeneratedModule(BaseModel):
    """The emitted client source and when it was produced."""

    model_config = ConfigDict(frozen=True)

    text: str
    generated_at: datetime


def _property_key(name: str) -> str:
    return name if IDENTIFIER.match(name) else f"'{name}'"


def _facet_type(
    parameters: tuple[TypedParameter, ...], source: ParameterSource, extra_keys: Sequence[str] = ()
) -> str | None:
    """Type of one RequestOptions facet, or None when the route has no such parameter.

    Parameters with a data token contribute one named property; parameters
    without one contribute their whole type.
    """
    named: dict[str, str] = {}
    whole: list[str] = []
    for param in parameters:
        if param.source != source:
            continue
        key = param.data.lstrip(":") if param.data else ""
        if key:
            named.setdefault(key, param.type)
        else:
            whole.append(param.type)
    for key in extra_keys:
        named.setdefault(key, "string")

    parts = list(whole)
    if named:
        parts.append("{ " + "; ".join(f"{_property_key(k)}: {t}" for k, t in named.items()) + " }")
    if len(parts) > 1:
        parts = [f"({p})" if " | " in p else p for p in parts]
    return " & ".join(parts) if parts else None


def response_type(returns: str | None) -> str:
    """Handler return type with one Promise<...> layer removed."""
    if not returns:
        return "any"
    text = returns.strip()
    if not (text.startswith("Promise<") and text.endswith(">")):
        return returns
    inner = text[len("Promise<"):-1]
    depth = 0
    for i, char in enumerate(inner):
        if char == "<":
            depth += 1
        elif char == ">" and inner[i - 1 : i] != "=":
            depth -= 1
            if depth < 0:
                # Promise<A> | Promise<B>: the first bracket closes early
                return returns
    return inner


class ClientGenerator:
    """Builds one GeneratedModule from enriched routes and schema records."""

    def generate(self, routes: list[EnrichedRoute], schemas: list[SchemaRecord]) -> GeneratedModule:
        errors = validate_routes(routes, schemas)
        if errors:
            raise ClientEmissionError([f"{key}: {message}" for key, message in errors.items()])

        sections = [render_header(), render_shared_types(), render_client_base()]

        groups = self._group_by_controller(routes)
        if groups:
            sections.append(self._render_client_class(groups))

        interfaces = self._render_interfaces(schemas)
        if interfaces:
            sections.append(interfaces)

        text = "\n\n".join(section.strip("\n") for section in sections) + "\n"
        logger.debug("Rendered client with %d controllers and %d routes", len(groups), len(routes))
        return GeneratedModule(text=text, generated_at=datetime.now(timezone.utc))

    def _group_by_controller(self, routes: list[EnrichedRoute]) -> dict[str, list[EnrichedRoute]]:
        """Group routes by controller, keeping first-seen order."""
        groups: dict[str, list[EnrichedRoute]] = {}
        for route in routes:
            groups.setdefault(route.controller, []).append(route)
        return groups

    def _render_client_class(self, groups: dict[str, list[EnrichedRoute]]) -> str:
        accessors = []
        for controller, routes in groups.items():
            methods = ",\n".join(self._render_method(route) for route in routes)
            accessors.append(
                f"\tget {controller_property_name(controller)}() {{\n"
                f"\t\treturn {{\n{methods}\n\t\t}}\n"
                f"\t}}"
            )
        body = "\n\n".join(accessors)
        return f"export class {CLIENT_CLASS_NAME} extends ApiClient {{\n{body}\n}}"

    def _render_method(self, route: EnrichedRoute) -> str:
        parameters = route.parameters or ()
        tokens = list(dict.fromkeys(path_tokens(route.full_path)))

        facets = [
            _facet_type(parameters, source, tokens if source is ParameterSource.PATH else ())
            for source in FACET_SOURCES
        ]
        params_facet, _, body_facet, headers_facet = facets
        options_optional = params_facet is None and body_facet is None and headers_facet is None
        options_type = f"RequestOptions<{', '.join(f or 'never' for f in facets)}>"

        result = response_type(route.returns)
        path = f"`{route.full_path}`" if tokens else f"'{route.full_path}'"
        call = f"this.request<{result}>('{route.method}', {path}, options)"
        signature = f"(options{'?' if options_optional else ''}: {options_type}): Promise<ApiResponse<{result}>>"

        if not tokens:
            return f"\t\t\t{route.handler}: {signature} =>\n\t\t\t\t{call}"
        return (
            f"\t\t\t{route.handler}: {signature} => {{\n"
            f"\t\t\t\tconst {{ {', '.join(tokens)} }} = options.params\n"
            f"\t\t\t\treturn {call}\n"
            f"\t\t\t}}"
        )

    def _render_interfaces(self, schemas: list[SchemaRecord]) -> str:
        """Declarations for every schema record, one per type name."""
        seen: set[str] = set()
        declarations = []
        for record in schemas:
            if record.type in seen or not record.typescript_type:
                continue
            seen.add(record.type)
            declarations.append(record.typescript_type)
        return "\n\n".join(declarations)

"""Schema generator: collects the named types used by controllers and derives their schemas."""

import logging
import re
from pathlib import Path

from rpc_client_gen.analysis.base import EnrichedRoute
from rpc_client_gen.analysis.types import TypeAnalysisProvider, TypeAnalysisSession
from rpc_client_gen.schema.base import SchemaRecord, fallback_schema
from rpc_client_gen.schema.interfaces import generate_typescript_interface
from rpc_client_gen.schema.provider import SchemaProvider, SchemaSession

logger = logging.getLogger(__name__)

# Names that already exist in TypeScript and must never be redeclared.
TS_BUILTIN_NAMES = frozenset({
    "Array", "Promise", "Record", "Partial", "Required", "Readonly", "Pick", "Omit",
    "Exclude", "Extract", "ReturnType", "InstanceType", "NonNullable", "Awaited",
    "Date", "Map", "Set", "String", "Number", "Boolean", "Object", "Function", "Symbol",
    "Error", "Request", "Response", "RequestInit", "RequestInfo", "URL", "Blob", "File",
})

_TYPE_IDENTIFIER = re.compile(r"\b[A-Z][A-Za-z0-9_]*\b")
_STRING_LITERAL = re.compile(r"'(?:[^'\\]|\\.)*'")


def referenced_type_names(routes: list[EnrichedRoute]) -> list[str]:
    """Named types mentioned in the routes' stringified parameter and return types.

    Best-effort: this scans type text, not type structure, and may miss or
    over-collect names in unusual annotations.
    """
    names: dict[str, None] = {}
    for route in routes:
        texts = [p.type for p in route.parameters or ()]
        if route.returns:
            texts.append(route.returns)
        for text in texts:
            for name in _TYPE_IDENTIFIER.findall(_STRING_LITERAL.sub("", text)):
                if name not in TS_BUILTIN_NAMES:
                    names.setdefault(name)
    return list(names)


class SchemaGenerator:
    """Produces one SchemaRecord per referenced type; individual failures never abort the batch."""

    def __init__(
        self,
        type_provider: TypeAnalysisProvider,
        schema_provider: SchemaProvider,
        controller_pattern: str,
        project_root: Path,
    ):
        self.type_provider = type_provider
        self.schema_provider = schema_provider
        self.controller_pattern = controller_pattern
        self.project_root = project_root

    def generate(self, routes: list[EnrichedRoute]) -> list[SchemaRecord]:
        with self.type_provider.open(self.controller_pattern, self.project_root) as session:
            names = self.collect_type_names(session)
        for name in referenced_type_names(routes):
            names.setdefault(name)

        records = []
        with self.schema_provider.open(self.controller_pattern, self.project_root) as schemas:
            for type_name in names:
                document = self._derive(schemas, type_name)
                try:
                    typescript_type = generate_typescript_interface(type_name, document)
                except Exception as e:
                    logger.error("Failed to generate TypeScript declaration for %s: %s", type_name, e)
                    continue
                records.append(SchemaRecord(type=type_name, document=document, typescript_type=typescript_type))

        logger.debug("Generated %d schemas", len(records))
        return records

    def collect_type_names(self, session: TypeAnalysisSession) -> dict[str, None]:
        """Canonical type names used by controller method signatures, in first-seen order."""
        names: dict[str, None] = {}

        def add(name: str | None) -> None:
            if name and name not in TS_BUILTIN_NAMES:
                names.setdefault(name)

        for declaration in session.list_controller_classes().values():
            for method in session.get_methods(declaration):
                for index in range(len(session.get_parameter_names(method))):
                    add(session.resolve_canonical_type_name(session.get_parameter_type(method, index)))

                return_type = session.get_return_type(method)
                arguments = session.get_type_arguments(return_type)
                add(session.resolve_canonical_type_name(arguments[0] if len(arguments) == 1 else return_type))
        return names

    def _derive(self, schemas: SchemaSession, type_name: str) -> dict:
        try:
            return schemas.derive_schema(type_name)
        except Exception as e:
            logger.error("Failed to generate schema for %s: %s", type_name, e)
            return fallback_schema()

"""Checks run on the enriched routes before any client text is emitted.

Each check returns a dict of {route_or_controller: error_message}; an empty
dict means the data is safe to render.
"""

import re
from collections.abc import Sequence

from rpc_client_gen.analysis.base import EnrichedRoute
from rpc_client_gen.analysis.paths import path_tokens
from rpc_client_gen.generator.templates import SHARED_DECLARATIONS
from rpc_client_gen.schema.base import SchemaRecord

IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Words that cannot be used as binding names in the generated code.
RESERVED_WORDS = frozenset({
    "break", "case", "catch", "class", "const", "continue", "debugger", "default", "delete",
    "do", "else", "enum", "export", "extends", "false", "finally", "for", "function", "if",
    "import", "in", "instanceof", "new", "null", "return", "super", "switch", "this", "throw",
    "true", "try", "typeof", "var", "void", "while", "with", "let", "static", "yield", "await",
})

# Bindings already in scope inside a generated client method.
METHOD_BINDINGS = frozenset({"options"})


def controller_property_name(controller: str) -> str:
    """``UsersController`` -> ``users``."""
    name = controller[: -len("Controller")] if controller.endswith("Controller") else controller
    return name[:1].lower() + name[1:]


def validate_names(routes: list[EnrichedRoute]) -> dict[str, str]:
    """Accessor and method names must be valid and unique."""
    errors = {}
    accessors: dict[str, str] = {}
    handlers: set[tuple[str, str]] = set()

    for route in routes:
        key = f"{route.controller}.{route.handler}"
        prop = controller_property_name(route.controller)
        if not IDENTIFIER.match(prop):
            errors[route.controller] = f"cannot derive an accessor name from {route.controller!r}"
        elif accessors.setdefault(prop, route.controller) != route.controller:
            errors[route.controller] = f"accessor {prop!r} already used by {accessors[prop]}"

        if not IDENTIFIER.match(route.handler):
            errors[key] = f"handler name {route.handler!r} is not a valid identifier"
        elif (route.controller, route.handler) in handlers:
            errors[key] = "handler is registered for more than one route"
        handlers.add((route.controller, route.handler))

        if not route.method.strip():
            errors[key] = "route has no HTTP method"
    return errors


def validate_path_tokens(routes: list[EnrichedRoute]) -> dict[str, str]:
    """Interpolated path tokens become local variables in the generated methods."""
    errors = {}
    for route in routes:
        for token in path_tokens(route.full_path):
            if not IDENTIFIER.match(token) or token in RESERVED_WORDS or token in METHOD_BINDINGS:
                errors[f"{route.controller}.{route.handler}"] = f"path parameter {token!r} is not a usable identifier"
    return errors


def validate_declarations(schemas: Sequence[SchemaRecord]) -> dict[str, str]:
    """Project types must not redeclare a name the client module already declares."""
    return {
        record.type: f"type name {record.type!r} clashes with a generated client declaration"
        for record in schemas
        if record.typescript_type and record.type in SHARED_DECLARATIONS
    }


def validate_routes(routes: list[EnrichedRoute], schemas: Sequence[SchemaRecord] = ()) -> dict[str, str]:
    """Run all checks on the routes and schema records about to be emitted."""
    errors = {}
    errors.update(validate_names(routes))
    errors.update(validate_path_tokens(routes))
    errors.update(validate_declarations(schemas))
    return errors

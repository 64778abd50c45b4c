"""Route table providers.

The host application owns the list of registered routes; the pipeline only
reads it through ``RouteTable.get_routes()``.
"""

import json
from pathlib import Path
from typing import Protocol

import yaml

from rpc_client_gen.analysis.base import RouteEntry


class RouteTable(Protocol):
    def get_routes(self) -> list[RouteEntry]: ...


class StaticRouteTable:
    """Read-only route table backed by an in-memory list."""

    def __init__(self, routes: list[RouteEntry | dict] | None = None):
        self._routes = tuple(r if isinstance(r, RouteEntry) else RouteEntry(**r) for r in routes or ())

    def get_routes(self) -> list[RouteEntry]:
        return list(self._routes)


def load_route_table(file_path: Path) -> StaticRouteTable:
    """Load a route table from a YAML or JSON file.

    The document is either a list of routes or a mapping with a ``routes`` key.
    """
    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        doc = json.loads(text)
    else:
        doc = yaml.safe_load(text)

    if doc is None:
        return StaticRouteTable()
    if isinstance(doc, dict):
        doc = doc.get("routes") or []
    if not isinstance(doc, list):
        raise ValueError(f"Route table {file_path} must be a list of routes")
    return StaticRouteTable(doc)

from pathlib import Path

import pytest

from rpc_client_gen.analysis.base import EnrichedRoute, RouteEntry, TypedParameter, parse_parameter
from rpc_client_gen.analysis.route_table import load_route_table

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT_ROOT = FIXTURES / "project"
CONTROLLER_PATTERN = "src/modules/*/*_controller.py"


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def route_entries() -> list[RouteEntry]:
    return load_route_table(FIXTURES / "routes.yaml").get_routes()


def make_route(controller, handler, method="GET", full_path="/", returns=None, params=None) -> EnrichedRoute:
    """Build an EnrichedRoute; params are (index, name, type, source, data) tuples."""
    parameters = None
    if params is not None:
        parameters = tuple(
            TypedParameter(
                index=index,
                name=name,
                type=type_text,
                required=True,
                metadata=parse_parameter({"index": index, "source": source, "data": data}),
            )
            for index, name, type_text, source, data in params
        )
    return EnrichedRoute(
        controller=controller,
        handler=handler,
        method=method,
        full_path=full_path,
        returns=returns,
        parameters=parameters,
    )

"""Route analyzer: joins the host route table with the handlers' static types."""

import logging
from pathlib import Path

from rpc_client_gen.analysis.base import EnrichedRoute, RouteEntry, TypedParameter
from rpc_client_gen.analysis.paths import build_full_api_path, interpolate_path
from rpc_client_gen.analysis.types import (
    ClassDeclaration,
    MethodHandle,
    TypeAnalysisProvider,
    TypeAnalysisSession,
)
from rpc_client_gen.errors import AnalysisError

logger = logging.getLogger(__name__)


class RouteAnalyzer:
    """Produces one EnrichedRoute per route table entry."""

    def __init__(self, provider: TypeAnalysisProvider, controller_pattern: str, project_root: Path):
        self.provider = provider
        self.controller_pattern = controller_pattern
        self.project_root = project_root

    def analyze(self, routes: list[RouteEntry]) -> list[EnrichedRoute]:
        """Enrich every route, or raise one AnalysisError if any route fails."""
        if not routes:
            return []

        with self.provider.open(self.controller_pattern, self.project_root) as session:
            controllers = session.list_controller_classes()
            if not controllers:
                logger.warning("No controller classes found for pattern %s", self.controller_pattern)
                return []
            return self._process_routes(session, routes, controllers)

    def _process_routes(
        self,
        session: TypeAnalysisSession,
        routes: list[RouteEntry],
        controllers: dict[str, ClassDeclaration],
    ) -> list[EnrichedRoute]:
        analyzed: list[EnrichedRoute] = []
        failures: list[str] = []

        for route in routes:
            try:
                analyzed.append(self._enrich(session, route, controllers))
            except Exception as e:
                logger.error("Error processing route %s.%s: %s", route.controller, route.handler, e)
                failures.append(f"{route.controller}.{route.handler}: {e}")

        if failures:
            raise AnalysisError(failures)

        logger.debug("Analyzed %d routes across %d controllers", len(analyzed), len(controllers))
        return analyzed

    def _enrich(
        self,
        session: TypeAnalysisSession,
        route: RouteEntry,
        controllers: dict[str, ClassDeclaration],
    ) -> EnrichedRoute:
        returns = None
        parameters = None

        declaration = controllers.get(route.controller)
        if declaration is not None:
            method = session.get_method(declaration, route.handler)
            if method is not None:
                returns = session.get_return_type_text(method)
                parameters = self._typed_parameters(session, route, method)
            else:
                logger.warning("Handler %s not found on %s", route.handler, route.controller)
        else:
            logger.warning("Controller %s not found in controller sources", route.controller)

        base_path = build_full_api_path(route.prefix, route.version, route.route, route.path)
        return EnrichedRoute(
            controller=route.controller,
            handler=route.handler,
            method=route.method.upper(),
            prefix=route.prefix,
            version=route.version,
            route=route.route,
            path=route.path,
            full_path=interpolate_path(base_path, [p.data for p in route.parameters]),
            returns=returns,
            parameters=parameters,
        )

    def _typed_parameters(
        self, session: TypeAnalysisSession, route: RouteEntry, method: MethodHandle
    ) -> tuple[TypedParameter, ...]:
        declared_names = session.get_parameter_names(method)
        result = []

        for param in sorted(route.parameters, key=lambda p: p.index):
            if param.index < len(declared_names):
                name = declared_names[param.index]
                type_text = session.get_parameter_type_text(method, param.index)
            else:
                # Lenient fallback: the generated signature may not match the handler.
                logger.warning(
                    "%s.%s has no declared parameter at index %d; using a synthesized name",
                    route.controller,
                    route.handler,
                    param.index,
                )
                name = f"param{param.index}"
                type_text = param.metatype or "unknown"
            result.append(TypedParameter(index=param.index, name=name, type=type_text, required=True, metadata=param))

        return tuple(result)

"""Pipeline coordinator: route analysis -> schema generation -> client emission.

Each run builds its results in a fresh RunContext; nothing accumulates across
runs and provider sessions are released whether a stage succeeds or not.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from rpc_client_gen.analysis.base import EnrichedRoute
from rpc_client_gen.analysis.route_table import RouteTable
from rpc_client_gen.analysis.routes import RouteAnalyzer
from rpc_client_gen.analysis.types import AstTypeAnalysisProvider, TypeAnalysisProvider
from rpc_client_gen.config import GeneratorSettings
from rpc_client_gen.errors import ClientEmissionError, RpcGenError
from rpc_client_gen.generator.client import ClientGenerator, GeneratedModule
from rpc_client_gen.schema.base import SchemaRecord
from rpc_client_gen.schema.generator import SchemaGenerator
from rpc_client_gen.schema.provider import AstSchemaProvider, SchemaProvider
from rpc_client_gen.sink import FileModuleSink, ModuleSink

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Everything produced by one run."""

    routes: list[EnrichedRoute] = field(default_factory=list)
    schemas: list[SchemaRecord] = field(default_factory=list)
    module: GeneratedModule | None = None


@dataclass(frozen=True)
class GenerationInfo:
    client_file: str
    generated_at: datetime
    route_count: int
    schema_count: int


class ClientPipeline:
    """Runs the three stages against one route table and writes the result."""

    def __init__(
        self,
        settings: GeneratorSettings,
        route_table: RouteTable,
        type_provider: TypeAnalysisProvider | None = None,
        schema_provider: SchemaProvider | None = None,
        sink: ModuleSink | None = None,
    ):
        self.settings = settings.check()
        self.route_table = route_table
        self.type_provider = type_provider or AstTypeAnalysisProvider()
        self.schema_provider = schema_provider or AstSchemaProvider()
        self.sink = sink or FileModuleSink(settings.output_path)
        self._last_run: RunContext | None = None
        self._generation_info: GenerationInfo | None = None
        logger.info(
            "Configuration validated: controller_pattern=%s, project_root=%s, output=%s",
            settings.controller_pattern,
            settings.project_root,
            settings.output_path,
        )

    @property
    def routes(self) -> tuple[EnrichedRoute, ...]:
        return tuple(self._last_run.routes) if self._last_run else ()

    @property
    def schemas(self) -> tuple[SchemaRecord, ...]:
        return tuple(self._last_run.schemas) if self._last_run else ()

    @property
    def generation_info(self) -> GenerationInfo | None:
        return self._generation_info

    def analyze(self) -> GenerationInfo:
        """Run every stage; raises the stage's error when a run fails."""
        settings = self.settings
        context = RunContext()
        logger.info("Starting RPC client generation...")

        analyzer = RouteAnalyzer(self.type_provider, settings.controller_pattern, settings.project_root)
        context.routes = analyzer.analyze(self.route_table.get_routes())

        schema_generator = SchemaGenerator(
            self.type_provider, self.schema_provider, settings.controller_pattern, settings.project_root
        )
        context.schemas = schema_generator.generate(context.routes)

        try:
            context.module = ClientGenerator().generate(context.routes, context.schemas)
        except ClientEmissionError:
            raise
        except Exception as e:
            raise ClientEmissionError([str(e)]) from e

        client_file = self.sink.write(context.module)

        self._last_run = context
        self._generation_info = GenerationInfo(
            client_file=client_file,
            generated_at=context.module.generated_at,
            route_count=len(context.routes),
            schema_count=len(context.schemas),
        )
        logger.info(
            "RPC client generation complete: %d routes, %d schemas", len(context.routes), len(context.schemas)
        )
        return self._generation_info

    def run(self) -> bool:
        """Generate now; report failure instead of raising."""
        try:
            self.analyze()
        except (RpcGenError, OSError) as e:
            logger.error("Error during RPC client generation: %s", e)
            return False
        return True

    def on_init(self) -> bool | None:
        """Lifecycle hook for hosts: generates only when ``generate_on_init`` is set."""
        if not self.settings.generate_on_init:
            return None
        return self.run()

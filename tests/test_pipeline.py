from unittest.mock import MagicMock

import pytest

from rpc_client_gen.analysis.route_table import StaticRouteTable, load_route_table
from rpc_client_gen.config import GeneratorSettings
from rpc_client_gen.errors import AnalysisError, ClientEmissionError, ConfigurationError
from rpc_client_gen.pipeline import ClientPipeline
from conftest import CONTROLLER_PATTERN, FIXTURES, PROJECT_ROOT


@pytest.fixture
def settings(tmp_path):
    return GeneratorSettings(
        controller_pattern=CONTROLLER_PATTERN,
        project_root=PROJECT_ROOT,
        output_dir=tmp_path / "generated",
    )


@pytest.fixture
def route_table():
    return load_route_table(FIXTURES / "routes.yaml")


def _duplicate_routes():
    route = {"controller": "UsersController", "handler": "get_user", "method": "get", "route": "users"}
    return StaticRouteTable([route, route])


class TestClientPipeline:
    def test_writes_client_module(self, settings, route_table, tmp_path):
        info = ClientPipeline(settings, route_table).analyze()

        client_file = tmp_path / "generated" / "client.ts"
        assert info.client_file == str(client_file)
        assert info.route_count == 6
        assert info.schema_count == 6
        text = client_file.read_text(encoding="utf-8")
        assert "export class RpcClient extends ApiClient {" in text
        assert text.index("get users()") < text.index("get posts()")
        assert "export interface User {" in text
        assert "export type UserList = any[]" in text
        assert "const { authorId } = options.params" in text

    def test_runs_are_idempotent(self, settings, route_table, tmp_path):
        pipeline = ClientPipeline(settings, route_table)
        pipeline.analyze()
        first = (tmp_path / "generated" / "client.ts").read_text(encoding="utf-8")
        pipeline.analyze()
        second = (tmp_path / "generated" / "client.ts").read_text(encoding="utf-8")
        assert first == second
        assert len(pipeline.routes) == 6
        assert len(pipeline.schemas) == 6

    def test_last_run_is_exposed(self, settings, route_table):
        pipeline = ClientPipeline(settings, route_table)
        assert pipeline.routes == ()
        assert pipeline.generation_info is None
        info = pipeline.analyze()
        assert pipeline.generation_info == info
        assert pipeline.routes[0].handler == "list_users"
        assert pipeline.schemas[0].type == "Post"

    def test_empty_route_table(self, settings, tmp_path):
        info = ClientPipeline(settings, StaticRouteTable()).analyze()
        text = (tmp_path / "generated" / "client.ts").read_text(encoding="utf-8")
        assert info.route_count == 0
        assert "export class ApiClient {" in text
        assert "extends ApiClient {" not in text
        # controller types are collected from the sources, not from the routes
        assert "export interface User {" in text
        assert info.schema_count == 6

    def test_failed_run_keeps_previous_module(self, settings, tmp_path):
        client_file = tmp_path / "generated" / "client.ts"
        client_file.parent.mkdir()
        client_file.write_text("// previous\n")

        pipeline = ClientPipeline(settings, _duplicate_routes())
        with pytest.raises(ClientEmissionError):
            pipeline.analyze()
        assert client_file.read_text() == "// previous\n"
        assert pipeline.generation_info is None

    def test_unexpected_emission_error_is_wrapped(self, settings, route_table, monkeypatch):
        def explode(self, routes, schemas):
            raise RuntimeError("template failure")

        monkeypatch.setattr("rpc_client_gen.pipeline.ClientGenerator.generate", explode)
        with pytest.raises(ClientEmissionError, match="template failure"):
            ClientPipeline(settings, route_table).analyze()

    def test_analysis_failure_skips_sink(self, settings, route_table):
        type_provider = MagicMock()
        type_provider.open.side_effect = AnalysisError(["UsersController.list_users: boom"])
        sink = MagicMock()
        pipeline = ClientPipeline(settings, route_table, type_provider=type_provider, sink=sink)
        with pytest.raises(AnalysisError):
            pipeline.analyze()
        sink.write.assert_not_called()

    def test_custom_sink(self, settings, route_table):
        sink = MagicMock()
        sink.write.return_value = "memory://client.ts"
        info = ClientPipeline(settings, route_table, sink=sink).analyze()
        assert info.client_file == "memory://client.ts"
        module = sink.write.call_args.args[0]
        assert module.text.startswith("// ")

    def test_invalid_settings(self, tmp_path):
        settings = GeneratorSettings(controller_pattern="", project_root=tmp_path / "missing")
        with pytest.raises(ConfigurationError) as exc_info:
            ClientPipeline(settings, StaticRouteTable())
        assert len(exc_info.value.errors) == 2


class TestRunAndInit:
    def test_run_reports_success(self, settings, route_table, tmp_path):
        assert ClientPipeline(settings, route_table).run() is True
        assert (tmp_path / "generated" / "client.ts").exists()

    def test_run_reports_failure(self, settings):
        assert ClientPipeline(settings, _duplicate_routes()).run() is False

    def test_run_reports_write_failure(self, settings, route_table):
        sink = MagicMock()
        sink.write.side_effect = OSError("disk full")
        assert ClientPipeline(settings, route_table, sink=sink).run() is False

    def test_on_init_disabled(self, settings, route_table, tmp_path):
        settings = settings.model_copy(update={"generate_on_init": False})
        assert ClientPipeline(settings, route_table).on_init() is None
        assert not (tmp_path / "generated").exists()

    def test_on_init_enabled(self, settings, route_table):
        assert ClientPipeline(settings, route_table).on_init() is True


class TestGenericModels:
    def test_generic_response_model_keeps_type_parameters(self, tmp_path):
        project = tmp_path / "app"
        (project / "src" / "models").mkdir(parents=True)
        (project / "src" / "modules" / "items").mkdir(parents=True)
        (project / "src" / "models" / "page.py").write_text(
            "from typing import Generic, TypeVar\n\n"
            "from pydantic import BaseModel\n\n"
            "T = TypeVar('T')\n\n\n"
            "class Item(BaseModel):\n"
            "    id: int\n"
            "    name: str\n\n\n"
            "class Page(BaseModel, Generic[T]):\n"
            "    items: list[T]\n"
            "    total: int\n"
        )
        (project / "src" / "modules" / "items" / "items_controller.py").write_text(
            "from models.page import Item, Page\n\n\n"
            "class ItemsController:\n"
            "    async def list_items(self) -> Page[Item]:\n"
            "        ...\n"
        )
        settings = GeneratorSettings(project_root=project, output_dir=tmp_path / "out")
        routes = StaticRouteTable([
            {"controller": "ItemsController", "handler": "list_items", "method": "get", "route": "items"},
        ])

        ClientPipeline(settings, routes).analyze()

        text = (tmp_path / "out" / "client.ts").read_text(encoding="utf-8")
        assert "Promise<ApiResponse<Page<Item>>>" in text
        assert "export interface Page<T = any> {\n\titems: T[]\n\ttotal: number\n}" in text
        assert "export interface Item {\n\tid: number\n\tname: string\n}" in text

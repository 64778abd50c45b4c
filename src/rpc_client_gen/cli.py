"""CLI entry point for rpc-client-gen."""

import logging
from pathlib import Path

import click
import yaml

from rpc_client_gen.analysis.route_table import StaticRouteTable, load_route_table
from rpc_client_gen.analysis.routes import RouteAnalyzer
from rpc_client_gen.analysis.types import AstTypeAnalysisProvider
from rpc_client_gen.config import GeneratorSettings, load_settings
from rpc_client_gen.errors import RpcGenError
from rpc_client_gen.pipeline import ClientPipeline


def _load(config: Path | None, **overrides) -> tuple[GeneratorSettings, StaticRouteTable]:
    """Load settings and the route table, turning failures into click errors."""
    try:
        settings = load_settings(config, **overrides)
    except RpcGenError as e:
        raise click.ClickException(str(e)) from e
    if settings.route_table is None:
        raise click.ClickException("No route table given; pass --routes or set route_table in the config file.")
    try:
        routes = load_route_table(settings.route_table)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Cannot load route table {settings.route_table}: {e}") from e
    return settings, routes


_common_options = [
    click.option("--config", "config", type=click.Path(exists=True, path_type=Path), default=None, help="YAML settings file."),
    click.option("--routes", "route_table", type=click.Path(exists=True, path_type=Path), default=None, help="Route table (YAML or JSON)."),
    click.option("--pattern", "controller_pattern", default=None, help="Glob selecting controller files, relative to the project root."),
    click.option("--project-root", "project_root", type=click.Path(file_okay=False, path_type=Path), default=None, help="Project root directory."),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """rpc-client-gen: generate a typed TypeScript client from Python controllers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[ rpc-client-gen ] %(levelname)s %(message)s",
    )


@main.command()
@common_options
@click.option("-o", "--output", "output_dir", type=click.Path(file_okay=False, path_type=Path), default=None, help="Output directory for the client module.")
def generate(config, route_table, controller_pattern, project_root, output_dir):
    """Full pipeline: analyze routes -> derive schemas -> write the client module."""
    settings, routes = _load(
        config,
        route_table=route_table,
        controller_pattern=controller_pattern,
        project_root=project_root,
        output_dir=output_dir,
    )
    click.echo(f"Analyzing {len(routes.get_routes())} routes (pattern: {settings.controller_pattern})...")

    pipeline = ClientPipeline(settings, routes)
    try:
        info = pipeline.analyze()
    except (RpcGenError, OSError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Found {info.route_count} routes and {info.schema_count} schemas.")
    click.echo(f"Client saved to {info.client_file}")


@main.command()
@common_options
def routes(config, route_table, controller_pattern, project_root):
    """Print the enriched routes as YAML without writing anything."""
    settings, table = _load(
        config,
        route_table=route_table,
        controller_pattern=controller_pattern,
        project_root=project_root,
    )
    analyzer = RouteAnalyzer(AstTypeAnalysisProvider(), settings.controller_pattern, settings.project_root)
    try:
        enriched = analyzer.analyze(table.get_routes())
    except RpcGenError as e:
        raise click.ClickException(str(e)) from e

    data = [route.model_dump(mode="json", exclude={"prefix", "version", "route", "path"}) for route in enriched]
    click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)

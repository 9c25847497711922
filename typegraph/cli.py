"""Click CLI with scan, graph, path, modules, export and serve subcommands."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from typegraph import __version__
from typegraph.analysis.filters import filter_by_type
from typegraph.analysis.graph_models import DependencyGraph
from typegraph.analysis.legend import referenced_modules
from typegraph.config import load_config
from typegraph.errors import TypeGraphError
from typegraph.exporter import export_csv
from typegraph.metadata import get_provider
from typegraph.models import BuildResult, GraphConfig
from typegraph.pipeline import run_build, run_scan

_SOURCE = click.Path(exists=True, path_type=Path)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Config JSON file")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool):
    """typegraph: graph the type dependencies of Python modules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_path": config_path}


def _config(ctx: click.Context, source: Path, **overrides) -> GraphConfig:
    return load_config(ctx.obj.get("config_path"), source=source, **overrides)


def _build(config: GraphConfig, type_name: str, member: str | None = None, provider=None) -> BuildResult:
    try:
        return run_build(config, type_name, member=member, provider=provider)
    except TypeGraphError as e:
        raise click.ClickException(str(e))


def _print_graph(graph: DependencyGraph) -> None:
    for node in graph.vertices:
        marker = "" if node.deep_expand else click.style(" (generated)", dim=True)
        click.echo(f"{click.style(node.name, bold=True)}{marker}  {click.style(node.module_id, fg='cyan')}")
        for target in graph.successors(node):
            click.echo(f"  -> {target.name}  {click.style(target.module_id, dim=True)}")


@cli.command()
@click.argument("source", type=_SOURCE, default=".")
@click.option("--prefix", "-p", help="Only list types whose namespace starts with this prefix")
@click.pass_context
def scan(ctx: click.Context, source: Path, prefix: str | None):
    """List loadable modules and their types."""
    config = _config(ctx, source, namespace_prefix=prefix)
    catalog = run_scan(config)
    if not catalog:
        click.echo("No modules with matching types found.")
        return

    provider = get_provider(config)
    click.echo(f"\nFound {len(catalog)} module(s):\n")
    for name, entry in catalog.items():
        click.echo(click.style(name, fg="cyan"))
        for handle in entry.types:
            click.echo(f"  {provider.full_name(handle)}")
        click.echo()


@cli.command()
@click.argument("source", type=_SOURCE)
@click.argument("type_name")
@click.option("--member", "-m", help="Build from one member of the type instead")
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON")
@click.option("--seed", type=int, help="Seed for colors beyond the fixed palette")
@click.pass_context
def graph(ctx: click.Context, source: Path, type_name: str, member: str | None, as_json: bool, seed: int | None):
    """Build the dependency graph of TYPE_NAME."""
    config = _config(ctx, source, color_seed=seed)
    result = _build(config, type_name, member)

    if as_json:
        data = result.graph.to_dict()
        data["legend"] = [
            {"module": e.module_id, "color": e.color, "color_name": e.color_name}
            for e in result.legend
        ]
        click.echo(json.dumps(data, indent=2))
        return

    _print_graph(result.graph)
    click.echo("\nLegend:")
    for entry in result.legend:
        click.echo(f"  {entry.module_id}  {entry.color_name} {entry.color}")


@cli.command()
@click.argument("source", type=_SOURCE)
@click.argument("type_name")
@click.argument("target")
@click.pass_context
def path(ctx: click.Context, source: Path, type_name: str, target: str):
    """Show how TYPE_NAME reaches TARGET."""
    result = _build(_config(ctx, source), type_name)
    view = filter_by_type(result.graph, target)
    if not view.nodes:
        raise click.ClickException(f"{target!r} is not in the graph of {type_name}")
    _print_graph(view)


@cli.command()
@click.argument("source", type=_SOURCE)
@click.argument("type_name")
@click.option("--module", "module_id", help="List the modules this module references")
@click.pass_context
def modules(ctx: click.Context, source: Path, type_name: str, module_id: str | None):
    """Break the graph of TYPE_NAME down by module."""
    result = _build(_config(ctx, source), type_name)

    if module_id:
        for name in referenced_modules(result.graph, module_id):
            click.echo(name)
        return

    for entry in result.legend:
        click.echo(click.style(f"{entry.module_id} ({entry.color_name})", fg="cyan"))
        for name in result.breakdown.get(entry.module_id, []):
            click.echo(f"  {name}")


@cli.command()
@click.argument("source", type=_SOURCE)
@click.argument("type_name")
@click.option("-o", "--output", "output", type=click.Path(dir_okay=False, path_type=Path), default="typegraph.csv", help="Output CSV file")
@click.pass_context
def export(ctx: click.Context, source: Path, type_name: str, output: Path):
    """Export the vertices of TYPE_NAME's graph and their properties as CSV."""
    config = _config(ctx, source)
    provider = get_provider(config)
    result = _build(config, type_name, provider=provider)
    rows = export_csv(result.graph, provider, output, flush_every=config.export_flush_every)
    click.echo(f"Wrote {rows} row(s) to {output}")


@cli.command()
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
def serve(port: int, host: str):
    """Start the JSON API."""
    import uvicorn

    from typegraph.web import create_app

    click.echo(f"Starting typegraph API at http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()

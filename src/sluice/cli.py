"""Sluice Command Line Interface.

Entry point for the sluice CLI tool.
"""

import json
from pathlib import Path

import typer
from pydantic import ValidationError

from sluice import __version__
from sluice.contracts import SluiceError
from sluice.core.config import SluiceSettings, load_settings
from sluice.core.dag import GraphValidationError
from sluice.core.logging import configure_logging
from sluice.engine.session import Session, default_manager

app = typer.Typer(
    name="sluice",
    help="Sluice: dataflow pipelines with lineage snapshots.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sluice version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Sluice: dataflow pipelines with lineage snapshots."""
    pass


def _load_config(settings: str) -> SluiceSettings:
    """Load settings, printing errors and exiting 1 on failure."""
    try:
        return load_settings(Path(settings))
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _build_session(config: SluiceSettings) -> Session:
    """Build the declared flow and validate its graph, exiting 1 on failure."""
    try:
        session = Session.from_settings(config)
        session.flow.to_graph().validate()
    except (GraphValidationError, ValueError, KeyError) as e:
        typer.echo(f"Pipeline graph error: {e}", err=True)
        raise typer.Exit(1) from None
    return session


@app.command()
def validate(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate pipeline configuration without running."""
    config = _load_config(settings)
    session = _build_session(config)
    graph = session.flow.to_graph()

    typer.echo(f"Configuration valid: {Path(settings).name}")
    typer.echo(f"  Sources: {', '.join(config.sources) or '(none)'}")
    typer.echo(f"  Nodes: {len(config.nodes)}")
    typer.echo(f"  Sinks: {', '.join(config.sinks)}")
    typer.echo(f"  Graph: {graph.node_count} nodes, {graph.edge_count} edges")


@app.command()
def run(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed output.",
    ),
) -> None:
    """Execute every sink of a pipeline."""
    config = _load_config(settings)
    configure_logging(
        json_output=config.logging.json_output,
        level="DEBUG" if verbose else config.logging.level,
    )
    session = _build_session(config)

    if verbose:
        graph = session.flow.to_graph()
        typer.echo(f"Graph validated: {graph.node_count} nodes, {graph.edge_count} edges")

    try:
        result = session.run()
    except SluiceError as e:
        typer.echo(f"Error during pipeline execution: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Run completed: {result.status.value}")
    typer.echo(f"  Run ID: {result.run_id}")
    for sink_name, count in result.rows_written.items():
        artifact = result.artifacts[sink_name]
        typer.echo(f"  {sink_name}: {count} rows -> {artifact.path_or_uri}")


@app.command()
def snapshot(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    node: str = typer.Option(
        ...,
        "--node",
        help="Source or node name to materialize.",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-l",
        min=1,
        help="Maximum rows to print (default: snapshot.max_collect_rows).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
) -> None:
    """Materialize one node of a pipeline and print its rows.

    Only the node's upstream lineage runs; the pipeline's own sinks are
    not written.
    """
    config = _load_config(settings)
    configure_logging(json_output=config.logging.json_output, level=config.logging.level)
    session = _build_session(config)

    try:
        pipe = session.get(node)
    except KeyError as e:
        typer.echo(f"Error: {e.args[0]}", err=True)
        raise typer.Exit(1) from None

    try:
        snap = session.coordinator.snapshot(pipe)
    except SluiceError as e:
        typer.echo(f"Snapshot failed: {e}", err=True)
        raise typer.Exit(1) from None

    max_rows = limit or config.snapshot.max_collect_rows
    rows = []
    try:
        for row in snap.iter_rows(session.manager, run_id=snap.source_id):
            if len(rows) >= max_rows:
                break
            rows.append(row)
    except SluiceError as e:
        typer.echo(f"Snapshot failed: {e}", err=True)
        raise typer.Exit(1) from None

    if json_output:
        payload = {
            "node": node,
            "path": str(snap.path),
            "rows_written": snap.rows_written,
            "rows": rows,
        }
        typer.echo(json.dumps(payload, indent=2, default=str))
        return

    typer.echo(f"Snapshot of '{node}': {snap.rows_written} rows at {snap.path}")
    for row in rows:
        typer.echo(json.dumps(row, default=str))
    if snap.rows_written > len(rows):
        typer.echo(f"... {snap.rows_written - len(rows)} more rows not shown")


# Plugins subcommand group
plugins_app = typer.Typer(help="Plugin management commands.")
app.add_typer(plugins_app, name="plugins")


@plugins_app.command("list")
def plugins_list(
    plugin_type: str | None = typer.Option(
        None,
        "--type",
        "-t",
        help="Filter by plugin type (source, transform, sink).",
    ),
) -> None:
    """List available plugins."""
    valid_types = {"source", "transform", "sink"}

    if plugin_type and plugin_type not in valid_types:
        typer.echo(f"Error: Invalid type '{plugin_type}'.", err=True)
        typer.echo(f"Valid types: {', '.join(sorted(valid_types))}", err=True)
        raise typer.Exit(1)

    specs = default_manager().list_specs()
    types_to_show = [plugin_type] if plugin_type else ["source", "transform", "sink"]

    for ptype in types_to_show:
        typer.echo(f"\n{ptype.upper()}S:")
        matching = [s for s in specs if s.node_type.value == ptype]
        if not matching:
            typer.echo("  (none available)")
        for spec in matching:
            typer.echo(f"  {spec.name:12} v{spec.version}  ({spec.determinism.value})")

    typer.echo()  # Final newline


if __name__ == "__main__":
    app()

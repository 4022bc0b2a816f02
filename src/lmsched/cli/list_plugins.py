from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from lmsched.cli.renderers import (
    ListPluginsJsonRenderer,
    ListPluginsPlainRenderer,
    ListPluginsRichRenderer,
    run_events,
)
from lmsched.core.list_plugins import list_plugins_events

console = Console()


def list_plugins(
    config: Path = typer.Option(
        Path("lmsched.yaml"),
        "--config",
        "-c",
        help="Path to lmsched.yaml.",
    ),
    project: Path = typer.Option(
        Path("."),
        "--project",
        "-p",
        help="Base directory for relative paths.",
    ),
    builtin: bool = typer.Option(
        False,
        "--builtin",
        help="Only list the built-in legal-markdown plugins.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
) -> None:
    """List registered plugins grouped by phase."""
    events = list_plugins_events(project, config_path=config, builtin_only=builtin)
    if json_output:
        renderer = ListPluginsJsonRenderer(console)
    else:
        renderer = ListPluginsRichRenderer(console) if console.is_terminal else ListPluginsPlainRenderer(console)
    exit_code = run_events(events, renderer)
    raise typer.Exit(code=exit_code)

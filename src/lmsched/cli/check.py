from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from lmsched.cli.log import configure_logging
from lmsched.cli.renderers import (
    PipelineJsonRenderer,
    PipelinePlainRenderer,
    PipelineRichRenderer,
    run_events,
)
from lmsched.core.check import check_events
from lmsched.core.stages import CHECK_STAGES

console = Console()


def check(
    plugins: list[str] = typer.Argument(
        ...,
        help="Plugin names in the order they will run.",
    ),
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
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show stack traces for unexpected errors.",
    ),
) -> None:
    """Validate an explicit plugin order."""
    configure_logging(debug=debug)
    events = check_events(project, plugins, config_path=config)
    if json_output:
        renderer = PipelineJsonRenderer(console)
    elif console.is_terminal:
        renderer = PipelineRichRenderer(console, CHECK_STAGES)
    else:
        renderer = PipelinePlainRenderer(console, CHECK_STAGES)
    try:
        exit_code = run_events(events, renderer)
    except Exception as exc:  # noqa: BLE001
        if debug:
            raise
        console.print(f"[red]Unexpected error:[/red] {exc}")
        raise typer.Exit(code=3)
    raise typer.Exit(code=exit_code)

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
from lmsched.core.metadata import VALIDATION_MODES
from lmsched.core.schedule import schedule_events
from lmsched.core.stages import SCHEDULE_STAGES

console = Console()


def _check_mode(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in VALIDATION_MODES:
        raise typer.BadParameter(f"expected one of: {', '.join(VALIDATION_MODES)}")
    return normalized


def schedule(
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
    mode: str | None = typer.Option(
        None,
        "--mode",
        "-m",
        callback=_check_mode,
        help="Validation mode: strict, warn or silent. Defaults to the environment.",
    ),
    enable: list[str] | None = typer.Option(
        None,
        "--enable",
        "-e",
        help="Plugin to enable; repeat to enable several. Overrides pipeline.enabled.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log scheduler diagnostics to stderr.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug details and stack traces for unexpected errors.",
    ),
) -> None:
    """Compute the plugin execution order."""
    configure_logging(verbose=verbose, debug=debug)
    events = schedule_events(
        project,
        config_path=config,
        mode=mode,
        enabled=enable or None,
        debug=debug,
    )
    if json_output:
        renderer = PipelineJsonRenderer(console)
    elif console.is_terminal:
        renderer = PipelineRichRenderer(console, SCHEDULE_STAGES)
    else:
        renderer = PipelinePlainRenderer(console, SCHEDULE_STAGES)
    try:
        exit_code = run_events(events, renderer)
    except Exception as exc:  # noqa: BLE001
        if debug:
            raise
        console.print(f"[red]Unexpected error:[/red] {exc}")
        raise typer.Exit(code=3)
    raise typer.Exit(code=exit_code)

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lmsched import __version__
from lmsched.core import events as ev
from lmsched.core.metadata import Phase

RULE_WIDTH = 64
RULE_LINE = "-" * RULE_WIDTH
STATUS_GLYPHS = {
    "pending": "⏸",
    "running": "⠋",
    "success": "✅",
    "failed": "❌",
    "skipped": "⏭",
    "partial": "⚠️",
    "warning": "⚠️",
}

RESULT_WORDS = {
    "schedule": "SCHEDULE",
    "check": "CHECK",
}


def run_events(events: Iterable[ev.LmschedEvent], renderer: "Renderer") -> int:
    exit_code = 0
    for event in events:
        renderer.handle(event)
        if isinstance(event, ev.CommandCompleted):
            exit_code = event.exit_code
    renderer.close()
    return exit_code


class Renderer:
    def handle(self, event: ev.LmschedEvent) -> None:  # noqa: D401
        """Handle a single event."""

    def close(self) -> None:
        return None


class _PipelineState:
    def __init__(self) -> None:
        self.checks: dict[str, str] = {}
        self.elapsed: dict[str, float] = {}
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.failure: ev.StageFailed | None = None
        self.scheduled: ev.PipelineScheduled | None = None
        self.checked: ev.OrderChecked | None = None
        self.notes: list[str] = []

    def track(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.StageCompleted):
            self.checks[event.stage_id] = event.status
            self.elapsed[event.stage_id] = event.duration_ms
        elif isinstance(event, ev.StageFailed):
            self.checks[event.stage_id] = "failed"
            self.elapsed[event.stage_id] = event.duration_ms
            self.failure = event
        elif isinstance(event, ev.DiagnosticReported):
            line = f"[{event.kind}] {event.message}"
            if event.severity == "error":
                self.errors.append(line)
            else:
                self.warnings.append(line)
        elif isinstance(event, ev.Warning):
            self.warnings.append(event.message)
        elif isinstance(event, ev.Debug):
            self.notes.append(f"{event.message}: {event.data}")
        elif isinstance(event, ev.PipelineScheduled):
            self.scheduled = event
        elif isinstance(event, ev.OrderChecked):
            self.checked = event


class PipelineRichRenderer(Renderer):
    def __init__(self, console: Console, stages: list[tuple[str, str]]):
        self.console = console
        self.stages = stages
        self._state = _PipelineState()
        self._command = ""

    def handle(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            self._command = event.command
            _print_header(self.console, event)
            return
        self._state.track(event)
        if isinstance(event, ev.CommandCompleted):
            self._render_summary(event)

    def _render_summary(self, event: ev.CommandCompleted) -> None:
        state = self._state
        table = Table(show_header=True, box=box.MINIMAL)
        table.add_column("Stage", style="bold")
        table.add_column("Status")
        table.add_column("Time", justify="right")
        for stage_id, label in self.stages:
            status = state.checks.get(stage_id, "skipped")
            elapsed = state.elapsed.get(stage_id)
            table.add_row(
                label,
                _status_text(status),
                _format_duration(elapsed) if elapsed is not None else "",
            )
        self.console.print(table)

        if state.scheduled is not None:
            self.console.print(_phase_table(state.scheduled.by_phase))
            if state.scheduled.excluded:
                self.console.print(f"Excluded: {', '.join(state.scheduled.excluded)}")
        if state.checked is not None and state.checked.suggested_order:
            self.console.print(
                Panel(
                    " → ".join(state.checked.suggested_order),
                    title="Suggested order",
                    box=box.ROUNDED,
                    title_align="left",
                )
            )
        for note in state.notes:
            self.console.print(Text(note, style="bright_black"))
        if state.warnings:
            warnings_text = Text("\n".join(f"- {warning}" for warning in state.warnings), style="orange1")
            self.console.print(
                Panel(
                    warnings_text,
                    title="[orange1]Warnings[/orange1]",
                    box=box.ROUNDED,
                    title_align="left",
                    border_style="orange1",
                )
            )
        if state.errors:
            errors_text = Text("\n".join(f"- {error}" for error in state.errors))
            self.console.print(Panel(errors_text, title="Errors", box=box.ROUNDED, title_align="left"))
        elif state.failure is not None:
            self.console.print(_stage_failure_panel(state.failure))

        self.console.print("")
        if not event.ok:
            overall = "failed"
        elif any(status == "partial" for status in state.checks.values()) or state.warnings:
            overall = "partial"
        else:
            overall = "success"
        title = RESULT_WORDS.get(self._command, self._command.upper()).capitalize()
        self.console.print(Text.assemble(Text(f"{title} status: "), _status_badge(overall)))


class PipelinePlainRenderer(Renderer):
    def __init__(self, console: Console, stages: list[tuple[str, str]]):
        self.console = console
        self.stages = stages
        self._state = _PipelineState()
        self._command = ""

    def handle(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            self._command = event.command
            _print_header(self.console, event)
            return
        self._state.track(event)
        if isinstance(event, ev.StageStarted):
            label = _stage_label(event.stage_id, self.stages)
            index = _stage_index(event.stage_id, self.stages)
            self.console.print(_format_stage_start_line(index, label, len(self.stages)))
            return
        if isinstance(event, ev.StageFailed):
            label = _stage_label(event.stage_id, self.stages)
            first_line = event.message.splitlines()[0] if event.message else ""
            self.console.print(f"{label} FAIL: {first_line}", markup=False)
            return
        if isinstance(event, ev.RegistryLoaded):
            self.console.print(f"Registry: {event.count} plugins")
            return
        if isinstance(event, ev.CommandCompleted):
            self._finish(event)

    def _finish(self, event: ev.CommandCompleted) -> None:
        state = self._state
        self.console.print("")
        scheduled = state.scheduled
        if scheduled is not None:
            self.console.print(f"Pipeline ({scheduled.mode})")
            self.console.print(RULE_LINE)
            for phase in Phase:
                names = scheduled.by_phase.get(phase.key) or []
                if names:
                    self.console.print(f"{int(phase)}. {phase.label}: {', '.join(names)}")
            self.console.print(f"Order: {' -> '.join(scheduled.order)}")
            if scheduled.excluded:
                self.console.print(f"Excluded: {', '.join(scheduled.excluded)}")
        checked = state.checked
        if checked is not None:
            self.console.print(f"Order: {' -> '.join(checked.order)}")
            if checked.suggested_order:
                self.console.print(f"Suggested order: {' -> '.join(checked.suggested_order)}")
        for note in state.notes:
            self.console.print(f"debug: {note}", markup=False)
        _print_section(self.console, "Warnings", state.warnings)
        _print_section(self.console, "Errors", state.errors)
        if not state.errors and state.failure is not None:
            _print_section(self.console, "Errors", [state.failure.message])
        self.console.print("")
        word = RESULT_WORDS.get(self._command, self._command.upper())
        if not event.ok:
            self.console.print(f"{word} FAIL")
        elif scheduled is not None and not scheduled.valid:
            self.console.print(f"{word} PARTIAL")
        else:
            self.console.print(f"{word} OK")


class PipelineJsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._checks: dict[str, str] = {}
        self._diagnostics: list[dict[str, Any]] = []
        self._warnings: list[str] = []
        self._errors: list[dict[str, str]] = []
        self._result: dict[str, Any] | None = None

    def handle(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.StageCompleted):
            self._checks[event.stage_id] = event.status
            return
        if isinstance(event, ev.StageFailed):
            self._checks[event.stage_id] = "failed"
            self._errors.append({"stage": event.stage_id, "message": event.message})
            return
        if isinstance(event, ev.Warning):
            self._warnings.append(event.message)
            return
        if isinstance(event, ev.DiagnosticReported):
            payload = event.to_dict()
            for key in ("ts", "level", "command", "type"):
                payload.pop(key, None)
            self._diagnostics.append(payload)
            return
        if isinstance(event, (ev.PipelineScheduled, ev.OrderChecked)):
            payload = event.to_dict()
            for key in ("ts", "level", "command", "type"):
                payload.pop(key, None)
            self._result = payload
            return
        if isinstance(event, ev.CommandCompleted):
            payload = {
                "ok": event.ok,
                "checks": self._checks,
                "result": self._result,
                "diagnostics": self._diagnostics,
                "warnings": self._warnings,
                "errors": self._errors,
            }
            _print_json(self.console, payload)


class ListPluginsRichRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._failure: ev.StageFailed | None = None

    def handle(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.StageFailed):
            self._failure = event
            return
        if isinstance(event, ev.PluginsListed):
            for phase in Phase:
                rows = [plugin for plugin in event.plugins if plugin["phase"] == phase.key]
                if not rows:
                    continue
                table = Table(
                    title=f"{int(phase)}. {phase.label}",
                    box=box.ROUNDED,
                    title_justify="left",
                )
                table.add_column("NAME", style="bold")
                table.add_column("PROVIDES")
                table.add_column("REQUIRES")
                table.add_column("REQ", justify="center")
                table.add_column("DESCRIPTION")
                for plugin in rows:
                    table.add_row(
                        plugin["name"],
                        ", ".join(plugin["capabilities"]),
                        ", ".join(plugin["requires_capabilities"]),
                        "yes" if plugin["required"] else "",
                        plugin["description"],
                    )
                self.console.print(table)
            return
        if isinstance(event, ev.CommandCompleted) and self._failure is not None:
            self.console.print(_stage_failure_panel(self._failure))


class ListPluginsPlainRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console

    def handle(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.CommandStarted):
            _print_header(self.console, event)
            return
        if isinstance(event, ev.StageFailed):
            self.console.print(f"FAIL: {event.message}", markup=False)
            return
        if isinstance(event, ev.PluginsListed):
            for phase in Phase:
                rows = [plugin for plugin in event.plugins if plugin["phase"] == phase.key]
                if not rows:
                    continue
                self.console.print(f"{int(phase)}. {phase.label}:")
                for plugin in rows:
                    marker = " (required)" if plugin["required"] else ""
                    self.console.print(f"- {plugin['name']}{marker}: {plugin['description']}", markup=False)


class ListPluginsJsonRenderer(Renderer):
    def __init__(self, console: Console):
        self.console = console
        self._plugins: list[dict[str, Any]] = []
        self._errors: list[str] = []

    def handle(self, event: ev.LmschedEvent) -> None:
        if isinstance(event, ev.PluginsListed):
            self._plugins = event.plugins
        if isinstance(event, ev.StageFailed):
            self._errors.append(event.message)
        if isinstance(event, ev.CommandCompleted):
            _print_json(
                self.console,
                {"ok": event.ok, "plugins": self._plugins, "errors": self._errors},
            )


def _print_json(console: Console, payload: dict[str, Any]) -> None:
    console.print(
        json.dumps(payload, indent=2, sort_keys=True),
        markup=False,
        emoji=False,
        highlight=False,
        soft_wrap=True,
    )


def _print_section(console: Console, title: str, lines: list[str]) -> None:
    if not lines:
        return
    console.print("")
    console.print(title)
    console.print(RULE_LINE)
    for line in lines:
        console.print(f"- {line}", markup=False)


def _phase_table(by_phase: dict[str, list[str]]) -> Table:
    table = Table(title="Pipeline", show_header=True, box=box.MINIMAL, title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("PHASE", style="bold")
    table.add_column("PLUGINS")
    for phase in Phase:
        names = by_phase.get(phase.key) or []
        table.add_row(str(int(phase)), phase.label, " → ".join(names) if names else Text("-", style="dim"))
    return table


def _format_duration(elapsed_ms: float) -> str:
    if elapsed_ms < 1000:
        return f"{elapsed_ms:.0f}ms"
    seconds = elapsed_ms / 1000
    if seconds < 10:
        return f"{seconds:.2f}s"
    return f"{seconds:.1f}s"


def _print_header(console: Console, event: ev.CommandStarted) -> None:
    project = event.project_dir or Path(".")
    config = event.config_path or "builtin"
    console.print(
        f"lmsched v{__version__} | project: {project} | config: {config}\n{RULE_LINE}",
        markup=False,
    )


def _format_stage_start_line(index: int, label: str, total: int) -> str:
    padding = "." * max(2, 28 - len(label))
    total_display = total if total > 0 else 0
    return f"[{index}/{total_display}] {label} {padding} START"


def _stage_label(stage_id: str, mapping: list[tuple[str, str]]) -> str:
    for key, label in mapping:
        if key == stage_id:
            return label
    return stage_id


def _stage_index(stage_id: str, mapping: list[tuple[str, str]]) -> int:
    for index, (key, _label) in enumerate(mapping, start=1):
        if key == stage_id:
            return index
    return 0


def _status_word(status: str) -> str:
    return {
        "success": "OK",
        "failed": "FAIL",
        "skipped": "SKIP",
        "partial": "PARTIAL",
    }.get(status, status.upper())


def _status_badge(status: str) -> Text:
    normalized = status.strip().lower()
    label = {
        "success": "ok",
        "failed": "fail",
        "skipped": "skip",
        "partial": "partial",
    }.get(normalized, normalized)
    style = {
        "success": "bold black on green3",
        "failed": "bold white on red3",
        "skipped": "bold white on grey35",
        "partial": "bold black on dark_orange3",
    }.get(normalized, "bold white on grey35")
    return Text(f" {label} ", style=style)


def _status_text(status: str) -> Text:
    normalized = status.strip().lower()
    style = {
        "success": "green",
        "failed": "red",
        "skipped": "bright_black",
        "partial": "orange1",
    }.get(normalized, "default")
    glyph = STATUS_GLYPHS.get(normalized, "?")
    return Text(f"{glyph} {_status_word(normalized).lower()}", style=style)


def _stage_failure_panel(event: ev.StageFailed) -> Panel:
    body = "\n".join(
        [
            f"stage: {event.stage_id}",
            f"error: {event.message}",
        ]
    )
    if event.hint:
        body = "\n".join([body, f"hint: {event.hint}"])
    return Panel(Text(body), title="Failed", box=box.ROUNDED, title_align="left")

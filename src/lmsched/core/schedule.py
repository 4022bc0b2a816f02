from __future__ import annotations

import time
from pathlib import Path
from typing import Generator, Iterable, Mapping, Sequence

from lmsched.config.load import (
    DEFAULT_CONFIG,
    ConfigError,
    load_config,
    load_registry,
    resolve_validation_mode,
)
from lmsched.config.model import Config
from lmsched.core import events as ev
from lmsched.core.diagnostics import Diagnostic, PipelineValidationError
from lmsched.core.pipeline import build_pipeline
from lmsched.core.registry import PluginRegistry


class _Loaded:
    def __init__(self, config: Config | None, registry: PluginRegistry | None):
        self.config = config
        self.registry = registry

    @property
    def failed(self) -> bool:
        return self.registry is None


def schedule_events(
    project_dir: Path,
    *,
    config_path: Path | None = None,
    mode: str | None = None,
    enabled: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    debug: bool = False,
) -> Iterable[ev.LmschedEvent]:
    project_dir = project_dir.resolve()
    config_path = resolve_config_path(project_dir, config_path)

    yield ev.CommandStarted(
        command="schedule",
        project_dir=project_dir,
        config_path=config_path,
        options={"mode": mode, "enabled": list(enabled) if enabled else None},
    )

    loaded = yield from load_registry_events("schedule", project_dir, config_path)
    if loaded.failed:
        yield ev.CommandCompleted(command="schedule", ok=False, exit_code=2)
        return
    config = loaded.config
    registry = loaded.registry

    yield ev.StageStarted(command="schedule", stage_id="build_pipeline", label="Build pipeline")
    started = time.perf_counter()
    try:
        resolved_mode = resolve_validation_mode(mode, config, environ)
    except ConfigError as exc:
        yield ev.StageFailed(
            command="schedule",
            stage_id="build_pipeline",
            duration_ms=_elapsed_ms(started),
            error_code="config_error",
            message=str(exc),
        )
        yield ev.CommandCompleted(command="schedule", ok=False, exit_code=2)
        return

    names = list(enabled) if enabled else list(config.pipeline.enabled)
    if debug:
        yield ev.Debug(
            command="schedule",
            message="Resolved pipeline request",
            data={"mode": resolved_mode, "enabled": names},
        )
    if not names:
        yield ev.Warning(
            command="schedule",
            code="empty_pipeline",
            message="No plugins enabled; the pipeline is empty.",
            hint="List plugins under pipeline.enabled or pass --enable.",
        )

    try:
        result = build_pipeline(registry, names, resolved_mode)
    except PipelineValidationError as exc:
        if resolved_mode != "silent":
            yield from diagnostic_events("schedule", exc.diagnostics)
        yield ev.StageFailed(
            command="schedule",
            stage_id="build_pipeline",
            duration_ms=_elapsed_ms(started),
            error_code="pipeline_invalid",
            message=str(exc),
            hint=_failure_hint(exc.diagnostics, resolved_mode),
        )
        yield ev.CommandCompleted(command="schedule", ok=False, exit_code=2)
        return

    if resolved_mode != "silent":
        yield from diagnostic_events("schedule", result.diagnostics)
    yield ev.PipelineScheduled(
        command="schedule",
        mode=result.mode,
        valid=result.valid,
        order=list(result.order),
        by_phase={phase.key: list(items) for phase, items in result.by_phase.items()},
        capabilities=sorted(result.capabilities_provided),
        excluded=list(result.excluded),
    )
    yield ev.StageCompleted(
        command="schedule",
        stage_id="build_pipeline",
        duration_ms=_elapsed_ms(started),
        status="success" if result.valid else "partial",
    )
    yield ev.CommandCompleted(command="schedule", ok=True, exit_code=0)


def load_registry_events(
    command: str,
    project_dir: Path,
    config_path: Path,
    *,
    builtin_only: bool = False,
) -> Generator[ev.LmschedEvent, None, _Loaded]:
    yield ev.StageStarted(command=command, stage_id="load_config", label="Load config")
    started = time.perf_counter()
    if builtin_only:
        config = Config()
        yield ev.StageCompleted(
            command=command,
            stage_id="load_config",
            duration_ms=_elapsed_ms(started),
            status="skipped",
        )
    else:
        try:
            config = load_config(project_dir, config_path)
        except (ConfigError, ValueError) as exc:
            yield ev.StageFailed(
                command=command,
                stage_id="load_config",
                duration_ms=_elapsed_ms(started),
                error_code="config_error",
                message=str(exc),
            )
            return _Loaded(None, None)
        yield ev.StageCompleted(
            command=command,
            stage_id="load_config",
            duration_ms=_elapsed_ms(started),
            status="success",
        )

    yield ev.StageStarted(command=command, stage_id="load_registry", label="Load registry")
    started = time.perf_counter()
    try:
        registry = load_registry(config)
    except ConfigError as exc:
        yield ev.StageFailed(
            command=command,
            stage_id="load_registry",
            duration_ms=_elapsed_ms(started),
            error_code="registry_error",
            message=str(exc),
        )
        return _Loaded(config, None)
    yield ev.RegistryLoaded(
        command=command,
        count=len(registry),
        builtin=config.builtin,
        plugins=list(registry.names()),
    )
    yield ev.StageCompleted(
        command=command,
        stage_id="load_registry",
        duration_ms=_elapsed_ms(started),
        status="success",
    )
    return _Loaded(config, registry)


def diagnostic_events(
    command: str, diagnostics: Iterable[Diagnostic]
) -> Iterable[ev.DiagnosticReported]:
    for item in diagnostics:
        yield ev.DiagnosticReported.from_diagnostic(item, command=command)


def _failure_hint(diagnostics: Sequence[Diagnostic], mode: str) -> str | None:
    if any(item.is_fatal for item in diagnostics):
        return "Fix plugin names and phase declarations; these fail in every mode."
    if mode == "strict":
        return "Run with --mode warn to get a best-effort order."
    return None


def resolve_config_path(project_dir: Path, config_path: Path | None) -> Path:
    config_path = config_path or DEFAULT_CONFIG
    if not config_path.is_absolute():
        config_path = project_dir / config_path
    return config_path


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000

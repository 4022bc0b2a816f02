from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from lmsched.core.diagnostics import Diagnostic


@dataclass(frozen=True)
class LmschedEvent:
    ts: float = field(default_factory=time.perf_counter)
    level: str = "INFO"
    command: str = ""
    type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _serialize(asdict(self))


@dataclass(frozen=True)
class CommandStarted(LmschedEvent):
    type: str = "CommandStarted"
    project_dir: Path | None = None
    config_path: Path | None = None
    options: dict[str, Any] | None = None


@dataclass(frozen=True)
class CommandCompleted(LmschedEvent):
    type: str = "CommandCompleted"
    ok: bool = True
    exit_code: int = 0


@dataclass(frozen=True)
class StageStarted(LmschedEvent):
    type: str = "StageStarted"
    stage_id: str = ""
    label: str = ""


@dataclass(frozen=True)
class StageCompleted(LmschedEvent):
    type: str = "StageCompleted"
    stage_id: str = ""
    duration_ms: float = 0.0
    status: str = "success"


@dataclass(frozen=True)
class StageFailed(LmschedEvent):
    type: str = "StageFailed"
    stage_id: str = ""
    duration_ms: float = 0.0
    error_code: str = ""
    message: str = ""
    hint: str | None = None


@dataclass(frozen=True)
class RegistryLoaded(LmschedEvent):
    type: str = "RegistryLoaded"
    count: int = 0
    builtin: bool = False
    plugins: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DiagnosticReported(LmschedEvent):
    type: str = "DiagnosticReported"
    kind: str = ""
    severity: str = "error"
    plugin: str = ""
    related_plugin: str | None = None
    plugins: list[str] = field(default_factory=list)
    message: str = ""
    capability: str | None = None
    candidates: list[str] = field(default_factory=list)

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic, *, command: str) -> "DiagnosticReported":
        return cls(
            command=command,
            level="ERROR" if diagnostic.is_error else "WARNING",
            kind=diagnostic.kind.value,
            severity=diagnostic.severity.value,
            plugin=diagnostic.plugin,
            related_plugin=diagnostic.related_plugin,
            plugins=list(diagnostic.plugins),
            message=diagnostic.message,
            capability=diagnostic.capability,
            candidates=list(diagnostic.candidates),
        )


@dataclass(frozen=True)
class PipelineScheduled(LmschedEvent):
    type: str = "PipelineScheduled"
    mode: str = "warn"
    valid: bool = True
    order: list[str] = field(default_factory=list)
    by_phase: dict[str, list[str]] = field(default_factory=dict)
    capabilities: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OrderChecked(LmschedEvent):
    type: str = "OrderChecked"
    valid: bool = True
    order: list[str] = field(default_factory=list)
    suggested_order: list[str] | None = None


@dataclass(frozen=True)
class PluginsListed(LmschedEvent):
    type: str = "PluginsListed"
    plugins: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class Warning(LmschedEvent):
    type: str = "Warning"
    code: str = ""
    message: str = ""
    hint: str | None = None


@dataclass(frozen=True)
class Debug(LmschedEvent):
    type: str = "Debug"
    message: str = ""
    data: dict[str, Any] | None = None


def _serialize(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value

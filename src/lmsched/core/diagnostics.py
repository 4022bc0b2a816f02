from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class DiagnosticKind(str, Enum):
    UNKNOWN_PLUGIN = "UnknownPlugin"
    CIRCULAR_DEPENDENCY = "CircularDependency"
    CAPABILITY_MISSING = "CapabilityMissing"
    PHASE_DEPENDENCY = "PhaseDependency"
    CONFLICT = "Conflict"
    DEPENDENCY_VIOLATION = "DependencyViolation"
    MISSING_REQUIRED = "MissingRequired"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


# Defects no ordering or mode can work around.
FATAL_KINDS = frozenset({DiagnosticKind.UNKNOWN_PLUGIN, DiagnosticKind.PHASE_DEPENDENCY})


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    plugin: str
    message: str
    severity: Severity = Severity.ERROR
    related_plugin: str | None = None
    involved: tuple[str, ...] = field(default=())
    capability: str | None = None
    candidates: tuple[str, ...] = field(default=())

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def is_fatal(self) -> bool:
        return self.is_error and self.kind in FATAL_KINDS

    @property
    def plugins(self) -> tuple[str, ...]:
        if self.involved:
            return self.involved
        if self.related_plugin:
            return (self.plugin, self.related_plugin)
        return (self.plugin,)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "plugin": self.plugin,
            "related_plugin": self.related_plugin,
            "plugins": list(self.plugins),
            "capability": self.capability,
            "candidates": list(self.candidates),
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class SchedulerError(RuntimeError):
    pass


class PipelineValidationError(SchedulerError):
    """Raised by the pipeline builder when a pipeline cannot be delivered."""

    def __init__(self, diagnostics: Iterable[Diagnostic], *, mode: str = "strict"):
        self.diagnostics = tuple(diagnostics)
        self.mode = mode
        super().__init__(format_failure(self.diagnostics))

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(item for item in self.diagnostics if item.is_error)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(item for item in self.diagnostics if not item.is_error)

    def kinds(self) -> set[DiagnosticKind]:
        return {item.kind for item in self.diagnostics}


def format_failure(diagnostics: Iterable[Diagnostic]) -> str:
    errors = [item for item in diagnostics if item.is_error]
    if not errors:
        return "Plugin pipeline validation failed."
    lines = ["Plugin pipeline validation failed:"]
    lines.extend(f"  - {item}" for item in errors)
    return "\n".join(lines)


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(item.is_error for item in diagnostics)

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from lmsched.core.capabilities import check_capabilities
from lmsched.core.conflicts import detect_conflicts
from lmsched.core.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    PipelineValidationError,
    Severity,
    has_errors,
)
from lmsched.core.graph import Edge, build_phase_graph
from lmsched.core.metadata import VALIDATION_MODES, Phase, PluginMetadata
from lmsched.core.phases import (
    check_phase_dependencies,
    compose_phases,
    group_by_phase,
)
from lmsched.core.registry import PluginRegistry
from lmsched.core.toposort import break_cycles, topological_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineRequest:
    enabled_plugins: tuple[str, ...]
    validation_mode: str = "warn"

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled_plugins", tuple(self.enabled_plugins))
        object.__setattr__(self, "validation_mode", normalize_mode(self.validation_mode))


@dataclass(frozen=True, eq=True)
class PipelineResult:
    order: tuple[str, ...]
    by_phase: Mapping[Phase, tuple[str, ...]]
    capabilities_provided: frozenset[str]
    diagnostics: tuple[Diagnostic, ...]
    valid: bool
    mode: str = "warn"
    excluded: tuple[str, ...] = field(default=())

    # by_phase is a read-only mapping proxy, so results compare by value but never hash.
    __hash__ = None  # type: ignore[assignment]

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(item for item in self.diagnostics if item.is_error)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(item for item in self.diagnostics if not item.is_error)

    def diagnostics_of(self, kind: DiagnosticKind) -> tuple[Diagnostic, ...]:
        return tuple(item for item in self.diagnostics if item.kind == kind)

    def summary(self) -> list[str]:
        lines: list[str] = []
        for phase, names in self.by_phase.items():
            if names:
                lines.append(f"Phase {int(phase)} ({phase.label}): {', '.join(names)}")
        return lines

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "valid": self.valid,
            "order": list(self.order),
            "by_phase": {phase.key: list(names) for phase, names in self.by_phase.items()},
            "capabilities": sorted(self.capabilities_provided),
            "excluded": list(self.excluded),
            "diagnostics": [item.to_dict() for item in self.diagnostics],
        }


def normalize_mode(mode: str) -> str:
    value = (mode or "").strip().lower()
    if value not in VALIDATION_MODES:
        raise ValueError(
            f"Unknown validation mode: {mode!r} (expected one of: {', '.join(VALIDATION_MODES)})"
        )
    return value


def run_request(registry: PluginRegistry, request: PipelineRequest) -> PipelineResult:
    return build_pipeline(registry, request.enabled_plugins, request.validation_mode)


def build_pipeline(
    registry: PluginRegistry,
    enabled_plugins: Iterable[str],
    mode: str = "warn",
) -> PipelineResult:
    """Compute the execution order for ``enabled_plugins``.

    Plugins run phase by phase; inside a phase run_before/run_after edges are
    honored with registry order breaking ties. Every check appends to one
    diagnostics list and only this function decides whether to raise:

    - unknown plugins and phase dependency defects raise in every mode;
    - ``strict`` raises ``PipelineValidationError`` on any error;
    - ``warn`` returns a best-effort result and logs the diagnostics;
    - ``silent`` returns the same result without logging.

    In ``warn``/``silent`` conflicts exclude the later-registered plugin and
    cycles are broken by dropping the most recently added cycle edge.
    """
    mode = normalize_mode(mode)
    strict = mode == "strict"
    rank = registry.ranks()
    diagnostics: list[Diagnostic] = []

    resolved, unknown = resolve_plugins(registry, enabled_plugins)
    diagnostics.extend(unknown)

    conflicts = detect_conflicts(resolved)
    excluded: tuple[str, ...] = ()
    if not strict:
        conflicts, excluded = _exclude_conflicting(conflicts)
    active = [plugin for plugin in resolved if plugin.name not in excluded]
    enabled = {plugin.name: plugin for plugin in active}

    by_phase: dict[Phase, tuple[str, ...]] = {}
    for phase, plugins in group_by_phase(active).items():
        if not plugins:
            by_phase[phase] = ()
            continue
        graph = build_phase_graph(plugins, enabled, registry)
        result = topological_order(graph, rank)
        if result.cycle:
            diagnostics.append(_cycle_diagnostic(phase, result.cycle))
            if not strict:
                result, dropped = break_cycles(graph, rank)
                diagnostics.extend(_dropped_edge_diagnostic(phase, edge) for edge in dropped)
        by_phase[phase] = result.order

    order = compose_phases(by_phase)
    diagnostics.extend(check_phase_dependencies(resolved))

    capability_report = check_capabilities(order, registry)
    diagnostics.extend(capability_report.diagnostics)
    diagnostics.extend(conflicts)
    diagnostics.extend(check_required_plugins(registry, enabled))

    valid = not has_errors(diagnostics)
    if any(item.is_fatal for item in diagnostics) or (strict and not valid):
        raise PipelineValidationError(diagnostics, mode=mode)

    if mode == "warn":
        _log_diagnostics(diagnostics)

    return PipelineResult(
        order=order,
        by_phase=MappingProxyType(by_phase),
        capabilities_provided=capability_report.provided,
        diagnostics=tuple(diagnostics),
        valid=valid,
        mode=mode,
        excluded=excluded,
    )


def check_required_plugins(
    registry: PluginRegistry,
    enabled: Mapping[str, PluginMetadata],
) -> list[Diagnostic]:
    return [
        Diagnostic(
            kind=DiagnosticKind.MISSING_REQUIRED,
            plugin=plugin.name,
            severity=Severity.WARNING,
            message=f'Required plugin "{plugin.name}" is missing from the pipeline',
        )
        for plugin in registry.all()
        if plugin.required and plugin.name not in enabled
    ]


def resolve_plugins(
    registry: PluginRegistry,
    names: Iterable[str],
) -> tuple[list[PluginMetadata], list[Diagnostic]]:
    wanted: set[str] = set()
    unknown: list[Diagnostic] = []
    for name in dict.fromkeys(names):
        if name in registry:
            wanted.add(name)
            continue
        unknown.append(
            Diagnostic(
                kind=DiagnosticKind.UNKNOWN_PLUGIN,
                plugin=name,
                severity=Severity.ERROR,
                message=_unknown_message(name, registry.names()),
            )
        )
    resolved = [plugin for plugin in registry.all() if plugin.name in wanted]
    return resolved, unknown


def _unknown_message(name: str, available: Sequence[str]) -> str:
    message = f'Plugin "{name}" not found in registry'
    matches = difflib.get_close_matches(name, list(available), n=3)
    if matches:
        return f"{message} (did you mean: {', '.join(matches)}?)"
    if available:
        return f"{message} (available: {', '.join(available)})"
    return message


def _exclude_conflicting(
    conflicts: list[Diagnostic],
) -> tuple[list[Diagnostic], tuple[str, ...]]:
    excluded: list[str] = []
    downgraded: list[Diagnostic] = []
    for item in conflicts:
        message = item.message
        if item.plugin not in excluded and item.related_plugin not in excluded:
            excluded.append(item.related_plugin)
            message = f'{message}; excluded "{item.related_plugin}"'
        downgraded.append(replace(item, severity=Severity.WARNING, message=message))
    return downgraded, tuple(excluded)


def _cycle_diagnostic(phase: Phase, members: tuple[str, ...]) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.CIRCULAR_DEPENDENCY,
        plugin=members[0],
        related_plugin=members[1] if len(members) > 1 else None,
        involved=members,
        severity=Severity.ERROR,
        message=(
            f"Circular dependency in phase {phase.label} among: {', '.join(members)}"
        ),
    )


def _dropped_edge_diagnostic(phase: Phase, edge: Edge) -> Diagnostic:
    before, after = edge
    return Diagnostic(
        kind=DiagnosticKind.CIRCULAR_DEPENDENCY,
        plugin=before,
        related_plugin=after,
        severity=Severity.WARNING,
        message=(
            f'Dropped ordering constraint "{before}" -> "{after}" '
            f"to break a cycle in phase {phase.label}"
        ),
    )


def _log_diagnostics(diagnostics: Iterable[Diagnostic]) -> None:
    for item in diagnostics:
        level = logging.ERROR if item.is_error else logging.WARNING
        logger.log(level, "%s", item)

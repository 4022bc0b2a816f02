from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from lmsched.core.capabilities import check_capabilities
from lmsched.core.conflicts import detect_conflicts
from lmsched.core.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    PipelineValidationError,
    Severity,
    has_errors,
)
from lmsched.core.graph import build_phase_graph
from lmsched.core.phases import check_phase_dependencies, group_by_phase
from lmsched.core.pipeline import build_pipeline, resolve_plugins
from lmsched.core.registry import PluginRegistry
from lmsched.core.toposort import topological_order


@dataclass(frozen=True)
class OrderCheck:
    order: tuple[str, ...]
    valid: bool
    diagnostics: tuple[Diagnostic, ...] = field(default=())
    suggested_order: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "order": list(self.order),
            "suggested_order": list(self.suggested_order) if self.suggested_order is not None else None,
            "diagnostics": [item.to_dict() for item in self.diagnostics],
        }


def check_order(registry: PluginRegistry, names: Iterable[str]) -> OrderCheck:
    """Validate a hand-assembled plugin order without reordering it.

    When the order is invalid a suggestion is computed with the scheduler in
    silent mode; no suggestion is offered when the scheduler refuses too.
    """
    order = tuple(dict.fromkeys(names))
    resolved, diagnostics = resolve_plugins(registry, order)
    known = [name for name in order if name in registry]
    positions = {name: index for index, name in enumerate(known)}

    highest = None
    for index, name in enumerate(known):
        plugin = registry.get(name)
        for target in plugin.run_before:
            position = positions.get(target)
            if position is not None and position < index:
                diagnostics.append(
                    _violation(name, target, f'"{name}" must run BEFORE "{target}", but it appears after it')
                )
        for source in plugin.run_after:
            position = positions.get(source)
            if position is not None and position > index:
                diagnostics.append(
                    _violation(name, source, f'"{name}" must run AFTER "{source}", but it appears before it')
                )
        if highest is not None and plugin.phase < highest.phase:
            diagnostics.append(
                _violation(
                    name,
                    highest.name,
                    f'"{name}" ({plugin.phase.label}) appears after '
                    f'"{highest.name}" ({highest.phase.label}) from a later phase',
                )
            )
        if highest is None or plugin.phase > highest.phase:
            highest = plugin

    enabled = {plugin.name: plugin for plugin in resolved}
    rank = registry.ranks()
    for phase, plugins in group_by_phase(resolved).items():
        if not plugins:
            continue
        result = topological_order(build_phase_graph(plugins, enabled, registry), rank)
        if result.cycle:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.CIRCULAR_DEPENDENCY,
                    plugin=result.cycle[0],
                    involved=result.cycle,
                    severity=Severity.ERROR,
                    message=f"Circular dependency in phase {phase.label} among: {', '.join(result.cycle)}",
                )
            )

    diagnostics.extend(check_phase_dependencies(resolved))
    diagnostics.extend(check_capabilities(known, registry).diagnostics)
    diagnostics.extend(detect_conflicts(resolved))

    valid = not has_errors(diagnostics)
    suggested = None
    if not valid:
        try:
            suggested = build_pipeline(registry, known, "silent").order
        except PipelineValidationError:
            suggested = None
    return OrderCheck(
        order=order,
        valid=valid,
        diagnostics=tuple(diagnostics),
        suggested_order=suggested,
    )


def _violation(plugin: str, related: str, message: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.DEPENDENCY_VIOLATION,
        plugin=plugin,
        related_plugin=related,
        severity=Severity.ERROR,
        message=message,
    )

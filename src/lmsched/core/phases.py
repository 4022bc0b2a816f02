from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from lmsched.core.diagnostics import Diagnostic, DiagnosticKind, Severity
from lmsched.core.metadata import Phase, PluginMetadata


def group_by_phase(plugins: Iterable[PluginMetadata]) -> dict[Phase, list[PluginMetadata]]:
    grouped: dict[Phase, list[PluginMetadata]] = {phase: [] for phase in Phase}
    for plugin in plugins:
        grouped[plugin.phase].append(plugin)
    return grouped


def compose_phases(orders: Mapping[Phase, Sequence[str]]) -> tuple[str, ...]:
    composed: list[str] = []
    for phase in sorted(orders):
        composed.extend(orders[phase])
    return tuple(composed)


def check_phase_dependencies(plugins: Iterable[PluginMetadata]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for plugin in plugins:
        for required in plugin.requires_phases:
            if required < plugin.phase:
                continue
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.PHASE_DEPENDENCY,
                    plugin=plugin.name,
                    severity=Severity.ERROR,
                    message=(
                        f'Plugin "{plugin.name}" runs in phase {plugin.phase.label} '
                        f"but requires phase {required.label}, which does not run before it"
                    ),
                )
            )
    return diagnostics

from __future__ import annotations

from typing import Sequence

from lmsched.core.diagnostics import Diagnostic, DiagnosticKind, Severity
from lmsched.core.metadata import PluginMetadata


def detect_conflicts(plugins: Sequence[PluginMetadata]) -> list[Diagnostic]:
    """Report every enabled pair declared mutually exclusive by either side.

    ``plugins`` must be in registry order: ``plugin`` is the earlier-registered
    member of each pair and ``related_plugin`` the later one.
    """
    diagnostics: list[Diagnostic] = []
    for index, first in enumerate(plugins):
        for second in plugins[index + 1 :]:
            if second.name not in first.conflicts and first.name not in second.conflicts:
                continue
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.CONFLICT,
                    plugin=first.name,
                    related_plugin=second.name,
                    severity=Severity.ERROR,
                    message=(
                        f'"{first.name}" conflicts with "{second.name}" - '
                        "they cannot be used together"
                    ),
                )
            )
    return diagnostics

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from lmsched.core.diagnostics import Diagnostic, DiagnosticKind, Severity
from lmsched.core.registry import PluginRegistry


@dataclass(frozen=True)
class CapabilityReport:
    provided: frozenset[str]
    diagnostics: tuple[Diagnostic, ...] = field(default=())


def check_capabilities(order: Sequence[str], registry: PluginRegistry) -> CapabilityReport:
    """Verify each required capability is provided by an earlier plugin in ``order``.

    Nothing is provided up front. Missing capabilities are errors for required
    plugins and warnings for optional ones; registered providers (enabled or
    not) are named as hints.
    """
    provided: set[str] = set()
    diagnostics: list[Diagnostic] = []
    for name in order:
        plugin = registry.get(name)
        if plugin is None:
            continue
        for capability in plugin.requires_capabilities:
            if capability in provided:
                continue
            candidates = tuple(
                candidate for candidate in registry.providers_of(capability) if candidate != name
            )
            message = (
                f'Plugin "{name}" requires capability "{capability}" '
                "but no earlier plugin provides it"
            )
            if candidates:
                quoted = ", ".join(f'"{candidate}"' for candidate in candidates)
                message = f"{message} (candidate providers: {quoted})"
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.CAPABILITY_MISSING,
                    plugin=name,
                    related_plugin=candidates[0] if candidates else None,
                    capability=capability,
                    candidates=candidates,
                    severity=Severity.ERROR if plugin.required else Severity.WARNING,
                    message=message,
                )
            )
        provided.update(plugin.capabilities)
    return CapabilityReport(provided=frozenset(provided), diagnostics=tuple(diagnostics))

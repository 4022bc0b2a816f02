from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from lmsched.core import events as ev
from lmsched.core.metadata import PluginMetadata
from lmsched.core.schedule import load_registry_events, resolve_config_path


def list_plugins_events(
    project_dir: Path,
    *,
    config_path: Path | None = None,
    builtin_only: bool = False,
) -> Iterable[ev.LmschedEvent]:
    project_dir = project_dir.resolve()
    config_path = resolve_config_path(project_dir, config_path)
    yield ev.CommandStarted(
        command="list-plugins",
        project_dir=project_dir,
        config_path=None if builtin_only else config_path,
        options={"builtin_only": builtin_only},
    )

    loaded = yield from load_registry_events(
        "list-plugins", project_dir, config_path, builtin_only=builtin_only
    )
    if loaded.failed:
        yield ev.CommandCompleted(command="list-plugins", ok=False, exit_code=2)
        return

    yield ev.PluginsListed(
        command="list-plugins",
        plugins=[_describe(plugin) for plugin in loaded.registry.all()],
    )
    yield ev.CommandCompleted(command="list-plugins", ok=True, exit_code=0)


def _describe(plugin: PluginMetadata) -> dict[str, Any]:
    return {
        "name": plugin.name,
        "phase": plugin.phase.key,
        "phase_number": int(plugin.phase),
        "description": plugin.description,
        "capabilities": list(plugin.capabilities),
        "requires_capabilities": list(plugin.requires_capabilities),
        "run_before": list(plugin.run_before),
        "run_after": list(plugin.run_after),
        "conflicts": list(plugin.conflicts),
        "required": plugin.required,
        "version": plugin.version,
    }

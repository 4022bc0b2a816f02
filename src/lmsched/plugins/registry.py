from __future__ import annotations

from importlib.metadata import entry_points
from typing import Any, Iterable

from pydantic import ValidationError

from lmsched.core.metadata import PluginMetadata

ENTRY_POINT_GROUP = "lmsched.plugins"


class PluginLoadError(RuntimeError):
    pass


def load_entry_point_plugins(group: str = ENTRY_POINT_GROUP) -> list[PluginMetadata]:
    """Collect plugin metadata published by installed packages.

    Each entry point resolves to a PluginMetadata, a mapping, an iterable of
    either, or a zero-argument callable returning one of those.
    """
    plugins: list[PluginMetadata] = []
    for ep in sorted(entry_points(group=group), key=lambda item: item.name):
        try:
            value = ep.load()
        except Exception as exc:  # noqa: BLE001
            raise PluginLoadError(f"Failed to load plugin entry point {ep.name}: {exc}") from exc
        if callable(value) and not isinstance(value, PluginMetadata):
            value = value()
        plugins.extend(_coerce(value, source=ep.name))
    return plugins


def _coerce(value: Any, *, source: str) -> Iterable[PluginMetadata]:
    if isinstance(value, PluginMetadata):
        return [value]
    if isinstance(value, dict):
        return [_validate(value, source=source)]
    if isinstance(value, (list, tuple)):
        items: list[PluginMetadata] = []
        for item in value:
            items.extend(_coerce(item, source=source))
        return items
    raise PluginLoadError(f"Entry point {source} did not provide plugin metadata")


def _validate(data: dict[str, Any], *, source: str) -> PluginMetadata:
    try:
        return PluginMetadata.model_validate(data)
    except ValidationError as exc:
        raise PluginLoadError(f"Invalid plugin metadata from {source}: {exc}") from exc

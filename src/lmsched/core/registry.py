from __future__ import annotations

from typing import Iterable, Iterator

from lmsched.core.diagnostics import SchedulerError
from lmsched.core.metadata import PluginMetadata


class DuplicateNameError(SchedulerError, ValueError):
    pass


class PluginRegistry:
    """Insertion-ordered store of plugin metadata keyed by unique name.

    Registration order is the tie-break source for scheduling, so it is never
    reshuffled: an allowed overwrite replaces the record in its original slot.
    """

    def __init__(
        self,
        plugins: Iterable[PluginMetadata] = (),
        *,
        allow_overwrite: bool = False,
    ):
        self._by_name: dict[str, PluginMetadata] = {}
        self.allow_overwrite = allow_overwrite
        for metadata in plugins:
            self.register(metadata)

    def register(self, metadata: PluginMetadata) -> None:
        if not isinstance(metadata, PluginMetadata):
            raise TypeError(f"Expected PluginMetadata, got {type(metadata).__name__}")
        if metadata.name in self._by_name and not self.allow_overwrite:
            raise DuplicateNameError(f"Plugin already registered: {metadata.name}")
        self._by_name[metadata.name] = metadata

    def get(self, name: str) -> PluginMetadata | None:
        return self._by_name.get(name)

    def all(self) -> tuple[PluginMetadata, ...]:
        return tuple(self._by_name.values())

    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name.keys())

    def ranks(self) -> dict[str, int]:
        return {name: index for index, name in enumerate(self._by_name)}

    def providers_of(self, capability: str) -> tuple[str, ...]:
        return tuple(
            metadata.name
            for metadata in self._by_name.values()
            if capability in metadata.capabilities
        )

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[PluginMetadata]:
        return iter(tuple(self._by_name.values()))

    def __len__(self) -> int:
        return len(self._by_name)

    def __repr__(self) -> str:
        return f"PluginRegistry({list(self._by_name)!r})"

from __future__ import annotations

from enum import IntEnum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

VALIDATION_MODES: tuple[str, ...] = ("strict", "warn", "silent")


class Phase(IntEnum):
    """Processing stages a plugin belongs to, executed in ascending order."""

    CONTENT_LOADING = 1
    VARIABLE_EXPANSION = 2
    CONDITIONAL_EVAL = 3
    STRUCTURE_PARSING = 4
    POST_PROCESSING = 5

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def key(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Any) -> "Phase":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unknown phase: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ValueError(f"Unknown phase: {value!r}") from None
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            key = text.upper().replace("-", "_").replace(" ", "_")
            try:
                return cls[key]
            except KeyError:
                raise ValueError(f"Unknown phase: {value!r}") from None
        raise ValueError(f"Unknown phase: {value!r}")


class PluginMetadata(BaseModel):
    """Scheduling metadata for one named plugin.

    The record is inert: it carries ordering and capability declarations only.
    Collections keep declaration order with duplicates removed; unordered
    inputs (sets) are sorted so that edge insertion order stays reproducible.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    phase: Phase
    description: str = ""
    capabilities: tuple[str, ...] = Field(default_factory=tuple)
    requires_capabilities: tuple[str, ...] = Field(default_factory=tuple)
    requires_phases: tuple[Phase, ...] = Field(default_factory=tuple)
    run_before: tuple[str, ...] = Field(default_factory=tuple)
    run_after: tuple[str, ...] = Field(default_factory=tuple)
    conflicts: tuple[str, ...] = Field(default_factory=tuple)
    required: bool = False
    version: str = "1.0.0"

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("Plugin name must be non-empty.")
        return name

    @field_validator("phase", mode="before")
    @classmethod
    def _parse_phase(cls, value: Any) -> Phase:
        return Phase.parse(value)

    @field_validator("requires_phases", mode="before")
    @classmethod
    def _parse_required_phases(cls, value: Any) -> tuple[Phase, ...]:
        phases = [Phase.parse(item) for item in _as_items(value)]
        return tuple(dict.fromkeys(phases))

    @field_validator(
        "capabilities",
        "requires_capabilities",
        "run_before",
        "run_after",
        "conflicts",
        mode="before",
    )
    @classmethod
    def _normalize_names(cls, value: Any) -> tuple[str, ...]:
        items: list[str] = []
        for item in _as_items(value):
            if not isinstance(item, str):
                raise ValueError(f"Expected a string, got {item!r}")
            text = item.strip()
            if text:
                items.append(text)
        return tuple(dict.fromkeys(items))


def _as_items(value: Any) -> Iterable[Any]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, (list, tuple)):
        return value
    raise ValueError(f"Expected a list, got {type(value).__name__}")

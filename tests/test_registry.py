from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import make_plugin
from lmsched.core.metadata import Phase, PluginMetadata
from lmsched.core.registry import DuplicateNameError, PluginRegistry


def test_registry_preserves_insertion_order() -> None:
    registry = PluginRegistry([make_plugin("b"), make_plugin("a"), make_plugin("c")])

    assert registry.names() == ("b", "a", "c")
    assert registry.ranks() == {"b": 0, "a": 1, "c": 2}
    assert [plugin.name for plugin in registry] == ["b", "a", "c"]


def test_registry_rejects_duplicate_names() -> None:
    registry = PluginRegistry([make_plugin("a")])

    with pytest.raises(DuplicateNameError, match="already registered: a"):
        registry.register(make_plugin("a", Phase.POST_PROCESSING))
    assert registry.get("a").phase is Phase.CONTENT_LOADING


def test_registry_overwrite_keeps_original_slot() -> None:
    registry = PluginRegistry(
        [make_plugin("a"), make_plugin("b")],
        allow_overwrite=True,
    )
    registry.register(make_plugin("a", Phase.POST_PROCESSING))

    assert registry.names() == ("a", "b")
    assert registry.get("a").phase is Phase.POST_PROCESSING


def test_registry_lookup_helpers() -> None:
    registry = PluginRegistry(
        [
            make_plugin("a", capabilities=["x"]),
            make_plugin("b", capabilities=["y", "x"]),
        ]
    )

    assert "a" in registry
    assert "missing" not in registry
    assert registry.get("missing") is None
    assert registry.providers_of("x") == ("a", "b")
    assert registry.providers_of("z") == ()
    assert len(registry) == 2



def test_registry_rejects_non_metadata() -> None:
    with pytest.raises(TypeError):
        PluginRegistry().register({"name": "a", "phase": 1})  # type: ignore[arg-type]


def test_metadata_normalizes_collections() -> None:
    plugin = PluginMetadata(
        name=" remarkThing ",
        phase="variable_expansion",
        capabilities={"b:done", "a:done"},
        run_after=["x", "y", "x", " "],
        requires_phases=[1, "content_loading"],
    )

    assert plugin.name == "remarkThing"
    assert plugin.phase is Phase.VARIABLE_EXPANSION
    assert plugin.capabilities == ("a:done", "b:done")
    assert plugin.run_after == ("x", "y")
    assert plugin.requires_phases == (Phase.CONTENT_LOADING,)
    assert plugin.required is False
    assert plugin.version == "1.0.0"


@pytest.mark.parametrize("value", [3, "3", "CONDITIONAL_EVAL", "conditional-eval", Phase.CONDITIONAL_EVAL])
def test_phase_parse_accepts_numbers_and_names(value: object) -> None:
    assert Phase.parse(value) is Phase.CONDITIONAL_EVAL


@pytest.mark.parametrize("value", [0, 6, True, "rendering", None])
def test_phase_parse_rejects_unknown_values(value: object) -> None:
    with pytest.raises(ValueError, match="Unknown phase"):
        Phase.parse(value)


def test_phase_labels() -> None:
    assert Phase.STRUCTURE_PARSING.label == "Structure Parsing"
    assert Phase.STRUCTURE_PARSING.key == "structure_parsing"
    assert sorted(Phase) == list(Phase)


def test_metadata_is_frozen_and_strict() -> None:
    plugin = make_plugin("a")
    with pytest.raises(ValidationError):
        plugin.name = "b"  # type: ignore[misc]
    with pytest.raises(ValidationError):
        PluginMetadata(name="a", phase=1, priority=10)
    with pytest.raises(ValidationError):
        PluginMetadata(name="", phase=1)

from __future__ import annotations

from conftest import make_plugin
from lmsched.core.diagnostics import DiagnosticKind
from lmsched.core.metadata import Phase
from lmsched.core.order_check import check_order
from lmsched.core.registry import PluginRegistry


def test_valid_order_passes(scenario_registry: PluginRegistry) -> None:
    result = check_order(scenario_registry, ["Imports", "Mixins", "TemplateFields", "Loops"])

    assert result.valid
    assert result.diagnostics == ()
    assert result.suggested_order is None


def test_run_after_violation_is_reported_with_suggestion(scenario_registry: PluginRegistry) -> None:
    result = check_order(scenario_registry, ["Imports", "TemplateFields", "Mixins", "Loops"])

    assert result.valid is False
    violation = result.diagnostics[0]
    assert violation.kind is DiagnosticKind.DEPENDENCY_VIOLATION
    assert (violation.plugin, violation.related_plugin) == ("TemplateFields", "Mixins")
    assert "must run AFTER" in violation.message
    assert result.suggested_order == ("Imports", "Mixins", "TemplateFields", "Loops")


def test_phase_regression_is_reported(scenario_registry: PluginRegistry) -> None:
    result = check_order(scenario_registry, ["Mixins", "Imports"])

    assert result.valid is False
    assert [item.kind for item in result.diagnostics] == [DiagnosticKind.DEPENDENCY_VIOLATION]
    assert "from a later phase" in result.diagnostics[0].message
    assert result.suggested_order == ("Imports", "Mixins")


def test_capability_gap_in_explicit_order(scenario_registry: PluginRegistry) -> None:
    result = check_order(scenario_registry, ["Imports", "Loops"])

    assert result.valid is False
    assert result.diagnostics[0].kind is DiagnosticKind.CAPABILITY_MISSING


def test_unknown_names_are_reported(scenario_registry: PluginRegistry) -> None:
    result = check_order(scenario_registry, ["Imports", "Nope"])

    assert result.valid is False
    assert result.diagnostics[0].kind is DiagnosticKind.UNKNOWN_PLUGIN
    assert result.order == ("Imports", "Nope")
    assert result.suggested_order == ("Imports",)


def test_cycle_is_reported() -> None:
    registry = PluginRegistry([make_plugin("A", run_after=["B"]), make_plugin("B", run_after=["A"])])

    result = check_order(registry, ["A", "B"])

    kinds = [item.kind for item in result.diagnostics]
    assert DiagnosticKind.DEPENDENCY_VIOLATION in kinds
    assert DiagnosticKind.CIRCULAR_DEPENDENCY in kinds
    assert result.suggested_order == ("B", "A")


def test_no_suggestion_when_scheduler_refuses() -> None:
    registry = PluginRegistry(
        [make_plugin("Bad", Phase.VARIABLE_EXPANSION, requires_phases=[Phase.POST_PROCESSING])]
    )

    result = check_order(registry, ["Bad"])

    assert result.valid is False
    assert result.diagnostics[0].kind is DiagnosticKind.PHASE_DEPENDENCY
    assert result.suggested_order is None
    assert result.to_dict()["suggested_order"] is None


def test_conflicts_are_errors_in_explicit_order() -> None:
    registry = PluginRegistry([make_plugin("A", conflicts=["B"]), make_plugin("B")])

    result = check_order(registry, ["A", "B"])

    assert result.valid is False
    assert result.diagnostics[0].kind is DiagnosticKind.CONFLICT
    assert result.suggested_order == ("A",)


def test_cross_phase_constraint_is_an_error_in_explicit_order() -> None:
    registry = PluginRegistry(
        [
            make_plugin("late", Phase.VARIABLE_EXPANSION, run_before=["early"]),
            make_plugin("early", Phase.CONTENT_LOADING),
        ]
    )

    result = check_order(registry, ["early", "late"])

    assert result.valid is False
    violation = result.diagnostics[0]
    assert violation.kind is DiagnosticKind.DEPENDENCY_VIOLATION
    assert violation.is_error
    assert (violation.plugin, violation.related_plugin) == ("late", "early")

from __future__ import annotations

from pathlib import Path

from lmsched.core.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    PipelineValidationError,
    Severity,
    format_failure,
)
from lmsched.core.events import CommandStarted, DiagnosticReported


def test_diagnostic_rendering_and_fatality() -> None:
    unknown = Diagnostic(DiagnosticKind.UNKNOWN_PLUGIN, "remarkX", 'Plugin "remarkX" not found in registry')
    warning = Diagnostic(
        DiagnosticKind.CONFLICT,
        "a",
        "a conflicts with b",
        severity=Severity.WARNING,
        related_plugin="b",
    )

    assert str(unknown) == '[UnknownPlugin] Plugin "remarkX" not found in registry'
    assert unknown.is_fatal
    assert not warning.is_error
    assert not warning.is_fatal
    assert warning.plugins == ("a", "b")
    assert warning.to_dict()["severity"] == "warning"


def test_validation_error_lists_only_errors() -> None:
    error = Diagnostic(DiagnosticKind.CAPABILITY_MISSING, "Loops", "needs variables:resolved")
    warning = Diagnostic(DiagnosticKind.MISSING_REQUIRED, "Headers", "missing", severity=Severity.WARNING)

    exc = PipelineValidationError([error, warning], mode="strict")

    assert exc.errors == (error,)
    assert exc.warnings == (warning,)
    assert "needs variables:resolved" in str(exc)
    assert "MissingRequired" not in str(exc)
    assert format_failure([warning]) == "Plugin pipeline validation failed."


def test_event_to_dict_serializes_paths() -> None:
    event = CommandStarted(
        command="schedule",
        project_dir=Path("project"),
        config_path=Path("project") / "lmsched.yaml",
    )

    payload = event.to_dict()

    assert payload["type"] == "CommandStarted"
    assert payload["project_dir"] == "project"
    assert payload["config_path"].endswith("lmsched.yaml")


def test_diagnostic_event_copies_fields() -> None:
    diagnostic = Diagnostic(
        DiagnosticKind.CIRCULAR_DEPENDENCY,
        "A",
        "cycle",
        involved=("A", "B"),
    )

    event = DiagnosticReported.from_diagnostic(diagnostic, command="schedule")

    assert event.level == "ERROR"
    assert event.kind == "CircularDependency"
    assert event.plugins == ["A", "B"]
    assert event.to_dict()["severity"] == "error"


def test_capability_fields_reach_reports() -> None:
    diagnostic = Diagnostic(
        DiagnosticKind.CAPABILITY_MISSING,
        "remarkHeaders",
        "needs headers:parsed",
        related_plugin="remarkLegalHeadersParser",
        capability="headers:parsed",
        candidates=("remarkLegalHeadersParser",),
    )

    event = DiagnosticReported.from_diagnostic(diagnostic, command="schedule")

    assert diagnostic.to_dict()["capability"] == "headers:parsed"
    assert event.capability == "headers:parsed"
    assert event.candidates == ["remarkLegalHeadersParser"]

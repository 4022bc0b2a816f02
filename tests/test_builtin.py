from __future__ import annotations

import pytest

from lmsched.core.diagnostics import DiagnosticKind, PipelineValidationError
from lmsched.core.metadata import Phase
from lmsched.core.phases import check_phase_dependencies
from lmsched.core.pipeline import build_pipeline
from lmsched.plugins.builtin import BUILTIN_PLUGINS, DEFAULT_PIPELINE, builtin_registry

EXPECTED_ORDER = (
    "remarkImports",
    "remarkMixins",
    "remarkTemplateFields",
    "remarkClauses",
    "remarkLoops",
    "remarkLegalHeadersParser",
    "remarkCrossReferences",
    "remarkHeaders",
    "remarkDates",
    "remarkSignatureLines",
    "remarkFieldTracking",
)


def test_default_pipeline_schedules_cleanly() -> None:
    result = build_pipeline(builtin_registry(), DEFAULT_PIPELINE, "strict")

    assert result.order == EXPECTED_ORDER
    assert result.valid
    assert result.diagnostics == ()
    assert result.by_phase[Phase.STRUCTURE_PARSING] == (
        "remarkLegalHeadersParser",
        "remarkCrossReferences",
        "remarkHeaders",
    )


def test_cross_reference_variants_conflict() -> None:
    names = [*DEFAULT_PIPELINE, "remarkCrossReferencesAst"]

    with pytest.raises(PipelineValidationError) as excinfo:
        build_pipeline(builtin_registry(), names, "strict")
    assert DiagnosticKind.CONFLICT in excinfo.value.kinds()

    result = build_pipeline(builtin_registry(), names, "warn")
    assert result.excluded == ("remarkCrossReferencesAst",)
    assert result.order == EXPECTED_ORDER
    assert result.valid


def test_debug_plugin_runs_last() -> None:
    result = build_pipeline(builtin_registry(), [*DEFAULT_PIPELINE, "remarkDebugAst"], "strict")

    assert result.order[-1] == "remarkDebugAst"


def test_dropping_a_required_plugin_is_flagged() -> None:
    names = [name for name in DEFAULT_PIPELINE if name != "remarkHeaders"]

    result = build_pipeline(builtin_registry(), names, "strict")

    missing = result.diagnostics_of(DiagnosticKind.MISSING_REQUIRED)
    assert [item.plugin for item in missing] == ["remarkHeaders"]
    assert result.valid


def test_builtin_registry_is_fresh_each_call() -> None:
    first = builtin_registry()
    second = builtin_registry()

    assert first is not second
    assert first.names() == tuple(plugin.name for plugin in BUILTIN_PLUGINS)


def test_builtin_phase_dependencies_are_satisfiable() -> None:
    assert check_phase_dependencies(BUILTIN_PLUGINS) == []

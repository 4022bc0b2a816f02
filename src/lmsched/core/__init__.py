from .diagnostics import (
    Diagnostic,
    DiagnosticKind,
    PipelineValidationError,
    SchedulerError,
    Severity,
)
from .metadata import Phase, PluginMetadata
from .order_check import OrderCheck, check_order
from .pipeline import PipelineRequest, PipelineResult, build_pipeline, run_request
from .registry import DuplicateNameError, PluginRegistry

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "DuplicateNameError",
    "OrderCheck",
    "Phase",
    "PipelineRequest",
    "PipelineResult",
    "PipelineValidationError",
    "PluginMetadata",
    "PluginRegistry",
    "SchedulerError",
    "Severity",
    "build_pipeline",
    "check_order",
    "run_request",
]

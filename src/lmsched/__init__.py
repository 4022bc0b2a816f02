import logging

from lmsched.core import (
    Diagnostic,
    DiagnosticKind,
    DuplicateNameError,
    OrderCheck,
    Phase,
    PipelineRequest,
    PipelineResult,
    PipelineValidationError,
    PluginMetadata,
    PluginRegistry,
    SchedulerError,
    Severity,
    build_pipeline,
    check_order,
    run_request,
)
from lmsched.plugins.builtin import builtin_registry

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

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
    "__version__",
    "build_pipeline",
    "builtin_registry",
    "check_order",
    "run_request",
]

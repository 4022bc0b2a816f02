from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from lmsched.core.metadata import Phase, PluginMetadata  # noqa: E402
from lmsched.core.registry import PluginRegistry  # noqa: E402


def make_plugin(name: str, phase: Phase = Phase.CONTENT_LOADING, **fields) -> PluginMetadata:
    return PluginMetadata(name=name, phase=phase, **fields)


@pytest.fixture
def scenario_registry() -> PluginRegistry:
    return PluginRegistry(
        [
            make_plugin("Imports", Phase.CONTENT_LOADING, capabilities=["content:imported"]),
            make_plugin("Mixins", Phase.VARIABLE_EXPANSION, capabilities=["mixins:expanded"]),
            make_plugin(
                "TemplateFields",
                Phase.VARIABLE_EXPANSION,
                capabilities=["fields:expanded", "variables:resolved"],
                run_after=["Mixins"],
            ),
            make_plugin(
                "Loops",
                Phase.CONDITIONAL_EVAL,
                requires_capabilities=["variables:resolved"],
                required=True,
            ),
        ]
    )


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "project"
    project_dir.mkdir(parents=True)

    (project_dir / "lmsched.yaml").write_text(
        """
version: v1

builtin: true

plugins:
  - name: remarkWatermark
    phase: post_processing
    description: Stamp a draft watermark on every page
    capabilities: [watermark:applied]
    run_after: [remarkSignatureLines]

pipeline:
  mode: warn
  enabled:
    - remarkImports
    - remarkMixins
    - remarkTemplateFields
    - remarkClauses
    - remarkLoops
    - remarkLegalHeadersParser
    - remarkCrossReferences
    - remarkHeaders
    - remarkDates
    - remarkSignatureLines
    - remarkFieldTracking
""".strip()
        + "\n",
        encoding="utf-8",
    )

    return project_dir

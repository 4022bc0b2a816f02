from __future__ import annotations

from lmsched.core.metadata import Phase, PluginMetadata
from lmsched.core.registry import PluginRegistry

# Registration order is the scheduling tie-break; keep it stable.
BUILTIN_PLUGINS: tuple[PluginMetadata, ...] = (
    PluginMetadata(
        name="remarkImports",
        phase=Phase.CONTENT_LOADING,
        description="Process @import directives and insert content as AST nodes",
        capabilities=["content:imported", "metadata:merged"],
        run_before=[
            "remarkTemplateFields",
            "remarkLegalHeadersParser",
            "remarkFieldTracking",
            "remarkMixins",
        ],
        version="2.0.0",
    ),
    PluginMetadata(
        name="remarkMixins",
        phase=Phase.VARIABLE_EXPANSION,
        description="Process mixin definitions and expansions",
        capabilities=["mixins:expanded"],
        requires_phases=[Phase.CONTENT_LOADING],
        run_after=["remarkImports"],
        run_before=["remarkTemplateFields"],
    ),
    PluginMetadata(
        name="remarkTemplateFields",
        phase=Phase.VARIABLE_EXPANSION,
        description="Process {{field}} template patterns and resolve values",
        capabilities=["fields:expanded", "variables:resolved"],
        requires_phases=[Phase.CONTENT_LOADING],
        run_after=["remarkImports", "remarkMixins"],
        run_before=["remarkFieldTracking"],
        required=True,
    ),
    PluginMetadata(
        name="remarkClauses",
        phase=Phase.CONDITIONAL_EVAL,
        description="Evaluate conditional clauses ({{#if}}, {{#unless}})",
        capabilities=["conditionals:evaluated"],
        requires_capabilities=["variables:resolved"],
        requires_phases=[Phase.VARIABLE_EXPANSION],
    ),
    PluginMetadata(
        name="remarkLoops",
        phase=Phase.CONDITIONAL_EVAL,
        description="Expand template loops ({{#each}})",
        capabilities=["loops:expanded"],
        requires_capabilities=["variables:resolved"],
        requires_phases=[Phase.VARIABLE_EXPANSION],
    ),
    PluginMetadata(
        name="remarkLegalHeadersParser",
        phase=Phase.STRUCTURE_PARSING,
        description="Parse legal header markers (l., ll., lll.) into structured headers",
        capabilities=["headers:parsed"],
        requires_phases=[Phase.CONDITIONAL_EVAL],
        run_after=["remarkImports"],
        run_before=["remarkHeaders"],
        required=True,
    ),
    PluginMetadata(
        name="remarkHeaders",
        phase=Phase.STRUCTURE_PARSING,
        description="Number headers and add CSS classes (legal-header-level-X)",
        capabilities=["headers:numbered"],
        requires_capabilities=["headers:parsed"],
        run_after=["remarkLegalHeadersParser"],
        required=True,
    ),
    PluginMetadata(
        name="remarkCrossReferences",
        phase=Phase.STRUCTURE_PARSING,
        description="Extract |key| cross-references before headers are processed",
        capabilities=["crossrefs:resolved"],
        requires_capabilities=["headers:parsed"],
        run_after=["remarkLegalHeadersParser"],
        run_before=["remarkHeaders"],
    ),
    PluginMetadata(
        name="remarkCrossReferencesAst",
        phase=Phase.STRUCTURE_PARSING,
        description="AST-based cross-reference processing (alternative to remarkCrossReferences)",
        capabilities=["crossrefs:resolved"],
        requires_capabilities=["headers:numbered"],
        run_after=["remarkHeaders", "remarkLegalHeadersParser"],
        conflicts=["remarkCrossReferences"],
    ),
    PluginMetadata(
        name="remarkDates",
        phase=Phase.POST_PROCESSING,
        description="Process date fields and formatting",
        capabilities=["dates:formatted"],
    ),
    PluginMetadata(
        name="remarkSignatureLines",
        phase=Phase.POST_PROCESSING,
        description="Process signature line markers",
        capabilities=["signatures:rendered"],
    ),
    PluginMetadata(
        name="remarkFieldTracking",
        phase=Phase.POST_PROCESSING,
        description="Track template fields for highlighting and analysis",
        capabilities=["fields:tracked"],
        requires_capabilities=["fields:expanded"],
        run_after=["remarkTemplateFields"],
    ),
    PluginMetadata(
        name="remarkDebugAst",
        phase=Phase.POST_PROCESSING,
        description="Debug plugin for visualizing AST structure",
        run_after=["remarkFieldTracking"],
    ),
)

DEFAULT_PIPELINE: tuple[str, ...] = (
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


def builtin_registry(*, allow_overwrite: bool = False) -> PluginRegistry:
    """Return a fresh registry seeded with the legal-markdown remark plugins."""
    return PluginRegistry(BUILTIN_PLUGINS, allow_overwrite=allow_overwrite)

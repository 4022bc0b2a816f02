from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lmsched.core.metadata import VALIDATION_MODES, PluginMetadata


class PipelineSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: list[str] = Field(default_factory=list)
    mode: str | None = None

    @field_validator("mode")
    @classmethod
    def _check_mode(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in VALIDATION_MODES:
            raise ValueError(f"mode must be one of: {', '.join(VALIDATION_MODES)}")
        return normalized


class Config(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = "v1"
    builtin: bool = True
    entry_points: bool = False
    plugins: list[PluginMetadata] = Field(default_factory=list)
    pipeline: PipelineSection = Field(default_factory=PipelineSection)

    @model_validator(mode="after")
    def _validate_config(self) -> "Config":
        if self.version != "v1":
            raise ValueError("Only version v1 is supported.")
        seen: set[str] = set()
        duplicates: set[str] = set()
        for plugin in self.plugins:
            if plugin.name in seen:
                duplicates.add(plugin.name)
            seen.add(plugin.name)
        if duplicates:
            dup_list = ", ".join(sorted(duplicates))
            raise ValueError(f"Duplicate plugin names: {dup_list}")
        return self

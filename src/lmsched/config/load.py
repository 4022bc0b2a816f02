from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError
from ruamel.yaml import YAML

from lmsched.core.metadata import VALIDATION_MODES
from lmsched.core.registry import DuplicateNameError, PluginRegistry
from lmsched.plugins.builtin import builtin_registry
from lmsched.plugins.registry import PluginLoadError, load_entry_point_plugins

from .model import Config

DEFAULT_CONFIG = Path("lmsched.yaml")
MODE_ENV_VAR = "LMSCHED_VALIDATION_MODE"
RUNTIME_ENV_VAR = "LMSCHED_ENV"


class ConfigError(RuntimeError):
    pass


_yaml = YAML(typ="safe")


def load_config(project_dir: Path, config_path: Path | None = None) -> Config:
    config_path = config_path or DEFAULT_CONFIG
    if not config_path.is_absolute():
        config_path = project_dir / config_path
    if not config_path.exists():
        raise ConfigError(f"Missing config: {config_path}")
    data = _load_yaml(config_path)
    if not isinstance(data, dict):
        raise ConfigError("Config must be a YAML mapping at the top level.")
    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def load_registry(config: Config) -> PluginRegistry:
    registry = builtin_registry() if config.builtin else PluginRegistry()
    extra = list(config.plugins)
    if config.entry_points:
        try:
            extra = [*load_entry_point_plugins(), *extra]
        except PluginLoadError as exc:
            raise ConfigError(str(exc)) from exc
    for plugin in extra:
        try:
            registry.register(plugin)
        except DuplicateNameError as exc:
            raise ConfigError(f"{exc} (already provided by another plugin source)") from exc
    return registry


def detect_validation_mode(environ: Mapping[str, str] | None = None) -> str:
    """Pick a validation mode from the environment.

    An explicit LMSCHED_VALIDATION_MODE wins; CI runs are strict; production and
    test runtimes only warn; anything else (local development) is strict.
    """
    env = os.environ if environ is None else environ
    explicit = env.get(MODE_ENV_VAR, "").strip().lower()
    if explicit in VALIDATION_MODES:
        return explicit
    if env.get("CI", "").strip().lower() == "true":
        return "strict"
    if env.get(RUNTIME_ENV_VAR, "").strip().lower() in {"production", "test"}:
        return "warn"
    return "strict"


def resolve_validation_mode(
    mode: str | None,
    config: Config | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    if mode:
        normalized = mode.strip().lower()
        if normalized not in VALIDATION_MODES:
            raise ConfigError(
                f"Unknown validation mode: {mode} (expected one of: {', '.join(VALIDATION_MODES)})"
            )
        return normalized
    if config is not None and config.pipeline.mode:
        return config.pipeline.mode
    return detect_validation_mode(environ)


def _load_yaml(path: Path) -> Any:
    try:
        return _yaml.load(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to parse YAML: {path}") from exc

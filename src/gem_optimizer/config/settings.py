"""Service configuration: optimizer knobs (YAML) and process settings (env)."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gem_optimizer.config.profiles import DEFAULT_FALLBACK_MODEL
from gem_optimizer.config.vehicle import VehicleProfile

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class OptimizerConfig(BaseModel):
    """Knobs for one ``RuleBasedOptimizer`` instance.

    The rule, constraint and model tables themselves are fixed; this only
    covers how the service around them behaves.
    """

    fallback_model: str = Field(
        default=DEFAULT_FALLBACK_MODEL,
        description="Profile used when the requested model is unknown",
    )
    max_validation_passes: int = Field(
        default=3, ge=1, le=10,
        description="Safety-validation passes before conservative defaults are forced",
    )
    cache_enabled: bool = Field(default=False, description="Memoize results by input hash")
    cache_max_entries: int = Field(default=256, ge=1, description="Cache size before oldest entries are evicted")
    log_level: LogLevel = Field(
        default="INFO",
        description="Level used by the API entry point when it configures logging",
    )
    extra_profiles: dict[str, VehicleProfile] = Field(
        default_factory=dict,
        description="Additional vehicle profiles keyed by model identifier",
    )


def load_config(path: str | Path) -> OptimizerConfig:
    """Read an ``OptimizerConfig`` from a YAML file.

    An empty file yields the defaults.  Malformed content raises
    ``ValueError`` (YAML errors) or ``pydantic.ValidationError``.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid optimizer config {path}: {exc}") from exc

    if data is None:
        return OptimizerConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Optimizer config {path} must be a mapping, got {type(data).__name__}")
    return OptimizerConfig(**data)


class ServerSettings(BaseSettings):
    """Process settings for the API entry point, read from ``GEM_OPTIMIZER_*``.

    ``GEM_OPTIMIZER_CONFIG_PATH`` points at an ``OptimizerConfig`` YAML file;
    ``GEM_OPTIMIZER_LOG_LEVEL`` overrides the level that file sets.
    """

    model_config = SettingsConfigDict(env_prefix="GEM_OPTIMIZER_")

    config_path: Path | None = Field(default=None, description="OptimizerConfig YAML file")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Listen port")
    log_level: LogLevel | None = Field(default=None, description="Overrides OptimizerConfig.log_level")

    def optimizer_config(self) -> OptimizerConfig:
        """The YAML config at ``config_path``, or the defaults when unset."""
        if self.config_path is None:
            return OptimizerConfig()
        return load_config(self.config_path)

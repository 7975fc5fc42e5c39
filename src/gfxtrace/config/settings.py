"""Configuration management for gfxtrace.

Loads settings from a YAML configuration file with environment variable
overrides. The ``defaults`` section holds the values remembered from the
last confirmed trace; writing them back is left to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/gfxtrace.yaml")


class TraceDefaults(BaseModel):
    """Field values used to pre-fill a new trace draft."""

    api: str = Field(default="", description="Last used API name, empty for platform default")
    out_dir: str = Field(default="")
    frame_count: int = Field(default=0, ge=0)
    mid_execution: bool = Field(default=False)
    without_buffering: bool = Field(default=False)

    # Android
    device: str = Field(default="", description="Serial of the last used device")
    package: str = Field(default="", description="Last used launch target")
    intent_args: str = Field(default="")
    clear_cache: bool = Field(default=False)
    disable_pcs: bool = Field(default=False)

    # Desktop
    executable: str = Field(default="")
    args: str = Field(default="")
    cwd: str = Field(default="")


class RunnerConfig(BaseModel):
    command: list[str] = Field(
        default_factory=lambda: ["gapit", "trace"],
        min_length=1,
        description="Tracer command prefix; request flags are appended",
    )


class SessionConfig(BaseModel):
    stop_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait for the tracer to exit before killing it"
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)

    @field_validator("level")
    @classmethod
    def check_level(cls, level: str) -> str:
        level = level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {level}")
        return level


class Settings(BaseSettings):
    """Root configuration for gfxtrace.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "GFXTRACE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    defaults: TraceDefaults = Field(default_factory=TraceDefaults)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Values present in the YAML file are passed as init arguments, so
    priority is: YAML file > env vars > .env file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)


def save_defaults(config_path: Path | str | None, defaults: TraceDefaults) -> None:
    """Write remembered trace defaults into a YAML config file.

    Other sections of the file are preserved.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}
        path.parent.mkdir(parents=True, exist_ok=True)

    data["defaults"] = defaults.model_dump(mode="json")

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    logger.info("Saved trace defaults to %s", path)

"""Page index configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: PAGECOUNTS_<SECTION>_<KEY> (uppercase).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pagecounts.core.models import DEFAULT_TIME_FORMAT


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    env: str = "dev"  # "dev" or "prod"


@dataclass
class IndexConfig:
    mode: str = "load"  # "build" (parse source) or "load" (read snapshot)
    source: str = "data/pagecounts.tsv"
    snapshot: str = "data/pagecounts.bin"
    time_format: str = DEFAULT_TIME_FORMAT
    verify_on_load: bool = True
    save_after_build: bool = True


@dataclass
class LimitsConfig:
    max_top_k: int = 1000


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"
    file: str = ""


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "PAGECOUNTS_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "PAGECOUNTS_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "PAGECOUNTS_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "PAGECOUNTS_INDEX_MODE": lambda v: setattr(config.index, "mode", v),
        "PAGECOUNTS_INDEX_SOURCE": lambda v: setattr(config.index, "source", v),
        "PAGECOUNTS_INDEX_SNAPSHOT": lambda v: setattr(config.index, "snapshot", v),
        "PAGECOUNTS_INDEX_TIME_FORMAT": lambda v: setattr(config.index, "time_format", v),
        "PAGECOUNTS_INDEX_VERIFY_ON_LOAD": lambda v: setattr(config.index, "verify_on_load", _parse_bool(v)),
        "PAGECOUNTS_INDEX_SAVE_AFTER_BUILD": lambda v: setattr(config.index, "save_after_build", _parse_bool(v)),
        "PAGECOUNTS_LIMITS_MAX_TOP_K": lambda v: setattr(config.limits, "max_top_k", int(v)),
        "PAGECOUNTS_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "PAGECOUNTS_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
        "PAGECOUNTS_LOG_FILE": lambda v: setattr(config.logging, "file", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    if config_path is None:
        config_path = Path(os.environ.get("PAGECOUNTS_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in ("server", "index", "limits", "logging"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config

"""Centralized configuration for Thesaurion.

Supports environment variables (optionally from a .env file), JSON config
files, and programmatic overrides.
"""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import logging

from dotenv import find_dotenv, load_dotenv

from ..utils.errors import ConfigurationError

logger = logging.getLogger("THESAURION.Config")

ENV_PREFIX = "THESAURION_"
EVICTION_MODES = ("unbounded", "lru")
TOKEN_KINDS = ("uri", "label")
EXPANSION_TYPES = ("labels", "broader", "narrower", "related")


@dataclass
class ThesaurusConfig:
    """Where the thesaurus comes from."""
    source: Optional[str] = None  # path or http(s) URL
    format: Optional[str] = None  # rdflib format name; guessed from extension when unset
    snapshot_path: Optional[str] = None  # JSON graph snapshot reused across runs
    fetch_timeout_s: float = 30.0
    fetch_retries: int = 3


@dataclass
class ExpansionConfig:
    """Default expansion policy for requests that do not override it."""
    token_kind: str = "label"  # "uri" or "label"
    expansion_types: List[str] = field(default_factory=lambda: ["labels"])
    depth: int = 1
    max_depth: int = 2  # hard cap on traversal depth
    language: Optional[str] = None
    max_workers: int = 4


@dataclass
class CacheConfig:
    """Expansion cache configuration."""
    enabled: bool = True
    eviction: str = "unbounded"  # "unbounded" or "lru"
    capacity: int = 10000  # only used with "lru"
    memory_limit_percent: Optional[float] = None
    pressure_check_interval: int = 256


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    format: str = "standard"  # "standard" or "json"
    file_path: Optional[str] = None
    file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class ThesaurionConfig:
    """Master configuration."""
    thesaurus: ThesaurusConfig = field(default_factory=ThesaurusConfig)
    expansion: ExpansionConfig = field(default_factory=ExpansionConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    def to_json(self) -> str:
        """Convert config to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: str) -> None:
        """Save config to JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Config saved to {path}")

    @classmethod
    def load(cls, path: str) -> ThesaurionConfig:
        """Load config from JSON file. Missing file means defaults."""
        if not os.path.exists(path):
            logger.warning(f"Config file not found: {path}, using defaults")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read config file: {e}", {"path": path}) from e

        config = cls()
        for key, value in data.items():
            if hasattr(config, key) and isinstance(value, dict):
                setattr(config, key, cls._update_dataclass(getattr(config, key), value))

        logger.info(f"Config loaded from {path}")
        return config

    @staticmethod
    def _update_dataclass(obj: Any, data: Dict[str, Any]) -> Any:
        """Recursively update dataclass from dict."""
        if not isinstance(data, dict):
            return obj

        for key, value in data.items():
            if hasattr(obj, key):
                current = getattr(obj, key)
                if hasattr(current, "__dataclass_fields__"):
                    setattr(obj, key, ThesaurionConfig._update_dataclass(current, value))
                else:
                    setattr(obj, key, value)
        return obj

    @classmethod
    def from_env(cls, base: Optional[ThesaurionConfig] = None) -> ThesaurionConfig:
        """Overlay THESAURION_* environment variables on ``base`` (or defaults)."""
        config = base or cls()

        def safe_int(key: str) -> Optional[int]:
            val = os.getenv(ENV_PREFIX + key)
            if val is not None:
                try:
                    return int(val)
                except ValueError:
                    logger.warning(f"Invalid int for {ENV_PREFIX}{key}={val}, ignoring")
            return None

        def safe_float(key: str) -> Optional[float]:
            val = os.getenv(ENV_PREFIX + key)
            if val is not None:
                try:
                    return float(val)
                except ValueError:
                    logger.warning(f"Invalid float for {ENV_PREFIX}{key}={val}, ignoring")
            return None

        def safe_bool(key: str, default: bool) -> bool:
            val = os.getenv(ENV_PREFIX + key)
            if val is not None:
                return val.lower() in ("1", "true", "yes", "on")
            return default

        def safe_str(key: str) -> Optional[str]:
            return os.getenv(ENV_PREFIX + key)

        # Thesaurus source
        if (source := safe_str("SOURCE")) is not None:
            config.thesaurus.source = source
        if (fmt := safe_str("FORMAT")) is not None:
            config.thesaurus.format = fmt
        if (snapshot := safe_str("SNAPSHOT_PATH")) is not None:
            config.thesaurus.snapshot_path = snapshot
        if (timeout := safe_float("FETCH_TIMEOUT")) is not None:
            config.thesaurus.fetch_timeout_s = timeout
        if (retries := safe_int("FETCH_RETRIES")) is not None:
            config.thesaurus.fetch_retries = retries

        # Expansion policy
        if (kind := safe_str("TOKEN_KIND")) is not None:
            config.expansion.token_kind = kind.lower()
        if (types := safe_str("EXPANSION_TYPES")) is not None:
            config.expansion.expansion_types = [t.strip().lower() for t in types.split(",") if t.strip()]
        if (depth := safe_int("DEPTH")) is not None:
            config.expansion.depth = depth
        if (max_depth := safe_int("MAX_DEPTH")) is not None:
            config.expansion.max_depth = max_depth
        if (language := safe_str("LANGUAGE")) is not None:
            config.expansion.language = language or None
        if (workers := safe_int("MAX_WORKERS")) is not None:
            config.expansion.max_workers = workers

        # Cache
        config.cache.enabled = safe_bool("CACHE_ENABLED", config.cache.enabled)
        if (eviction := safe_str("CACHE_EVICTION")) is not None:
            config.cache.eviction = eviction.lower()
        if (capacity := safe_int("CACHE_CAPACITY")) is not None:
            config.cache.capacity = capacity
        if (limit := safe_float("CACHE_MEMORY_LIMIT")) is not None:
            config.cache.memory_limit_percent = limit

        # Logging
        if (level := safe_str("LOG_LEVEL")) is not None:
            config.logging.level = level
        if (log_format := safe_str("LOG_FORMAT")) is not None:
            config.logging.format = log_format
        if (filepath := safe_str("LOG_FILE")) is not None:
            config.logging.file_path = filepath

        return config

    def validate(self) -> None:
        """Raise ConfigurationError listing every invalid setting."""
        problems = []
        if self.expansion.token_kind not in TOKEN_KINDS:
            problems.append(f"expansion.token_kind must be one of {TOKEN_KINDS}")
        unknown = [t for t in self.expansion.expansion_types if str(t).lower() not in EXPANSION_TYPES]
        if unknown:
            problems.append(f"unknown expansion types: {unknown}")
        if not self.expansion.expansion_types:
            problems.append("expansion.expansion_types must not be empty")
        if self.expansion.depth < 0:
            problems.append("expansion.depth must be >= 0")
        if self.expansion.max_depth < 0:
            problems.append("expansion.max_depth must be >= 0")
        if self.expansion.max_workers < 1:
            problems.append("expansion.max_workers must be >= 1")
        if self.cache.eviction not in EVICTION_MODES:
            problems.append(f"cache.eviction must be one of {EVICTION_MODES}")
        if self.cache.eviction == "lru" and self.cache.capacity < 1:
            problems.append("cache.capacity must be >= 1 for lru eviction")
        if self.thesaurus.fetch_retries < 1:
            problems.append("thesaurus.fetch_retries must be >= 1")

        if problems:
            raise ConfigurationError("Invalid configuration", {"problems": problems})


def get_config(
    config_path: Optional[str] = None,
    use_env: bool = True,
    env_file: Optional[str] = None,
) -> ThesaurionConfig:
    """Get configuration.

    Priority: env vars > config file > defaults. When ``use_env`` is set a
    .env file (``env_file`` or the nearest one) is loaded first; variables
    already set in the process environment win over it.
    """
    config = ThesaurionConfig()

    if config_path:
        config = ThesaurionConfig.load(config_path)

    if use_env:
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))
        config = ThesaurionConfig.from_env(config)

    config.validate()
    return config


__all__ = [
    "ThesaurionConfig",
    "ThesaurusConfig",
    "ExpansionConfig",
    "CacheConfig",
    "LoggingConfig",
    "get_config",
]

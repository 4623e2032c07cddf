from .settings import (
    CacheConfig,
    ExpansionConfig,
    LoggingConfig,
    ThesaurionConfig,
    ThesaurusConfig,
    get_config,
)
from .logging_config import setup_logging, setup_logging_from_config

__all__ = [
    "CacheConfig",
    "ExpansionConfig",
    "LoggingConfig",
    "ThesaurionConfig",
    "ThesaurusConfig",
    "get_config",
    "setup_logging",
    "setup_logging_from_config",
]

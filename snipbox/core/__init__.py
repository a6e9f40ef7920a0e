"""
Core functionality for snipbox.
"""

from .config import ConfigManager, RunnerConfig, SnipboxConfig
from .exceptions import (
    BuildError,
    ConfigurationError,
    ExecutorError,
    OptionsError,
    OptionsParseError,
    SnipboxError,
    TransportFailure,
    UnknownKeysError,
    UnknownLanguageError,
    UnknownValueError,
    UnrecognizedImageError,
    format_error_message,
)
from .logging import get_logger, setup_logging

__all__ = [
    "BuildError",
    "ConfigManager",
    "ConfigurationError",
    "ExecutorError",
    "OptionsError",
    "OptionsParseError",
    "RunnerConfig",
    "SnipboxConfig",
    "SnipboxError",
    "TransportFailure",
    "UnknownKeysError",
    "UnknownLanguageError",
    "UnknownValueError",
    "UnrecognizedImageError",
    "format_error_message",
    "get_logger",
    "setup_logging",
]

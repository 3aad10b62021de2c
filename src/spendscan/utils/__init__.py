"""Utility modules."""
from .logger import configure_logger, get_logger, set_run_context, get_data_dir
from .exceptions import (
    SpendScanError,
    ConfigError,
    LLMError,
    ValidationError,
    RegistryError,
    AnalysisError,
    RetryableError,
    RetryableLLMError
)
from .retry import retry_with_backoff

__all__ = [
    "configure_logger",
    "get_logger",
    "set_run_context",
    "get_data_dir",
    "SpendScanError",
    "ConfigError",
    "LLMError",
    "ValidationError",
    "RegistryError",
    "AnalysisError",
    "RetryableError",
    "RetryableLLMError",
    "retry_with_backoff"
]

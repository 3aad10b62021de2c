"""Custom exception classes for SpendScan."""


class SpendScanError(Exception):
    """Base exception for SpendScan."""
    pass


class ConfigError(SpendScanError):
    """Configuration-related errors."""
    pass


class LLMError(SpendScanError):
    """Merchant normalization/categorization model errors."""
    pass


class ValidationError(SpendScanError):
    """Data validation errors."""
    pass


class RegistryError(SpendScanError):
    """Run registry errors."""
    pass


class AnalysisError(SpendScanError):
    """Raised when an analysis run cannot complete."""
    pass


# Retryable errors
class RetryableError(SpendScanError):
    """Base class for errors that should trigger retry."""
    pass


class RetryableLLMError(RetryableError, LLMError):
    """LLM errors that can be retried."""
    pass

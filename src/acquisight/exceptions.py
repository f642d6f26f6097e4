"""Custom exceptions for the AcquiSight package."""

from typing import Optional


class AcquiSightError(Exception):
    """Base exception for all AcquiSight errors."""


class InvalidInputError(AcquiSightError):
    """Raised when a required request field is missing or blank."""


class ConfigurationError(AcquiSightError):
    """Raised when a provider is called without the settings it needs."""


class UsaSpendingError(AcquiSightError):
    """Base exception for USAspending.gov API errors."""


class UsaSpendingClientError(UsaSpendingError):
    """Raised on a 4xx response. These are never retried."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"API client error ({status_code}): {message}")


class UsaSpendingNotFoundError(UsaSpendingClientError):
    """Raised when the requested award does not exist."""


class UsaSpendingMaxRetriesError(UsaSpendingError):
    """Raised when every retry attempt has failed."""

    def __init__(self, attempts: int, last_error: Optional[str] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"API request failed after {attempts} attempts: "
            f"{last_error or 'Unknown error'}"
        )


class AnalysisError(AcquiSightError):
    """Raised when an AI provider call fails."""


class AnalysisTimeoutError(AnalysisError):
    """Raised when an AI provider call exceeds its time limit."""


class RenderError(AcquiSightError):
    """Raised when a page cannot be rendered or a document cannot be built."""

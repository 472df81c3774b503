# sentiflow/exceptions.py
from typing import Optional


class SentiflowError(Exception):
    """Base class for all errors raised by the analysis backend."""


class RemoteCallError(SentiflowError):
    """An outbound call to the classifier or chat model failed."""


class RemoteClassifierError(RemoteCallError):
    """Non-success response, transport failure or malformed body from Workers AI."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"Workers AI error: {status_code} - {message}")
        else:
            super().__init__(f"Workers AI error: {message}")


class CallBudgetExceeded(RemoteCallError):
    """An outbound call would exceed the per-request call ceiling."""

    def __init__(self, ceiling: int):
        self.ceiling = ceiling
        super().__init__(f"Outbound call ceiling of {ceiling} reached")


class ParseError(SentiflowError):
    """Chat model output did not match the expected line format."""


class ValidationError(SentiflowError):
    """Required input is missing on the single-item analyze path."""


class ConfigurationError(SentiflowError):
    """Remote-service credentials are missing."""

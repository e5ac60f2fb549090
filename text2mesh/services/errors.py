"""Failure taxonomy for remote inference calls.

Every remote tier reports failure through one of these exceptions. The
fallback chain catches them at the tier boundary and demotes to the next
tier, so none of them ever reach the caller of the pipeline.
"""

from typing import Optional


class GenerationServiceError(Exception):
    """Base exception for remote inference failures."""

    def __init__(self, message: str, error_type: str = "unknown"):
        super().__init__(message)
        self.error_type = error_type


class RemoteServiceUnavailable(GenerationServiceError):
    """Network-level failure: connection refused, DNS, reset."""

    def __init__(self, message: str):
        super().__init__(message, error_type="unavailable")


class RemoteServiceRejected(GenerationServiceError):
    """The service answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, error_type="rejected")
        self.status_code = status_code


class RemoteServiceTimeout(GenerationServiceError):
    """The call exceeded its time ceiling."""

    def __init__(self, message: str):
        super().__init__(message, error_type="timeout")


class MalformedResponse(GenerationServiceError):
    """The service answered but the payload is unusable."""

    def __init__(self, message: str):
        super().__init__(message, error_type="malformed")


class InvalidPromptError(ValueError):
    """Prompt rejected before entering the pipeline."""

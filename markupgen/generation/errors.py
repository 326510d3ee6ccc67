"""
Generation Errors

Error taxonomy for the generation pipeline. Every error carries a fixed,
caller-safe message; the exception text itself is for server logs only.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base exception for generation failures."""

    error_kind = "GenerationError"
    status_code = 500
    user_message = "Generation failed. Please try again later."
    retryable = False

    def __init__(
        self,
        detail: str = "",
        *,
        user_message: str | None = None,
        remaining: int | None = None,
    ):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message
        self.remaining = remaining

    def to_dict(self) -> dict:
        """Caller-facing payload; never includes the exception detail."""
        data: dict = {"errorKind": self.error_kind, "message": self.user_message}
        if self.remaining is not None:
            data["remaining"] = self.remaining
        if self.retryable:
            data["retryable"] = True
        return data


class ValidationError(GenerationError):
    """Empty description, unknown content kind or malformed field."""

    error_kind = "ValidationError"
    status_code = 400
    user_message = "Invalid request"


class AuthenticationRequired(GenerationError):
    error_kind = "AuthenticationRequired"
    status_code = 401
    user_message = "Please sign in to generate content"


class ProviderUnavailable(GenerationError):
    error_kind = "ProviderUnavailable"
    status_code = 400
    user_message = "The requested AI provider is not enabled"


class NoProviderConfigured(ProviderUnavailable):
    status_code = 503
    user_message = "No AI provider is configured"


class ModelNotAllowed(GenerationError):
    error_kind = "ModelNotAllowed"
    status_code = 400
    user_message = "The requested model is not enabled"


class QuotaExceeded(GenerationError):
    error_kind = "QuotaExceeded"
    status_code = 403
    user_message = "Usage limit reached"


class AccountNotFound(GenerationError):
    error_kind = "AccountNotFound"
    status_code = 404
    user_message = "Account not found"


class BackendTransientError(GenerationError):
    """Network failure, rate limiting or timeout talking to the backend."""

    error_kind = "BackendTransientError"
    status_code = 502
    user_message = "The AI service is temporarily unavailable. Please try again."
    retryable = True


class BackendAuthError(GenerationError):
    """Backend rejected or lacks a credential."""

    error_kind = "BackendAuthError"
    status_code = 500
    user_message = "AI service configuration error. Please contact the administrator."


class BackendRejected(GenerationError):
    """Backend refused the request with a 4xx answer; resubmitting will not help."""

    error_kind = "BackendRejected"
    status_code = 502
    user_message = "The AI service could not process this request."


class InvalidOutput(GenerationError):
    """Backend answered but no usable markup could be extracted."""

    error_kind = "InvalidOutput"
    status_code = 502
    user_message = "Generation failed. Please try again."
    retryable = True


class GenerationCancelled(GenerationError):
    error_kind = "GenerationCancelled"
    status_code = 503
    user_message = "The request was cancelled"
    retryable = True

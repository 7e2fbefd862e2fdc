"""
Error taxonomy shared by services and the API layer.

Each error carries the HTTP status and machine-readable code the API
returns for it, so services can raise without knowing about FastAPI.
"""


class AppError(Exception):
    """Base error with an HTTP mapping."""

    status_code = 500
    code = "INTERNAL_ERROR"
    retryable = False

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ConfigurationError(AppError):
    """Server is missing a secret or credential it needs."""


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"


class InvalidSessionError(UnauthorizedError):
    """Session token has a bad signature, is malformed, or has expired."""


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class InvalidInputError(AppError):
    status_code = 400
    code = "INVALID_REQUEST"


class MissingProviderGrantError(InvalidInputError):
    """User has no stored Google access token."""

    code = "MISSING_PROVIDER_GRANT"


class InvalidRangeError(InvalidInputError):
    """Event end is not after its start."""

    status_code = 422
    code = "INVALID_RANGE"


class NoEventFoundError(InvalidInputError):
    status_code = 422
    code = "NO_EVENT_FOUND"


class ProviderError(AppError):
    """A downstream Google / Gemini call failed."""

    status_code = 502
    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        details: list[str] | None = None,
        provider_status: int | None = None,
    ):
        super().__init__(message, details)
        self.provider_status = provider_status


class ProviderUnavailableError(ProviderError):
    """Timeout or transport failure; safe to retry for reads."""

    code = "PROVIDER_UNAVAILABLE"
    retryable = True


class ExtractorError(ProviderError):
    code = "EXTRACTOR_FAILED"


class LoginError(ProviderError):
    """OAuth code exchange or id-token verification failed."""

    status_code = 500
    code = "LOGIN_FAILED"

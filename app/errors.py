"""
app/errors.py
Application errors. Each one carries its HTTP status and a stable code.
Rendered by the handlers in main.py as {"error": code, "detail": message}.
"""


class AppError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"


class InvalidStage(ValidationError):
    code = "invalid_stage"


class MissingAttribution(ValidationError):
    code = "missing_attribution"


class AuthError(AppError):
    status_code = 401
    code = "unauthorized"


class AuthorizationError(AppError):
    status_code = 403
    code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class InvalidTransition(AppError):
    status_code = 409
    code = "invalid_transition"


class ThrottledError(AppError):
    status_code = 429
    code = "throttled"


class UpstreamError(AppError):
    """Billing / messaging / email provider failure."""
    status_code = 500
    code = "upstream_error"


class InternalError(AppError):
    status_code = 500
    code = "internal_error"

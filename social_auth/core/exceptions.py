"""
Auth Errors

Typed failures raised by the auth core. Each kind carries the HTTP
status it maps to, so the boundary layer can translate any of them with
a single exception handler:

    try:
        await auth_service.login(...)
    except AuthError as e:
        return JSONResponse(status_code=e.status_code, ...)
"""


class AuthError(Exception):
    """
    Base exception for auth operations.

    Attributes:
        message: User-visible explanation
        status_code: HTTP status the error is reported with
    """
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


class ValidationError(AuthError):
    """Malformed or mismatched input the user can correct."""
    status_code = 400


class AuthenticationError(AuthError):
    """Bad credentials or a missing, invalid or stale session."""
    status_code = 401


class AuthorizationError(AuthError):
    """Authenticated, but the role is not allowed."""
    status_code = 403


class NotFoundError(AuthError):
    """No account matches the identifier."""
    status_code = 404


class InvalidCodeError(AuthError):
    """Reset code is wrong, missing or expired."""
    status_code = 400


class ConflictError(AuthError):
    """Email or username already taken."""
    status_code = 409


class NotificationError(AuthError):
    """The reset email could not be dispatched."""
    status_code = 500

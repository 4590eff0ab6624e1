"""
Domain errors raised by the services.

Each error carries the HTTP status it maps to; the API renders them as
``{"error": message}`` through a single exception handler in ``seru.main``.
"""


class SeruError(Exception):
    """Base class for all booking platform errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(SeruError):
    """Malformed or missing input."""

    status_code = 400


class AuthenticationRequired(SeruError):
    """No user session could be resolved."""

    status_code = 401


class PermissionDenied(SeruError):
    """The caller lacks the role or ownership the operation needs."""

    status_code = 403


class NotFoundError(SeruError):
    status_code = 404


class ConflictError(SeruError):
    """Illegal state transition or clashing data."""

    status_code = 409


class PersistenceError(SeruError):
    """The data store rejected a write; nothing was persisted."""

    status_code = 500

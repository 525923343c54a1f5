"""Domain error taxonomy.

Every error carries the HTTP status it maps to; the API layer turns them
into ``{"success": false, "message": ...}`` envelopes.
"""


class TavernError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(TavernError):
    """Malformed or missing input that schema validation did not catch."""

    status_code = 400


class PolicyError(TavernError):
    """Illegal state transition or edit attempted in the wrong state."""

    status_code = 400


class AuthenticationError(TavernError):
    status_code = 401


class AuthorizationError(TavernError):
    status_code = 403


class NotFoundError(TavernError):
    status_code = 404


class ConflictError(TavernError):
    status_code = 409

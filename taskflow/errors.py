"""Domain errors raised by the stores and handlers.

Each carries the HTTP status it maps to; the mapping to JSON responses lives
in ``taskflow.api.errors``.
"""


class TaskFlowError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskFlowError):
    """Bad or missing input, including date ordering and enum membership."""

    status_code = 400


class AuthError(TaskFlowError):
    """Missing, malformed, invalid or expired token; bad credentials."""

    status_code = 403


class Conflict(TaskFlowError):
    """Duplicate username or email."""

    status_code = 409


class NotFound(TaskFlowError):
    """No entity under the given id and owner."""

    status_code = 404

"""
Domain exceptions for Medic.

Follows the "Fail Fast" and "Strict Types" principles.
All application errors should inherit from MedicError.
"""


class MedicError(Exception):
    """Base class for all Medic exceptions."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class ContextNotFoundError(MedicError):
    """Raised when a session context is updated before it was created."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Context not found for session: {session_id}",
            {"session_id": session_id},
        )
        self.session_id = session_id


class ConfigurationError(MedicError):
    """Raised when configuration is invalid or corrupt."""

    pass


class RegenerationError(MedicError):
    """Raised when the external regenerator rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None, context: dict = None):
        super().__init__(message, context)
        self.status_code = status_code

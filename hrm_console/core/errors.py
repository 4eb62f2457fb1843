"""Error taxonomy shared by the services and the HTTP layer."""


class ConsoleError(Exception):
    """Base class; ``message`` is safe to show to the acting user."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(ConsoleError):
    """Bad credentials, unknown user, duplicate email."""

    status_code = 401


class SessionNotReady(ConsoleError):
    status_code = 401


class AuthorizationDenied(ConsoleError):
    status_code = 403


class RecordNotFound(ConsoleError):
    status_code = 404


class ConfirmationRequired(ConsoleError):
    status_code = 428


class DataServiceError(ConsoleError):
    """Network or constraint failure reported by the data backend."""

    status_code = 502


class DataConflict(DataServiceError):
    """Unique or foreign key constraint rejected the write."""

    status_code = 409

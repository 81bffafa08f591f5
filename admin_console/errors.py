"""Request-terminating errors, each mapped to an HTTP status."""


class ConsoleError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientInputError(ConsoleError):
    """Malformed or absent body, missing primary key, unknown field."""

    status_code = 400


class NotFoundError(ConsoleError):
    status_code = 404


class MethodNotAllowedError(ConsoleError):
    status_code = 405


class BackendFailure(ConsoleError):
    """Connector or statement failure. The driver message is passed through."""

    status_code = 500


class ManifestError(Exception):
    """Invalid resource manifest."""

"""Domain exceptions raised by the service layer."""


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidCursorError(ServiceError):
    """Raised when a feed cursor cannot be decoded."""

    def __init__(self, message: str = "Invalid cursor"):
        super().__init__(message, status_code=400)


class MailError(ServiceError):
    """Raised when an email could not be handed to the mail server."""

    def __init__(self, message: str = "Failed to send email"):
        super().__init__(message, status_code=502)

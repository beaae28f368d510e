"""Homanager exceptions.

Custom exceptions shared by the services and the API layer, providing
structured error handling across different failure modes.
"""


class HomanagerError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "HOMANAGER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(HomanagerError):
    """Rejected input, such as a malformed date string or an invalid interval."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message=message, code="VALIDATION_ERROR")


class NotFoundError(HomanagerError):
    """Requested entity does not exist."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            message=f"{entity} '{identifier}' not found",
            code="NOT_FOUND",
        )


class EmailConfigurationError(HomanagerError):
    """SMTP settings are partially filled in.

    Raised when only some of the SMTP settings are present, for example a
    host without a port, or a user without a password. Having none of them
    is a valid "not configured" state and does not raise.
    """

    def __init__(self, message: str):
        super().__init__(message=message, code="EMAIL_CONFIGURATION_ERROR")


class EmailDeliveryError(HomanagerError):
    """The SMTP server refused one or more recipients."""

    def __init__(self, recipients: list[str]):
        self.recipients = recipients
        super().__init__(
            message=f"Email not delivered to: {', '.join(recipients)}",
            code="EMAIL_DELIVERY_ERROR",
        )

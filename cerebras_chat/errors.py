"""Exception hierarchy for the chat core.

Every failure the core surfaces to a caller derives from ChatError so the
orchestrating layer can turn it into a user-facing notification.
"""


class ChatError(Exception):
    """Base class for chat core errors."""

    pass


class FileValidationError(ChatError):
    """Raised when an attachment is too large or of an unsupported type."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(reason)
        self.filename = filename
        self.reason = reason


class CompletionError(ChatError):
    """Raised when a completion or model-list request fails.

    Covers both network-level failures and non-success HTTP statuses.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionImportError(ChatError):
    """Raised when an import payload cannot be parsed into sessions."""

    pass


class ConfigurationError(ChatError):
    """Raised when the configuration does not allow the requested action."""

    pass

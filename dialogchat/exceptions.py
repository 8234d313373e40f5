"""Custom exceptions for DialogChat."""

from typing import Optional


class DialogChatError(Exception):
    """Base class for all DialogChat errors."""


class DeviceError(DialogChatError):
    """Raised when the microphone is unavailable or permission is denied."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class BackendError(DialogChatError):
    """Raised when a call to the conversational backend fails."""

    def __init__(self, operation: str, cause: Optional[Exception] = None, message: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        if message is None:
            detail = f": {cause}" if cause is not None else ""
            message = f"Backend call '{operation}' failed{detail}"
        super().__init__(message)


class StreamTerminated(BackendError):
    """Raised when the backend closes a streaming session while it is still live."""

    def __init__(self, cause: Optional[Exception] = None):
        super().__init__("streaming_detect_intent", cause,
                         "Backend closed the streaming session unexpectedly")

__all__ = [
    "AlreadyInstalledError",
    "AlreadySettledError",
    "NotInstalledError",
    "StubNotCalledError",
    "StubportError",
    "TrackerLookupError",
]


class StubportError(Exception):
    """Base exception for all stubport errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AlreadyInstalledError(StubportError):
    """Raised when installing on top of an existing installation."""


class NotInstalledError(StubportError):
    """Raised when uninstalling without a matching install."""


class AlreadySettledError(StubportError):
    """Raised when responding to a request that already has an outcome."""


class TrackerLookupError(StubportError, LookupError):
    """Raised when removing an item that is not being tracked."""


class StubNotCalledError(StubportError):
    """Raised when a failure stub sees no matching request within its window."""

    def __init__(self, message: str = "Timeout: Stub function not called.") -> None:
        super().__init__(message)

"""Custom exceptions for lockscan."""


class LockscanError(Exception):
    """Base exception for all lockscan errors."""


class ParseError(LockscanError):
    """Raised when a manifest's content cannot be decoded.

    The underlying decode error is chained as ``__cause__``.
    """

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)


class UnsupportedManifestError(LockscanError):
    """Raised when no registered extractor accepts a path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no extractor registered for {path}")


class ExtractionTimeoutError(TimeoutError):
    """Raised when a whole-manifest extraction exceeds its time budget."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"extraction of {path} timed out after {timeout:g}s")

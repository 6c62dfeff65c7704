"""
Exceptions
==========

Error taxonomy for the Moondream vision-language client.

Hierarchy:
    MoondreamError
        - ConfigurationError: missing credential / unusable endpoint
        - EncodingError: image could not be decoded or re-encoded
        - TransportError: non-success HTTP status or network failure
        - ParseError: malformed JSON response or stream frame

Every error keeps the underlying exception on ``cause`` when there is one.
Raisers also chain it (``raise ... from exc``) so tracebacks show both.
"""

from typing import Optional


class MoondreamError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigurationError(MoondreamError):
    """Raised at construction when the client cannot be configured."""
    pass


class EncodingError(MoondreamError):
    """Raised when an image cannot be converted to an EncodedImage."""
    pass


class TransportError(MoondreamError):
    """Raised on non-success HTTP status or network-level failure."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code


class ParseError(MoondreamError):
    """Raised when a response body or stream frame is not valid JSON."""
    pass

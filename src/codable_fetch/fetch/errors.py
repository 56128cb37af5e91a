"""
Failure taxonomy shared by the callback and pipeline fetch wrappers.

Exactly one of these is reported per failed fetch:

* :class:`TransportError` - the retrieval itself did not complete.
* :class:`BadStatusError` - a response arrived with a status outside the success range.
* :class:`MissingBodyError` - the response was acceptable but carried no payload.
* :class:`DecodeError` - the payload could not be parsed into the requested shape.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from .transport import ResponseMetadata


class FetchError(RuntimeError):
    """Base class for fetch failures."""

    kind = "fetch"

    def __init__(self, message: str, *, url: Optional[str] = None, response: Optional["ResponseMetadata"] = None) -> None:
        super().__init__(message)
        self.url = url
        self.response = response


class TransportError(FetchError):
    """Raised when a request could not be sent or no response was received."""

    kind = "transport"


class CancelledFetchError(TransportError):
    """Reported when a task is cancelled before its outcome was delivered."""

    kind = "cancelled"


class BadStatusError(FetchError):
    """Raised when the response status code is outside the accepted range."""

    kind = "bad_status"

    def __init__(self, response: "ResponseMetadata", *, body: Optional[bytes] = None) -> None:
        super().__init__(f"Unexpected HTTP status {response.status_code} for {response.url}", url=response.url, response=response)
        self.body = body

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class MissingBodyError(FetchError):
    """Raised when a response carries no payload bytes."""

    kind = "missing_body"


class DecodeError(FetchError):
    """Raised when a payload cannot be parsed into the requested shape."""

    kind = "decode"

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        response: Optional["ResponseMetadata"] = None,
        errors: Sequence[Any] = (),
    ) -> None:
        super().__init__(message, url=url, response=response)
        self.errors = list(errors)

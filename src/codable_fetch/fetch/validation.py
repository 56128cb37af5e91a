"""Checks applied to a :class:`ResponseEnvelope` before and during decoding."""

from __future__ import annotations

from typing import Any, Container, Optional, Tuple

from .decoding import decode
from .errors import BadStatusError, FetchError, MissingBodyError
from .transport import ResponseEnvelope, ResponseMetadata

DEFAULT_SUCCESS_STATUS = range(200, 300)

Outcome = Tuple[Any, Optional[ResponseMetadata], Optional[FetchError]]


def check_status(envelope: ResponseEnvelope, success_codes: Container[int] = DEFAULT_SUCCESS_STATUS) -> None:
    """Raise :class:`BadStatusError` for HTTP responses outside ``success_codes``; other sources pass."""

    response = envelope.response
    if response is None or not response.is_http:
        return
    if response.status_code not in success_codes:
        raise BadStatusError(response, body=envelope.body)


def require_body(envelope: ResponseEnvelope) -> bytes:
    if not envelope.body:
        response = envelope.response
        url = response.url if response is not None else None
        raise MissingBodyError(f"Response from {url or 'source'} has no body", url=url, response=response)
    return envelope.body


def resolve_envelope(envelope: ResponseEnvelope, shape: Any, success_codes: Container[int] = DEFAULT_SUCCESS_STATUS) -> Outcome:
    """
    Turn one envelope into a ``(value, response, error)`` triple.

    Checks run in order: transport error, status code, body presence, decode.
    The first failing check wins and later checks are skipped.
    """

    response = envelope.response
    if envelope.error is not None:
        return None, response, envelope.error
    try:
        check_status(envelope, success_codes)
        body = require_body(envelope)
        return decode(shape, body, response=response), response, None
    except FetchError as exc:
        return None, response, exc

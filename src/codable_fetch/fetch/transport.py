"""
Raw retrieval primitives producing :class:`ResponseEnvelope` values.

Transports never raise for retrieval failures. Whatever happened during one
request (payload bytes, response metadata, transport error) is captured in a
single envelope and handed to the validation and decode steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Protocol
from urllib.parse import urlsplit
from urllib.request import url2pathname

import httpx
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import FetchSettings
from ..core.logging import get_logger
from .errors import TransportError

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    """
    Response information independent of the body.

    Attributes
    ----------
    url:
        Final location the payload was read from.
    status_code:
        HTTP status code, or ``None`` for sources that are not HTTP-shaped.
    headers:
        Response headers, lower-cased keys for HTTP responses.
    reason:
        HTTP reason phrase when available.
    """

    url: str
    status_code: Optional[int] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def is_http(self) -> bool:
        return self.status_code is not None

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "ResponseMetadata":
        return cls(
            url=str(response.url),
            status_code=response.status_code,
            headers={key.lower(): value for key, value in response.headers.items()},
            reason=response.reason_phrase or None,
        )


@dataclass(frozen=True, slots=True)
class ResponseEnvelope:
    """Outcome of a single retrieval: body, response metadata and transport error."""

    body: Optional[bytes] = None
    response: Optional[ResponseMetadata] = None
    error: Optional[TransportError] = None


class Transport(Protocol):
    """Performs one retrieval for a location."""

    def retrieve(self, url: str) -> ResponseEnvelope: ...


class HTTPTransport:
    """
    HTTPX-backed transport.

    Parameters
    ----------
    settings:
        Timeout, retry and header configuration.
    transport:
        Optional ``httpx`` transport, e.g. :class:`httpx.MockTransport` in tests.
    """

    def __init__(self, *, settings: Optional[FetchSettings] = None, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.settings = settings or FetchSettings()
        self._transport = transport

    def _build_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.settings.timeout,
            headers=self.settings.headers(),
            follow_redirects=True,
            transport=self._transport,
        )

    def retrieve(self, url: str) -> ResponseEnvelope:
        LOGGER.debug("HTTP request", extra={"method": "GET", "url": url})

        @retry(
            retry=retry_if_exception_type(httpx.TransportError),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
            stop=stop_after_attempt(max(1, self.settings.max_attempts)),
            before_sleep=before_sleep_log(LOGGER.logger, logging.WARNING),
            reraise=True,
        )
        def _send() -> httpx.Response:
            with self._build_client() as client:
                return client.get(url)

        try:
            response = _send()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            LOGGER.warning("HTTP request failed", extra={"method": "GET", "url": url, "outcome": type(exc).__name__})
            error = TransportError(f"Request to {url} failed: {exc}", url=url)
            error.__cause__ = exc
            return ResponseEnvelope(error=error)

        metadata = ResponseMetadata.from_httpx(response)
        LOGGER.debug("HTTP response", extra={"url": metadata.url, "status_code": metadata.status_code})
        return ResponseEnvelope(body=response.content, response=metadata)


class LocalTransport:
    """Reads ``file://`` URLs and plain filesystem paths; responses carry no status code."""

    def retrieve(self, url: str) -> ResponseEnvelope:
        path = local_path(url)
        try:
            body = path.read_bytes()
        except OSError as exc:
            LOGGER.warning("Local read failed", extra={"url": url, "outcome": type(exc).__name__})
            error = TransportError(f"Cannot read {path}: {exc}", url=url)
            error.__cause__ = exc
            return ResponseEnvelope(error=error)
        metadata = ResponseMetadata(url=path.resolve().as_uri(), headers={"content-length": str(len(body))})
        return ResponseEnvelope(body=body, response=metadata)


class RoutingTransport:
    """Dispatches local locations to :class:`LocalTransport` and everything else to HTTP."""

    def __init__(self, http: Transport, local: Optional[Transport] = None) -> None:
        self.http = http
        self.local = local or LocalTransport()

    def retrieve(self, url: str) -> ResponseEnvelope:
        if is_local(url):
            return self.local.retrieve(url)
        return self.http.retrieve(url)


def is_local(url: str) -> bool:
    return urlsplit(url).scheme in ("", "file")


def local_path(url: str) -> Path:
    parts = urlsplit(url)
    if parts.scheme == "file":
        return Path(url2pathname(parts.path))
    return Path(url).expanduser()


def default_transport(settings: Optional[FetchSettings] = None) -> RoutingTransport:
    return RoutingTransport(HTTPTransport(settings=settings))

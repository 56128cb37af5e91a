"""
Shared helpers for typed API clients.

Clients resolve resource paths against a base URL and run the decoding data
task on a :class:`~codable_fetch.fetch.FetchSession`. Fetch failures are
re-raised as :class:`APIError` carrying the failure kind so callers can react
without knowing about the fetch layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import LoggerAdapter
from typing import Any, Mapping, Optional

import httpx

from ...core.logging import get_logger
from ...fetch import AnyPublisher, Failure, FetchSession, data_task_publisher, run_data_task, shared_session
from ..base import AdapterError


class APIError(AdapterError):
    """Raised when an API call fails; ``kind`` names the fetch failure."""

    def __init__(self, message: str, *, kind: str = "api", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


@dataclass(slots=True)
class BaseAPIClient:
    """
    Base client decoding JSON resources into typed values.

    Parameters
    ----------
    base_url:
        Root URL for the upstream service.
    session:
        Fetch session used for requests. Defaults to :func:`shared_session`.
    timeout:
        Maximum seconds to wait for a fetch before cancelling it.
    """

    base_url: str
    session: FetchSession = field(default_factory=shared_session)
    timeout: Optional[float] = None
    logger: LoggerAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self.logger = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"base_url": self.base_url},
        )

    def _url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        url = httpx.URL(f"{self.base_url}/{path.lstrip('/')}")
        query = {key: value for key, value in (params or {}).items() if value is not None}
        if query:
            url = url.copy_merge_params(query)
        return str(url)

    def _get(self, path: str, shape: Any, *, params: Optional[Mapping[str, Any]] = None) -> Any:
        url = self._url(path, params)
        result = run_data_task(url, shape, session=self.session, timeout=self.timeout)
        if isinstance(result, Failure):
            error = result.error
            kind = getattr(error, "kind", "api")
            response = getattr(error, "response", None)
            status_code = response.status_code if response is not None else None
            self.logger.error("API request failed", extra={"url": url, "outcome": kind, "status_code": status_code})
            raise APIError(f"GET {url} failed ({kind}): {error}", kind=kind, status_code=status_code) from error
        return result.value

    def _publisher(self, path: str, shape: Any, *, params: Optional[Mapping[str, Any]] = None) -> AnyPublisher[Any]:
        return data_task_publisher(
            self._url(path, params),
            shape,
            transport=self.session.transport,
            success_codes=self.session.settings.success_status,
            executor=self.session.executor,
        )

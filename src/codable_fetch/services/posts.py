"""
Concrete fetchables and the posts view model that consumes them.

:class:`PostsViewModel` only knows it holds an ``AnyFetchable[list[Post]]``;
whether the posts come from the network or a local JSON file is decided by
whoever builds the handle.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from logging import LoggerAdapter
from pathlib import Path
from typing import Any, Callable, Container, Generic, Optional, TypeVar

from ..core.logging import get_logger
from ..fetch import AnyFetchable, Failure, FetchError, FetchSession, LocalTransport, Result, Success, data_task, is_local, resolve_envelope
from ..fetch.fetchable import Completion
from ..models import Post

T = TypeVar("T")

POSTS_TYPE = list[Post]


class RemoteFetcher(Generic[T]):
    """Fetches ``result_type`` from ``url`` through a :class:`FetchSession` data task."""

    def __init__(
        self,
        url: str,
        result_type: Any,
        *,
        session: Optional[FetchSession] = None,
        success_codes: Optional[Container[int]] = None,
    ) -> None:
        self.url = url
        self.result_type = result_type
        self.session = session
        self.success_codes = success_codes

    def fetch(self, completion: Optional[Completion[T]] = None) -> None:
        def _on_complete(value: Optional[T], response: Any, error: Optional[FetchError]) -> None:
            if completion is not None:
                completion(Failure(error) if error is not None else Success(value))

        data_task(self.url, self.result_type, _on_complete, session=self.session, success_codes=self.success_codes).resume()


class LocalFetcher(Generic[T]):
    """Decodes ``result_type`` from a JSON file; the completion runs before ``fetch`` returns."""

    def __init__(self, path: Path | str, result_type: Any) -> None:
        self.path = Path(path)
        self.result_type = result_type
        self._transport = LocalTransport()

    def fetch(self, completion: Optional[Completion[T]] = None) -> None:
        envelope = self._transport.retrieve(str(self.path))
        value, _, error = resolve_envelope(envelope, self.result_type)
        if completion is not None:
            completion(Failure(error) if error is not None else Success(value))


def posts_fetcher(source: str, *, session: Optional[FetchSession] = None) -> AnyFetchable[list[Post]]:
    """Build an erased posts fetcher for a URL or a local file path."""

    if is_local(source):
        return AnyFetchable(POSTS_TYPE, LocalFetcher(source, POSTS_TYPE))
    return AnyFetchable(POSTS_TYPE, RemoteFetcher(source, POSTS_TYPE, session=session))


Listener = Callable[["PostsViewModel"], None]


@dataclass(slots=True)
class PostsViewModel:
    """
    Holds the latest posts and load error for presentation code.

    Attributes
    ----------
    fetcher:
        Erased handle producing ``list[Post]``.
    posts:
        Posts from the last successful load.
    error:
        Error from the last failed load, cleared on success.
    loading:
        ``True`` between :meth:`load` and the fetch completion.
    """

    fetcher: AnyFetchable[list[Post]]
    posts: list[Post] = field(default_factory=list)
    error: Optional[BaseException] = None
    loading: bool = False
    logger: LoggerAdapter = field(init=False, repr=False)
    _listeners: list[Listener] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.fetcher.result_type != POSTS_TYPE:
            raise TypeError(f"PostsViewModel needs a fetcher of list[Post], got {self.fetcher!r}")
        self.logger = get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked after every completed load."""

        self._listeners.append(listener)

    def load(self) -> None:
        with self._lock:
            self.loading = True
        self.fetcher.fetch(self._apply)

    def posts_by_user(self, user_id: int) -> list[Post]:
        return [post for post in self.posts if post.user_id == user_id]

    def _apply(self, result: Result[list[Post]]) -> None:
        with self._lock:
            if isinstance(result, Success):
                self.posts = list(result.value)
                self.error = None
                self.logger.debug("Posts loaded", extra={"outcome": "success", "count": len(self.posts)})
            else:
                self.error = result.error
                self.logger.warning("Posts load failed", extra={"outcome": getattr(result.error, "kind", type(result.error).__name__)})
            self.loading = False
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

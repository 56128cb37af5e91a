"""
Callback-style decoding fetch.

A :class:`DataTask` performs one retrieval on its session's executor, validates
and decodes the payload, and calls ``completion(value, response, error)``
exactly once. Cancellation is explicit: cancelling a task whose completion has
not run yet delivers :class:`~codable_fetch.fetch.errors.CancelledFetchError`
and any later transport outcome is discarded.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Container, Generic, Optional, TypeVar

from ..config import FetchSettings, load_settings
from ..core.logging import get_logger, log_progress
from .decoding import shape_name
from .errors import CancelledFetchError, FetchError, TransportError
from .result import Failure, Result, Success
from .transport import ResponseEnvelope, ResponseMetadata, Transport, default_transport
from .validation import resolve_envelope

T = TypeVar("T")

LOGGER = get_logger(__name__)

TaskCompletion = Callable[[Optional[T], Optional[ResponseMetadata], Optional[FetchError]], None]


class TaskState(str, Enum):
    SUSPENDED = "suspended"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FetchSession:
    """
    Owns the transport and worker pool used by data tasks.

    Parameters
    ----------
    settings:
        Session settings; defaults to :class:`FetchSettings`.
    transport:
        Retrieval primitive; defaults to HTTP with local-file routing.
    executor:
        Worker pool. When omitted the session creates and owns one.
    """

    def __init__(
        self,
        *,
        settings: Optional[FetchSettings] = None,
        transport: Optional[Transport] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.settings = settings or FetchSettings()
        self.transport = transport or default_transport(self.settings)
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="codable-fetch")

    def data_task(
        self,
        url: str,
        shape: Any,
        completion: Optional[TaskCompletion[T]] = None,
        *,
        success_codes: Optional[Container[int]] = None,
    ) -> "DataTask[T]":
        return DataTask(self, url, shape, completion, success_codes=success_codes)

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=True)

    def __enter__(self) -> "FetchSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


_shared_session: Optional[FetchSession] = None
_shared_lock = threading.Lock()


def shared_session() -> FetchSession:
    """Return the process-wide session built from :func:`load_settings`."""

    global _shared_session
    with _shared_lock:
        if _shared_session is None:
            _shared_session = FetchSession(settings=load_settings().fetch)
        return _shared_session


class DataTask(Generic[T]):
    """Single retrieval whose decoded outcome is delivered to ``completion``."""

    def __init__(
        self,
        session: FetchSession,
        url: str,
        shape: Any,
        completion: Optional[TaskCompletion[T]] = None,
        *,
        success_codes: Optional[Container[int]] = None,
    ) -> None:
        self.session = session
        self.url = url
        self.shape = shape
        self.success_codes = success_codes if success_codes is not None else session.settings.success_status
        self._completion = completion
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._state = TaskState.SUSPENDED
        self._delivered = False
        self._future: Optional[Future] = None

    @property
    def state(self) -> TaskState:
        return self._state

    def resume(self) -> "DataTask[T]":
        """Schedule the retrieval. Calling it again, or after cancel, has no effect."""

        with self._lock:
            if self._state is not TaskState.SUSPENDED:
                return self
            self._state = TaskState.RUNNING
        self._future = self.session.executor.submit(self._run)
        return self

    def cancel(self) -> None:
        """Deliver a cancellation failure unless the completion already ran."""

        error = CancelledFetchError(f"Fetch of {self.url} was cancelled", url=self.url)
        if self._deliver(None, None, error, TaskState.CANCELLED) and self._future is not None:
            self._future.cancel()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the completion ran; returns ``False`` on timeout."""

        return self._done.wait(timeout)

    def _run(self) -> None:
        log_progress(LOGGER, "Data task started", phase="fetch", step="retrieve", status="running", extra={"url": self.url, "shape": shape_name(self.shape)})
        try:
            envelope = self.session.transport.retrieve(self.url)
        except Exception as exc:  # noqa: BLE001 - transports report failures in the envelope
            error = TransportError(f"Transport raised while fetching {self.url}: {exc}", url=self.url)
            error.__cause__ = exc
            envelope = ResponseEnvelope(error=error)
        value, response, error = resolve_envelope(envelope, self.shape, self.success_codes)
        if error is not None:
            LOGGER.warning("Data task failed", extra={"url": self.url, "outcome": error.kind, "status_code": response.status_code if response else None})
        else:
            log_progress(LOGGER, "Data task finished", phase="fetch", step="decode", status="completed", outcome="success", extra={"url": self.url})
        self._deliver(value, response, error, TaskState.COMPLETED)

    def _deliver(self, value: Any, response: Optional[ResponseMetadata], error: Optional[FetchError], state: TaskState) -> bool:
        with self._lock:
            if self._delivered:
                return False
            self._delivered = True
            self._state = state
        try:
            if self._completion is not None:
                try:
                    self._completion(value, response, error)
                except Exception:
                    LOGGER.exception("Data task completion raised", extra={"url": self.url})
                    raise
        finally:
            self._done.set()
        return True


def data_task(
    url: str,
    shape: Any,
    completion: Optional[TaskCompletion[T]] = None,
    *,
    session: Optional[FetchSession] = None,
    success_codes: Optional[Container[int]] = None,
) -> DataTask[T]:
    """
    Create a suspended :class:`DataTask` for ``url`` decoding into ``shape``.

    Call :meth:`DataTask.resume` to start it.
    """

    return (session or shared_session()).data_task(url, shape, completion, success_codes=success_codes)


def run_data_task(
    url: str,
    shape: Any,
    *,
    session: Optional[FetchSession] = None,
    success_codes: Optional[Container[int]] = None,
    timeout: Optional[float] = None,
) -> Result[T]:
    """Run a data task to completion and return its outcome as a :data:`Result`."""

    outcome: list[Result[T]] = []

    def _collect(value: Optional[T], response: Optional[ResponseMetadata], error: Optional[FetchError]) -> None:
        outcome.append(Failure(error) if error is not None else Success(value))

    task: DataTask[T] = data_task(url, shape, _collect, session=session, success_codes=success_codes).resume()
    if not task.wait(timeout):
        task.cancel()
        task.wait()
    return outcome[0]

"""
Pipeline-style decoding fetch.

A pipeline is a chain of single-value publishers. The source stage performs the
retrieval, ``validate_status`` turns a bad status code into a failure carrying
the response, and ``decode`` parses the body into the requested shape. Any
failing stage short-circuits the rest of the chain, and subscribers receive at
most one value followed by exactly one completion.

Example::

    publisher = data_task_publisher("https://jsonplaceholder.typicode.com/users/1", User)
    publisher.sink(print, lambda completion: print("done", completion))
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Any, Callable, Container, Generic, Optional, TypeVar, Union

from ..core.logging import get_logger
from .decoding import decode, shape_name
from .errors import CancelledFetchError, FetchError, TransportError
from .result import Failure, Result, Success
from .transport import ResponseEnvelope, Transport, default_transport
from .validation import DEFAULT_SUCCESS_STATUS, check_status, require_body

T = TypeVar("T")
U = TypeVar("U")

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Finished:
    """Completion sent after the value was delivered."""


@dataclass(frozen=True, slots=True)
class Failed:
    """
    Completion sent when a stage failed; no value was delivered.

    ``error`` is always a :class:`FetchError`. Other exceptions raised inside the
    pipeline are wrapped and kept as its ``__cause__``.
    """

    error: FetchError


PipelineCompletion = Union[Finished, Failed]


class Cancellable:
    """Subscription token returned by :meth:`Publisher.sink`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._done = threading.Event()
        self._future: Optional[Future] = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._cancelled = True
        if self._future is not None:
            self._future.cancel()
        self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def _deliver(self, callback: Optional[Callable[[Any], None]], payload: Any, *, final: bool) -> None:
        with self._lock:
            if self._cancelled or self._done.is_set():
                return
            if final:
                self._done.set()
        if callback is not None:
            callback(payload)


class Publisher(Generic[T]):
    """Base class of pipeline stages."""

    upstream: Optional["Publisher[Any]"] = None

    def _produce(self) -> T:
        raise NotImplementedError

    def _executor(self) -> Optional[Executor]:
        return self.upstream._executor() if self.upstream is not None else None

    # ------------------------------------------------------------------ operators

    def map(self, transform: Callable[[T], U]) -> "Publisher[U]":
        return Map(self, transform)

    def try_map(self, transform: Callable[[T], U]) -> "Publisher[U]":
        return TryMap(self, transform)

    def validate_status(self: "Publisher[ResponseEnvelope]", success_codes: Container[int] = DEFAULT_SUCCESS_STATUS) -> "Publisher[ResponseEnvelope]":
        def _validate(envelope: ResponseEnvelope) -> ResponseEnvelope:
            check_status(envelope, success_codes)
            return envelope

        return TryMap(self, _validate, stage="validate_status")

    def decode(self: "Publisher[ResponseEnvelope]", shape: Any) -> "Publisher[Any]":
        def _decode(envelope: ResponseEnvelope) -> Any:
            return decode(shape, require_body(envelope), response=envelope.response)

        return TryMap(self, _decode, stage=f"decode:{shape_name(shape)}")

    def subscribe_on(self, executor: Executor) -> "Publisher[T]":
        return SubscribeOn(self, executor)

    def erase_to_any_publisher(self) -> "AnyPublisher[T]":
        return AnyPublisher(self)

    # ------------------------------------------------------------------ subscription

    def sink(
        self,
        receive_value: Optional[Callable[[T], None]] = None,
        receive_completion: Optional[Callable[[PipelineCompletion], None]] = None,
    ) -> Cancellable:
        """
        Run the pipeline and deliver its outcome.

        The pipeline runs inline unless a ``subscribe_on`` stage supplied an
        executor. Cancelling the returned token suppresses any notification not
        yet delivered.
        """

        token = Cancellable()
        executor = self._executor()
        if executor is None:
            self._drive(token, receive_value, receive_completion)
        else:
            token._future = executor.submit(self._drive, token, receive_value, receive_completion)
        return token

    def result(self, timeout: Optional[float] = None) -> Result[T]:
        """Block until the pipeline completes and return its outcome."""

        values: list[T] = []
        completions: list[PipelineCompletion] = []
        token = self.sink(values.append, completions.append)
        if not token.wait(timeout):
            token.cancel()
        if completions and isinstance(completions[0], Failed):
            return Failure(completions[0].error)
        if values:
            return Success(values[0])
        return Failure(CancelledFetchError("Pipeline was cancelled before completing"))

    def _drive(
        self,
        token: Cancellable,
        receive_value: Optional[Callable[[T], None]],
        receive_completion: Optional[Callable[[PipelineCompletion], None]],
    ) -> None:
        try:
            value = self._produce()
        except FetchError as exc:
            token._deliver(receive_completion, Failed(exc), final=True)
            return
        except Exception as exc:  # noqa: BLE001 - every failure ends the subscription with Failed
            LOGGER.warning("Pipeline raised", extra={"outcome": type(exc).__name__})
            error = FetchError(f"Pipeline failed: {exc}")
            error.__cause__ = exc
            token._deliver(receive_completion, Failed(error), final=True)
            return
        token._deliver(receive_value, value, final=False)
        token._deliver(receive_completion, Finished(), final=True)


class DataTaskPublisher(Publisher[ResponseEnvelope]):
    """Source stage emitting the raw envelope of one retrieval, or failing with :class:`TransportError`."""

    def __init__(self, url: str, transport: Optional[Transport] = None) -> None:
        self.url = url
        self.transport = transport or default_transport()

    def _produce(self) -> ResponseEnvelope:
        try:
            envelope = self.transport.retrieve(self.url)
        except Exception as exc:  # noqa: BLE001 - transports report failures in the envelope
            error = TransportError(f"Transport raised while fetching {self.url}: {exc}", url=self.url)
            error.__cause__ = exc
            envelope = ResponseEnvelope(error=error)
        if envelope.error is not None:
            LOGGER.warning("Pipeline source failed", extra={"url": self.url, "step": "retrieve", "outcome": envelope.error.kind})
            raise envelope.error
        return envelope


class TryMap(Publisher[U]):
    """Stage whose transform may fail; non-fetch exceptions are wrapped in :class:`FetchError`."""

    def __init__(self, upstream: Publisher[T], transform: Callable[[T], U], *, stage: str = "try_map") -> None:
        self.upstream = upstream
        self.transform = transform
        self.stage = stage

    def _produce(self) -> U:
        value = self.upstream._produce()
        try:
            return self.transform(value)
        except FetchError as exc:
            LOGGER.debug("Pipeline stage failed", extra={"step": self.stage, "outcome": exc.kind})
            raise
        except Exception as exc:  # noqa: BLE001 - converted into a pipeline failure
            LOGGER.debug("Pipeline stage raised", extra={"step": self.stage, "outcome": type(exc).__name__})
            raise FetchError(f"Stage {self.stage} failed: {exc}") from exc


class Map(TryMap[U]):
    """Plain transform. It is not expected to fail, but if it raises the pipeline still ends with :class:`Failed`."""

    def __init__(self, upstream: Publisher[T], transform: Callable[[T], U]) -> None:
        super().__init__(upstream, transform, stage="map")


class SubscribeOn(Publisher[T]):
    def __init__(self, upstream: Publisher[T], executor: Executor) -> None:
        self.upstream = upstream
        self.executor = executor

    def _produce(self) -> T:
        return self.upstream._produce()

    def _executor(self) -> Optional[Executor]:
        return self.executor


class AnyPublisher(Publisher[T]):
    """Type-erased publisher: only the wrapped pipeline's produce step and executor are kept."""

    def __init__(self, publisher: Publisher[T]) -> None:
        if isinstance(publisher, AnyPublisher):
            self._produce_fn = publisher._produce_fn
            self._executor_fn = publisher._executor_fn
        else:
            self._produce_fn = publisher._produce
            self._executor_fn = publisher._executor

    def _produce(self) -> T:
        return self._produce_fn()

    def _executor(self) -> Optional[Executor]:
        return self._executor_fn()

    def erase_to_any_publisher(self) -> "AnyPublisher[T]":
        return self

    def __repr__(self) -> str:
        return "AnyPublisher()"


def data_task_publisher(
    url: str,
    shape: Any,
    *,
    transport: Optional[Transport] = None,
    success_codes: Container[int] = DEFAULT_SUCCESS_STATUS,
    executor: Optional[Executor] = None,
) -> AnyPublisher[Any]:
    """
    Build the retrieve, validate and decode pipeline for ``url``.

    Parameters
    ----------
    url:
        Location to fetch. ``file://`` URLs and plain paths are read locally.
    shape:
        Target type for the decoded payload.
    transport:
        Retrieval primitive; defaults to :func:`default_transport`.
    success_codes:
        Accepted HTTP status codes.
    executor:
        When given, the pipeline runs on this executor instead of inline.
    """

    publisher: Publisher[Any] = DataTaskPublisher(url, transport).validate_status(success_codes).decode(shape)
    if executor is not None:
        publisher = publisher.subscribe_on(executor)
    return publisher.erase_to_any_publisher()

"""
Fetch capabilities, type erasure and decoding network wrappers.

* :mod:`.fetchable` defines the :class:`Fetchable` protocol and the
  :class:`AnyFetchable` type-erased handle.
* :mod:`.tasks` provides the callback-style :func:`data_task`.
* :mod:`.pipeline` provides the pipeline-style :func:`data_task_publisher`.
"""

from .decoding import decode
from .errors import BadStatusError, CancelledFetchError, DecodeError, FetchError, MissingBodyError, TransportError
from .fetchable import AnyFetchable, ClosureFetchable, Fetchable
from .pipeline import AnyPublisher, Cancellable, DataTaskPublisher, Failed, Finished, Publisher, data_task_publisher
from .result import Failure, Result, Success
from .tasks import DataTask, FetchSession, TaskState, data_task, run_data_task, shared_session
from .transport import HTTPTransport, LocalTransport, ResponseEnvelope, ResponseMetadata, RoutingTransport, Transport, default_transport, is_local
from .validation import resolve_envelope

__all__ = [
    "AnyFetchable",
    "AnyPublisher",
    "BadStatusError",
    "Cancellable",
    "CancelledFetchError",
    "ClosureFetchable",
    "DataTask",
    "DataTaskPublisher",
    "DecodeError",
    "Failed",
    "Failure",
    "FetchError",
    "FetchSession",
    "Fetchable",
    "Finished",
    "HTTPTransport",
    "LocalTransport",
    "MissingBodyError",
    "Publisher",
    "ResponseEnvelope",
    "ResponseMetadata",
    "Result",
    "RoutingTransport",
    "Success",
    "TaskState",
    "Transport",
    "TransportError",
    "data_task",
    "data_task_publisher",
    "decode",
    "default_transport",
    "is_local",
    "resolve_envelope",
    "run_data_task",
    "shared_session",
]

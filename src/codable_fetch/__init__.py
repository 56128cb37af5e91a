"""
Typed JSON fetching with type-erased fetch capabilities.

The :mod:`codable_fetch.fetch` package holds the core pieces: the
:class:`~codable_fetch.fetch.AnyFetchable` handle, the callback-style
:func:`~codable_fetch.fetch.data_task` and the pipeline-style
:func:`~codable_fetch.fetch.data_task_publisher`. :mod:`codable_fetch.codegen`
turns JSON samples into model source.
"""

from .codegen import generate_models, generate_models_from_json
from .fetch import (
    AnyFetchable,
    AnyPublisher,
    BadStatusError,
    DecodeError,
    Failure,
    Fetchable,
    FetchError,
    FetchSession,
    MissingBodyError,
    Success,
    TransportError,
    data_task,
    data_task_publisher,
    run_data_task,
)
from .models import Address, Company, Geo, Post, User

__all__ = [
    "Address",
    "AnyFetchable",
    "AnyPublisher",
    "BadStatusError",
    "Company",
    "DecodeError",
    "Failure",
    "FetchError",
    "FetchSession",
    "Fetchable",
    "Geo",
    "MissingBodyError",
    "Post",
    "Success",
    "TransportError",
    "User",
    "data_task",
    "data_task_publisher",
    "generate_models",
    "generate_models_from_json",
    "run_data_task",
]

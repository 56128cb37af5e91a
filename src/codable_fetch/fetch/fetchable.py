"""
Fetch capability protocol and its type-erased handle.

A *fetchable* produces one value of its ``result_type`` and reports it through
an optional completion callback carrying a :data:`~codable_fetch.fetch.result.Result`.
:class:`AnyFetchable` hides which concrete fetchable is in use so consumers can
depend only on "something that fetches ``T``".
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, Protocol, TypeVar, runtime_checkable

from .result import Failure, Result, Success

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

Completion = Callable[[Result[T]], None]


@runtime_checkable
class Fetchable(Protocol[T_co]):
    """Capability producing a single value of ``result_type``."""

    @property
    def result_type(self) -> Any:
        """Declared type of the value passed to the completion."""

    def fetch(self, completion: Optional[Callable[[Result[T_co]], None]] = None) -> None:
        """Start the fetch and invoke ``completion`` at most once."""


class AnyFetchable(Generic[T]):
    """
    Type-erased wrapper around any :class:`Fetchable` of ``result_type``.

    Only the bound ``fetch`` operation of the wrapped capability is retained,
    so the handle exposes nothing about the concrete implementation.

    Parameters
    ----------
    result_type:
        Type of value callers expect. Must equal the wrapped capability's
        ``result_type`` when the capability declares one.
    fetchable:
        Concrete capability to wrap.

    Raises
    ------
    TypeError
        If ``fetchable`` has no callable ``fetch`` or declares a different result type.
    """

    __slots__ = ("_result_type", "_fetch")

    def __init__(self, result_type: Any, fetchable: Fetchable[T]) -> None:
        if isinstance(fetchable, AnyFetchable):
            operation = fetchable._fetch
        else:
            operation = getattr(fetchable, "fetch", None)
        if not callable(operation):
            raise TypeError(f"{type(fetchable).__name__} does not provide a callable fetch()")
        declared = getattr(fetchable, "result_type", result_type)
        if declared != result_type:
            raise TypeError(f"Cannot wrap fetchable of {_type_name(declared)} as AnyFetchable[{_type_name(result_type)}]")
        object.__setattr__(self, "_result_type", result_type)
        object.__setattr__(self, "_fetch", operation)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AnyFetchable is immutable")

    @property
    def result_type(self) -> Any:
        return self._result_type

    def fetch(self, completion: Optional[Completion[T]] = None) -> None:
        self._fetch(completion)

    def __repr__(self) -> str:
        return f"AnyFetchable[{_type_name(self._result_type)}]"


class ClosureFetchable(Generic[T]):
    """Fetchable backed by a synchronous callable; exceptions become failures."""

    def __init__(self, result_type: Any, producer: Callable[[], T]) -> None:
        self.result_type = result_type
        self._producer = producer

    def fetch(self, completion: Optional[Completion[T]] = None) -> None:
        try:
            outcome: Result[T] = Success(self._producer())
        except Exception as exc:  # noqa: BLE001 - surfaced through the completion
            outcome = Failure(exc)
        if completion is not None:
            completion(outcome)


def _type_name(value: Any) -> str:
    if isinstance(value, type):
        return value.__name__
    return repr(value)

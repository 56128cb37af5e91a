"""JSON payload decoding into caller-specified shapes."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional, Type, TypeVar, overload

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError
from .transport import ResponseMetadata

T = TypeVar("T")


@lru_cache(maxsize=256)
def type_adapter(shape: Any) -> TypeAdapter:
    """Return a cached :class:`pydantic.TypeAdapter` for ``shape``."""

    return TypeAdapter(shape)


def shape_name(shape: Any) -> str:
    return shape.__name__ if isinstance(shape, type) else repr(shape)


@overload
def decode(shape: Type[T], body: bytes, *, response: Optional[ResponseMetadata] = None) -> T: ...


@overload
def decode(shape: Any, body: bytes, *, response: Optional[ResponseMetadata] = None) -> Any: ...


def decode(shape: Any, body: bytes, *, response: Optional[ResponseMetadata] = None) -> Any:
    """
    Parse a JSON ``body`` into ``shape``.

    Parameters
    ----------
    shape:
        Any type understood by pydantic: models, dataclasses, ``list[Model]``,
        ``dict[str, Any]`` and so on.
    body:
        Raw JSON bytes. Values are validated strictly, so ``"1"`` does not
        satisfy an ``int`` field.
    response:
        Optional metadata attached to the raised error.

    Raises
    ------
    DecodeError
        On malformed JSON, missing required fields or type mismatches.
    """

    url = response.url if response is not None else None
    try:
        return type_adapter(shape).validate_json(body, strict=True)
    except ValidationError as exc:
        raise DecodeError(
            f"Cannot decode {shape_name(shape)}: {exc.error_count()} validation error(s)",
            url=url,
            response=response,
            errors=exc.errors(include_url=False),
        ) from exc

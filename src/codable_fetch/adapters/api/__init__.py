"""
Typed HTTP API clients and adapters.

* ``Client`` classes decode resources into models through the fetch layer.
* ``Adapter`` classes implement :class:`~codable_fetch.adapters.base.DataSourceAdapter`.
"""

from .base import APIError, BaseAPIClient
from .jsonplaceholder import JSONPlaceholderAdapter, JSONPlaceholderClient

__all__ = [
    "APIError",
    "BaseAPIClient",
    "JSONPlaceholderAdapter",
    "JSONPlaceholderClient",
]

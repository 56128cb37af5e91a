"""
Adapters wrapping typed API clients.

Each adapter exposes a ``verify`` check the CLI uses to confirm the upstream is
reachable and still returns payloads matching the declared models.
"""

from .base import AdapterError, DataSourceAdapter, VerificationResult

__all__ = [
    "AdapterError",
    "DataSourceAdapter",
    "VerificationResult",
]

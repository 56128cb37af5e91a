"""
Base protocols for API adapters.

Adapters expose a lightweight ``verify`` check on top of a typed client so the
CLI can report whether an upstream is reachable and still returns payloads in
the expected shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol


class AdapterError(RuntimeError):
    """Raised when an adapter encounters a non-recoverable error."""


@dataclass(slots=True)
class VerificationResult:
    """
    Structured response returned by adapter verification routines.

    Attributes
    ----------
    success:
        Indicates whether the verification succeeded.
    message:
        Human-readable summary.
    details:
        Optional structured metadata such as the sampled record.
    """

    success: bool
    message: str
    details: Optional[Mapping[str, object]] = None


class DataSourceAdapter(Protocol):
    """Protocol implemented by API adapters."""

    def verify(self) -> VerificationResult:
        """Perform a lightweight connectivity and shape check."""

    @property
    def source_id(self) -> str:
        """Identifier of the upstream API."""

"""
Exception hierarchy for the blob store.

All errors raised by the store inherit from BlobStoreError. Underlying OSError
causes are chained, never swallowed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class BlobStoreError(Exception):
    """Failure raised by the blob store.

    ``details`` names the key, digest or path involved and is appended to the
    message as ``name=value`` pairs.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        pairs = " ".join(f"{name}={value!r}" for name, value in self.details.items())
        return f"{self.message} [{pairs}]"


class ConfigurationError(BlobStoreError):
    """Raised when the store cannot be configured.

    Examples:
        - The working directory path exists and is a regular file
        - The digest algorithm is not provided by hashlib
    """


class CorruptIndexError(BlobStoreError):
    """Raised when a line of the index file cannot be parsed."""

    def __init__(self, path: Path, line_number: int, reason: str) -> None:
        self.path = path
        self.line_number = line_number
        super().__init__(
            f"Corrupt index file: {reason}",
            details={"path": str(path), "line": line_number},
        )


class StorageError(BlobStoreError):
    """Raised when an underlying filesystem operation fails.

    The original OSError is available as ``__cause__``.
    """

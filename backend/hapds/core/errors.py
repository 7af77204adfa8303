"""Exception hierarchy shared by the store client and the sync engine."""

from __future__ import annotations


class HapdsError(Exception):
    """Base class for all HAPDS errors."""


class StoreError(HapdsError):
    """A store request did not complete successfully."""

    def __init__(self, key: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{message} ({key})")
        self.key = key
        self.status_code = status_code


class NotFoundError(StoreError):
    """The requested key does not exist in the store."""

    def __init__(self, key: str) -> None:
        super().__init__(key, "Key not found", status_code=404)


class TransportError(StoreError):
    """The store was unreachable or answered with an unexpected response."""


class GenerationError(HapdsError):
    """Derived content could not be produced from the source text."""


class SyncError(HapdsError):
    """A mutating operation failed.

    ``source_committed`` tells callers whether the source mutation went
    through before the derived step failed; the source is the durable copy,
    so a committed source with a missing or stale derived artifact is a
    recoverable state.
    """

    def __init__(
        self,
        key: str,
        operation: str,
        cause: BaseException,
        source_committed: bool,
    ) -> None:
        stage = "derived" if source_committed else "source"
        super().__init__(f"{operation} failed on {stage} side for {key}: {cause}")
        self.key = key
        self.operation = operation
        self.cause = cause
        self.source_committed = source_committed


__all__ = [
    "HapdsError",
    "StoreError",
    "NotFoundError",
    "TransportError",
    "GenerationError",
    "SyncError",
]

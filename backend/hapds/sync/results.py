"""Result values for store calls whose failure has a fallback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from hapds.core.errors import StoreError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Attempt(Generic[T]):
    """Outcome of one attempted path: either a value or the store error."""

    key: str
    value: T | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def attempt(key: str, call: Callable[[], T]) -> Attempt[T]:
    """Run ``call`` and capture a ``StoreError`` as a failed attempt.

    Anything that is not a store error is a bug and propagates.
    """
    try:
        return Attempt(key=key, value=call())
    except StoreError as exc:
        return Attempt(key=key, error=exc)


__all__ = ["Attempt", "attempt"]

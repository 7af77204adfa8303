"""Keeps derived artifacts in step with their source documents."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, NoReturn, TypeVar

from hapds.core.errors import GenerationError, HapdsError, StoreError, SyncError
from hapds.core.logging import get_logger
from hapds.core.metrics import GENERATION_LATENCY, READS, SYNC_OPERATIONS
from hapds.store.base import DocumentStore, PatchSpec, ReadFormat
from hapds.sync.naming import collection_root, derived_key
from hapds.sync.results import attempt
from hapds.sync.rules import RuleCache
from hapds.sync.transform import generate
from hapds.utils.text import reduction_percent

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ReadResult:
    content: str
    served_key: str
    is_derived: bool


@dataclass(frozen=True, slots=True)
class RegenerateResult:
    source_key: str
    derived_key: str
    source_length: int
    derived_length: int
    reduction_percent: int


@dataclass(frozen=True, slots=True)
class ExistsResult:
    key: str
    source_exists: bool
    derived_exists: bool


class SyncCoordinator:
    """Runs every operation against the source key and its ``.aicomp`` shadow.

    Operations are not serialized per key. An append or patch always re-reads
    the source after its own write, so the derived artifact reflects at least
    that write, but a concurrent writer may have landed in between.
    """

    def __init__(self, store: DocumentStore, rule_cache: RuleCache) -> None:
        self.store = store
        self.rule_cache = rule_cache

    def read_with_fallback(self, key: str, fmt: ReadFormat = "markdown") -> ReadResult:
        shadow = derived_key(key)
        derived = attempt(shadow, lambda: self.store.get(shadow, fmt))
        if derived.ok:
            READS.labels(served="derived").inc()
            return ReadResult(content=derived.unwrap(), served_key=shadow, is_derived=True)
        logger.debug("Derived read missed for %s: %s", key, derived.error, extra={"ctx_key": key})
        source = attempt(key, lambda: self.store.get(key, fmt))
        READS.labels(served="source" if source.ok else "none").inc()
        return ReadResult(content=source.unwrap(), served_key=key, is_derived=False)

    def create_or_replace(self, key: str, content: str) -> None:
        self._mutate_source("create", key, lambda: self.store.put(key, content))
        self._write_derived("create", key, content)
        SYNC_OPERATIONS.labels(operation="create", outcome="ok").inc()

    def append(self, key: str, content: str) -> None:
        self._mutate_source("append", key, lambda: self.store.append(key, content))
        self._refresh_derived("append", key)
        SYNC_OPERATIONS.labels(operation="append", outcome="ok").inc()

    def patch(self, key: str, content: str, spec: PatchSpec) -> str:
        response = self._mutate_source("patch", key, lambda: self.store.patch(key, content, spec))
        self._refresh_derived("patch", key)
        SYNC_OPERATIONS.labels(operation="patch", outcome="ok").inc()
        return response

    def delete(self, key: str) -> None:
        self._mutate_source("delete", key, lambda: self.store.delete(key))
        shadow = derived_key(key)
        removed = attempt(shadow, lambda: self.store.delete(shadow))
        if not removed.ok:
            logger.debug("No derived artifact removed for %s: %s", key, removed.error, extra={"ctx_key": key})
        SYNC_OPERATIONS.labels(operation="delete", outcome="ok").inc()

    def regenerate(self, key: str) -> RegenerateResult:
        """Rebuild the derived artifact from the current source without touching the source."""
        try:
            source = self.store.get(key)
        except StoreError as exc:
            SYNC_OPERATIONS.labels(operation="regenerate", outcome="source_failed").inc()
            raise SyncError(key, "regenerate", exc, source_committed=False) from exc
        derived = self._write_derived("regenerate", key, source)
        SYNC_OPERATIONS.labels(operation="regenerate", outcome="ok").inc()
        result = RegenerateResult(
            source_key=key,
            derived_key=derived_key(key),
            source_length=len(source),
            derived_length=len(derived),
            reduction_percent=reduction_percent(source, derived),
        )
        logger.info(
            "Regenerated %s (%s%% smaller)",
            result.derived_key,
            result.reduction_percent,
            extra={"ctx_key": key},
        )
        return result

    def exists(self, key: str) -> ExistsResult:
        return ExistsResult(
            key=key,
            source_exists=self.store.head(key),
            derived_exists=self.store.head(derived_key(key)),
        )

    def render(self, key: str, content: str) -> str:
        """Derived form of ``content`` under the rules that govern ``key``."""
        rules = self.rule_cache.get_rules(collection_root(key))
        started = time.perf_counter()
        try:
            return generate(content, rules.text)
        except Exception as exc:
            raise GenerationError(f"Could not generate derived content for {key}: {exc}") from exc
        finally:
            GENERATION_LATENCY.labels(pipeline=rules.format.value).observe(time.perf_counter() - started)

    # Internal helpers -------------------------------------------------

    def _mutate_source(self, operation: str, key: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except StoreError as exc:
            SYNC_OPERATIONS.labels(operation=operation, outcome="source_failed").inc()
            logger.warning("%s of %s failed: %s", operation, key, exc, extra={"ctx_key": key, "ctx_operation": operation})
            raise SyncError(key, operation, exc, source_committed=False) from exc

    def _refresh_derived(self, operation: str, key: str) -> None:
        try:
            current = self.store.get(key)
        except StoreError as exc:
            self._derived_failed(operation, key, exc)
        self._write_derived(operation, key, current)

    def _write_derived(self, operation: str, key: str, content: str) -> str:
        try:
            derived = self.render(key, content)
            self.store.put(derived_key(key), derived)
        except HapdsError as exc:
            self._derived_failed(operation, key, exc)
        return derived

    def _derived_failed(self, operation: str, key: str, exc: HapdsError) -> NoReturn:
        SYNC_OPERATIONS.labels(operation=operation, outcome="derived_failed").inc()
        logger.exception(
            "Derived artifact for %s not updated after %s",
            key,
            operation,
            extra={"ctx_key": key, "ctx_operation": operation},
        )
        raise SyncError(key, operation, exc, source_committed=True) from exc


__all__ = ["ExistsResult", "ReadResult", "RegenerateResult", "SyncCoordinator"]

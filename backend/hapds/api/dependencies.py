"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from hapds.core.config import Settings, get_settings
from hapds.store.base import DocumentStore
from hapds.store.client import RestStoreClient
from hapds.store.memory import InMemoryStore
from hapds.sync import RuleCache, RuleFetcher, SyncCoordinator

MEMORY_STORE_SCHEME = "memory:"

_STORE: DocumentStore | None = None
_RULE_CACHE: RuleCache | None = None
_COORDINATOR: SyncCoordinator | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_store() -> DocumentStore:
    global _STORE
    if _STORE is None:
        settings = get_app_settings()
        if settings.store_url.startswith(MEMORY_STORE_SCHEME):
            _STORE = InMemoryStore()
        else:
            _STORE = RestStoreClient.from_settings(settings)
    return _STORE


def get_rule_cache() -> RuleCache:
    global _RULE_CACHE
    if _RULE_CACHE is None:
        _RULE_CACHE = RuleCache(RuleFetcher(get_store()))
    return _RULE_CACHE


def get_coordinator() -> SyncCoordinator:
    global _COORDINATOR
    if _COORDINATOR is None:
        _COORDINATOR = SyncCoordinator(store=get_store(), rule_cache=get_rule_cache())
    return _COORDINATOR


__all__ = [
    "get_app_settings",
    "get_coordinator",
    "get_rule_cache",
    "get_store",
]

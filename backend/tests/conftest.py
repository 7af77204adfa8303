"""Test fixtures for HAPDS."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


class ManualClock:
    """Clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("HAPDS_STORE_URL", "memory://")
    monkeypatch.setenv("HAPDS_LOG_JSON", "false")
    monkeypatch.delenv("HAPDS_CONFIG", raising=False)
    monkeypatch.delenv("HAPDS_HOST", raising=False)

    from hapds.api import dependencies as deps
    from hapds.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._STORE = None
    deps._RULE_CACHE = None
    deps._COORDINATOR = None
    yield
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._STORE = None
    deps._RULE_CACHE = None
    deps._COORDINATOR = None


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store():
    from hapds.store.memory import InMemoryStore

    return InMemoryStore(record_calls=True)


@pytest.fixture
def rule_cache(store, clock):
    from hapds.sync import RuleCache, RuleFetcher

    return RuleCache(RuleFetcher(store), clock=clock)


@pytest.fixture
def coordinator(store, rule_cache):
    from hapds.sync import SyncCoordinator

    return SyncCoordinator(store=store, rule_cache=rule_cache)

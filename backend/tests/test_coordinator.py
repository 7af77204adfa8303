"""Tests for the sync coordinator."""

from __future__ import annotations

import pytest

from hapds.core.errors import GenerationError, NotFoundError, SyncError, TransportError
from hapds.store.base import PatchSpec
from hapds.sync import DEFAULT_RULES, generate

KEY = "notes/a.md"
DERIVED = "notes/a.md.aicomp"
RULES_KEY = "_mcp/GenCompRules.md"


def test_read_after_create_serves_derived(coordinator, store) -> None:
    content = "# Plan\n\nIn order to ship, you must test.\n\n\n\nStep 1: build"
    coordinator.create_or_replace(KEY, content)
    result = coordinator.read_with_fallback(KEY)
    assert result.content == generate(content, DEFAULT_RULES)
    assert result.served_key == DERIVED
    assert result.is_derived is True


def test_read_falls_back_to_source(coordinator, store) -> None:
    store.put(KEY, "plain source")
    result = coordinator.read_with_fallback(KEY)
    assert (result.content, result.served_key, result.is_derived) == ("plain source", KEY, False)


def test_read_falls_back_on_derived_transport_error(coordinator, store) -> None:
    store.put(KEY, "source")
    store.put(DERIVED, "derived")
    store.fail("get", DERIVED)
    result = coordinator.read_with_fallback(KEY)
    assert result.content == "source"
    assert not result.is_derived


def test_read_raises_when_both_missing(coordinator) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        coordinator.read_with_fallback(KEY)
    assert excinfo.value.key == KEY


def test_read_json_format(coordinator, store) -> None:
    store.put(KEY, "body")
    result = coordinator.read_with_fallback(KEY, "json")
    assert '"content":"body"' in result.content


def test_create_source_failure_skips_derived(coordinator, store) -> None:
    store.fail("put", KEY)
    with pytest.raises(SyncError) as excinfo:
        coordinator.create_or_replace(KEY, "text")
    assert excinfo.value.source_committed is False
    assert isinstance(excinfo.value.cause, TransportError)
    assert ("put", DERIVED) not in store.calls
    assert ("get", RULES_KEY) not in store.calls


def test_create_derived_failure_is_fatal_but_source_kept(coordinator, store) -> None:
    store.fail("put", DERIVED)
    with pytest.raises(SyncError) as excinfo:
        coordinator.create_or_replace(KEY, "text")
    assert excinfo.value.source_committed is True
    assert store.get(KEY) == "text"
    assert not store.head(DERIVED)


def test_generation_failure_reported_as_derived_failure(coordinator, store, monkeypatch) -> None:
    def boom(content: str, rules: str) -> str:
        raise ValueError("bad input")

    monkeypatch.setattr("hapds.sync.coordinator.generate", boom)
    with pytest.raises(SyncError) as excinfo:
        coordinator.create_or_replace(KEY, "text")
    assert excinfo.value.source_committed is True
    assert isinstance(excinfo.value.cause, GenerationError)
    assert store.get(KEY) == "text"


def test_append_regenerates_from_full_content(coordinator, store) -> None:
    store.put(KEY, "Line one\n")
    coordinator.append(KEY, "Line two, basically")
    assert store.get(KEY) == "Line one\nLine two, basically"
    assert store.get(DERIVED) == generate("Line one\nLine two, basically", DEFAULT_RULES)
    assert store.calls.index(("append", KEY)) < store.calls.index(("get", KEY))


def test_append_reread_failure_reports_committed_source(coordinator, store) -> None:
    store.put(KEY, "start")
    store.fail("get", KEY)
    with pytest.raises(SyncError) as excinfo:
        coordinator.append(KEY, " more")
    assert excinfo.value.source_committed is True
    store.recover("get", KEY)
    assert store.get(KEY) == "start more"


def test_append_concurrent_replace_never_predates_append(coordinator, store) -> None:
    store.put(KEY, "original")
    snapshots: list[str] = []

    def concurrent_write() -> None:
        snapshots.append(store.get(KEY))
        coordinator.create_or_replace(KEY, "entirely different")
        snapshots.append(store.get(KEY))

    store.on("append", KEY, concurrent_write)
    coordinator.append(KEY, "more text")

    derived = store.get(DERIVED)
    assert snapshots == ["originalmore text", "entirely different"]
    assert derived in {generate(snapshot, DEFAULT_RULES) for snapshot in snapshots}
    assert derived != generate("original", DEFAULT_RULES)


def test_patch_returns_store_response_and_regenerates(coordinator, store) -> None:
    store.put(KEY, "# Tasks\n- one\n")
    spec = PatchSpec(operation="append", target_type="heading", target="Tasks")
    response = coordinator.patch(KEY, "- two", spec)
    assert response == ""
    assert store.get(KEY) == "# Tasks\n- one\n- two"
    assert store.get(DERIVED) == generate(store.get(KEY), DEFAULT_RULES)


def test_patch_missing_source(coordinator, store) -> None:
    spec = PatchSpec(operation="replace", target_type="heading", target="Tasks")
    with pytest.raises(SyncError) as excinfo:
        coordinator.patch(KEY, "x", spec)
    assert excinfo.value.source_committed is False
    assert isinstance(excinfo.value.cause, NotFoundError)


@pytest.mark.parametrize("with_derived", [True, False])
def test_delete_removes_both_keys(coordinator, store, with_derived: bool) -> None:
    if with_derived:
        coordinator.create_or_replace(KEY, "text")
    else:
        store.put(KEY, "text")
    coordinator.delete(KEY)
    assert not store.head(KEY)
    assert not store.head(DERIVED)


def test_delete_swallows_derived_failure(coordinator, store) -> None:
    coordinator.create_or_replace(KEY, "text")
    store.fail("delete", DERIVED)
    coordinator.delete(KEY)
    assert not store.head(KEY)


def test_delete_missing_source_fails(coordinator, store) -> None:
    store.put(DERIVED, "orphan")
    with pytest.raises(SyncError) as excinfo:
        coordinator.delete(KEY)
    assert excinfo.value.source_committed is False
    assert store.head(DERIVED)


def test_structured_rules_document_drives_output(coordinator, store) -> None:
    store.put(RULES_KEY, "CoreCompRules:\nKVStruct:")
    coordinator.create_or_replace(KEY, "---\ntitle: X\n---\n## Section\n- item one\n- item two")
    derived = store.get(DERIVED)
    assert derived.startswith("---\ntitle: X\n---")
    assert "item one,item two" in derived


def test_rules_fetched_once_across_operations(coordinator, store) -> None:
    coordinator.create_or_replace(KEY, "one")
    coordinator.append(KEY, " two")
    coordinator.create_or_replace("notes/b.md", "three")
    assert store.calls.count(("get", RULES_KEY)) == 1


def test_regenerate_rebuilds_derived(coordinator, store) -> None:
    source = "Basically, in order to go, you should run.\n\n\n\nStep 1: run"
    store.put(KEY, source)
    result = coordinator.regenerate(KEY)
    derived = store.get(DERIVED)
    assert derived == generate(source, DEFAULT_RULES)
    assert result.derived_key == DERIVED
    assert result.derived_length == len(derived)
    assert result.reduction_percent == round((1 - len(derived) / len(source)) * 100)
    assert result.reduction_percent > 0


def test_regenerate_missing_source(coordinator) -> None:
    with pytest.raises(SyncError) as excinfo:
        coordinator.regenerate(KEY)
    assert excinfo.value.source_committed is False


def test_exists(coordinator, store) -> None:
    store.put(KEY, "x")
    result = coordinator.exists(KEY)
    assert result.source_exists and not result.derived_exists
    coordinator.regenerate(KEY)
    assert coordinator.exists(KEY).derived_exists

"""API integration tests."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from hapds.api.dependencies import get_store
from hapds.app import app
from hapds.store.memory import InMemoryStore
from hapds.sync import DEFAULT_RULES, generate


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def store() -> InMemoryStore:
    store = get_store()
    assert isinstance(store, InMemoryStore)
    return store


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_write_then_read_serves_derived(client: TestClient, store: InMemoryStore) -> None:
    content = "# Notes\n\nIn order to start, you need to read."
    resp = client.put("/vault/notes/a.md", json={"content": content})
    assert resp.status_code == 200
    body = resp.json()
    assert body["source_updated"] and body["derived_updated"]
    assert body["derived_key"] == "notes/a.md.aicomp"

    read = client.get("/vault/notes/a.md")
    assert read.status_code == 200
    payload = read.json()
    assert payload["is_derived"] is True
    assert payload["served_key"] == "notes/a.md.aicomp"
    assert payload["content"] == generate(content, DEFAULT_RULES)


def test_read_json_format(client: TestClient, store: InMemoryStore) -> None:
    store.put("a.md", "raw")
    payload = client.get("/vault/a.md", params={"format": "json"}).json()
    assert payload["is_derived"] is False
    assert payload["note"]["content"] == "raw"
    assert payload["content"] is None


def test_read_missing_returns_404(client: TestClient) -> None:
    assert client.get("/vault/nope.md").status_code == 404


def test_derived_failure_downgrades_to_original_only(client: TestClient, store: InMemoryStore) -> None:
    store.fail("put", "a.md.aicomp")
    resp = client.put("/vault/a.md", json={"content": "text"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["source_updated"] is True
    assert body["derived_updated"] is False
    assert body["message"].endswith("(original only)")
    assert store.get("a.md") == "text"


def test_source_failure_returns_502(client: TestClient, store: InMemoryStore) -> None:
    store.fail("put", "a.md")
    assert client.put("/vault/a.md", json={"content": "text"}).status_code == 502


def test_append_patch_delete_flow(client: TestClient, store: InMemoryStore) -> None:
    client.put("/vault/a.md", json={"content": "# Log\n- first\n"})
    assert client.post("/vault/a.md", json={"content": "- appended\n"}).json()["derived_updated"]
    patched = client.patch(
        "/vault/a.md",
        json={"content": "- top", "operation": "prepend", "target_type": "heading", "target": "Log"},
    )
    assert patched.status_code == 200
    assert patched.json()["patch_response"] == ""
    assert store.get("a.md") == "# Log\n- top\n- first\n- appended\n"
    assert store.get("a.md.aicomp") == generate(store.get("a.md"), DEFAULT_RULES)

    exists = client.get("/exists/a.md").json()
    assert exists == {"key": "a.md", "source_exists": True, "derived_exists": True}

    assert client.delete("/vault/a.md").status_code == 200
    assert client.get("/exists/a.md").json()["derived_exists"] is False
    assert client.delete("/vault/a.md").status_code == 404


def test_regenerate_reports_ratio(client: TestClient, store: InMemoryStore) -> None:
    store.put("a.md", "Essentially, this is it (see above).")
    resp = client.post("/compression/regenerate/a.md")
    assert resp.status_code == 200
    body = resp.json()
    assert body["derived_key"] == "a.md.aicomp"
    assert store.get("a.md.aicomp") == "this is it."
    assert body["reduction_percent"] > 0
    assert client.post("/compression/regenerate/missing.md").status_code == 404


def test_status_and_cache_clear(client: TestClient, store: InMemoryStore) -> None:
    client.put("/vault/a.md", json={"content": "text"})
    status = client.get("/compression/status").json()
    assert status["derived_suffix"] == ".aicomp"
    assert status["rules_document"] == "_mcp/GenCompRules.md"
    assert status["ttl_seconds"] == 300
    assert status["cached"][0]["root"] == ""
    assert status["cached"][0]["is_default"] is True
    assert status["cached"][0]["format"] == "plain"

    cleared = client.post("/compression/cache/clear").json()
    assert cleared == {"status": "ok", "cleared": 1}
    assert client.get("/compression/status").json()["cached"] == []


def test_metrics_endpoint(client: TestClient) -> None:
    client.get("/vault/nope.md")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "hapds_reads_total" in resp.text


def test_direct_writes_to_derived_keys_rejected(client: TestClient, store: InMemoryStore) -> None:
    resp = client.put("/vault/a.md.aicomp", json={"content": "hand edit"})
    assert resp.status_code == 400
    assert not store.head("a.md.aicomp")


def test_regenerate_rejects_derived_keys(client: TestClient, store: InMemoryStore) -> None:
    store.put("a.md.aicomp", "compact")
    assert client.post("/compression/regenerate/a.md.aicomp").status_code == 400
    assert not store.head("a.md.aicomp.aicomp")


def test_slow_store_call_does_not_block_health(client: TestClient, store: InMemoryStore) -> None:
    store.on("put", "slow.md", lambda: time.sleep(1.5))
    with ThreadPoolExecutor(max_workers=1) as pool:
        pending = pool.submit(client.put, "/vault/slow.md", json={"content": "text"})
        time.sleep(0.2)
        started = time.monotonic()
        assert client.get("/health").status_code == 200
        waited = time.monotonic() - started
        assert pending.result().status_code == 200
    assert waited < 0.5

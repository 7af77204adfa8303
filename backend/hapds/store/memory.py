"""Process-local document store.

Backs the service when ``store_url`` is ``memory://`` and doubles as the
store used by the test-suite, which is why it can be told to fail specific
calls.
"""

from __future__ import annotations

import re
import threading
import time
from collections.abc import Callable

import orjson

from hapds.core.errors import NotFoundError, TransportError
from hapds.store.base import PatchSpec, ReadFormat

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*$")


class InMemoryStore:
    """Dictionary-backed implementation of ``DocumentStore``."""

    def __init__(self, documents: dict[str, str] | None = None, record_calls: bool = False) -> None:
        self._lock = threading.Lock()
        self._documents: dict[str, str] = dict(documents or {})
        self._mtimes: dict[str, float] = {key: time.time() for key in self._documents}
        self._failures: dict[tuple[str, str], Exception] = {}
        self.record_calls = record_calls
        self.calls: list[tuple[str, str]] = []
        self.hooks: dict[tuple[str, str], Callable[[], None]] = {}

    # Failure injection ------------------------------------------------

    def fail(self, method: str, key: str, error: Exception | None = None) -> None:
        """Make the next and all later ``method`` calls on ``key`` raise."""
        self._failures[(method, key)] = error or TransportError(key, f"Injected {method} failure")

    def recover(self, method: str, key: str) -> None:
        self._failures.pop((method, key), None)

    def on(self, method: str, key: str, hook: Callable[[], None]) -> None:
        """Run ``hook`` right after ``method`` on ``key`` completes."""
        self.hooks[(method, key)] = hook

    # DocumentStore ----------------------------------------------------

    def get(self, key: str, fmt: ReadFormat = "markdown") -> str:
        self._enter("get", key)
        with self._lock:
            if key not in self._documents:
                raise NotFoundError(key)
            content = self._documents[key]
            mtime = self._mtimes[key]
        self._after("get", key)
        if fmt == "json":
            return _note_json(key, content, mtime)
        return content

    def put(self, key: str, body: str) -> None:
        self._enter("put", key)
        with self._lock:
            self._write(key, body)
        self._after("put", key)

    def append(self, key: str, body: str) -> None:
        self._enter("append", key)
        with self._lock:
            self._write(key, self._documents.get(key, "") + body)
        self._after("append", key)

    def patch(self, key: str, body: str, spec: PatchSpec) -> str:
        self._enter("patch", key)
        with self._lock:
            if key not in self._documents:
                raise NotFoundError(key)
            if spec.target_type != "heading":
                raise TransportError(key, f"Unsupported patch target type: {spec.target_type}", status_code=400)
            updated = _patch_heading(self._documents[key], body, spec)
            if updated is None:
                raise TransportError(key, f"Patch target not found: {spec.target}", status_code=400)
            self._write(key, updated)
        self._after("patch", key)
        return ""

    def delete(self, key: str) -> None:
        self._enter("delete", key)
        with self._lock:
            if key not in self._documents:
                raise NotFoundError(key)
            del self._documents[key]
            del self._mtimes[key]
        self._after("delete", key)

    def head(self, key: str) -> bool:
        self._enter("head", key)
        with self._lock:
            return key in self._documents

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._documents)

    # Internal helpers -------------------------------------------------

    def _write(self, key: str, body: str) -> None:
        self._documents[key] = body
        self._mtimes[key] = time.time()

    def _enter(self, method: str, key: str) -> None:
        if self.record_calls:
            self.calls.append((method, key))
        error = self._failures.get((method, key))
        if error is not None:
            raise error

    def _after(self, method: str, key: str) -> None:
        hook = self.hooks.pop((method, key), None)
        if hook is not None:
            hook()


def _patch_heading(content: str, body: str, spec: PatchSpec) -> str | None:
    """Apply a heading-relative patch; ``None`` when the heading is missing."""
    delimiter = spec.target_delimiter or "::"
    path = [part.strip() for part in spec.target.split(delimiter)]
    lines = content.split("\n")
    trail: list[tuple[int, str]] = []
    start: int | None = None
    level = 0
    for idx, line in enumerate(lines):
        match = _HEADING_RE.match(line)
        if not match:
            continue
        depth = len(match.group(1))
        trail = [item for item in trail if item[0] < depth] + [(depth, match.group(2))]
        if [title for _, title in trail] == path:
            start, level = idx, depth
            break
    if start is None:
        if not spec.create_target_if_missing:
            return None
        heading = "#" * len(path) + " " + path[-1]
        separator = "" if not content or content.endswith("\n") else "\n"
        return f"{content}{separator}{heading}\n{body}"

    end = len(lines)
    for idx in range(start + 1, len(lines)):
        match = _HEADING_RE.match(lines[idx])
        if match and len(match.group(1)) <= level:
            end = idx
            break
    section = lines[start + 1 : end]
    insert = body.split("\n")
    if spec.operation == "prepend":
        section = insert + section
    elif spec.operation == "append":
        while section and not section[-1].strip():
            section.pop()
        section = section + insert
    else:
        section = insert
    return "\n".join(lines[: start + 1] + section + lines[end:])


def _note_json(key: str, content: str, mtime: float) -> str:
    payload = {
        "content": content,
        "frontmatter": {},
        "path": key,
        "stat": {"ctime": int(mtime * 1000), "mtime": int(mtime * 1000), "size": len(content.encode("utf-8"))},
        "tags": [],
    }
    return orjson.dumps(payload).decode("utf-8")


__all__ = ["InMemoryStore"]

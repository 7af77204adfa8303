"""Document store contract used by the sync engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

ReadFormat = Literal["markdown", "json"]
PatchOperation = Literal["append", "prepend", "replace"]
PatchTargetType = Literal["heading", "block", "frontmatter"]

ACCEPT_HEADERS: dict[str, str] = {
    "markdown": "text/markdown",
    "json": "application/vnd.olrapi.note+json",
}


@dataclass(frozen=True, slots=True)
class PatchSpec:
    """Where and how a structured patch is applied; interpreted by the store."""

    operation: PatchOperation
    target_type: PatchTargetType
    target: str
    target_delimiter: str | None = None
    trim_target_whitespace: bool | None = None
    content_type: str | None = None
    create_target_if_missing: bool = True

    def to_headers(self) -> dict[str, str]:
        headers = {
            "Operation": self.operation,
            "Target-Type": self.target_type,
            "Target": self.target,
            "Create-Target-If-Missing": "true" if self.create_target_if_missing else "false",
        }
        if self.target_delimiter:
            headers["Target-Delimiter"] = self.target_delimiter
        if self.trim_target_whitespace is not None:
            headers["Trim-Target-Whitespace"] = str(self.trim_target_whitespace).lower()
        if self.content_type:
            headers["Content-Type"] = self.content_type
        return headers


class DocumentStore(Protocol):
    """Key-addressed text store.

    Implementations raise ``NotFoundError`` for absent keys and
    ``TransportError`` for everything else that goes wrong.
    """

    def get(self, key: str, fmt: ReadFormat = "markdown") -> str: ...

    def put(self, key: str, body: str) -> None: ...

    def append(self, key: str, body: str) -> None: ...

    def patch(self, key: str, body: str, spec: PatchSpec) -> str: ...

    def delete(self, key: str) -> None: ...

    def head(self, key: str) -> bool: ...


__all__ = [
    "ACCEPT_HEADERS",
    "DocumentStore",
    "PatchOperation",
    "PatchSpec",
    "PatchTargetType",
    "ReadFormat",
]

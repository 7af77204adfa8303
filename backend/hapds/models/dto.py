"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from hapds.store.base import PatchSpec


class ReadResponse(BaseModel):
    key: str
    served_key: str
    is_derived: bool
    content: str | None = None
    note: dict[str, Any] | None = Field(default=None, description="Note JSON when format=json")


class WriteRequest(BaseModel):
    content: str


class PatchRequest(BaseModel):
    content: str
    operation: Literal["append", "prepend", "replace"]
    target_type: Literal["heading", "block", "frontmatter"]
    target: str
    target_delimiter: str | None = None
    trim_target_whitespace: bool | None = None
    content_type: str | None = None

    def to_spec(self) -> PatchSpec:
        return PatchSpec(
            operation=self.operation,
            target_type=self.target_type,
            target=self.target,
            target_delimiter=self.target_delimiter,
            trim_target_whitespace=self.trim_target_whitespace,
            content_type=self.content_type,
        )


class MutationResponse(BaseModel):
    key: str
    derived_key: str
    source_updated: bool
    derived_updated: bool
    message: str
    patch_response: str | None = None


class ExistsResponse(BaseModel):
    key: str
    source_exists: bool
    derived_exists: bool


class RegenerateResponse(BaseModel):
    source_key: str
    derived_key: str
    source_length: int
    derived_length: int
    reduction_percent: int


class CachedRules(BaseModel):
    root: str
    rules_key: str
    format: Literal["structured", "plain"]
    is_default: bool
    age_seconds: float
    expired: bool


class StatusResponse(BaseModel):
    derived_suffix: str
    rules_document: str
    ttl_seconds: float
    cached: list[CachedRules]


class CacheClearResponse(BaseModel):
    status: Literal["ok"] = "ok"
    cleared: int


__all__ = [
    "ReadResponse",
    "WriteRequest",
    "PatchRequest",
    "MutationResponse",
    "ExistsResponse",
    "RegenerateResponse",
    "CachedRules",
    "StatusResponse",
    "CacheClearResponse",
]

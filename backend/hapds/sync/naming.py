"""Key naming between source documents, derived artifacts and rule documents."""

from __future__ import annotations

DERIVED_SUFFIX = ".aicomp"
RULES_DOCUMENT = "_mcp/GenCompRules.md"


def derived_key(key: str) -> str:
    """Key of the derived artifact that shadows ``key``."""
    return f"{key}{DERIVED_SUFFIX}"


def is_derived_key(key: str) -> bool:
    return key.endswith(DERIVED_SUFFIX)


def rules_key(root: str) -> str:
    """Key of the rule document for a collection root; the empty root is the vault itself."""
    root = root.strip("/")
    return f"{root}/{RULES_DOCUMENT}" if root else RULES_DOCUMENT


def collection_root(key: str) -> str:
    """Collection root that governs ``key``.

    Every key currently belongs to the single vault-wide collection. Callers
    thread the returned root through explicitly so a multi-collection store
    only needs a different resolver here.
    """
    return ""


__all__ = [
    "DERIVED_SUFFIX",
    "RULES_DOCUMENT",
    "collection_root",
    "derived_key",
    "is_derived_key",
    "rules_key",
]

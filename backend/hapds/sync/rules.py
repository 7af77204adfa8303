"""Rule-set fetching and time-bounded caching."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from hapds.core.logging import get_logger
from hapds.core.metrics import RULE_CACHE_LOOKUPS, RULE_FETCHES
from hapds.store.base import DocumentStore
from hapds.sync.naming import rules_key
from hapds.sync.results import attempt
from hapds.sync.transform import RuleFormat, classify_rules
from hapds.utils.time import Clock, monotonic_s

logger = get_logger(__name__)

RULES_TTL_SECONDS = 300.0

DEFAULT_RULES = """# Default GenCompRules

## Core Compression Rules

1. **Whitespace Optimization**: Reduce multiple newlines to single newlines, trim trailing spaces
2. **Header Simplification**: Convert verbose headers to concise versions while maintaining structure
3. **List Condensation**: Compress redundant list items and combine related items
4. **Comment Reduction**: Remove verbose explanations while keeping essential information
5. **Code Block Optimization**: Maintain code functionality while reducing verbose comments
6. **Link Consolidation**: Combine duplicate links and references
7. **Metadata Preservation**: Always preserve frontmatter and critical structural elements

## Transformation Patterns

- Remove "The purpose of this document is to..." type introductions
- Convert "In order to accomplish X, you need to do Y" to "To do X: Y"
- Compress step-by-step instructions to bullet points
- Remove filler words: "basically", "essentially", "obviously", etc.
- Convert passive voice to active voice where possible
- Consolidate redundant examples to single representative examples

## Preserve Always

- Code blocks and their functionality
- Frontmatter/YAML headers
- Critical data and numbers
- Unique insights and conclusions
- Cross-references and links
- Technical terminology and proper names"""


@dataclass(frozen=True, slots=True)
class RuleSet:
    root: str
    text: str
    is_default: bool = False

    @property
    def format(self) -> RuleFormat:
        return classify_rules(self.text)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    rules: RuleSet
    fetched_at: float


class RuleFetcher:
    """Resolve the rule text for a collection root, falling back to defaults."""

    def __init__(self, store: DocumentStore, default_rules: str = DEFAULT_RULES) -> None:
        self.store = store
        self.default_rules = default_rules

    def fetch(self, root: str) -> RuleSet:
        key = rules_key(root)
        result = attempt(key, lambda: self.store.get(key))
        if result.ok:
            RULE_FETCHES.labels(origin="document").inc()
            logger.debug("Loaded rule document %s", key, extra={"ctx_key": key})
            return RuleSet(root=root, text=result.unwrap())
        RULE_FETCHES.labels(origin="default").inc()
        logger.info(
            "Rule document %s unavailable, using defaults: %s",
            key,
            result.error,
            extra={"ctx_key": key},
        )
        return RuleSet(root=root, text=self.default_rules, is_default=True)


class RuleCache:
    """At most one rule-set per collection root, each valid for ``RULES_TTL_SECONDS``.

    Fetches run outside the lock, so two callers that both see a missing or
    expired entry may both fetch; whichever finishes last owns the slot.
    Entries are immutable and swapped whole.
    """

    def __init__(self, fetcher: RuleFetcher, clock: Clock = monotonic_s) -> None:
        self.fetcher = fetcher
        self.clock = clock
        self.ttl = RULES_TTL_SECONDS
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get_rules(self, root: str = "") -> RuleSet:
        now = self.clock()
        with self._lock:
            entry = self._entries.get(root)
        if entry is not None and now - entry.fetched_at < self.ttl:
            RULE_CACHE_LOOKUPS.labels(result="hit").inc()
            return entry.rules
        RULE_CACHE_LOOKUPS.labels(result="miss").inc()
        rules = self.fetcher.fetch(root)
        with self._lock:
            self._entries[root] = CacheEntry(rules=rules, fetched_at=now)
        return rules

    def invalidate(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Rule cache cleared")

    def snapshot(self) -> dict[str, CacheEntry]:
        """Copy of the current entries, expired ones included."""
        with self._lock:
            return dict(self._entries)


__all__ = [
    "DEFAULT_RULES",
    "RULES_TTL_SECONDS",
    "CacheEntry",
    "RuleCache",
    "RuleFetcher",
    "RuleSet",
]

"""Derived-artifact synchronization components."""

from .coordinator import ExistsResult, ReadResult, RegenerateResult, SyncCoordinator
from .naming import collection_root, derived_key, rules_key
from .rules import DEFAULT_RULES, RULES_TTL_SECONDS, RuleCache, RuleFetcher, RuleSet
from .transform import RuleFormat, classify_rules, generate

__all__ = [
    "DEFAULT_RULES",
    "RULES_TTL_SECONDS",
    "ExistsResult",
    "ReadResult",
    "RegenerateResult",
    "RuleCache",
    "RuleFetcher",
    "RuleFormat",
    "RuleSet",
    "SyncCoordinator",
    "classify_rules",
    "collection_root",
    "derived_key",
    "generate",
    "rules_key",
]

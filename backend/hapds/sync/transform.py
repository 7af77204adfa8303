"""Rule-driven rewriting of source documents into their derived form.

Everything here is a pure function of ``(content, rules)``. The rule text only
selects which pipeline runs; the rewrites themselves are the fixed, ordered
pattern tables below.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Sequence, Union

from hapds.utils.text import collapse_blank_runs

Replacement = Union[str, Callable[[re.Match[str]], str]]
PatternTable = Sequence[tuple[re.Pattern[str], Replacement]]

STRUCTURED_MARKERS = (
    "Purpose:Transform_verbose_MD_proj_doc",
    "CoreCompRules:",
    "KVStruct:",
)


class RuleFormat(str, Enum):
    STRUCTURED = "structured"
    PLAIN = "plain"


def classify_rules(rules: str) -> RuleFormat:
    if any(marker in rules for marker in STRUCTURED_MARKERS):
        return RuleFormat.STRUCTURED
    return RuleFormat.PLAIN


def generate(content: str, rules: str) -> str:
    """Produce the derived artifact for ``content`` under ``rules``."""
    if classify_rules(rules) is RuleFormat.STRUCTURED:
        result = _structured(content)
    else:
        result = _plain(content)
    return result.strip()


def _apply(table: PatternTable, text: str) -> str:
    for pattern, replacement in table:
        text = pattern.sub(replacement, text)
    return text


# Structured pipeline ------------------------------------------------------

_FRONTMATTER_RE = re.compile(r"\A---\n(?:.*?\n)??---(?:\n|\Z)", re.DOTALL)

_SECTION_RE = re.compile(r"^##[ \t]+(.+?)\n\n([^#]+?)(?=\n##|\n#|$)", re.MULTILINE)
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+)$", re.MULTILINE)
_HEADING_PREFIXES = {1: "H1:", 2: "Sec:"}

_LIST_TABLE: PatternTable = [
    (re.compile(r"^[-*+][ \t]+(.+)$", re.MULTILINE), r"\1,"),
    (re.compile(r",\s*\Z"), ""),
]

_ABBREVIATIONS: Sequence[tuple[str, str]] = [
    ("Development", "Dev"),
    ("Implementation", "Impl"),
    ("Management", "Mgmt"),
    ("Specification", "Spec"),
    ("Architecture", "Arch"),
    ("JavaScript", "JS"),
    ("Database", "DB"),
    ("Requirements", "Req"),
    ("Documentation", "Doc"),
    ("Testing", "Test"),
    ("Project Manager", "PM"),
    ("Developer", "Dev"),
    ("Quality Assurance", "QA"),
    ("Project", "Proj"),
    ("Document", "Doc"),
    ("Configuration", "Config"),
    ("Information", "Info"),
    ("System", "Sys"),
    ("Application", "App"),
    ("Component", "Comp"),
    ("Function", "Func"),
    ("Variable", "Var"),
    ("Parameter", "Param"),
]

_ABBREVIATION_TABLE: PatternTable = [
    (re.compile(rf"\b{re.escape(full)}\b", re.IGNORECASE), short) for full, short in _ABBREVIATIONS
]

_SYMBOL_TABLE: PatternTable = [
    (re.compile(r"\b(?:flows to|leads to|results in)\b", re.IGNORECASE), "→"),
    (re.compile(r"\b(?:greater than|more important than|priority over)\b", re.IGNORECASE), ">"),
    (re.compile(r"\b(?:or|alternatively)\b", re.IGNORECASE), "/"),
    (re.compile(r"\b(?:equals|is equivalent to|same as)\b", re.IGNORECASE), "=="),
    (re.compile(r"\b(?:does not|isn't|not)\b", re.IGNORECASE), "!="),
    (re.compile(r"\b(?:to be determined|uncertain|question)\b", re.IGNORECASE), "?="),
]

_LINK_TABLE: PatternTable = [
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), r"\1[\2]"),
    (re.compile(r"\[\[([^\]]+)\]\]"), r"InternalRef:[[\1]]"),
]

_EMPHASIS_TABLE: PatternTable = [
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
]

# Blank lines separate major sections with "|", then all remaining
# whitespace collapses and the delimiters are tightened.
_WHITESPACE_TABLE: PatternTable = [
    (re.compile(r"\n\n+"), "|"),
    (re.compile(r":[ \t]*\n"), ":"),
    (re.compile(r",[ \t]*\n"), ","),
    (re.compile(r"\s+"), " "),
    (re.compile(r"\s*\|\s*"), "|"),
    (re.compile(r"\s*:\s*"), ":"),
    (re.compile(r"\s*,\s*"), ","),
    (re.compile(r"\|{2,}"), "|"),
]


def split_frontmatter(content: str) -> tuple[str, str]:
    """Return ``(frontmatter, body)``; frontmatter is empty when there is none."""
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return "", content
    return match.group(0), content[match.end() :]


def _flatten_section(match: re.Match[str]) -> str:
    label = re.sub(r"\s+", "_", match.group(1))[:20]
    items = [re.sub(r"^-\s+", "", line).strip() for line in match.group(2).split("\n") if line.strip()]
    return f"{label}:{','.join(items)}"


def _label_heading(match: re.Match[str]) -> str:
    prefix = _HEADING_PREFIXES.get(len(match.group(1)), "SubSec:")
    return prefix + re.sub(r"\s+", "_", match.group(2).strip())


def _structured(content: str) -> str:
    frontmatter, body = split_frontmatter(content)
    body = _SECTION_RE.sub(_flatten_section, body)
    body = _HEADING_RE.sub(_label_heading, body)
    body = _apply(_LIST_TABLE, body)
    body = _apply(_ABBREVIATION_TABLE, body)
    body = _apply(_SYMBOL_TABLE, body)
    body = _apply(_LINK_TABLE, body)
    body = _apply(_EMPHASIS_TABLE, body)
    body = _apply(_WHITESPACE_TABLE, body).strip()
    return frontmatter + body


# Plain pipeline -----------------------------------------------------------

_FILLER_WORDS = ("basically", "essentially", "obviously", "clearly", "simply put", "in other words")


def _to_in_order(match: re.Match[str]) -> str:
    return "To" if match.group(0)[0].isupper() else "to"


_LAYOUT_TABLE: PatternTable = [
    (re.compile(r"\n\s*\n\s*\n"), "\n\n"),
    (re.compile(r"[ \t]+$", re.MULTILINE), ""),
]

_INTRO_TABLE: PatternTable = [
    (re.compile(r"^.*?purpose of this document is to.*?(?:\n|\Z)", re.IGNORECASE | re.MULTILINE), ""),
    (re.compile(r"^.*?this document (?:will|aims to|intends to).*?(?:\n|\Z)", re.IGNORECASE | re.MULTILINE), ""),
]

_PARAPHRASE_TABLE: PatternTable = [
    (re.compile(r"In order to accomplish ([^,\n]+), you need to (.+)", re.IGNORECASE), r"To \1: \2"),
    (re.compile(r"In order to ([^,\n]+), you (?:need to|should|must) (.+)", re.IGNORECASE), r"To \1: \2"),
    (re.compile(r"\bin order to\b", re.IGNORECASE), _to_in_order),
    (re.compile(r"can be done by", re.IGNORECASE), "do"),
    (re.compile(r"should be performed by", re.IGNORECASE), "should perform"),
    (re.compile(r"^([ \t]*[-*+])[ \t]+(.+)\n\1[ \t]+\2.*$", re.MULTILINE), r"\1 \2"),
    (
        re.compile(
            r"(For example[^.]*\.)\s+(Another example[^.]*\.)\s+(Yet another example[^.]*\.)",
            re.IGNORECASE,
        ),
        r"\1",
    ),
]

_FILLER_TABLE: PatternTable = [
    (re.compile(rf"\b{re.escape(word)}\b[, \t]*", re.IGNORECASE), "") for word in _FILLER_WORDS
]

_STEP_TABLE: PatternTable = [
    (re.compile(r"^Step \d+[:.][ \t]*", re.MULTILINE), "- "),
]

_REFERENCE_TABLE: PatternTable = [
    (re.compile(r"[ \t]*\(as mentioned (?:above|below|earlier|previously)\)", re.IGNORECASE), ""),
    (re.compile(r"[ \t]*\(see (?:above|below)\)", re.IGNORECASE), ""),
]


def _plain(content: str) -> str:
    text = _apply(_LAYOUT_TABLE, content)
    text = _apply(_INTRO_TABLE, text)
    text = _apply(_PARAPHRASE_TABLE, text)
    text = _apply(_FILLER_TABLE, text)
    text = _apply(_STEP_TABLE, text)
    text = _apply(_REFERENCE_TABLE, text)
    return collapse_blank_runs(text)


__all__ = [
    "STRUCTURED_MARKERS",
    "RuleFormat",
    "classify_rules",
    "generate",
    "split_frontmatter",
]

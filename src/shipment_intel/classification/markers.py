"""
Marker rule evaluator.

Rule tables are plain data (MarkerRule tuples keyed by the type they
identify); this module is the one small evaluator that runs them.

A rule matches when every required marker is present and no exclude marker
is present. Each optional marker found adds a fixed boost, capped. Markers
are matched case-insensitively on word boundaries, with any run of
whitespace in a marker matching any run of whitespace in the text.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Generic, Mapping, Optional, Sequence, TypeVar


K = TypeVar("K")


@dataclass(frozen=True)
class MarkerRule:
    """One required/optional/exclude marker combination and its base confidence."""

    required: tuple[str, ...]
    confidence: int
    optional: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class MarkerHit(Generic[K]):
    """Winning rule of a table evaluation."""

    key: K
    confidence: int
    matched_markers: list[str] = field(default_factory=list)


@lru_cache(maxsize=2048)
def _marker_pattern(marker: str) -> re.Pattern:
    words = [re.escape(part) for part in marker.upper().split()]
    return re.compile(r"(?<![A-Z0-9])" + r"\s+".join(words) + r"(?![A-Z0-9])")


def normalize_text(text: Optional[str]) -> str:
    return (text or "").upper()


def has_marker(normalized_text: str, marker: str) -> bool:
    """Word-bounded presence test; `normalized_text` must be upper-cased."""
    return _marker_pattern(marker).search(normalized_text) is not None


def evaluate_rule(
    rule: MarkerRule,
    normalized_text: str,
    optional_boost: int,
    confidence_cap: int,
) -> Optional[tuple[int, list[str]]]:
    """Return (confidence, matched markers) if the rule matches, else None."""
    if not rule.required:
        return None

    for marker in rule.required:
        if not has_marker(normalized_text, marker):
            return None

    for marker in rule.exclude:
        if has_marker(normalized_text, marker):
            return None

    matched = list(rule.required)
    optional_found = [m for m in rule.optional if has_marker(normalized_text, m)]
    matched.extend(optional_found)

    confidence = min(rule.confidence + optional_boost * len(optional_found), confidence_cap)
    return confidence, matched


def best_marker_match(
    table: Mapping[K, Sequence[MarkerRule]],
    text: Optional[str],
    min_confidence: int,
    optional_boost: int,
    confidence_cap: int,
) -> Optional[MarkerHit[K]]:
    """
    Evaluate every rule of every key and return the single best hit.

    Ties keep the earlier key/rule (table order is priority order). Hits
    below `min_confidence` are discarded.
    """
    normalized = normalize_text(text)
    if not normalized.strip():
        return None

    best: Optional[MarkerHit[K]] = None
    for key, rules in table.items():
        for rule in rules:
            result = evaluate_rule(rule, normalized, optional_boost, confidence_cap)
            if result is None:
                continue
            confidence, matched = result
            if best is None or confidence > best.confidence:
                best = MarkerHit(key=key, confidence=confidence, matched_markers=matched)

    if best is None or best.confidence < min_confidence:
        return None
    return best


def first_regex_match(
    patterns: Sequence[tuple[re.Pattern, K, int]],
    text: Optional[str],
    min_confidence: int,
) -> Optional[tuple[K, int, str]]:
    """First (key, confidence, pattern source) whose regex matches `text`."""
    if not text:
        return None
    for pattern, key, confidence in patterns:
        if confidence >= min_confidence and pattern.search(text):
            return key, confidence, pattern.pattern
    return None

"""Similarity matching for duplicate suppression (core domain)."""

from __future__ import annotations

import re
from operator import attrgetter
from typing import Callable, List, Sequence

from core.models import Record

DEFAULT_THRESHOLD = 0.7

_WHITESPACE = re.compile(r"\s+")


def tokenize(text: str) -> List[str]:
    """Lower-case and split on whitespace runs.

    Empty text yields ``[""]`` and surrounding whitespace yields empty edge
    tokens; both are kept so an empty submission only matches empty entries.
    """

    return _WHITESPACE.split(text.lower())


def overlap_ratio(candidate_tokens: Sequence[str], entry_tokens: Sequence[str]) -> float:
    """Share of candidate tokens present in the entry, over the longer side."""

    entry_set = set(entry_tokens)
    common = sum(1 for token in candidate_tokens if token in entry_set)
    longest = max(len(candidate_tokens), len(entry_tokens))
    if longest == 0:
        return 0.0
    return common / longest


def find_similar(
    existing: Sequence[Record],
    candidate_text: str,
    field: Callable[[Record], str] = attrgetter("primary_text"),
    threshold: float = DEFAULT_THRESHOLD,
) -> List[Record]:
    """Return records whose selected field overlaps the candidate at or above threshold."""

    candidate_tokens = tokenize(candidate_text)
    return [
        record
        for record in existing
        if overlap_ratio(candidate_tokens, tokenize(field(record))) >= threshold
    ]

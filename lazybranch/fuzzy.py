"""Fuzzy ranking of branch names for the type-to-filter query.

The tab depends only on the :class:`FuzzyRanker` contract: given a query and
candidate names, return the matching names ordered best-first. The default
ranker favours substring hits, then in-order subsequence hits with bonuses for
contiguous runs and segment starts (``/``, ``-``, ``_``, ``.``).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

SUBSTRING_BASE_SCORE = 10_000
_BOUNDARY_CHARS = "/_- ."


class FuzzyRanker(Protocol):
    def rank(self, query: str, names: Sequence[str]) -> list[str]: ...


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.casefold()


def fuzzy_score(query: str, candidate: str, case_sensitive: bool = False) -> int | None:
    """Score ``query`` as an in-order subsequence of ``candidate``.

    Returns ``None`` when some query character cannot be matched.
    """
    if not query:
        return 0
    query_folded = _fold(query, case_sensitive)
    candidate_folded = _fold(candidate, case_sensitive)

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in _BOUNDARY_CHARS:
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def substring_index(query: str, candidate: str, case_sensitive: bool = False) -> int | None:
    if not query:
        return 0
    idx = _fold(candidate, case_sensitive).find(_fold(query, case_sensitive))
    if idx < 0:
        return None
    return idx


def atom_score(atom: str, candidate: str, case_sensitive: bool = False) -> int | None:
    """Score one whitespace-free query atom, preferring substring hits."""
    substr_idx = substring_index(atom, candidate, case_sensitive)
    if substr_idx is not None:
        return SUBSTRING_BASE_SCORE - (substr_idx * 50) - len(candidate)
    return fuzzy_score(atom, candidate, case_sensitive)


def query_score(query: str, candidate: str) -> int | None:
    """Score a full query; every whitespace-separated atom must match.

    Matching is smart-case: case-insensitive unless the query has an
    uppercase character.
    """
    atoms = query.split()
    if not atoms:
        return 0
    case_sensitive = any(ch.isupper() for ch in query)
    total = 0
    for atom in atoms:
        score = atom_score(atom, candidate, case_sensitive)
        if score is None:
            return None
        total += score
    return total


class DefaultFuzzyRanker:
    """Ranker used by branch tabs unless another strategy is injected."""

    def rank(self, query: str, names: Sequence[str]) -> list[str]:
        scored: list[tuple[int, int, str, int]] = []
        for idx, name in enumerate(names):
            score = query_score(query, name)
            if score is None:
                continue
            scored.append((score, len(name), name, idx))
        scored.sort(key=lambda item: (-item[0], item[1], item[2], item[3]))
        return [name for _, _, name, _ in scored]

"""
Strategy Ranker
Stable ordering, rank and tier assignment, and truncation of scored candidates.
"""

from __future__ import annotations

from app.core.strategy_catalog import StrategyCandidate

TIER_MARKERS = {1: "gold", 2: "silver", 3: "bronze"}
DEFAULT_TIER = "listed"
DEFAULT_LIMIT = 3


def rank_candidates(candidates: list[StrategyCandidate], limit: int = DEFAULT_LIMIT) -> list[StrategyCandidate]:
    """
    Order candidates by score and keep the top entries.

    Equal scores keep their generation order (sorted() is stable).

    Args:
        candidates: Scored candidates
        limit: Maximum number returned

    Returns:
        Top candidates with rank 1..N and tier markers set
    """
    ordered = sorted(candidates, key=lambda c: c.score or 0, reverse=True)

    for index, candidate in enumerate(ordered):
        candidate.rank = index + 1
        candidate.tier = TIER_MARKERS.get(candidate.rank, DEFAULT_TIER)

    return ordered[: max(limit, 0)]


def summarize(ranked: list[StrategyCandidate]) -> str:
    """One-line summary of the ranked list, e.g. for logs."""
    if not ranked:
        return "no eligible strategies"
    return ", ".join(f"#{c.rank} {c.name} ({c.score})" for c in ranked)

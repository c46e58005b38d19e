"""Similarity engine: combine strategies and rank candidate names."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from contractdrift.core.exceptions import ConfigError
from contractdrift.matching.strategies import DEFAULT_STRATEGIES, Strategy

T = TypeVar("T")


@dataclass(frozen=True)
class SimilarityMatch(Generic[T]):
    """An indexed entry that scored above the threshold."""

    entry: T
    name: str
    score: float


class SimilarityEngine:
    """Scores names with a set of strategies and keeps the best near-misses.

    A pair's score is the maximum over all strategies. Exact matches (score
    1.0) are never reported, since they are not mismatches.
    """

    def __init__(
        self,
        threshold: float = 0.7,
        strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
        max_candidates: int = 3,
    ) -> None:
        if not 0.0 < threshold <= 1.0:
            raise ConfigError(f"similarity threshold must be in (0, 1], got {threshold}")
        if not strategies:
            raise ConfigError("at least one similarity strategy is required")
        self.threshold = threshold
        self.strategies = tuple(strategies)
        self.max_candidates = max_candidates

    def score(self, candidate: str, indexed: str) -> float:
        """Combined score of a usage name against a declared name."""
        if candidate == indexed:
            return 1.0
        best = max(strategy(candidate, indexed) for strategy in self.strategies)
        return round(min(best, 1.0), 4)

    def rank(
        self,
        name: str,
        entries: Iterable[T],
        key: Callable[[T], str],
    ) -> list[SimilarityMatch[T]]:
        """Rank entries whose name is similar but not identical to ``name``.

        Results are sorted by score (descending) then name, keep the first
        entry for each distinct name, and are cut to ``max_candidates``.
        """
        scored: list[SimilarityMatch[T]] = []
        for entry in entries:
            indexed = key(entry)
            score = self.score(name, indexed)
            if self.threshold <= score < 1.0:
                scored.append(SimilarityMatch(entry=entry, name=indexed, score=score))

        scored.sort(key=lambda m: (-m.score, m.name))

        results: list[SimilarityMatch[T]] = []
        seen: set[str] = set()
        for match in scored:
            if match.name in seen:
                continue
            seen.add(match.name)
            results.append(match)
            if len(results) == self.max_candidates:
                break
        return results

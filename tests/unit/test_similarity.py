"""Unit tests for the similarity engine."""

import pytest

from contractdrift.core.exceptions import ConfigError
from contractdrift.matching import SimilarityEngine
from contractdrift.matching.strategies import edit_distance_score


@pytest.fixture
def engine() -> SimilarityEngine:
    return SimilarityEngine()


class TestScore:
    """Tests for combined scoring."""

    def test_exact_match_is_one(self, engine: SimilarityEngine) -> None:
        assert engine.score("getUser", "getUser") == 1.0

    def test_case_only_difference_is_one(self, engine: SimilarityEngine) -> None:
        assert engine.score("getuser", "getUser") == 1.0

    def test_takes_best_strategy(self, engine: SimilarityEngine) -> None:
        assert engine.score("getUser", "getUserById") == 0.7
        assert engine.score("userEmail", "email") == 0.9

    def test_unrelated_names(self, engine: SimilarityEngine) -> None:
        assert engine.score("foo", "bar") == 0.0

    def test_custom_strategies(self) -> None:
        engine = SimilarityEngine(strategies=[edit_distance_score])
        assert engine.score("userEmail", "email") < 0.7


class TestRank:
    """Tests for candidate ranking."""

    def test_sorted_by_score(self, engine: SimilarityEngine) -> None:
        names = ["getUserById", "getUsers", "deleteOrder", "fetchUser"]
        ranked = engine.rank("getUser", names, key=lambda n: n)
        assert [m.name for m in ranked] == ["fetchUser", "getUsers", "getUserById"]
        assert ranked[0].score == 0.95

    def test_exact_match_excluded(self, engine: SimilarityEngine) -> None:
        ranked = engine.rank("getUser", ["getUser", "getUsers"], key=lambda n: n)
        assert [m.name for m in ranked] == ["getUsers"]

    def test_max_candidates(self) -> None:
        engine = SimilarityEngine(max_candidates=1)
        ranked = engine.rank("getUser", ["getUserById", "getUsers"], key=lambda n: n)
        assert [m.name for m in ranked] == ["getUsers"]

    def test_duplicate_names_keep_first_entry(self, engine: SimilarityEngine) -> None:
        entries = [("getUsers", "first"), ("getUsers", "second")]
        ranked = engine.rank("getUser", entries, key=lambda e: e[0])
        assert len(ranked) == 1
        assert ranked[0].entry == ("getUsers", "first")

    def test_threshold_monotonic(self) -> None:
        names = ["getUserById", "getUsers", "fetchUser", "userEmail"]
        low = SimilarityEngine(threshold=0.7).rank("getUser", names, key=lambda n: n)
        high = SimilarityEngine(threshold=0.9).rank("getUser", names, key=lambda n: n)
        assert {m.name for m in high} <= {m.name for m in low}
        assert [m.name for m in high] == ["fetchUser"]


class TestValidation:
    """Tests for configuration errors."""

    @pytest.mark.parametrize("threshold", [0.0, -0.1, 1.5])
    def test_threshold_out_of_range(self, threshold: float) -> None:
        with pytest.raises(ConfigError):
            SimilarityEngine(threshold=threshold)

    def test_no_strategies(self) -> None:
        with pytest.raises(ConfigError):
            SimilarityEngine(strategies=[])

"""
Name matching: score usage names against declared contracts.

Components:
    - strategies: the individual scoring functions and the synonym table
    - SimilarityEngine: combines strategies, applies the threshold, ranks
    - MismatchSynthesizer: classifies usage sites and builds findings
"""

from contractdrift.matching.similarity import SimilarityEngine, SimilarityMatch
from contractdrift.matching.strategies import (
    DEFAULT_STRATEGIES,
    affix_score,
    edit_distance_score,
    synonym_overlap_score,
    token_jaccard_score,
)
from contractdrift.matching.synthesizer import MismatchSynthesizer

__all__ = [
    "DEFAULT_STRATEGIES",
    "MismatchSynthesizer",
    "SimilarityEngine",
    "SimilarityMatch",
    "affix_score",
    "edit_distance_score",
    "synonym_overlap_score",
    "token_jaccard_score",
]

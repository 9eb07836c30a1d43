"""
Venue merging: similarity, match resolution and the merge engine.
"""

from .engine import Batch, MergeResult, merge
from .resolver import Match, MatchConfig, find_match, rank_matches
from .similarity import distance_meters, name_similarity

__all__ = [
    'Batch',
    'Match',
    'MatchConfig',
    'MergeResult',
    'distance_meters',
    'find_match',
    'merge',
    'name_similarity',
    'rank_matches',
]

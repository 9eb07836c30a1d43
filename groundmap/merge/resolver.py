"""
Nearest-neighbour match resolution.

A candidate is compared against every canonical venue; the venues are ranked
by distance (closest first, ties broken by name similarity) and the top
venue is accepted only if it is both close enough and similar enough.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..constants import (
    AUTHORITATIVE_SOURCES,
    GENERIC_NAME_TOKENS,
    MAX_MATCH_DISTANCE_M,
    MIN_NAME_SIMILARITY,
)
from .similarity import coordinates_of, distance_meters, name_similarity


@dataclass
class MatchConfig:
    """Acceptance policy for matching candidates to canonical venues."""
    max_distance_m: float = MAX_MATCH_DISTANCE_M
    min_name_similarity: float = MIN_NAME_SIMILARITY
    generic_tokens: Tuple[str, ...] = GENERIC_NAME_TOKENS
    authoritative_sources: Tuple[str, ...] = AUTHORITATIVE_SOURCES

    @classmethod
    def from_dict(cls, matching: Optional[Mapping[str, Any]] = None,
                  authoritative_sources: Optional[Iterable[str]] = None) -> 'MatchConfig':
        """Build from the 'matching' section of merge_config.json."""
        matching = matching or {}
        config = cls(
            max_distance_m=float(matching.get('max_distance_m', MAX_MATCH_DISTANCE_M)),
            min_name_similarity=float(matching.get('min_name_similarity', MIN_NAME_SIMILARITY)),
            generic_tokens=tuple(matching.get('generic_tokens', GENERIC_NAME_TOKENS)),
        )
        if authoritative_sources is not None:
            config.authoritative_sources = tuple(authoritative_sources)
        return config

    def is_authoritative(self, source: Optional[str]) -> bool:
        return source in self.authoritative_sources


@dataclass
class Match:
    """A canonical venue ranked against one candidate."""
    index: int
    venue: Dict = field(repr=False)
    distance_m: float
    similarity: float


def venue_similarity(venue: Mapping[str, Any], name: Optional[str],
                     generic_tokens: Sequence[str] = ()) -> float:
    """
    Best similarity of a candidate name to a venue's name or club.

    Each comparison is made twice, once on the full names and once with
    generic tokens removed, and the higher score counts.
    """
    best = 0.0
    for label in (venue.get('name'), venue.get('club')):
        if not label:
            continue
        best = max(best, name_similarity(label, name))
        if generic_tokens:
            best = max(best, name_similarity(label, name, ignore=generic_tokens))
    return best


def rank_matches(candidate: Mapping[str, Any], venues: Sequence[Mapping[str, Any]],
                 config: Optional[MatchConfig] = None) -> List[Match]:
    """
    Rank all venues against a candidate.

    Args:
        candidate: Venue candidate with finite 'lat'/'lon'
        venues: Current canonical set
        config: Matching policy

    Returns:
        Matches sorted by ascending distance, then descending similarity.
        The sort is stable, so full ties keep their order in `venues`.
    """
    config = config or MatchConfig()
    point = coordinates_of(candidate)
    if point is None:
        return []

    name = candidate.get('name')
    ranked = []
    for index, venue in enumerate(venues):
        venue_point = coordinates_of(venue)
        dist = distance_meters(point, venue_point) if venue_point else float('inf')
        ranked.append(Match(
            index=index,
            venue=venue,
            distance_m=dist,
            similarity=venue_similarity(venue, name, config.generic_tokens),
        ))

    ranked.sort(key=lambda m: (m.distance_m, -m.similarity))
    return ranked


def is_acceptable(match: Match, config: MatchConfig) -> bool:
    """Both thresholds are strict."""
    return (match.distance_m < config.max_distance_m
            and match.similarity > config.min_name_similarity)


def find_match(candidate: Mapping[str, Any], venues: Sequence[Mapping[str, Any]],
               config: Optional[MatchConfig] = None) -> Optional[Match]:
    """Return the top-ranked venue if it passes the acceptance policy, else None."""
    config = config or MatchConfig()
    ranked = rank_matches(candidate, venues, config)
    if ranked and is_acceptable(ranked[0], config):
        return ranked[0]
    return None

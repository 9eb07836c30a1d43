"""
Merge engine: fold source batches into the canonical venue set.

The engine is a pure function of (existing venues, batches): inputs are
copied, never mutated, and the outcome depends only on their contents and
order. Each candidate is matched against the working set as it stands at
that moment, so earlier candidates can absorb later ones.
"""

import hashlib
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

from ..constants import (
    BOOLEAN_FIELDS,
    DEFAULT_NAME,
    FALSE_STRINGS,
    PROTECTED_FIELDS,
    UNKNOWN_SOURCE,
    VENUE_DEFAULTS,
)
from ..report import SourceReport
from .resolver import MatchConfig, find_match
from .similarity import coordinates_of

logger = logging.getLogger(__name__)


@dataclass
class Batch:
    """Candidates from one source, in the order the normalizer produced them."""
    source: str
    candidates: List[Dict] = field(default_factory=list)


@dataclass
class MergeResult:
    """Updated canonical set plus one report per processed batch."""
    venues: List[Dict]
    reports: List[SourceReport] = field(default_factory=list)

    @property
    def merged(self) -> int:
        return sum(r.merged for r in self.reports)

    @property
    def added(self) -> int:
        return sum(r.added for r in self.reports)

    @property
    def skipped(self) -> int:
        return sum(r.skipped_count for r in self.reports)


def is_empty(value: Any) -> bool:
    """Whether a field value counts as a gap that a merge may fill."""
    if isinstance(value, str):
        return not value.strip()
    return not value


def as_flag(value: Any) -> bool:
    """
    Facility flag from a bool or an OSM-style tag value.

    Examples:
        >>> [as_flag(v) for v in ('yes', 'no', 'False', '0', 1, None)]
        [True, False, False, False, True, False]
    """
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def fallback_id(candidate: Mapping[str, Any], source: str) -> str:
    """
    Deterministic id for a candidate without a natural key.

    Derived from source, name and coordinates rounded to ~1 m, so re-running
    the same import yields the same id.
    """
    lat, lon = coordinates_of(candidate)
    basis = f"{source}|{(candidate.get('name') or '').strip().lower()}|{lat:.5f}|{lon:.5f}"
    digest = hashlib.sha1(basis.encode('utf-8')).hexdigest()[:12]
    return f"{source}/{digest}"


def unique_id(base: str, taken: Set[str]) -> str:
    """Suffix `base` with -2, -3, ... until it is not in `taken`."""
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def create_venue(candidate: Mapping[str, Any], source: str, venue_id: str,
                 verified: bool) -> Dict:
    """
    Build a canonical venue from an unmatched candidate.

    Args:
        candidate: Venue candidate with finite coordinates
        source: Provenance tag
        venue_id: Identity to assign
        verified: Whether the source is authoritative

    Returns:
        New venue dict with every standard field present
    """
    lat, lon = coordinates_of(candidate)
    venue = {'id': venue_id}
    venue.update(VENUE_DEFAULTS)

    for key, value in candidate.items():
        if key in PROTECTED_FIELDS:
            continue
        if value is None and VENUE_DEFAULTS.get(key) is not None:
            continue
        venue[key] = deepcopy(value)

    for key in BOOLEAN_FIELDS:
        venue[key] = as_flag(venue.get(key))
    if is_empty(venue.get('name')):
        venue['name'] = DEFAULT_NAME
    if is_empty(venue.get('strips')):
        venue['strips'] = None

    venue['lat'] = lat
    venue['lon'] = lon
    venue['verified'] = verified
    venue['source'] = source
    return venue


def merge_into(venue: Dict, candidate: Mapping[str, Any], source: str,
               authoritative: bool) -> List[str]:
    """
    Fill empty fields of a matched venue from a candidate.

    A non-empty venue value is never replaced. The venue's id and
    coordinates are never touched, and its source only when it has none.

    Returns:
        Names of the fields that were filled
    """
    filled = []
    for key, value in candidate.items():
        if key in BOOLEAN_FIELDS:
            value = as_flag(value)
        if key in PROTECTED_FIELDS or is_empty(value):
            continue
        if is_empty(venue.get(key)):
            venue[key] = deepcopy(value)
            filled.append(key)

    if authoritative and not venue.get('verified'):
        venue['verified'] = True
        filled.append('verified')
    if is_empty(venue.get('source')):
        venue['source'] = source
        filled.append('source')
    return filled


def _candidates_of(batch: Union[Batch, Sequence[Dict]]) -> Sequence[Dict]:
    return batch.candidates if isinstance(batch, Batch) else batch


def _source_of(batch: Union[Batch, Sequence[Dict]]) -> Optional[str]:
    return batch.source if isinstance(batch, Batch) else None


def merge(existing: Sequence[Mapping[str, Any]],
          batches: Sequence[Union[Batch, Sequence[Dict]]],
          config: Optional[MatchConfig] = None) -> MergeResult:
    """
    Merge source batches into the canonical venue set.

    Args:
        existing: Current canonical venues (kept, ids preserved)
        batches: Batches in priority order (primary source first)
        config: Matching policy

    Returns:
        MergeResult with existing + merged + newly added venues
    """
    config = config or MatchConfig()
    venues = [deepcopy(dict(v)) for v in existing]
    taken = {v['id'] for v in venues if v.get('id')}
    reports = []

    for batch in batches:
        batch_source = _source_of(batch)
        candidates = _candidates_of(batch)
        report = SourceReport(source=batch_source or UNKNOWN_SOURCE)

        for index, candidate in enumerate(candidates):
            if not isinstance(candidate, Mapping):
                report.record_skip(index, 'not an object')
                continue
            if coordinates_of(candidate) is None:
                report.record_skip(index, 'missing or non-finite coordinates')
                continue

            report.accepted += 1
            source = candidate.get('source') or batch_source or UNKNOWN_SOURCE
            authoritative = config.is_authoritative(source)

            match = find_match(candidate, venues, config)
            if match is not None:
                merge_into(venues[match.index], candidate, source, authoritative)
                report.merged += 1
                logger.debug(f"Merged {candidate.get('name')!r} into {match.venue.get('id')} "
                             f"({match.distance_m:.0f} m, similarity {match.similarity:.2f})")
                continue

            natural_key = candidate.get('source_ref') or candidate.get('id')
            base_id = str(natural_key) if natural_key else fallback_id(candidate, source)
            venue_id = unique_id(base_id, taken)
            taken.add(venue_id)
            venues.append(create_venue(candidate, source, venue_id, authoritative))
            report.added += 1

        logger.info(f"{report.source}: {report.merged} merged, {report.added} added, "
                    f"{report.skipped_count} skipped")
        reports.append(report)

    return MergeResult(venues=venues, reports=reports)

#!/usr/bin/env python3
"""
Base class for venue normalization.

Each source declares how its raw records map onto the common candidate
schema with two tables:

    FIELD_MAP  logical field -> ordered property keys (first non-empty wins);
               a tuple entry joins the non-empty values of several keys
    COORD_MAP  'lat'/'lon'   -> ordered dotted paths into the raw record

and one generic routine applies them.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import geojson
from shapely.geometry import shape

from ..constants import DEFAULT_NAME
from ..merge.similarity import coerce_coordinate
from ..report import Outcome, SourceReport, collect_outcomes

logger = logging.getLogger(__name__)

FieldSpec = Union[str, Tuple[str, ...]]

NORMALIZED_FILE = 'venues.geojson'

# Fields every candidate must carry
REQUIRED_FIELDS = ('name', 'lat', 'lon', 'source')


class SkipItem(Exception):
    """Raised by create_candidate() when a raw record should not become a candidate."""


def resolve_path(item: Any, path: str) -> Any:
    """
    Follow a dotted path through nested dicts and lists.

    Examples:
        >>> resolve_path({'geometry': {'coordinates': [-0.17, 51.5]}}, 'geometry.coordinates.1')
        51.5
        >>> resolve_path({'center': None}, 'center.lat') is None
        True
    """
    value = item
    for part in path.split('.'):
        if isinstance(value, dict):
            value = value.get(part)
        elif isinstance(value, (list, tuple)) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        else:
            return None
        if value is None:
            return None
    return value


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def extract_field(props: Dict, keys: Sequence[FieldSpec]) -> Any:
    """
    Return the first non-empty value among `keys` in a property bag.

    A tuple in `keys` joins the non-empty values of its members with ', '.
    """
    for key in keys:
        if isinstance(key, tuple):
            parts = [str(_clean(props.get(k))) for k in key if _clean(props.get(k)) not in (None, '')]
            value = ', '.join(parts)
        else:
            value = _clean(props.get(key))
        if value not in (None, ''):
            return value
    return None


def geometry_centroid(geometry: Any) -> Optional[Tuple[float, float]]:
    """(lat, lon) of a GeoJSON geometry's centroid, or None."""
    if not isinstance(geometry, dict) or not geometry.get('type'):
        return None
    try:
        geom = shape(geometry)
    except (ValueError, TypeError, AttributeError, KeyError, IndexError):
        return None
    if geom.is_empty:
        return None
    point = geom.centroid
    lat, lon = coerce_coordinate(point.y), coerce_coordinate(point.x)
    if lat is None or lon is None:
        return None
    return lat, lon


class BaseNormalizer(ABC):
    """Base class for source-specific venue normalizers."""

    FIELD_MAP: Dict[str, List[FieldSpec]] = {
        'name': ['name'],
    }
    COORD_MAP: Dict[str, List[str]] = {
        'lat': ['lat', 'geometry.coordinates.1'],
        'lon': ['lon', 'geometry.coordinates.0'],
    }
    # Records whose name/facility type do not match are dropped (None = keep all)
    FILTER_PATTERN: Optional[re.Pattern] = None
    FILTER_FIELDS = ('name', 'facility_type')

    RAW_FILE = 'raw.json'

    def __init__(self, source_id: str, data_dir: Optional[Path] = None):
        self.source_id = source_id
        self.data_dir = data_dir or Path(__file__).parent.parent.parent / 'data'
        self.source_dir = self.data_dir / 'sources' / source_id
        self.raw_dir = self.source_dir / 'raw'
        self.normalized_dir = self.source_dir / 'normalized'
        self.manifest_path = self.source_dir / 'manifest.json'
        self.report = SourceReport(source=source_id)

    def load_manifest(self) -> Dict:
        """Load the source manifest."""
        if self.manifest_path.exists():
            with open(self.manifest_path) as f:
                return json.load(f)
        return {}

    def save_manifest(self, manifest: Dict) -> None:
        """Save the source manifest."""
        self.source_dir.mkdir(parents=True, exist_ok=True)
        with open(self.manifest_path, 'w') as f:
            json.dump(manifest, f, indent=2)

    # --- per-source hooks -------------------------------------------------

    @abstractmethod
    def iter_items(self, payload: Any) -> Iterable[Any]:
        """Yield the raw records contained in a provider payload."""

    def properties(self, item: Dict) -> Dict:
        """Property bag the FIELD_MAP keys are looked up in."""
        return item.get('properties') or {}

    def natural_key(self, item: Dict, props: Dict) -> Optional[str]:
        """Provider identity of a record, if it has one."""
        return None

    # --- generic extraction ----------------------------------------------

    def extract_coordinates(self, item: Dict) -> Tuple[Optional[float], Optional[float]]:
        """Coordinates by COORD_MAP precedence, falling back to the geometry centroid."""
        lat = lon = None
        for path in self.COORD_MAP.get('lat', []):
            lat = coerce_coordinate(resolve_path(item, path))
            if lat is not None:
                break
        for path in self.COORD_MAP.get('lon', []):
            lon = coerce_coordinate(resolve_path(item, path))
            if lon is not None:
                break

        if lat is None or lon is None:
            centroid = geometry_centroid(item.get('geometry'))
            if centroid:
                lat, lon = centroid
        return lat, lon

    def create_candidate(self, item: Dict) -> Dict:
        """
        Map one raw record to a venue candidate.

        Raises:
            SkipItem: if the record has no finite coordinates or is filtered out
        """
        if not isinstance(item, dict):
            raise SkipItem('not an object')

        props = self.properties(item)
        if not isinstance(props, dict):
            raise SkipItem('properties are not an object')

        candidate = {}
        for field_name, keys in self.FIELD_MAP.items():
            value = extract_field(props, keys)
            if value is not None:
                candidate[field_name] = value

        if self.FILTER_PATTERN is not None:
            haystack = ' '.join(str(candidate.get(f, '')) for f in self.FILTER_FIELDS)
            if not self.FILTER_PATTERN.search(haystack):
                raise SkipItem('not a cricket venue')

        lat, lon = self.extract_coordinates(item)
        if lat is None or lon is None:
            raise SkipItem('missing or non-finite coordinates')

        candidate['name'] = candidate.get('name') or DEFAULT_NAME
        candidate['lat'] = lat
        candidate['lon'] = lon
        candidate['source'] = self.source_id

        ref = self.natural_key(item, props)
        if ref:
            candidate['source_ref'] = ref
        return candidate

    def normalize_item(self, item: Any) -> Outcome:
        """Outcome for a single record; a malformed record is skipped, not raised."""
        try:
            return Outcome.success(self.create_candidate(item))
        except SkipItem as e:
            return Outcome.skip(str(e))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            return Outcome.skip(f"malformed record: {e}")

    def normalize_payload(self, payload: Any) -> List[Dict]:
        """
        Normalize a provider payload to venue candidates.

        Pure: no I/O. Skipped records are listed in self.report.

        Returns:
            Candidates in payload order
        """
        candidates, self.report = collect_outcomes(
            self.source_id, (self.normalize_item(item) for item in self.iter_items(payload))
        )
        return candidates

    # --- file stage -------------------------------------------------------

    def load_raw(self) -> Any:
        """Read the raw payload written by the ingestor."""
        raw_file = self.raw_dir / self.RAW_FILE
        if not raw_file.exists():
            raise FileNotFoundError(f"Raw file not found: {raw_file}")
        with open(raw_file) as f:
            return json.load(f)

    def normalize(self) -> List[Dict]:
        """Normalize the raw file on disk."""
        return self.normalize_payload(self.load_raw())

    def validate_candidate(self, candidate: Dict) -> List[str]:
        """Return validation errors for a candidate (empty if valid)."""
        errors = []
        for field_name in REQUIRED_FIELDS:
            if candidate.get(field_name) in (None, ''):
                errors.append(f"Missing required field: {field_name}")
        return errors

    def to_feature_collection(self, candidates: List[Dict]) -> geojson.FeatureCollection:
        features = [
            geojson.Feature(
                geometry=geojson.Point((c['lon'], c['lat'])),
                properties=c,
            )
            for c in candidates
        ]
        return geojson.FeatureCollection(features)

    def run(self) -> bool:
        """Run normalization and save output."""
        logger.info(f"Normalizing {self.source_id}...")

        try:
            candidates = self.normalize()
        except (OSError, ValueError) as e:
            logger.error(f"  Error reading raw data for {self.source_id}: {e}")
            return False

        errors = []
        for i, candidate in enumerate(candidates):
            errors.extend(f"Candidate {i}: {e}" for e in self.validate_candidate(candidate))
        if errors:
            logger.error("  Validation errors:")
            for e in errors[:10]:
                logger.error(f"    - {e}")
            if len(errors) > 10:
                logger.error(f"    ... and {len(errors) - 10} more")
            return False

        self.normalized_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.normalized_dir / NORMALIZED_FILE
        with open(output_path, 'w') as f:
            geojson.dump(self.to_feature_collection(candidates), f)

        manifest = self.load_manifest()
        manifest['source_id'] = self.source_id
        manifest['normalized_at'] = datetime.now(timezone.utc).isoformat()
        manifest['normalized_file'] = NORMALIZED_FILE
        manifest['normalized_count'] = len(candidates)
        manifest['normalize_report'] = self.report.to_dict()
        self.save_manifest(manifest)

        logger.info(f"  Success: {len(candidates)} candidates normalized")
        for reason, count in self.report.skip_reasons().items():
            logger.info(f"  Skipped {count}: {reason}")
        logger.info(f"  Output: {output_path}")
        return True


class FeatureCollectionNormalizer(BaseNormalizer):
    """Normalizer for GeoJSON / ArcGIS feature collections."""

    # Attribute keys holding the provider's record id, in precedence order
    NATURAL_KEYS: List[str] = ['OBJECTID', 'GlobalID']

    def iter_items(self, payload: Any) -> Iterable[Any]:
        if not isinstance(payload, dict):
            raise ValueError(f"{self.source_id}: expected a feature collection object")
        return payload.get('features') or []

    def properties(self, item: Dict) -> Dict:
        return item.get('properties') or item.get('attributes') or {}

    def natural_key(self, item: Dict, props: Dict) -> Optional[str]:
        key = extract_field(props, self.NATURAL_KEYS)
        if key is None:
            return None
        return f"{self.source_id}/{key}"

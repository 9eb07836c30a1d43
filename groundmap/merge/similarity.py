"""
Distance and name similarity between venues.

Both functions are pure and deterministic.
"""

import math
import re
from typing import Any, Iterable, Mapping, Optional, Set, Sequence, Tuple, Union

from ..constants import EARTH_RADIUS_M

Point = Union[Sequence[float], Mapping[str, Any]]

_APOSTROPHES = re.compile(r"['’`]")
_NON_TOKEN = re.compile(r'[^a-z0-9 ]+')
_WHITESPACE = re.compile(r'\s+')


def _lat_lon(point: Point) -> Tuple[float, float]:
    if isinstance(point, Mapping):
        return float(point['lat']), float(point['lon'])
    lat, lon = point
    return float(lat), float(lon)


def coerce_coordinate(value: Any) -> Optional[float]:
    """Coerce a coordinate to float; None for missing, unparsable or non-finite values."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coordinates_of(record: Mapping[str, Any]) -> Optional[Tuple[float, float]]:
    """Return (lat, lon) of a record, or None unless both are finite."""
    lat = coerce_coordinate(record.get('lat'))
    lon = coerce_coordinate(record.get('lon'))
    if lat is None or lon is None:
        return None
    return lat, lon


def distance_meters(a: Point, b: Point) -> float:
    """
    Great-circle (haversine) distance in meters.

    Args:
        a: (lat, lon) pair or mapping with 'lat' and 'lon'
        b: (lat, lon) pair or mapping with 'lat' and 'lon'

    Returns:
        Distance in meters, 0.0 for identical points
    """
    lat1, lon1 = _lat_lon(a)
    lat2, lon2 = _lat_lon(b)

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, h)))


def tokenize(text: Optional[str]) -> Set[str]:
    """
    Split a name into a set of lower-case alphanumeric tokens.

    Examples:
        >>> sorted(tokenize("Lord's Cricket Ground"))
        ['cricket', 'ground', 'lords']
        >>> sorted(tokenize('St. John-the-Baptist CC'))
        ['baptist', 'cc', 'john', 'st', 'the']
    """
    if not text:
        return set()
    norm = _APOSTROPHES.sub('', str(text).lower())
    norm = _NON_TOKEN.sub(' ', norm)
    norm = _WHITESPACE.sub(' ', norm).strip()
    return {t for t in norm.split(' ') if t}


def name_similarity(a: Optional[str], b: Optional[str],
                    ignore: Optional[Iterable[str]] = None) -> float:
    """
    Jaccard similarity of the token sets of two names.

    Args:
        a: First name
        b: Second name
        ignore: Tokens to drop from both sides before comparing

    Returns:
        Similarity in [0, 1]; 0 if either side has no tokens

    Examples:
        >>> name_similarity('Lords Cricket Ground', 'lords cricket ground')
        1.0
        >>> name_similarity('Lords', '')
        0.0
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if ignore:
        drop = set(ignore)
        tokens_a -= drop
        tokens_b -= drop

    if not tokens_a or not tokens_b:
        return 0.0

    inter = len(tokens_a & tokens_b)
    return inter / (len(tokens_a) + len(tokens_b) - inter)

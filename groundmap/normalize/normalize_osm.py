#!/usr/bin/env python3
"""
OSM cricket pitch normalization.

Converts raw Overpass API output (`out center tags`) to venue candidates.
Nodes carry lat/lon directly; ways and relations carry a center point.
"""

import logging
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

from .base import BaseNormalizer

logger = logging.getLogger(__name__)

COMMONS_FILE_PATH = 'https://commons.wikimedia.org/wiki/Special:FilePath/'


def commons_image_url(tag: Optional[str]) -> str:
    """
    Direct image URL for a wikimedia_commons tag.

    Examples:
        >>> commons_image_url('File:Lords Pavilion.jpg')
        'https://commons.wikimedia.org/wiki/Special:FilePath/Lords%20Pavilion.jpg'
    """
    if not tag:
        return ''
    name = tag[5:] if tag.lower().startswith('file:') else tag
    return COMMONS_FILE_PATH + quote(name, safe='')


class Normalizer(BaseNormalizer):
    """OSM cricket pitch normalizer."""

    FIELD_MAP = {
        'name': ['name', 'official_name'],
        'club': ['operator', 'club'],
        'county': ['addr:county', 'is_in:county'],
        'address': [('addr:housenumber', 'addr:street', 'addr:city')],
        'postcode': ['addr:postcode'],
        'pitch_type': ['surface'],
        'club_url': ['website', 'contact:website', 'url'],
        'image_url': ['image'],
        'wikidata': ['wikidata'],
        'wikipedia': ['wikipedia'],
    }
    COORD_MAP = {
        'lat': ['lat', 'center.lat'],
        'lon': ['lon', 'center.lon'],
    }

    RAW_FILE = 'osm_cricket.json'

    def __init__(self, **kwargs):
        super().__init__('osm', **kwargs)

    def iter_items(self, payload: Any) -> Iterable[Any]:
        if not isinstance(payload, dict):
            raise ValueError("osm: expected an Overpass response object")
        return payload.get('elements') or []

    def properties(self, item: Dict) -> Dict:
        return item.get('tags') or {}

    def natural_key(self, item: Dict, props: Dict) -> Optional[str]:
        if item.get('type') and item.get('id') is not None:
            return f"{item['type']}/{item['id']}"
        return None

    def create_candidate(self, item: Dict) -> Dict:
        candidate = super().create_candidate(item)
        if not candidate.get('image_url'):
            image = commons_image_url(self.properties(item).get('wikimedia_commons'))
            if image:
                candidate['image_url'] = image
        return candidate


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    normalizer = Normalizer()
    success = normalizer.run()
    exit(0 if success else 1)


if __name__ == '__main__':
    main()

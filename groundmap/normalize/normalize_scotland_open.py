#!/usr/bin/env python3
"""
Scotland sports facilities normalization.

Converts the open sports facilities download (GeoJSON, WGS84) to venue
candidates, keeping only cricket facilities.
"""

import logging
import re

from .base import FeatureCollectionNormalizer

logger = logging.getLogger(__name__)


class Normalizer(FeatureCollectionNormalizer):
    """Scotland sports facility normalizer."""

    FIELD_MAP = {
        'name': ['FacilityName', 'SiteName', 'Name', 'name'],
        'address': ['Address', 'Address1'],
        'postcode': ['Postcode', 'POSTCODE'],
        'website': ['Web', 'Website', 'URL'],
        'county': ['LocalAuthority', 'Council', 'AdminArea'],
        'facility_type': ['Sport', 'FacilityType'],
        'management_type': ['Management', 'Owner'],
    }
    COORD_MAP = {
        'lat': ['geometry.coordinates.1', 'geometry.y'],
        'lon': ['geometry.coordinates.0', 'geometry.x'],
    }
    NATURAL_KEYS = ['OBJECTID', 'GlobalID']
    FILTER_PATTERN = re.compile(r'cricket', re.IGNORECASE)

    RAW_FILE = 'scotland_sports.geojson'

    def __init__(self, **kwargs):
        super().__init__('scotland_open', **kwargs)


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    normalizer = Normalizer()
    success = normalizer.run()
    exit(0 if success else 1)


if __name__ == '__main__':
    main()

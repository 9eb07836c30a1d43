#!/usr/bin/env python3
"""
Active Places (England) normalization.

Converts an ArcGIS/WFS feature collection of sports sites to venue
candidates, keeping only sites whose name or facility type mentions cricket.
Attribute names vary between layer versions, so every field has a list of
known aliases.
"""

import logging
import re

from .base import FeatureCollectionNormalizer

logger = logging.getLogger(__name__)


class Normalizer(FeatureCollectionNormalizer):
    """Active Places sports site normalizer."""

    FIELD_MAP = {
        'name': ['SiteName', 'FacilityName', 'Name', 'SITE_NAME', 'FACILITY_NAME', 'name'],
        'address': ['Address', 'ADDRESS', 'Address1', ('Address1', 'Address2', 'Town')],
        'postcode': ['Postcode', 'POSTCODE', 'Post_Code', 'PostCode'],
        'website': ['Website', 'WEBSITE', 'URL', 'SiteUrl'],
        'county': ['County', 'COUNTY', 'AdministrativeArea'],
        'facility_type': ['FacilityType', 'FACILITY_TYPE', 'Sport', 'PrimaryUse'],
        'management_type': ['ManagementType', 'MANAGEMENT_TYPE', 'Ownership', 'SiteOwnerType'],
    }
    # ArcGIS JSON puts x/y on the geometry; GeoJSON uses coordinates
    COORD_MAP = {
        'lat': ['geometry.y', 'geometry.latitude', 'coordinates.1', 'geometry.coordinates.1'],
        'lon': ['geometry.x', 'geometry.longitude', 'coordinates.0', 'geometry.coordinates.0'],
    }
    NATURAL_KEYS = ['OBJECTID', 'GlobalID', 'SiteID', 'SITE_ID']
    FILTER_PATTERN = re.compile(r'cricket', re.IGNORECASE)

    RAW_FILE = 'active_places.geojson'

    def __init__(self, **kwargs):
        super().__init__('active_places', **kwargs)


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    normalizer = Normalizer()
    success = normalizer.run()
    exit(0 if success else 1)


if __name__ == '__main__':
    main()

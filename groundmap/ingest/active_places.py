#!/usr/bin/env python3
"""
Active Places (England) sports site ingestion.

Downloads sports sites from a keyless ArcGIS GeoServices feature layer or
a WFS GetFeature endpoint, as GeoJSON. The layer URL is configured with
ACTIVE_PLACES_URL, e.g.

    https://services1.arcgis.com/<org>/arcgis/rest/services/Active_Places_Sites/FeatureServer/0
"""

import logging
import os
from typing import Dict, Optional

from .base import BaseIngestor

logger = logging.getLogger(__name__)


def build_query_url(layer_url: str) -> str:
    """
    Turn a layer URL into a GeoJSON query URL.

    Raises:
        ValueError: for URLs that are neither ArcGIS layers nor WFS endpoints
    """
    if '/FeatureServer/' in layer_url or '/MapServer/' in layer_url:
        return f"{layer_url.rstrip('/')}/query?where=1%3D1&outFields=*&f=geojson"

    lowered = layer_url.lower()
    if 'service=wfs' in lowered or 'ows?' in lowered:
        if 'outputformat=' in lowered:
            return layer_url
        sep = '&' if '?' in layer_url else '?'
        return f"{layer_url}{sep}service=WFS&request=GetFeature&outputFormat=application/json"

    raise ValueError(
        'Unsupported Active Places URL. Provide a FeatureServer layer or WFS GetFeature endpoint.'
    )


class Ingestor(BaseIngestor):
    """Active Places sports site ingestor."""

    RAW_FILE = 'active_places.geojson'

    def __init__(self, layer_url: Optional[str] = None, **kwargs):
        super().__init__('active_places', **kwargs)
        self.layer_url = layer_url or os.environ.get('ACTIVE_PLACES_URL', '')

    def ingest(self) -> Dict:
        """Download the Active Places layer."""
        if not self.layer_url:
            return {
                'success': False,
                'message': 'ACTIVE_PLACES_URL not set'
            }

        url = build_query_url(self.layer_url)
        logger.info(f"  Querying {url}...")
        data = self.request_json('GET', url)
        self.save_raw(data)

        features = data.get('features', []) if isinstance(data, dict) else []
        return {
            'success': True,
            'files': [self.RAW_FILE],
            'count': len(features),
            'url': url,
            'message': f"Downloaded {len(features)} sports sites"
        }


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    ingestor = Ingestor()
    success = ingestor.run()
    exit(0 if success else 1)


if __name__ == '__main__':
    main()

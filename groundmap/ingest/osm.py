#!/usr/bin/env python3
"""
OpenStreetMap cricket pitch ingestion.

Downloads every leisure=pitch + sport=cricket feature in Great Britain from
the Overpass API, with a center point for ways and relations.
"""

import logging
import os
from typing import Dict

from .base import BaseIngestor

logger = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"

OVERPASS_QUERY = """
[out:json][timeout:180];
area["ISO3166-1"="GB"][admin_level=2]->.uk;
(
  node["leisure"="pitch"]["sport"="cricket"](area.uk);
  way["leisure"="pitch"]["sport"="cricket"](area.uk);
  relation["leisure"="pitch"]["sport"="cricket"](area.uk);
);
out center tags;
"""


class Ingestor(BaseIngestor):
    """OSM cricket pitch ingestor."""

    TIMEOUT = 300
    RAW_FILE = 'osm_cricket.json'

    def __init__(self, endpoint: str = None, **kwargs):
        super().__init__('osm', **kwargs)
        self.endpoint = endpoint or os.environ.get('OVERPASS_ENDPOINT', OVERPASS_URL)

    def ingest(self) -> Dict:
        """Download OSM cricket pitches for the UK."""
        logger.info(f"  Querying Overpass API at {self.endpoint}...")

        data = self.request_json('POST', self.endpoint, data={'data': OVERPASS_QUERY})
        self.save_raw(data)

        elements = data.get('elements', []) if isinstance(data, dict) else []
        return {
            'success': True,
            'files': [self.RAW_FILE],
            'count': len(elements),
            'url': self.endpoint,
            'message': f"Downloaded {len(elements)} cricket pitches"
        }


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    ingestor = Ingestor()
    success = ingestor.run()
    exit(0 if success else 1)


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Scotland sports facilities ingestion.

Downloads the open sports facilities dataset as GeoJSON (WGS84).
Override the download with SCOTLAND_FACILITIES_URL.
"""

import logging
import os
from typing import Dict, Optional

from .base import BaseIngestor

logger = logging.getLogger(__name__)

SCOTLAND_FACILITIES_URL = (
    "https://opendata.arcgis.com/api/v3/datasets/f13873a2-e78c-4f2b-a1af-cfb8f9895330_8"
    "/downloads/data?format=geojson&spatialRefId=4326"
)


class Ingestor(BaseIngestor):
    """Scotland sports facility ingestor."""

    RAW_FILE = 'scotland_sports.geojson'

    def __init__(self, url: Optional[str] = None, **kwargs):
        super().__init__('scotland_open', **kwargs)
        self.url = url or os.environ.get('SCOTLAND_FACILITIES_URL', SCOTLAND_FACILITIES_URL)

    def ingest(self) -> Dict:
        """Download the Scotland facilities dataset."""
        logger.info(f"  Downloading {self.url}...")
        data = self.request_json('GET', self.url)
        self.save_raw(data)

        features = data.get('features', []) if isinstance(data, dict) else []
        return {
            'success': True,
            'files': [self.RAW_FILE],
            'count': len(features),
            'url': self.url,
            'message': f"Downloaded {len(features)} sports facilities"
        }


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    ingestor = Ingestor()
    success = ingestor.run()
    exit(0 if success else 1)


if __name__ == '__main__':
    main()

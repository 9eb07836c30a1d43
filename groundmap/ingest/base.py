#!/usr/bin/env python3
"""
Base class for venue data ingestion.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from ..constants import USER_AGENT
from ..errors import UpstreamError

logger = logging.getLogger(__name__)


class BaseIngestor(ABC):
    """Base class for source-specific data ingestors."""

    # Request settings
    TIMEOUT = 120

    RAW_FILE = 'raw.json'

    def __init__(self, source_id: str, data_dir: Optional[Path] = None,
                 session: Optional[requests.Session] = None):
        self.source_id = source_id
        self.data_dir = data_dir or Path(__file__).parent.parent.parent / 'data'
        self.source_dir = self.data_dir / 'sources' / source_id
        self.raw_dir = self.source_dir / 'raw'
        self.manifest_path = self.source_dir / 'manifest.json'

        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

    def load_manifest(self) -> Dict:
        """Load the source manifest."""
        if self.manifest_path.exists():
            with open(self.manifest_path) as f:
                return json.load(f)
        return {}

    def save_manifest(self, manifest: Dict) -> None:
        """Save the source manifest."""
        with open(self.manifest_path, 'w') as f:
            json.dump(manifest, f, indent=2)

    def update_manifest(self, raw_files: List[str], record_count: int,
                        url: Optional[str] = None, notes: Optional[str] = None) -> None:
        """Update manifest after ingestion."""
        manifest = self.load_manifest()
        manifest.update({
            'source_id': self.source_id,
            'ingested_at': datetime.now(timezone.utc).isoformat(),
            'raw_files': raw_files,
            'record_count': record_count,
        })
        if url:
            manifest['url'] = url
        if notes:
            manifest['notes'] = notes
        self.save_manifest(manifest)

    def request_json(self, method: str, url: str, **kwargs) -> Any:
        """
        Make a request and decode the JSON body.

        Raises:
            UpstreamError: on transport errors, non-2xx responses or invalid JSON
        """
        logger.debug(f"Requesting: {method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.TIMEOUT, **kwargs)
        except requests.exceptions.RequestException as e:
            raise UpstreamError(self.source_id, f"network error: {e}") from e

        if not response.ok:
            raise UpstreamError.from_response(self.source_id, response)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(self.source_id, 'response is not JSON',
                                status=response.status_code, body=response.text) from e

    def save_raw(self, payload: Any) -> Path:
        """Write the raw payload for the normalizer."""
        self.raw_dir.mkdir(parents=True, exist_ok=True)
        output_file = self.raw_dir / self.RAW_FILE
        with open(output_file, 'w') as f:
            json.dump(payload, f)
        return output_file

    @abstractmethod
    def ingest(self) -> Dict:
        """
        Perform the ingestion.

        Returns:
            Dict with keys:
                - success: bool
                - files: List[str] - raw files created
                - count: int - number of records
                - message: str - status message

        Raises:
            UpstreamError: if the provider cannot be fetched
        """
        pass

    def run(self) -> bool:
        """Run the ingestion and update manifest."""
        logger.info(f"Ingesting {self.source_id}...")

        try:
            result = self.ingest()
        except (UpstreamError, ValueError) as e:
            logger.error(f"  Failed: {e}")
            return False

        if result['success']:
            self.update_manifest(
                raw_files=result.get('files', []),
                record_count=result.get('count', 0),
                url=result.get('url'),
                notes=result.get('notes')
            )
            logger.info(f"  Success: {result['message']}")
            logger.info(f"  Files: {result.get('files', [])}")
            logger.info(f"  Records: {result.get('count', 0)}")
            return True

        logger.warning(f"  Skipped: {result['message']}")
        return False

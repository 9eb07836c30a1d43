"""
Shared plumbing for enrichment passes.
"""

import logging
import time
from copy import deepcopy
from typing import Any, Dict, List, Optional, Tuple

import requests
from tqdm import tqdm

from ..constants import USER_AGENT
from ..errors import UpstreamError
from ..report import Outcome, SourceReport

logger = logging.getLogger(__name__)


class BaseEnricher:
    """Runs a per-venue lookup over a copy of the canonical set."""

    name = 'enrich'

    TIMEOUT = 60
    RATE_LIMIT_DELAY = 1.0  # seconds after each successful lookup

    def __init__(self, session: Optional[requests.Session] = None,
                 rate_limit_delay: Optional[float] = None, progress: bool = True):
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})
        if rate_limit_delay is not None:
            self.RATE_LIMIT_DELAY = rate_limit_delay
        self.progress = progress

    def get_json(self, url: str, params: Optional[Dict] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            UpstreamError: on transport errors, non-2xx responses or invalid JSON
        """
        try:
            response = self.session.get(url, params=params, timeout=self.TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise UpstreamError(self.name, f"network error: {e}") from e
        if not response.ok:
            raise UpstreamError.from_response(self.name, response)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(self.name, 'response is not JSON',
                                status=response.status_code, body=response.text) from e

    def wants(self, venue: Dict) -> bool:
        """Whether a venue needs this enrichment."""
        return True

    def lookup(self, venue: Dict) -> Optional[Dict]:
        """Fields to fill for one venue, or None if nothing was found."""
        raise NotImplementedError

    def enrich_venue(self, venue: Dict) -> Outcome:
        try:
            fields = self.lookup(venue)
        except UpstreamError as e:
            return Outcome.skip(str(e))
        if not fields:
            return Outcome.skip('no result')
        return Outcome.success(fields)

    def apply(self, venue: Dict, fields: Dict) -> bool:
        """Fill empty venue fields; returns whether anything changed."""
        changed = False
        for key, value in fields.items():
            if value in (None, '', []):
                continue
            if not venue.get(key):
                venue[key] = value
                changed = True
        return changed

    def enrich(self, venues: List[Dict]) -> Tuple[List[Dict], SourceReport]:
        """
        Enrich a copy of the venue set.

        Returns:
            (enriched venues, report); venues that did not need the lookup
            count as neither updated nor skipped
        """
        venues = deepcopy(venues)
        report = SourceReport(source=self.name)

        todo = [(i, v) for i, v in enumerate(venues) if self.wants(v)]
        iterator = tqdm(todo, desc=self.name) if self.progress else todo
        for index, venue in iterator:
            outcome = self.enrich_venue(venue)
            if not outcome.ok:
                report.record_skip(index, outcome.reason)
                continue
            report.accepted += 1
            if self.apply(venue, outcome.value):
                report.updated += 1
            if self.RATE_LIMIT_DELAY:
                time.sleep(self.RATE_LIMIT_DELAY)

        logger.info(f"{self.name}: {report.updated} venues updated, "
                    f"{report.skipped_count} without result")
        return venues, report

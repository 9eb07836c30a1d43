#!/usr/bin/env python3
"""
Play-Cricket club enrichment.

Needs an API token (PLAY_CRICKET_TOKEN). Fetches the club list county by
county, matches each venue's club (or name) against club names and fills
the club's official name, Play-Cricket id, site URL and leagues. A venue
linked to a registered club is marked verified.

Optional COUNTY_FILTER="Greater London,Lancashire" restricts which venues
are considered.
"""

import logging
import os
import time
from copy import deepcopy
from typing import Dict, Iterable, List, Optional, Tuple

from ..constants import PLAY_CRICKET_MATCH_THRESHOLD
from ..errors import UpstreamError
from ..merge.similarity import name_similarity
from ..report import SourceReport
from .base import BaseEnricher

logger = logging.getLogger(__name__)

PLAY_CRICKET_API = "https://www.play-cricket.com/api/v2"
PLAY_CRICKET_CLUB_URL = "https://play-cricket.com/Club/{club_id}"


def parse_county_filter(value: Optional[str]) -> List[str]:
    """
    Examples:
        >>> parse_county_filter(' Greater London , Lancashire,')
        ['greater london', 'lancashire']
    """
    return [s.strip().lower() for s in (value or '').split(',') if s.strip()]


class PlayCricketEnricher(BaseEnricher):
    """Links venues to Play-Cricket clubs."""

    name = 'playcricket'

    RATE_LIMIT_DELAY = 0.3
    COUNTY_IDS = range(1, 101)

    def __init__(self, token: Optional[str] = None, county_filter: Optional[Iterable[str]] = None,
                 threshold: float = PLAY_CRICKET_MATCH_THRESHOLD, **kwargs):
        super().__init__(**kwargs)
        self.token = token if token is not None else os.environ.get('PLAY_CRICKET_TOKEN', '')
        if county_filter is None:
            county_filter = parse_county_filter(os.environ.get('COUNTY_FILTER'))
        self.county_filter = [c.lower() for c in county_filter]
        self.threshold = threshold
        self.clubs: List[Dict] = []

    def fetch_clubs(self) -> List[Dict]:
        """
        Fetch all clubs, one county at a time.

        A county that fails is logged and left out; the rest still load.
        """
        clubs = {}
        failures = 0
        for county_id in self.COUNTY_IDS:
            try:
                data = self.get_json(f"{PLAY_CRICKET_API}/clubs.json",
                                     params={'api_token': self.token, 'county_id': county_id})
            except UpstreamError as e:
                failures += 1
                logger.debug(f"County {county_id}: {e}")
                continue
            for club in (data or {}).get('clubs') or []:
                if club.get('id') is not None:
                    clubs[str(club['id'])] = {
                        'id': club['id'],
                        'name': club.get('name', ''),
                        'county_id': club.get('county_id'),
                    }
            if self.RATE_LIMIT_DELAY:
                time.sleep(self.RATE_LIMIT_DELAY)

        if failures:
            logger.warning(f"Club list incomplete: {failures} counties failed")
        return list(clubs.values())

    def fetch_club_detail(self, club_id) -> Dict:
        data = self.get_json(f"{PLAY_CRICKET_API}/clubs/{club_id}.json",
                             params={'api_token': self.token})
        club = (data or {}).get('club') or {}
        return {
            'name': club.get('name'),
            'website': club.get('website_url'),
            'leagues': [l.get('name') for l in club.get('leagues') or [] if l.get('name')],
        }

    def best_club(self, venue: Dict) -> Optional[Dict]:
        basis = venue.get('club') or venue.get('name') or ''
        best, best_sim = None, 0.0
        for club in self.clubs:
            sim = name_similarity(basis, club['name'])
            if sim >= self.threshold and sim > best_sim:
                best, best_sim = club, sim
        return best

    def wants(self, venue: Dict) -> bool:
        if not self.county_filter:
            return True
        county = (venue.get('county') or '').lower()
        return any(c in county for c in self.county_filter)

    def lookup(self, venue: Dict) -> Optional[Dict]:
        club = self.best_club(venue)
        if club is None:
            return None

        try:
            detail = self.fetch_club_detail(club['id'])
        except UpstreamError as e:
            logger.debug(f"Club detail failed for {club['id']}: {e}")
            detail = {}

        return {
            'club_official_name': detail.get('name') or club['name'],
            'play_cricket_club_id': str(club['id']),
            'play_cricket_url': detail.get('website') or PLAY_CRICKET_CLUB_URL.format(club_id=club['id']),
            'league_names': detail.get('leagues') or [],
            'verified': True,
        }

    def enrich(self, venues: List[Dict]) -> Tuple[List[Dict], SourceReport]:
        if not self.token:
            logger.info("No PLAY_CRICKET_TOKEN, skipping")
            return deepcopy(venues), SourceReport(source=self.name)
        self.clubs = self.fetch_clubs()
        logger.info(f"Clubs fetched: {len(self.clubs)}")
        return super().enrich(venues)

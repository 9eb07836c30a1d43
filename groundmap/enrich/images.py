#!/usr/bin/env python3
"""
Wikimedia image enrichment.

For every venue without an image:
1. If it has a 'wikipedia' tag (e.g. "en:Lord's_Cricket_Ground"), use the
   page summary thumbnail.
2. Otherwise search Wikimedia Commons for "<name> cricket ground <county>"
   and take the first result that has an image.

Fills image_url, image_credit and image_license.
"""

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote

from ..errors import UpstreamError
from .base import BaseEnricher

logger = logging.getLogger(__name__)

WIKIPEDIA_SUMMARY_URL = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"
COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"


def parse_wikipedia_tag(tag: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split an OSM wikipedia tag into (lang, title).

    Examples:
        >>> parse_wikipedia_tag("en:Lord's_Cricket_Ground")
        ('en', "Lord's_Cricket_Ground")
        >>> parse_wikipedia_tag('Lords') is None
        True
    """
    if not tag or ':' not in tag:
        return None
    lang, title = tag.split(':', 1)
    if not lang or not title:
        return None
    return lang, title


class ImageEnricher(BaseEnricher):
    """Fills display images from Wikipedia and Wikimedia Commons."""

    name = 'images'

    def wants(self, venue: Dict) -> bool:
        return not venue.get('image_url')

    def summary_thumbnail(self, lang: str, title: str) -> Optional[Dict]:
        url = WIKIPEDIA_SUMMARY_URL.format(lang=lang, title=quote(title, safe=''))
        data = self.get_json(url)
        thumb = (data.get('thumbnail') or {}).get('source')
        if not thumb:
            return None
        display = (data.get('titles') or {}).get('display')
        return {
            'image_url': thumb,
            'image_credit': f"Image via Wikipedia ({display})" if display else 'Image via Wikipedia',
            'image_license': 'Likely CC BY-SA; see source page',
        }

    def commons_search(self, query: str) -> Optional[Dict]:
        params = {
            'action': 'query',
            'format': 'json',
            'prop': 'imageinfo',
            'iiprop': 'url|extmetadata',
            'generator': 'search',
            'gsrsearch': query,
            'gsrlimit': 1,
        }
        data = self.get_json(COMMONS_API_URL, params=params)
        pages = (data.get('query') or {}).get('pages') or {}
        for page in pages.values():
            info = (page.get('imageinfo') or [None])[0]
            if not info or not info.get('url'):
                continue
            meta = info.get('extmetadata') or {}
            artist = (meta.get('Artist') or {}).get('value', '')
            license_name = (meta.get('LicenseShortName') or {}).get('value', '')
            return {
                'image_url': info['url'],
                'image_credit': f"© {artist} (Wikimedia Commons)" if artist else 'Wikimedia Commons',
                'image_license': license_name or 'See Commons page',
            }
        return None

    def lookup(self, venue: Dict) -> Optional[Dict]:
        parsed = parse_wikipedia_tag(venue.get('wikipedia'))
        if parsed:
            try:
                found = self.summary_thumbnail(*parsed)
            except UpstreamError as e:
                logger.debug(f"Wikipedia summary failed for {venue.get('id')}: {e}")
                found = None
            if found:
                return found

        query = f"{venue.get('name', '')} cricket ground {venue.get('county') or ''}".strip()
        return self.commons_search(query)

"""
Ratings document backends.

Ratings live in one JSON array, separate from the grounds document and keyed
by ground_id. Two backends append to it:

- GitHubRatingsStore: a file in a GitHub repository, updated through the
  contents API. The PUT carries the blob sha read beforehand, so a writer
  that raced us makes GitHub reject the commit instead of losing a rating.
- LocalRatingsStore: a JSON file on disk (development and tests).
"""

import base64
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

from groundmap.constants import RESPONSE_SNIPPET_CHARS, USER_AGENT
from groundmap.errors import GroundmapError, StoreError
from groundmap.store import write_json_atomic

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"


class RatingsStoreError(GroundmapError):
    """The ratings backend refused or failed a read/write."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ''):
        self.status = status
        self.body = (body or '')[:RESPONSE_SNIPPET_CHARS]
        super().__init__(f"{message}: {self.body}" if self.body else message)


def _parse_ratings(text: str) -> List[Dict]:
    """
    Decode a ratings document.

    Raises:
        RatingsStoreError: if the document is not a JSON array, so an append
            never writes over ratings it could not read
    """
    try:
        data = json.loads(text or '[]')
    except ValueError as e:
        raise RatingsStoreError('Ratings document is not valid JSON', body=text) from e
    if not isinstance(data, list):
        raise RatingsStoreError('Ratings document is not a JSON array', body=text)
    return data


class LocalRatingsStore:
    """Ratings kept in a local JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Dict]:
        if not self.path.exists():
            return []
        try:
            text = self.path.read_text(encoding='utf-8')
        except (OSError, ValueError) as e:
            raise RatingsStoreError(f"Cannot read {self.path}: {e}") from e
        return _parse_ratings(text)

    def append(self, entry: Dict) -> None:
        ratings = self.load()
        ratings.append(entry)
        try:
            write_json_atomic(self.path, ratings)
        except StoreError as e:
            raise RatingsStoreError(str(e)) from e


class GitHubRatingsStore:
    """Ratings kept in a file of a GitHub repository."""

    TIMEOUT = 30

    def __init__(self, token: str, repo: str, branch: str = 'main',
                 path: str = 'data/ratings.json', session: Optional[requests.Session] = None):
        self.repo = repo
        self.branch = branch
        self.path = path
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f"Bearer {token}",
            'Accept': 'application/vnd.github+json',
            'User-Agent': USER_AGENT,
        })

    @property
    def contents_url(self) -> str:
        return f"{GITHUB_API}/repos/{self.repo}/contents/{quote(self.path, safe='/')}"

    def load(self) -> Tuple[List[Dict], Optional[str]]:
        """Current ratings and the blob sha they were read at."""
        try:
            response = self.session.get(self.contents_url, params={'ref': self.branch},
                                        timeout=self.TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise RatingsStoreError(f"GitHub get failed: {e}") from e

        if response.status_code == 404:
            return [], None
        if not response.ok:
            raise RatingsStoreError('GitHub get failed', response.status_code, response.text)

        try:
            current = response.json()
            encoded = current.get('content') or ''
            content = base64.b64decode(encoded).decode('utf-8') if encoded else '[]'
        except (ValueError, AttributeError) as e:
            raise RatingsStoreError('GitHub returned an unreadable ratings document',
                                    response.status_code, response.text) from e
        return _parse_ratings(content), current.get('sha')

    def append(self, entry: Dict) -> None:
        ratings, sha = self.load()
        ratings.append(entry)

        body = {
            'message': f"Add rating for {entry['ground_id']} at {entry['created_at']}",
            'content': base64.b64encode(json.dumps(ratings, indent=2).encode('utf-8')).decode('ascii'),
            'branch': self.branch,
        }
        if sha:
            body['sha'] = sha

        try:
            response = self.session.put(self.contents_url, json=body, timeout=self.TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise RatingsStoreError(f"GitHub commit failed: {e}") from e
        if not response.ok:
            raise RatingsStoreError('GitHub commit failed', response.status_code, response.text)

"""
Exceptions raised by the pipeline.
"""

from typing import Optional

from .constants import RESPONSE_SNIPPET_CHARS


class GroundmapError(Exception):
    """Base class for pipeline errors."""


class StoreError(GroundmapError):
    """The canonical document could not be read or written."""


class UpstreamError(GroundmapError):
    """A remote provider answered with an error or could not be reached."""

    def __init__(self, source: str, message: str, status: Optional[int] = None,
                 body: str = ''):
        self.source = source
        self.status = status
        self.body = (body or '')[:RESPONSE_SNIPPET_CHARS]
        detail = f"{source}: {message}"
        if status is not None:
            detail += f" (HTTP {status})"
        if self.body:
            detail += f": {self.body}"
        super().__init__(detail)

    @classmethod
    def from_response(cls, source: str, response) -> 'UpstreamError':
        """Build an error from a failed requests response."""
        return cls(source, f"request to {response.url} failed",
                   status=response.status_code, body=response.text)

"""
Centralized constants for the cricket ground data pipeline.

Import from here to ensure consistency between the normalizers,
the merge engine and the enrichment passes.
"""

# Spatial parameters
EARTH_RADIUS_M = 6371000  # Mean Earth radius used by the haversine distance

# Match acceptance policy
MAX_MATCH_DISTANCE_M = 700  # Candidate must be strictly closer than this
MIN_NAME_SIMILARITY = 0.35  # Candidate must be strictly more similar than this

# Words that say nothing about which venue is meant
GENERIC_NAME_TOKENS = ('cricket', 'ground', 'grounds', 'club', 'cc', 'the')

# Sources treated as authoritative registries for the verified flag
AUTHORITATIVE_SOURCES = ('active_places', 'scotland_open')

# Default merge order (lower = earlier)
SOURCE_PRIORITY = {
    'osm': 1,
    'active_places': 2,
    'scotland_open': 3,
}

# Record defaults
DEFAULT_NAME = 'Cricket ground'
UNKNOWN_SOURCE = 'unknown'

# Fields every canonical venue carries, with their defaults
VENUE_DEFAULTS = {
    'name': DEFAULT_NAME,
    'club': '',
    'county': '',
    'address': '',
    'pitch_type': '',
    'strips': None,
    'nets': False,
    'bar': False,
    'parking': False,
    'description': '',
    'image_url': '',
    'image_credit': '',
    'image_license': '',
    'club_url': '',
    'play_cricket_url': '',
    'booking_url': '',
    'website': '',
}

BOOLEAN_FIELDS = ('nets', 'bar', 'parking')
FALSE_STRINGS = ('', 'no', 'false', '0')  # Tag values that mean the facility is absent

# Fields the merge step never copies from a candidate onto a matched record
PROTECTED_FIELDS = ('id', 'lat', 'lon', 'verified', 'source', 'source_ref')

# Enrichment
PLAY_CRICKET_MATCH_THRESHOLD = 0.65
RESPONSE_SNIPPET_CHARS = 200  # Upstream bodies are truncated to this in errors

# HTTP
USER_AGENT = 'groundmap/1.0 (+https://github.com/groundmap/groundmap)'

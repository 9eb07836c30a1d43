"""
Venue normalization modules.

Each source has its own normalizer that:
1. Reads raw data from data/sources/{source}/raw/
2. Maps each record to the common venue candidate schema
3. Skips records without finite coordinates, with a reason
4. Saves to data/sources/{source}/normalized/venues.geojson
5. Updates manifest.json with normalization metadata
"""

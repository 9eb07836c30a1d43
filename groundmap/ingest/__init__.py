"""
Data ingestion modules for venue sources.

Each source has its own ingestion script that:
1. Downloads raw data from the provider (no API keys needed)
2. Saves to data/sources/{source}/raw/
3. Updates manifest.json with ingestion metadata
"""

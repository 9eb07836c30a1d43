"""
Cricket ground data pipeline.

Fetches venue descriptions from open data providers, normalizes them to a
common schema and merges them into one canonical set of grounds.
"""

__version__ = '1.0.0'

"""
Best-effort enrichment of the canonical venue set.

Enrichers only fill empty fields; a failed lookup for one venue is recorded
in the report and the pass continues.
"""

"""
Data ingestion for CareMatch.

Loads provider directories and patient queries from local files.
"""

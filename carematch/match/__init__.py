"""
Matching engine for CareMatch.

Implements the twelve-factor scoring model that ranks candidate
providers against a patient query.
"""

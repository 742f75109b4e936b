"""
Normalization and configuration for CareMatch.

Coerces untrusted provider documents into typed records and loads the
scoring configuration.
"""

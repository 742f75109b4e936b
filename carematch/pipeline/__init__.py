"""
Command line pipeline for CareMatch.
"""

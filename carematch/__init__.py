"""
CareMatch - Doctor-Patient Matching Engine

Ranks human doctors and AI agents for a patient query with a
deterministic twelve-factor scoring model.
"""

__version__ = "1.0.0"
__author__ = "CareMatch Team"

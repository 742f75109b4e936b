"""
Feedback persistence for CareMatch.
"""

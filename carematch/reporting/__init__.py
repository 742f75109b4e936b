"""
Ranking reports and charts for CareMatch.
"""

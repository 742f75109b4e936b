"""
Doctor-patient matcher for CareMatch.

Scores candidate providers against a patient query with a twelve-factor
model and ranks them by their normalized match percentage.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ..normalize.config import SUB_SCORE_NAMES, SpecialtyTable, get_default_matching_config, merge_configs
from ..normalize.record_normalizer import RecordNormalizer
from .models import CandidateProvider, MatchBreakdown, MatchScore, PatientQuery
from .sub_scores import (
    calculate_availability_score,
    calculate_awards_score,
    calculate_budget_score,
    calculate_conference_score,
    calculate_consultation_type_score,
    calculate_education_score,
    calculate_experience_score,
    calculate_language_score,
    calculate_location_score,
    calculate_review_score,
    calculate_specialty_match,
    calculate_urgency_score,
)

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class Matcher:
    """
    Ranks candidate providers for a patient query.

    Scoring is pure: inputs are never mutated and nothing is persisted.
    Configuration and the specialty keyword table are injected so tests
    and deployments can substitute their own.
    """

    def __init__(self, config: Optional[Dict] = None,
                 specialty_table: Optional[SpecialtyTable] = None,
                 current_year: Optional[int] = None):
        """
        Initialize matcher with configuration.

        Args:
            config: Matching configuration, merged over the defaults
            specialty_table: Specialty keyword table (built from config if omitted)
            current_year: Reference year for recency bonuses (defaults to now)
        """
        self.config = merge_configs(get_default_matching_config(), config or {})
        matching_config = self.config.get("matching", {})
        scoring_config = self.config.get("scoring", {})

        self.max_total_score = matching_config.get("max_total_score", 600)
        self.default_limit = matching_config.get("default_limit", 10)
        self.caps = scoring_config.get("caps", {})
        self.education_rules = scoring_config.get("education", {})
        self.award_rules = scoring_config.get("awards", {})
        self.conference_rules = scoring_config.get("conferences", {})

        self.specialty_table = specialty_table if specialty_table is not None else SpecialtyTable.from_config(self.config)
        self.current_year = current_year or datetime.now().year
        self.normalizer = RecordNormalizer(self.config.get("normalization", {}))

        logger.info(f"Initialized Matcher with {len(self.specialty_table)} specialties")

    def _cap(self, name: str, value: float) -> float:
        cap = self.caps.get(name)
        return min(value, cap) if cap is not None else value

    def calculate_breakdown(self, query: PatientQuery, candidate: CandidateProvider) -> MatchBreakdown:
        """
        Compute the twelve sub-scores for one candidate.

        Args:
            query: Patient query
            candidate: Candidate provider

        Returns:
            Sub-score breakdown
        """
        caps = self.caps
        raw = {
            "specialty_match": calculate_specialty_match(
                query.symptoms, candidate.specialization, self.specialty_table,
                cap=caps.get("specialty_match", 100)),
            "education_score": calculate_education_score(
                candidate.education, self.education_rules, cap=caps.get("education_score", 50)),
            "awards_score": calculate_awards_score(
                candidate.awards, self.current_year, self.award_rules, cap=caps.get("awards_score", 40)),
            "conference_score": calculate_conference_score(
                candidate.conferences, self.current_year, self.conference_rules,
                cap=caps.get("conference_score", 35)),
            "review_score": calculate_review_score(
                candidate.rating, candidate.reviews, cap=caps.get("review_score", 50)),
            "experience_score": calculate_experience_score(candidate.experience),
            "availability_score": calculate_availability_score(
                candidate, query.urgency, cap=caps.get("availability_score", 50)),
            "location_score": calculate_location_score(query.location, candidate.location),
            "language_score": calculate_language_score(query.preferred_language, candidate.languages),
            "budget_score": calculate_budget_score(query.budget, candidate.fees),
            "urgency_score": calculate_urgency_score(query.urgency, candidate.type),
            "consultation_type_score": calculate_consultation_type_score(query.consultation_type, candidate),
        }
        return MatchBreakdown(**{name: self._cap(name, raw[name]) for name in SUB_SCORE_NAMES})

    def score(self, query: Any, candidate: Any) -> MatchScore:
        """
        Score one candidate against a patient query.

        Inputs are normalized first, so a partially populated provider
        document scores with default sub-scores instead of failing. A
        document without an id scores with an empty ``doctor_id``.

        Args:
            query: Patient query (typed or raw mapping)
            candidate: Candidate provider (typed or raw mapping)

        Returns:
            Match score with breakdown and percentage
        """
        query = self.normalizer.normalize_query(query)
        candidate = self.normalizer.normalize_candidate(candidate, require_id=False)
        return self._score_normalized(query, candidate)

    def _score_normalized(self, query: PatientQuery, candidate: CandidateProvider) -> MatchScore:
        breakdown = self.calculate_breakdown(query, candidate)
        total_score = breakdown.total()
        percentage = _round_half_up(total_score / self.max_total_score * 100)
        percentage = max(0, min(percentage, 100))

        logger.debug(f"Scored candidate {candidate.id}: total={total_score}, percentage={percentage}")

        return MatchScore(
            doctor_id=candidate.id,
            doctor_name=candidate.name,
            total_score=total_score,
            breakdown=breakdown,
            ai_match_percentage=percentage,
        )

    def rank(self, query: Any, candidates: Sequence[Any]) -> List[MatchScore]:
        """
        Score every candidate and sort by match percentage, highest first.

        The sort is stable: candidates with equal percentages keep their
        input order. Every candidate is scored, including documents
        without an id.

        Args:
            query: Patient query
            candidates: Candidate providers

        Returns:
            One match score per candidate, in rank order
        """
        query = self.normalizer.normalize_query(query)
        scores = [
            self._score_normalized(query, self.normalizer.normalize_candidate(candidate, require_id=False))
            for candidate in (candidates if candidates is not None else [])
        ]
        ranked = sorted(scores, key=lambda match: match.ai_match_percentage, reverse=True)

        logger.info(f"Ranked {len(ranked)} candidates")
        return ranked

    def top_matches(self, query: Any, candidates: Sequence[Any],
                    limit: Optional[int] = None) -> List[MatchScore]:
        """
        Return the best matches for a patient query.

        Args:
            query: Patient query
            candidates: Candidate providers
            limit: Maximum number of matches (defaults to the configured 10)

        Returns:
            The first ``limit`` entries of the ranking
        """
        if limit is None:
            limit = self.default_limit
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")

        return self.rank(query, candidates)[:limit]

    def score_dataframe(self, query: Any, providers_df: pd.DataFrame) -> pd.DataFrame:
        """
        Rank the providers of a DataFrame.

        Args:
            query: Patient query
            providers_df: Provider directory, one row per provider

        Returns:
            DataFrame in rank order with totals, percentage and one column per sub-score
        """
        ranked = self.rank(query, [row for _, row in providers_df.iterrows()])
        return match_scores_to_dataframe(ranked)


def match_scores_to_dataframe(scores: Sequence[MatchScore]) -> pd.DataFrame:
    """
    Flatten match scores into a DataFrame.

    Args:
        scores: Match scores

    Returns:
        DataFrame with one row per score, preserving order
    """
    columns = ["doctor_id", "doctor_name", "total_score", "ai_match_percentage"] + SUB_SCORE_NAMES
    rows = [
        {
            "doctor_id": match.doctor_id,
            "doctor_name": match.doctor_name,
            "total_score": match.total_score,
            "ai_match_percentage": match.ai_match_percentage,
            **match.breakdown.as_dict(),
        }
        for match in scores
    ]
    return pd.DataFrame(rows, columns=columns)


def merge_match_scores(records: Sequence[Dict], scores: Sequence[MatchScore],
                       id_field: str = "id", score_field: str = "aiMatch") -> List[Dict]:
    """
    Attach match percentages to display records and re-sort them.

    Records are copied, never modified. Records without a score get 0 and
    keep their relative order after the scored ones.

    Args:
        records: Provider display records
        scores: Match scores from ``rank``
        id_field: Record key holding the provider id
        score_field: Key to store the percentage under

    Returns:
        Copies of the records sorted by percentage, highest first
    """
    percentages = {match.doctor_id: match.ai_match_percentage for match in scores}

    merged = []
    for record in records:
        record_id = record.get(id_field)
        enriched = dict(record)
        enriched[score_field] = percentages.get(str(record_id) if record_id is not None else None, 0)
        merged.append((record_id is not None and str(record_id) in percentages, enriched))

    merged.sort(key=lambda item: (item[0], item[1][score_field]), reverse=True)
    return [record for _, record in merged]


def calculate_match_score(query: Any, candidate: Any, config: Optional[Dict] = None) -> MatchScore:
    """
    Convenience function to score one candidate.

    Args:
        query: Patient query
        candidate: Candidate provider
        config: Matching configuration

    Returns:
        Match score
    """
    return Matcher(config).score(query, candidate)


def rank_candidates(query: Any, candidates: Sequence[Any], config: Optional[Dict] = None) -> List[MatchScore]:
    """
    Convenience function to rank candidates.

    Args:
        query: Patient query
        candidates: Candidate providers
        config: Matching configuration

    Returns:
        Match scores in rank order
    """
    return Matcher(config).rank(query, candidates)


def get_top_matches(query: Any, candidates: Sequence[Any], limit: int = 10,
                    config: Optional[Dict] = None) -> List[MatchScore]:
    """
    Convenience function to get the best matches.

    Args:
        query: Patient query
        candidates: Candidate providers
        limit: Maximum number of matches
        config: Matching configuration

    Returns:
        Up to ``limit`` match scores in rank order
    """
    matcher = Matcher(config)
    matches = matcher.top_matches(query, candidates, limit)
    logger.info(f"Selected top {len(matches)} of {len(candidates)} candidates")
    return matches

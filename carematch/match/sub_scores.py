"""
Sub-score functions for CareMatch.

Each function computes one of the twelve independent factors of a
candidate's match score. All of them are pure and never raise on missing
or malformed input; absent data falls back to the factor's neutral score.
"""

import logging
from typing import Dict, Mapping, Optional, Sequence

from .models import (
    CandidateProvider,
    ConsultationType,
    EducationEntry,
    ExperienceEntry,
    ProviderType,
    RecognitionEntry,
    Urgency,
)

logger = logging.getLogger(__name__)

DEFAULT_EDUCATION_RULES = {
    "degree_tiers": [
        {"tokens": ["mbbs", "md"], "points": 25},
        {"tokens": ["ms", "mch"], "points": 20},
        {"tokens": ["phd"], "points": 15},
        {"tokens": ["bachelor", "master"], "points": 10},
    ],
    "prestigious_institutions": ["harvard", "stanford", "oxford", "cambridge", "johns hopkins", "mayo clinic"],
    "prestige_bonus": 10,
}

DEFAULT_AWARD_RULES = {
    "tiers": [
        {"keywords": ["national", "international"], "points": 15},
        {"keywords": ["best", "excellence"], "points": 10},
    ],
    "base_points": 5,
    "recent_years": 5,
    "recent_bonus": 5,
}

DEFAULT_CONFERENCE_RULES = {
    "tiers": [
        {"keywords": ["international", "world"], "points": 12},
        {"keywords": ["national", "annual"], "points": 8},
    ],
    "base_points": 5,
    "recent_years": 2,
    "recent_bonus": 3,
}

# (minimum review count, bonus points), highest tier first
REVIEW_COUNT_TIERS = [(100, 20), (50, 15), (20, 10), (10, 5)]

# (minimum total years, score), highest tier first
EXPERIENCE_TIERS = [(20, 40), (15, 35), (10, 30), (5, 25), (2, 20)]


def _lower(value) -> str:
    return value.lower() if isinstance(value, str) else ""


def _contains_any(text: str, tokens: Sequence[str]) -> bool:
    return any(token and token in text for token in tokens)


def calculate_specialty_match(symptoms: Sequence[str], specialization: Sequence[str],
                              specialty_table: Mapping[str, Sequence[str]],
                              cap: float = 100) -> float:
    """
    Score how well the candidate's specialties cover the patient's symptoms.

    A symptom selects every specialty whose keywords it contains. The
    candidate earns the full score if it claims any selected specialty,
    compared as case-insensitive substrings in either direction.

    Args:
        symptoms: Free-text patient symptoms
        specialization: Candidate specialty tags
        specialty_table: Specialty name to lowercase keywords
        cap: Score for a full match

    Returns:
        50 with no symptoms, 25 with no specialization, else cap or 0
    """
    if not symptoms:
        return 50
    tags = [_lower(tag) for tag in (specialization or ()) if isinstance(tag, str) and tag]
    if not tags:
        return 25

    for symptom in symptoms:
        symptom_text = _lower(symptom)
        if not symptom_text:
            continue
        for specialty, keywords in specialty_table.items():
            if not _contains_any(symptom_text, keywords):
                continue
            name = specialty.lower()
            if any(name in tag or tag in name for tag in tags):
                return cap

    return 0


def calculate_education_score(education: Sequence[EducationEntry],
                              rules: Optional[Dict] = None, cap: float = 50) -> float:
    """
    Score degrees and institutions.

    Each entry earns the points of the first degree tier whose token
    appears in its course, plus a bonus for a prestigious institution.

    Args:
        education: Candidate education entries
        rules: Degree tiers, institution list and bonus
        cap: Maximum score

    Returns:
        Education score
    """
    if not education:
        return 0
    rules = rules or DEFAULT_EDUCATION_RULES
    tiers = rules.get("degree_tiers", [])
    institutions = [inst.lower() for inst in rules.get("prestigious_institutions", [])]
    bonus = rules.get("prestige_bonus", 10)

    score = 0
    for entry in education:
        if entry is None:
            continue
        course = _lower(entry.course)
        for tier in tiers:
            if _contains_any(course, tier.get("tokens", [])):
                score += tier.get("points", 0)
                break
        if _contains_any(_lower(entry.institution), institutions):
            score += bonus

    return min(score, cap)


def _recognition_score(entries: Sequence[RecognitionEntry], rules: Dict,
                       current_year: int, cap: float) -> float:
    if not entries:
        return 0
    tiers = rules.get("tiers", [])
    base_points = rules.get("base_points", 5)
    recent_years = rules.get("recent_years", 0)
    recent_bonus = rules.get("recent_bonus", 0)

    score = 0
    for entry in entries:
        if entry is None:
            continue
        text = _lower(entry.value)
        for tier in tiers:
            if _contains_any(text, tier.get("keywords", [])):
                score += tier.get("points", 0)
                break
        else:
            score += base_points

        if entry.year and entry.year >= current_year - recent_years:
            score += recent_bonus

    return min(score, cap)


def calculate_awards_score(awards: Sequence[RecognitionEntry], current_year: int,
                           rules: Optional[Dict] = None, cap: float = 40) -> float:
    """Score awards, favouring national recognition and recent years."""
    return _recognition_score(awards, rules or DEFAULT_AWARD_RULES, current_year, cap)


def calculate_conference_score(conferences: Sequence[RecognitionEntry], current_year: int,
                               rules: Optional[Dict] = None, cap: float = 35) -> float:
    """Score conference participation, favouring international and recent events."""
    return _recognition_score(conferences, rules or DEFAULT_CONFERENCE_RULES, current_year, cap)


def calculate_review_score(rating: Optional[float], reviews: Optional[int], cap: float = 50) -> float:
    """
    Score the rating, with a bonus for a larger number of reviews.

    Args:
        rating: Average rating from 0 to 5
        reviews: Number of reviews
        cap: Maximum score

    Returns:
        Review score, 0 when the candidate is unrated
    """
    if not rating:
        return 0

    score = rating * 10
    review_count = reviews or 0
    for minimum, bonus in REVIEW_COUNT_TIERS:
        if review_count >= minimum:
            score += bonus
            break

    return min(score, cap)


def calculate_experience_score(experience: Sequence[ExperienceEntry]) -> float:
    """
    Step score over the total years across experience entries.

    Args:
        experience: Candidate experience entries

    Returns:
        40, 35, 30, 25, 20 or 10 by tier; 0 with no entries
    """
    if not experience:
        return 0

    total_years = sum(entry.years for entry in experience if entry is not None and entry.years)
    for minimum, score in EXPERIENCE_TIERS:
        if total_years >= minimum:
            return score
    return 10


def calculate_availability_score(candidate: CandidateProvider, urgency: Urgency, cap: float = 50) -> float:
    """
    Score availability against the patient's urgency.

    Args:
        candidate: Candidate provider
        urgency: Patient urgency
        cap: Maximum score

    Returns:
        Availability score, 0 when the candidate is unavailable
    """
    if not candidate.available:
        return 0

    score = 30
    if urgency is Urgency.HIGH:
        score += 20
    elif urgency is Urgency.MEDIUM:
        score += 10

    next_available = candidate.next_available if isinstance(candidate.next_available, str) else ""
    if "Today" in next_available:
        score += 15
    elif "Tomorrow" in next_available:
        score += 10

    return min(score, cap)


def calculate_location_score(patient_location: Optional[str], doctor_location: Optional[str]) -> float:
    """
    Score proximity by comparing free-text locations.

    Args:
        patient_location: Patient location
        doctor_location: Candidate location

    Returns:
        50 exact, 40 containment, 30 shared word, 20 otherwise, 25 if either is missing
    """
    patient_loc = _lower(patient_location)
    doctor_loc = _lower(doctor_location)
    if not patient_loc or not doctor_loc:
        return 25

    if patient_loc == doctor_loc:
        return 50
    if patient_loc in doctor_loc or doctor_loc in patient_loc:
        return 40
    if set(patient_loc.split()) & set(doctor_loc.split()):
        return 30
    return 20


def calculate_language_score(preferred_language: Optional[str], languages: Sequence[str]) -> float:
    """Score 50 when any candidate language contains the preferred one, else 25."""
    patient_lang = _lower(preferred_language)
    if not patient_lang or not languages:
        return 25

    if any(patient_lang in _lower(language) for language in languages):
        return 50
    return 25


def calculate_budget_score(budget: Optional[float], fees: Optional[float]) -> float:
    """
    Score the candidate's fee against the patient's budget.

    Args:
        budget: Patient budget
        fees: Candidate fee

    Returns:
        50, 40, 30 or 10 as the fee exceeds 1.0x, 1.2x and 1.5x the budget;
        25 when either value is missing or zero
    """
    if not budget or not fees:
        return 25

    if fees <= budget:
        return 50
    elif fees <= budget * 1.2:
        return 40
    elif fees <= budget * 1.5:
        return 30
    else:
        return 10


def calculate_urgency_score(urgency: Urgency, provider_type: ProviderType) -> float:
    """AI agents suit urgent cases, human doctors suit non-urgent ones."""
    if urgency is Urgency.HIGH and provider_type is ProviderType.AI:
        return 50
    elif urgency is Urgency.LOW and provider_type is ProviderType.HUMAN:
        return 50
    elif urgency is Urgency.MEDIUM:
        return 40
    else:
        return 30


def calculate_consultation_type_score(consultation_type: Optional[ConsultationType],
                                      candidate: CandidateProvider) -> float:
    """
    Score whether the candidate offers the requested consultation channel.

    Args:
        consultation_type: Requested channel
        candidate: Candidate provider

    Returns:
        50 when the channel fits, 30 when it does not, 25 when none was requested
    """
    if consultation_type is None:
        return 25

    if consultation_type is ConsultationType.VIDEO and candidate.online_therapy:
        return 50
    elif consultation_type is ConsultationType.IN_PERSON and not candidate.online_therapy:
        return 50
    elif consultation_type is ConsultationType.CHAT and candidate.type is ProviderType.AI:
        return 50
    else:
        return 30


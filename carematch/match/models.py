"""
Data models for CareMatch.

Typed records for patient queries, candidate providers and match scores.
Provider documents arrive partially populated, so every candidate field
besides the identifiers is optional.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Urgency(Enum):
    """Patient-declared severity tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConsultationType(Enum):
    """Requested consultation channel."""
    VIDEO = "video"
    AUDIO = "audio"
    CHAT = "chat"
    IN_PERSON = "in-person"


class ProviderType(Enum):
    """AI agents versus licensed human practitioners."""
    AI = "AI"
    HUMAN = "Human"


@dataclass(frozen=True)
class PatientQuery:
    """Search request built from the patient's filters."""
    symptoms: Tuple[str, ...] = ()
    condition: Optional[str] = None
    specialty: Optional[str] = None
    location: Optional[str] = None
    urgency: Urgency = Urgency.MEDIUM
    preferred_language: Optional[str] = None
    budget: Optional[float] = None
    consultation_type: Optional[ConsultationType] = None


@dataclass(frozen=True)
class ExperienceEntry:
    years: Optional[int] = None
    title: Optional[str] = None
    organization: Optional[str] = None


@dataclass(frozen=True)
class EducationEntry:
    course: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class RecognitionEntry:
    """An award or a conference appearance."""
    value: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class CandidateProvider:
    """Provider directory record for a human doctor or an AI agent."""
    id: str
    name: str
    type: ProviderType = ProviderType.HUMAN
    specialization: Tuple[str, ...] = ()
    location: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    experience: Tuple[ExperienceEntry, ...] = ()
    education: Tuple[EducationEntry, ...] = ()
    awards: Tuple[RecognitionEntry, ...] = ()
    conferences: Tuple[RecognitionEntry, ...] = ()
    languages: Tuple[str, ...] = ()
    fees: Optional[float] = None
    available: bool = False
    online_therapy: bool = False
    next_available: Optional[str] = None

    # Carried by provider documents but not used for scoring
    specialty: Optional[str] = None
    consultation_success_rate: Optional[float] = None
    response_time: Optional[float] = None
    total_consultations: Optional[int] = None
    recent_consultations: Optional[int] = None
    verified: Optional[bool] = None

    @property
    def total_experience_years(self) -> int:
        return sum(entry.years for entry in self.experience if entry.years)


# Wire names used by the search pages
BREAKDOWN_KEYS = {
    "specialty_match": "specialtyMatch",
    "education_score": "educationScore",
    "awards_score": "awardsScore",
    "conference_score": "conferenceScore",
    "review_score": "reviewScore",
    "experience_score": "experienceScore",
    "availability_score": "availabilityScore",
    "location_score": "locationScore",
    "language_score": "languageScore",
    "budget_score": "budgetScore",
    "urgency_score": "urgencyScore",
    "consultation_type_score": "consultationTypeScore",
}


@dataclass(frozen=True)
class MatchBreakdown:
    """The twelve sub-scores of one candidate."""
    specialty_match: float
    education_score: float
    awards_score: float
    conference_score: float
    review_score: float
    experience_score: float
    availability_score: float
    location_score: float
    language_score: float
    budget_score: float
    urgency_score: float
    consultation_type_score: float

    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> Dict[str, float]:
        """Sub-scores keyed by attribute name."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_dict(self) -> Dict[str, float]:
        """Sub-scores keyed by wire name."""
        return {BREAKDOWN_KEYS[name]: value for name, value in self.as_dict().items()}


@dataclass(frozen=True)
class MatchScore:
    """Scoring result for one candidate."""
    doctor_id: str
    doctor_name: str
    total_score: float
    breakdown: MatchBreakdown
    ai_match_percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "doctorId": self.doctor_id,
            "doctorName": self.doctor_name,
            "totalScore": self.total_score,
            "breakdown": self.breakdown.to_dict(),
            "aiMatchPercentage": self.ai_match_percentage,
        }

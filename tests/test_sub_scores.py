"""
Unit tests for the sub-score functions.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from carematch.match.models import (
    CandidateProvider,
    ConsultationType,
    EducationEntry,
    ExperienceEntry,
    ProviderType,
    RecognitionEntry,
    Urgency,
)
from carematch.match.sub_scores import (
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
from carematch.normalize.config import SpecialtyTable


class TestSpecialtyMatch:
    """Test cases for symptom to specialty matching."""

    def setup_method(self):
        """Setup test fixtures."""
        self.table = SpecialtyTable({
            "Cardiology": ("chest pain", "heart"),
            "Dermatology": ("rash", "itch"),
        })

    def test_no_symptoms_scores_default(self):
        """Test no symptoms scores default."""
        assert calculate_specialty_match([], ["Cardiology"], self.table) == 50
        assert calculate_specialty_match([], [], self.table) == 50

    def test_no_specialization_scores_default(self):
        """Test no specialization scores default."""
        assert calculate_specialty_match(["chest pain"], [], self.table) == 25
        assert calculate_specialty_match(["chest pain"], None, self.table) == 25
        assert calculate_specialty_match(["chest pain"], [None, 5], self.table) == 25
        assert calculate_specialty_match(["chest pain"], [""], self.table) == 25

    def test_full_match(self):
        """Test full match."""
        assert calculate_specialty_match(["Chest pain since morning"], ["Cardiology"], self.table) == 100
        assert calculate_specialty_match(["heart racing"], ["Interventional Cardiology"], self.table) == 100
        assert calculate_specialty_match(["heart racing"], ["cardio"], self.table) == 100

    def test_best_symptom_wins(self):
        """Test best symptom wins."""
        score = calculate_specialty_match(["headache", "skin rash"], ["Dermatology"], self.table)
        assert score == 100

    def test_no_match(self):
        """Test no match."""
        assert calculate_specialty_match(["chest pain"], ["Dermatology"], self.table) == 0
        assert calculate_specialty_match(["sneezing"], ["Cardiology"], self.table) == 0

    def test_substitute_table(self):
        """Test substitute table."""
        table = SpecialtyTable({"Sleep Medicine": ("insomnia",)})
        assert calculate_specialty_match(["insomnia"], ["Sleep Medicine"], table) == 100
        assert calculate_specialty_match(["chest pain"], ["Cardiology"], table) == 0


class TestEducationScore:
    """Test cases for education scoring."""

    def test_degree_tiers(self):
        """Test degree tiers."""
        assert calculate_education_score([EducationEntry(course="MBBS")]) == 25
        assert calculate_education_score([EducationEntry(course="MS Orthopedics")]) == 20
        assert calculate_education_score([EducationEntry(course="PhD")]) == 15
        assert calculate_education_score([EducationEntry(course="Bachelor of Science")]) == 10
        assert calculate_education_score([EducationEntry(course="Diploma")]) == 0

    def test_prestigious_institution_bonus(self):
        """Test prestigious institution bonus."""
        entry = EducationEntry(course="MBBS", institution="Harvard Medical School")
        assert calculate_education_score([entry]) == 35

        entry = EducationEntry(course=None, institution="Johns Hopkins University")
        assert calculate_education_score([entry]) == 10

    def test_capped(self):
        """Test capped."""
        entries = [
            EducationEntry(course="MBBS", institution="Harvard"),
            EducationEntry(course="MD", institution="Stanford"),
        ]
        assert calculate_education_score(entries) == 50

    def test_empty(self):
        """Test empty."""
        assert calculate_education_score([]) == 0
        assert calculate_education_score(None) == 0
        assert calculate_education_score([None]) == 0


class TestRecognitionScores:
    """Test cases for awards and conference scoring."""

    def test_awards(self):
        """Test awards."""
        awards = [
            RecognitionEntry(value="National Excellence Award", year=2024),
            RecognitionEntry(value="Best Doctor", year=2010),
            RecognitionEntry(value="Community service"),
        ]
        assert calculate_awards_score(awards, current_year=2026) == 35

    def test_award_recency_window(self):
        """Test award recency window."""
        assert calculate_awards_score([RecognitionEntry(value="Service", year=2021)], current_year=2026) == 10
        assert calculate_awards_score([RecognitionEntry(value="Service", year=2020)], current_year=2026) == 5

    def test_awards_capped(self):
        """Test awards capped."""
        awards = [
            RecognitionEntry(value="National Excellence Award", year=2024),
            RecognitionEntry(value="International Award", year=2025),
            RecognitionEntry(value="Best Doctor", year=2023),
        ]
        assert calculate_awards_score(awards, current_year=2026) == 40

    def test_conferences(self):
        """Test conferences."""
        conferences = [
            RecognitionEntry(value="World Cardiology Congress", year=2025),
            RecognitionEntry(value="Annual Meet", year=2020),
            RecognitionEntry(value="Local workshop"),
        ]
        assert calculate_conference_score(conferences, current_year=2026) == 28

    def test_conference_recency_window(self):
        """Test conference recency window."""
        assert calculate_conference_score([RecognitionEntry(value="Talk", year=2024)], current_year=2026) == 8
        assert calculate_conference_score([RecognitionEntry(value="Talk", year=2023)], current_year=2026) == 5

    def test_conferences_capped(self):
        """Test conferences capped."""
        conferences = [RecognitionEntry(value="International Summit", year=2026)] * 3
        assert calculate_conference_score(conferences, current_year=2026) == 35

    def test_empty(self):
        """Test empty."""
        assert calculate_awards_score([], current_year=2026) == 0
        assert calculate_conference_score(None, current_year=2026) == 0


class TestReviewAndExperience:
    """Test cases for review and experience scoring."""

    def test_review_score(self):
        """Test review score."""
        assert calculate_review_score(5, 150) == 50
        assert calculate_review_score(3, 25) == 40
        assert calculate_review_score(3, 5) == 30
        assert calculate_review_score(2, 100) == 40
        assert calculate_review_score(4.5, 60) == 50
        assert calculate_review_score(3, 10) == 35
        assert calculate_review_score(3, 50) == 45

    def test_unrated(self):
        """Test unrated."""
        assert calculate_review_score(0, 500) == 0
        assert calculate_review_score(None, 500) == 0

    @pytest.mark.parametrize("years,expected", [
        (25, 40), (20, 40), (19, 35), (15, 35), (14, 30), (10, 30),
        (9, 25), (5, 25), (4, 20), (2, 20), (1, 10), (0, 10),
    ])
    def test_experience_tiers(self, years, expected):
        """Test experience tiers."""
        assert calculate_experience_score([ExperienceEntry(years=years)]) == expected

    def test_experience_sums_entries(self):
        """Test experience sums entries."""
        entries = [ExperienceEntry(years=10), ExperienceEntry(years=None), ExperienceEntry(years=10)]
        assert calculate_experience_score(entries) == 40

    def test_no_experience(self):
        """Test no experience."""
        assert calculate_experience_score([]) == 0


class TestAvailabilityScore:
    """Test cases for availability scoring."""

    def _candidate(self, available=True, next_available=None):
        return CandidateProvider(id="d1", name="Dr. A", available=available, next_available=next_available)

    def test_unavailable(self):
        """Test unavailable."""
        for urgency in Urgency:
            assert calculate_availability_score(self._candidate(available=False, next_available="Today"), urgency) == 0

    def test_urgency_bonus(self):
        """Test urgency bonus."""
        assert calculate_availability_score(self._candidate(), Urgency.LOW) == 30
        assert calculate_availability_score(self._candidate(), Urgency.MEDIUM) == 40
        assert calculate_availability_score(self._candidate(), Urgency.HIGH) == 50

    def test_next_available_bonus(self):
        """Test next available bonus."""
        assert calculate_availability_score(self._candidate(next_available="Today, 5 PM"), Urgency.LOW) == 45
        assert calculate_availability_score(self._candidate(next_available="Tomorrow"), Urgency.LOW) == 40
        assert calculate_availability_score(self._candidate(next_available="Tomorrow"), Urgency.MEDIUM) == 50
        assert calculate_availability_score(self._candidate(next_available="Next week"), Urgency.LOW) == 30

    def test_capped(self):
        """Test capped."""
        assert calculate_availability_score(self._candidate(next_available="Today"), Urgency.HIGH) == 50


class TestQueryFitScores:
    """Test cases for location, language, budget, urgency and consultation type."""

    def test_location_score(self):
        """Test location score."""
        assert calculate_location_score("New York", "new york") == 50
        assert calculate_location_score("Brooklyn, New York", "New York") == 40
        assert calculate_location_score("New York", "York City") == 30
        assert calculate_location_score("Boston", "Chicago") == 20
        assert calculate_location_score(None, "Chicago") == 25
        assert calculate_location_score("Boston", "") == 25

    def test_language_score(self):
        """Test language score."""
        assert calculate_language_score("english", ["English", "Hindi"]) == 50
        assert calculate_language_score("French", ["English"]) == 25
        assert calculate_language_score(None, ["English"]) == 25
        assert calculate_language_score("English", []) == 25

    def test_budget_score(self):
        """Test budget score."""
        assert calculate_budget_score(100, 50) == 50
        assert calculate_budget_score(100, 100) == 50
        assert calculate_budget_score(100, 120) == 40
        assert calculate_budget_score(100, 121) == 30
        assert calculate_budget_score(100, 150) == 30
        assert calculate_budget_score(100, 151) == 10
        assert calculate_budget_score(None, 100) == 25
        assert calculate_budget_score(100, 0) == 25

    def test_budget_monotonic(self):
        """Test budget monotonic."""
        scores = [calculate_budget_score(100, fee) for fee in range(1, 300)]
        assert all(a >= b for a, b in zip(scores, scores[1:]))

    def test_urgency_score(self):
        """Test urgency score."""
        assert calculate_urgency_score(Urgency.HIGH, ProviderType.AI) == 50
        assert calculate_urgency_score(Urgency.LOW, ProviderType.HUMAN) == 50
        assert calculate_urgency_score(Urgency.MEDIUM, ProviderType.AI) == 40
        assert calculate_urgency_score(Urgency.MEDIUM, ProviderType.HUMAN) == 40
        assert calculate_urgency_score(Urgency.HIGH, ProviderType.HUMAN) == 30
        assert calculate_urgency_score(Urgency.LOW, ProviderType.AI) == 30

    def test_consultation_type_score(self):
        """Test consultation type score."""
        online_ai = CandidateProvider(id="a", name="A", type=ProviderType.AI, online_therapy=True)
        clinic = CandidateProvider(id="h", name="H", type=ProviderType.HUMAN, online_therapy=False)

        assert calculate_consultation_type_score(None, clinic) == 25
        assert calculate_consultation_type_score(ConsultationType.VIDEO, online_ai) == 50
        assert calculate_consultation_type_score(ConsultationType.VIDEO, clinic) == 30
        assert calculate_consultation_type_score(ConsultationType.IN_PERSON, clinic) == 50
        assert calculate_consultation_type_score(ConsultationType.IN_PERSON, online_ai) == 30
        assert calculate_consultation_type_score(ConsultationType.CHAT, online_ai) == 50
        assert calculate_consultation_type_score(ConsultationType.CHAT, clinic) == 30
        assert calculate_consultation_type_score(ConsultationType.AUDIO, online_ai) == 30


if __name__ == "__main__":
    pytest.main([__file__])

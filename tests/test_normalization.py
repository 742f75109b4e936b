"""
Unit tests for normalization and configuration modules.
"""

import tempfile
import pytest
import pandas as pd
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from carematch.match.models import (
    CandidateProvider,
    ConsultationType,
    ExperienceEntry,
    PatientQuery,
    ProviderType,
    Urgency,
)
from carematch.normalize.config import (
    SpecialtyTable,
    get_default_matching_config,
    load_matching_config,
    merge_configs,
    save_matching_config,
    validate_matching_config,
)
from carematch.normalize.record_normalizer import (
    RecordNormalizer,
    normalize_candidate_providers,
    normalize_patient_query,
)


class TestRecordNormalizer:
    """Test cases for record normalization."""

    def setup_method(self):
        """Setup test fixtures."""
        self.normalizer = RecordNormalizer({"list_separator": ";"})

    def test_to_number(self):
        """Test to number."""
        assert self.normalizer.to_number("12 years") == 12
        assert self.normalizer.to_number("4.5") == 4.5
        assert self.normalizer.to_number(3) == 3
        assert self.normalizer.to_number("n/a") is None
        assert self.normalizer.to_number(None) is None
        assert self.normalizer.to_number(float("nan")) is None
        assert self.normalizer.to_number(True) is None

    def test_to_text(self):
        """Test to text."""
        assert self.normalizer.to_text("  Mumbai  ") == "Mumbai"
        assert self.normalizer.to_text("   ") is None
        assert self.normalizer.to_text(42) == "42"
        assert self.normalizer.to_text(42.0) == "42"
        assert self.normalizer.to_text(["a"]) is None

    def test_to_bool(self):
        """Test to bool."""
        assert self.normalizer.to_bool(True) is True
        assert self.normalizer.to_bool("yes") is True
        assert self.normalizer.to_bool("false") is False
        assert self.normalizer.to_bool(None) is False
        assert self.normalizer.to_bool(1) is True

    def test_to_text_tuple(self):
        """Test to text tuple."""
        assert self.normalizer.to_text_tuple(["English", None, 5, " Hindi "]) == ("English", "Hindi")
        assert self.normalizer.to_text_tuple("English; Hindi") == ("English", "Hindi")
        assert self.normalizer.to_text_tuple("Cardiology") == ("Cardiology",)
        assert self.normalizer.to_text_tuple({"a": 1}) == ()
        assert self.normalizer.to_text_tuple(None) == ()

    def test_normalize_query(self):
        """Test normalize query."""
        query = self.normalizer.normalize_query({
            "symptoms": ["chest pain", ""],
            "urgency": "HIGH",
            "preferredLanguage": "English",
            "budget": "150",
            "consultationType": "in-person",
            "location": "Pune",
        })

        assert query.symptoms == ("chest pain",)
        assert query.urgency is Urgency.HIGH
        assert query.preferred_language == "English"
        assert query.budget == 150
        assert query.consultation_type is ConsultationType.IN_PERSON
        assert query.location == "Pune"

    def test_normalize_query_defaults(self):
        """Test normalize query defaults."""
        query = self.normalizer.normalize_query({"urgency": "asap", "consultationType": "telepathy", "budget": -5})

        assert query.symptoms == ()
        assert query.urgency is Urgency.MEDIUM
        assert query.consultation_type is None
        assert query.budget is None

        assert self.normalizer.normalize_query(None).urgency is Urgency.MEDIUM

    def test_normalize_candidate(self):
        """Test normalize candidate."""
        candidate = self.normalizer.normalize_candidate({
            "id": "doc-1",
            "name": "Dr. Rao",
            "type": "AI",
            "specialization": ["Cardiology"],
            "rating": "4.8",
            "reviews": 120.0,
            "experience": [{"years": "12 years"}, {"years": None}, "junk"],
            "education": [{"course": "MBBS", "institution": "AIIMS", "year": "2005"}],
            "awards": [{"value": "Best Doctor", "year": 2022}],
            "languages": ["English", "Hindi"],
            "fees": 500,
            "available": True,
            "onlineTherapy": "true",
            "nextAvailable": "Today",
            "verified": True,
        })

        assert candidate.id == "doc-1"
        assert candidate.type is ProviderType.AI
        assert candidate.rating == 4.8
        assert candidate.reviews == 120
        assert candidate.total_experience_years == 12
        assert len(candidate.experience) == 2
        assert candidate.education[0].year == 2005
        assert candidate.awards[0].value == "Best Doctor"
        assert candidate.online_therapy is True
        assert candidate.next_available == "Today"
        assert candidate.verified is True
        assert candidate.conferences == ()

    def test_normalize_candidate_without_id(self):
        """Test normalize candidate without ID."""
        assert self.normalizer.normalize_candidate({"name": "Nobody"}) is None
        assert self.normalizer.normalize_candidate("not a document") is None

    def test_normalize_candidate_without_id_for_scoring(self):
        """Test normalize candidate without ID for scoring."""
        candidate = self.normalizer.normalize_candidate({"name": "Nobody", "fees": "200"}, require_id=False)
        assert candidate.id == ""
        assert candidate.name == "Nobody"
        assert candidate.fees == 200

        empty = self.normalizer.normalize_candidate(42, require_id=False)
        assert empty.id == ""
        assert empty.name == ""

    def test_typed_records_are_coerced(self):
        """Test typed records are coerced."""
        query = self.normalizer.normalize_query(
            PatientQuery(symptoms="rash", urgency=Urgency.LOW, consultation_type=ConsultationType.CHAT, budget="90"))
        assert query.symptoms == ("rash",)
        assert query.urgency is Urgency.LOW
        assert query.consultation_type is ConsultationType.CHAT
        assert query.budget == 90

        candidate = self.normalizer.normalize_candidate(CandidateProvider(
            id="t1", name="Dr. Typed", type=ProviderType.AI, rating="4.5",
            experience=(ExperienceEntry(years=3), {"years": "4"}, "junk"),
        ))
        assert candidate.type is ProviderType.AI
        assert candidate.rating == 4.5
        assert candidate.experience == (ExperienceEntry(years=3), ExperienceEntry(years=4))

    def test_normalize_candidate_numeric_id(self):
        """Test normalize candidate numeric ID."""
        assert self.normalizer.normalize_candidate({"id": 7}).id == "7"
        assert self.normalizer.normalize_candidate({"uid": "abc"}).id == "abc"

    def test_normalize_pandas_row(self):
        """Test normalize pandas row."""
        df = pd.DataFrame([
            {"id": "a", "name": "A", "rating": 4.0, "fees": float("nan"), "available": True},
            {"id": "b", "name": "B", "rating": float("nan"), "fees": 300.0, "available": False},
        ])

        candidates = self.normalizer.normalize_dataframe(df)

        assert [c.id for c in candidates] == ["a", "b"]
        assert candidates[0].fees is None
        assert candidates[0].available is True
        assert candidates[1].rating is None
        assert candidates[1].fees == 300

    def test_normalize_candidates_skips_unusable(self):
        """Test normalize candidates skips unusable."""
        candidates = normalize_candidate_providers([{"id": "a"}, None, {"name": "no id"}, {"id": "b"}])
        assert [c.id for c in candidates] == ["a", "b"]

    def test_convenience_query(self):
        """Test convenience query."""
        assert normalize_patient_query({"urgency": "low"}).urgency is Urgency.LOW


class TestMatchingConfig:
    """Test cases for configuration loading."""

    def setup_method(self):
        """Setup test fixtures."""
        self.temp_dir = tempfile.mkdtemp()

    def test_defaults_are_valid(self):
        """Test defaults are valid."""
        assert validate_matching_config(get_default_matching_config())

    def test_missing_file_uses_defaults(self):
        """Test missing file uses defaults."""
        config = load_matching_config(str(Path(self.temp_dir) / "missing.yaml"))
        assert config == get_default_matching_config()

    def test_partial_file_merges_over_defaults(self):
        """Test partial file merges over defaults."""
        config_path = Path(self.temp_dir) / "partial.yaml"
        config_path.write_text("matching:\n  default_limit: 3\n")

        config = load_matching_config(str(config_path))

        assert config["matching"]["default_limit"] == 3
        assert config["matching"]["max_total_score"] == 600
        assert config["scoring"]["caps"]["specialty_match"] == 100

    def test_malformed_file_uses_defaults(self):
        """Test malformed file uses defaults."""
        config_path = Path(self.temp_dir) / "broken.yaml"
        config_path.write_text("matching: [unclosed\n")

        assert load_matching_config(str(config_path)) == get_default_matching_config()

    def test_repository_config_is_valid(self):
        """Test repository config is valid."""
        config_path = Path(__file__).parent.parent / "config" / "carematch.yaml"
        config = load_matching_config(str(config_path))
        assert validate_matching_config(config)
        assert len(SpecialtyTable.from_config(config)) > 0

    def test_validate_rejects_bad_values(self):
        """Test validate rejects bad values."""
        config = get_default_matching_config()
        config["matching"]["max_total_score"] = 0
        assert not validate_matching_config(config)

        config = get_default_matching_config()
        config["scoring"]["caps"]["budget_score"] = "high"
        assert not validate_matching_config(config)

        config = get_default_matching_config()
        del config["clinical_specialties"]
        assert not validate_matching_config(config)

    def test_merge_configs(self):
        """Test merge configs."""
        merged = merge_configs({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"b": 10}, "e": 5})
        assert merged == {"a": {"b": 10, "c": 2}, "d": 3, "e": 5}

    def test_save_and_reload(self):
        """Test save and reload."""
        config = get_default_matching_config()
        config["matching"]["default_limit"] = 5
        config_path = str(Path(self.temp_dir) / "saved" / "carematch.yaml")

        assert save_matching_config(config, config_path)
        assert load_matching_config(config_path)["matching"]["default_limit"] == 5


class TestSpecialtyTable:
    """Test cases for the specialty keyword table."""

    def test_keywords_lowercased(self):
        """Test keywords lowercased."""
        table = SpecialtyTable.from_list([{"name": "Cardiology", "keywords": ["Chest Pain", "HEART"]}])
        assert table["Cardiology"] == ("chest pain", "heart")

    def test_invalid_entries_skipped(self):
        """Test invalid entries skipped."""
        table = SpecialtyTable.from_list([{"keywords": ["x"]}, "junk", {"name": "ENT", "keywords": "ear pain"}])
        assert list(table) == ["ENT"]
        assert table["ENT"] == ("ear pain",)

    def test_immutable(self):
        """Test immutable."""
        table = SpecialtyTable({"Cardiology": ("heart",)})
        with pytest.raises(TypeError):
            table["Neurology"] = ("headache",)
        with pytest.raises(TypeError):
            table._entries["Neurology"] = ("headache",)

    def test_from_config_defaults(self):
        """Test from config defaults."""
        table = SpecialtyTable.from_config({})
        assert "Cardiology" in table


if __name__ == "__main__":
    pytest.main([__file__])

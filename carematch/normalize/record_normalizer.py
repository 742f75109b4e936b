"""
Record normalization for CareMatch.

Coerces weakly typed provider documents and search filters into typed
records. Documents come from a schema-less store, so any field may be
missing, null, NaN or of the wrong type; such fields become the record's
"no signal" default instead of raising.
"""

import dataclasses
import logging
import math
import numbers
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..match.models import (
    CandidateProvider,
    ConsultationType,
    EducationEntry,
    ExperienceEntry,
    PatientQuery,
    ProviderType,
    RecognitionEntry,
    Urgency,
)

logger = logging.getLogger(__name__)

# camelCase document keys accepted alongside the snake_case field names
FIELD_ALIASES = {
    "preferred_language": ["preferredLanguage", "language"],
    "consultation_type": ["consultationType"],
    "online_therapy": ["onlineTherapy"],
    "next_available": ["nextAvailable"],
    "consultation_success_rate": ["consultationSuccessRate"],
    "response_time": ["responseTime"],
    "total_consultations": ["totalConsultations"],
    "recent_consultations": ["recentConsultations"],
    "specialization": ["specializations"],
    "id": ["doctorId", "uid", "provider_id"],
}

TRUE_STRINGS = {"true", "yes", "y", "1"}
FALSE_STRINGS = {"false", "no", "n", "0", ""}


def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    return isinstance(value, float) and math.isnan(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_))


class RecordNormalizer:
    """
    Normalizes patient queries and provider documents into typed records.

    Accepts plain dictionaries (document store snapshots, parsed JSON) and
    pandas rows. Keys may use the document's camelCase or snake_case.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize record normalizer.

        Args:
            config: Optional normalization settings (``list_separator``)
        """
        self.config = config or {}
        self.list_separator = self.config.get("list_separator", ";")
        self.number_pattern = re.compile(r'^\s*([-+]?\d+(?:\.\d+)?)')

    def _get(self, document: Dict, name: str) -> Any:
        """Fetch a field by its snake_case name or any alias."""
        if name in document and not _is_missing(document[name]):
            return document[name]
        for alias in FIELD_ALIASES.get(name, []):
            if alias in document and not _is_missing(document[alias]):
                return document[alias]
        return None

    def to_text(self, value: Any) -> Optional[str]:
        """
        Coerce a value to stripped text.

        Args:
            value: Raw field value

        Returns:
            Text, or None for missing or empty values
        """
        if _is_missing(value):
            return None
        if isinstance(value, str):
            text = value.strip()
        elif _is_number(value):
            number = float(value)
            if not math.isfinite(number):
                return None
            text = str(int(number)) if number.is_integer() else str(number)
        else:
            return None
        return text or None

    def to_number(self, value: Any) -> Optional[float]:
        """
        Parse a number leniently.

        Numeric prefixes of strings are accepted, so "12 years" parses
        as 12.

        Args:
            value: Raw field value

        Returns:
            Number, or None when nothing numeric can be read
        """
        if _is_missing(value) or not (_is_number(value) or isinstance(value, str)):
            return None
        if _is_number(value):
            number = float(value)
            return number if math.isfinite(number) else None
        if isinstance(value, str):
            match = self.number_pattern.match(value)
            if match:
                return float(match.group(1))
        return None

    def to_int(self, value: Any) -> Optional[int]:
        number = self.to_number(value)
        return int(number) if number is not None else None

    def to_bool(self, value: Any) -> bool:
        if _is_missing(value):
            return False
        if isinstance(value, (bool, np.bool_)):
            return bool(value)
        if _is_number(value):
            return value != 0
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUE_STRINGS:
                return True
            if lowered not in FALSE_STRINGS:
                logger.warning(f"Unrecognized boolean value '{value}', treating as false")
        return False

    def _to_list(self, value: Any) -> List[Any]:
        if _is_missing(value):
            return []
        if isinstance(value, str):
            if self.list_separator and self.list_separator in value:
                return value.split(self.list_separator)
            return [value]
        if isinstance(value, (list, tuple)):
            return list(value)
        if hasattr(value, "tolist"):
            converted = value.tolist()
            return converted if isinstance(converted, list) else [converted]
        return []

    def to_text_tuple(self, value: Any) -> Tuple[str, ...]:
        """
        Coerce a value to a tuple of non-empty strings.

        A bare string becomes a single-element tuple (or is split on the
        list separator); non-string entries are dropped.
        """
        texts = (self.to_text(item) if isinstance(item, str) else None for item in self._to_list(value))
        return tuple(text for text in texts if text)

    def _entries(self, value: Any) -> List[Dict]:
        return [entry for entry in self._to_list(value) if isinstance(entry, dict)]

    def normalize_experience(self, value: Any) -> Tuple[ExperienceEntry, ...]:
        return tuple(
            ExperienceEntry(
                years=self.to_int(entry.get("years")),
                title=self.to_text(entry.get("title")),
                organization=self.to_text(entry.get("organization") or entry.get("hospital")),
            )
            for entry in self._entries(value)
        )

    def normalize_education(self, value: Any) -> Tuple[EducationEntry, ...]:
        return tuple(
            EducationEntry(
                course=self.to_text(entry.get("course")),
                institution=self.to_text(entry.get("institution")),
                year=self.to_int(entry.get("year")),
            )
            for entry in self._entries(value)
        )

    def normalize_recognitions(self, value: Any) -> Tuple[RecognitionEntry, ...]:
        """Normalize award or conference entries."""
        return tuple(
            RecognitionEntry(
                value=self.to_text(entry.get("value")),
                year=self.to_int(entry.get("year")),
            )
            for entry in self._entries(value)
        )

    def normalize_urgency(self, value: Any) -> Urgency:
        if isinstance(value, Urgency):
            return value
        text = self.to_text(value)
        if text is None:
            return Urgency.MEDIUM
        try:
            return Urgency(text.lower())
        except ValueError:
            logger.warning(f"Unknown urgency '{value}', defaulting to medium")
            return Urgency.MEDIUM

    def normalize_consultation_type(self, value: Any) -> Optional[ConsultationType]:
        if isinstance(value, ConsultationType):
            return value
        text = self.to_text(value)
        if text is None:
            return None
        lowered = text.lower().replace("_", "-")
        if lowered == "inperson":
            lowered = "in-person"
        try:
            return ConsultationType(lowered)
        except ValueError:
            logger.warning(f"Unknown consultation type '{value}', ignoring")
            return None

    def normalize_provider_type(self, value: Any) -> ProviderType:
        if isinstance(value, ProviderType):
            return value
        text = self.to_text(value)
        if text is not None:
            if text.lower() == "ai":
                return ProviderType.AI
            if text.lower() != "human":
                logger.warning(f"Unknown provider type '{value}', defaulting to Human")
        return ProviderType.HUMAN

    def normalize_query(self, document: Optional[Dict]) -> PatientQuery:
        """
        Build a patient query from search filters.

        Args:
            document: Raw query mapping

        Returns:
            Patient query
        """
        if isinstance(document, PatientQuery):
            # Typed queries are coerced too; dataclasses do not enforce field types
            document = dataclasses.asdict(document)
        if not isinstance(document, dict):
            logger.warning("Patient query is not a mapping, using an empty query")
            document = {}

        budget = self.to_number(self._get(document, "budget"))

        return PatientQuery(
            symptoms=self.to_text_tuple(self._get(document, "symptoms")),
            condition=self.to_text(self._get(document, "condition")),
            specialty=self.to_text(self._get(document, "specialty")),
            location=self.to_text(self._get(document, "location")),
            urgency=self.normalize_urgency(self._get(document, "urgency")),
            preferred_language=self.to_text(self._get(document, "preferred_language")),
            budget=budget if budget is not None and budget >= 0 else None,
            consultation_type=self.normalize_consultation_type(self._get(document, "consultation_type")),
        )

    def normalize_candidate(self, document: Any, require_id: bool = True) -> Optional[CandidateProvider]:
        """
        Build a candidate provider from a directory document.

        Args:
            document: Raw provider mapping, pandas row or typed record
            require_id: Return None for documents without an id. When False,
                such documents (and non-mappings) become candidates with an
                empty id that score with defaults.

        Returns:
            Candidate provider, or None when an id is required and missing
        """
        if isinstance(document, CandidateProvider):
            document = dataclasses.asdict(document)
        if isinstance(document, pd.Series):
            document = document.to_dict()
        if not isinstance(document, dict):
            if require_id:
                logger.warning(f"Skipping provider document of type {type(document).__name__}")
                return None
            logger.warning(f"Scoring provider document of type {type(document).__name__} with defaults")
            document = {}

        provider_id = self.to_text(self._get(document, "id"))
        if provider_id is None:
            if require_id:
                logger.warning("Skipping provider document without an id")
                return None
            provider_id = ""

        rating = self.to_number(self._get(document, "rating"))
        reviews = self.to_int(self._get(document, "reviews"))
        fees = self.to_number(self._get(document, "fees"))
        verified = self._get(document, "verified")

        return CandidateProvider(
            id=provider_id,
            name=self.to_text(self._get(document, "name")) or "",
            type=self.normalize_provider_type(self._get(document, "type")),
            specialization=self.to_text_tuple(self._get(document, "specialization")),
            location=self.to_text(self._get(document, "location")),
            rating=rating if rating is not None and rating >= 0 else None,
            reviews=reviews if reviews is not None and reviews >= 0 else None,
            experience=self.normalize_experience(self._get(document, "experience")),
            education=self.normalize_education(self._get(document, "education")),
            awards=self.normalize_recognitions(self._get(document, "awards")),
            conferences=self.normalize_recognitions(self._get(document, "conferences")),
            languages=self.to_text_tuple(self._get(document, "languages")),
            fees=fees if fees is not None and fees >= 0 else None,
            available=self.to_bool(self._get(document, "available")),
            online_therapy=self.to_bool(self._get(document, "online_therapy")),
            next_available=self.to_text(self._get(document, "next_available")),
            specialty=self.to_text(self._get(document, "specialty")),
            consultation_success_rate=self.to_number(self._get(document, "consultation_success_rate")),
            response_time=self.to_number(self._get(document, "response_time")),
            total_consultations=self.to_int(self._get(document, "total_consultations")),
            recent_consultations=self.to_int(self._get(document, "recent_consultations")),
            verified=self.to_bool(verified) if verified is not None else None,
        )

    def normalize_candidates(self, documents: Iterable[Any]) -> List[CandidateProvider]:
        """
        Normalize a batch of provider documents, skipping unusable ones.

        Args:
            documents: Raw provider documents

        Returns:
            Candidate providers in input order
        """
        candidates = []
        skipped = 0
        for document in documents or []:
            candidate = self.normalize_candidate(document)
            if candidate is None:
                skipped += 1
                continue
            candidates.append(candidate)

        if skipped:
            logger.warning(f"Skipped {skipped} provider documents that could not be normalized")
        logger.info(f"Normalized {len(candidates)} provider records")
        return candidates

    def normalize_dataframe(self, df: pd.DataFrame) -> List[CandidateProvider]:
        """Normalize every row of a provider DataFrame."""
        return self.normalize_candidates(row for _, row in df.iterrows())


def normalize_patient_query(document: Optional[Dict], config: Optional[Dict] = None) -> PatientQuery:
    """
    Convenience function to normalize a patient query.

    Args:
        document: Raw query mapping
        config: Normalization configuration

    Returns:
        Patient query
    """
    return RecordNormalizer(config).normalize_query(document)


def normalize_candidate_providers(documents: Iterable[Any], config: Optional[Dict] = None) -> List[CandidateProvider]:
    """
    Convenience function to normalize provider documents.

    Args:
        documents: Raw provider documents
        config: Normalization configuration

    Returns:
        Candidate providers
    """
    return RecordNormalizer(config).normalize_candidates(documents)

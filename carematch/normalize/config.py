"""
Configuration utilities for CareMatch.

Provides loading, validation and merging of the matching configuration,
and the immutable clinical specialty keyword table used by the matcher.
"""

import copy
import logging
from pathlib import Path
from types import MappingProxyType
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/carematch.yaml"

SUB_SCORE_NAMES = [
    "specialty_match",
    "education_score",
    "awards_score",
    "conference_score",
    "review_score",
    "experience_score",
    "availability_score",
    "location_score",
    "language_score",
    "budget_score",
    "urgency_score",
    "consultation_type_score",
]


DEFAULT_CLINICAL_SPECIALTIES = [
    {"name": "Cardiology",
     "keywords": ["chest pain", "heart", "palpitation", "blood pressure", "hypertension", "shortness of breath"]},
    {"name": "Neurology",
     "keywords": ["headache", "migraine", "seizure", "numbness", "dizziness", "memory loss", "stroke"]},
    {"name": "Dermatology",
     "keywords": ["rash", "acne", "itch", "skin", "eczema", "psoriasis", "mole"]},
    {"name": "Orthopedics",
     "keywords": ["joint pain", "back pain", "fracture", "knee", "shoulder", "sprain", "bone"]},
    {"name": "Gastroenterology",
     "keywords": ["stomach", "abdominal pain", "diarrhea", "constipation", "nausea", "vomiting", "acid reflux"]},
    {"name": "Pulmonology",
     "keywords": ["cough", "asthma", "wheezing", "breathing", "lung"]},
    {"name": "Endocrinology",
     "keywords": ["diabetes", "thyroid", "blood sugar", "hormone", "weight gain"]},
    {"name": "Psychiatry",
     "keywords": ["anxiety", "depression", "insomnia", "stress", "panic", "mood"]},
    {"name": "Pediatrics",
     "keywords": ["child", "infant", "baby", "vaccination", "growth"]},
    {"name": "Urology",
     "keywords": ["urine", "urinary", "kidney stone", "bladder", "prostate"]},
    {"name": "Gynecology",
     "keywords": ["period", "menstrual", "pregnancy", "pelvic pain", "menopause"]},
    {"name": "Ophthalmology",
     "keywords": ["eye", "vision", "blurred", "red eye"]},
    {"name": "ENT",
     "keywords": ["ear pain", "earache", "sore throat", "sinus", "hearing", "tonsil", "nose bleed"]},
    {"name": "Dentistry",
     "keywords": ["tooth", "toothache", "gum", "dental", "cavity"]},
    {"name": "General Medicine",
     "keywords": ["fever", "cold", "flu", "fatigue", "body ache", "infection"]},
]


def get_default_matching_config() -> Dict[str, Any]:
    """
    Get default matching configuration.

    Returns:
        Default configuration dictionary
    """
    return {
        "matching": {
            "max_total_score": 600,
            "default_limit": 10,
        },
        "scoring": {
            "caps": {
                "specialty_match": 100,
                "education_score": 50,
                "awards_score": 40,
                "conference_score": 35,
                "review_score": 50,
                "experience_score": 40,
                "availability_score": 50,
                "location_score": 50,
                "language_score": 50,
                "budget_score": 50,
                "urgency_score": 50,
                "consultation_type_score": 50,
            },
            "education": {
                "degree_tiers": [
                    {"tokens": ["mbbs", "md"], "points": 25},
                    {"tokens": ["ms", "mch"], "points": 20},
                    {"tokens": ["phd"], "points": 15},
                    {"tokens": ["bachelor", "master"], "points": 10},
                ],
                "prestigious_institutions": [
                    "harvard", "stanford", "oxford", "cambridge", "johns hopkins", "mayo clinic",
                ],
                "prestige_bonus": 10,
            },
            "awards": {
                "tiers": [
                    {"keywords": ["national", "international"], "points": 15},
                    {"keywords": ["best", "excellence"], "points": 10},
                ],
                "base_points": 5,
                "recent_years": 5,
                "recent_bonus": 5,
            },
            "conferences": {
                "tiers": [
                    {"keywords": ["international", "world"], "points": 12},
                    {"keywords": ["national", "annual"], "points": 8},
                ],
                "base_points": 5,
                "recent_years": 2,
                "recent_bonus": 3,
            },
        },
        "clinical_specialties": copy.deepcopy(DEFAULT_CLINICAL_SPECIALTIES),
    }


def load_matching_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load matching configuration from YAML file.

    Values in the file are merged over the defaults, so a partial file
    only needs the sections it changes.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    defaults = get_default_matching_config()
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning(f"Configuration file {config_path} not found, using defaults")
            return defaults

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            logger.error(f"Configuration in {config_path} is not a mapping, using defaults")
            return defaults

        merged = merge_configs(defaults, config)
        logger.info(f"Loaded matching configuration from {config_path}")
        return merged

    except Exception as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        return defaults


def validate_matching_config(config: Dict[str, Any]) -> bool:
    """
    Validate matching configuration.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    for section in ["matching", "scoring", "clinical_specialties"]:
        if section not in config:
            logger.error(f"Missing required configuration section: {section}")
            return False

    matching_config = config.get("matching", {})
    max_total = matching_config.get("max_total_score")
    if not isinstance(max_total, (int, float)) or max_total <= 0:
        logger.error("matching.max_total_score must be a positive number")
        return False

    default_limit = matching_config.get("default_limit", 10)
    if not isinstance(default_limit, int) or default_limit < 0:
        logger.error("matching.default_limit must be a non-negative integer")
        return False

    caps = config.get("scoring", {}).get("caps", {})
    for name in SUB_SCORE_NAMES:
        cap = caps.get(name)
        if not isinstance(cap, (int, float)) or cap < 0:
            logger.error(f"scoring.caps.{name} must be a non-negative number")
            return False

    cap_total = sum(caps[name] for name in SUB_SCORE_NAMES)
    if cap_total < max_total:
        logger.warning(f"Sub-score caps sum to {cap_total}, below max_total_score {max_total}; no candidate can reach 100%")

    specialties = config.get("clinical_specialties")
    if not isinstance(specialties, list):
        logger.error("clinical_specialties must be a list")
        return False

    for spec in specialties:
        if not isinstance(spec, dict) or not spec.get("name"):
            logger.error(f"Invalid clinical specialty entry: {spec}")
            return False
        if not isinstance(spec.get("keywords", []), list):
            logger.error(f"Keywords for {spec['name']} must be a list")
            return False

    logger.info("Configuration validation passed")
    return True


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def save_matching_config(config: Dict[str, Any], config_path: str) -> bool:
    """
    Save matching configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Path to save configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            yaml.dump(config, f, default_flow_style=False, indent=2, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")
        return True

    except Exception as e:
        logger.error(f"Failed to save configuration to {config_path}: {e}")
        return False


class SpecialtyTable(Mapping):
    """
    Read-only mapping of specialty name to lowercase symptom keywords.

    Built once from configuration and shared by every matcher that
    receives it. Iteration follows the order of the source list.
    """

    def __init__(self, entries: Mapping[str, Tuple[str, ...]]):
        self._entries = MappingProxyType({
            str(name): tuple(str(keyword).lower() for keyword in keywords if keyword)
            for name, keywords in entries.items()
        })

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SpecialtyTable":
        """
        Build the table from the ``clinical_specialties`` section.

        Args:
            config: Full matching configuration

        Returns:
            Specialty table
        """
        specialties = config.get("clinical_specialties")
        if specialties is None:
            specialties = DEFAULT_CLINICAL_SPECIALTIES
        return cls.from_list(specialties)

    @classmethod
    def from_list(cls, specialties: List[Dict[str, Any]]) -> "SpecialtyTable":
        entries = {}
        for spec in specialties:
            if not isinstance(spec, dict) or not spec.get("name"):
                logger.warning(f"Skipping invalid specialty entry: {spec}")
                continue
            keywords = spec.get("keywords") or []
            if isinstance(keywords, str):
                keywords = [keywords]
            entries[spec["name"]] = tuple(keywords)

        logger.info(f"Built specialty table with {len(entries)} specialties")
        return cls(entries)

    def __getitem__(self, name: str) -> Tuple[str, ...]:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SpecialtyTable({len(self)} specialties)"

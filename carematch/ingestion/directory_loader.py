"""
Provider directory and patient query loading for CareMatch.

Reads provider directory exports (CSV, JSON, JSON Lines, Parquet) into
pandas DataFrames and patient queries from JSON or YAML documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import pyarrow.parquet as pq
import yaml

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ["csv", "json", "jsonl", "parquet"]

# Columns holding lists or nested entries; CSV exports store them as JSON text
LIST_COLUMNS = [
    "specialization", "languages", "experience", "education", "awards", "conferences", "symptoms",
]


class ProviderDirectoryLoader:
    """
    Loads provider directory exports from local files.

    The loader only parses files; coercion of individual fields into
    typed records is left to the record normalizer.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize loader with configuration.

        Args:
            config: Ingestion configuration (``list_columns``, ``records_key``)
        """
        self.config = config or {}
        self.list_columns = self.config.get("list_columns", LIST_COLUMNS)
        self.records_key = self.config.get("records_key", "providers")

        logger.info("Initialized ProviderDirectoryLoader")

    @staticmethod
    def detect_format(path: str) -> str:
        """
        Infer the file format from the extension.

        Args:
            path: File path

        Returns:
            Format name
        """
        suffix = Path(path).suffix.lower().lstrip(".")
        if suffix == "ndjson":
            suffix = "jsonl"
        if suffix not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported file format: {path}")
        return suffix

    def load_file(self, path: str, file_format: Optional[str] = None) -> pd.DataFrame:
        """
        Load a provider directory file.

        Args:
            path: Local file path
            file_format: 'csv', 'json', 'jsonl' or 'parquet' (inferred if omitted)

        Returns:
            DataFrame with one row per provider document
        """
        if not Path(path).exists():
            raise FileNotFoundError(f"Provider directory not found: {path}")

        file_format = (file_format or self.detect_format(path)).lower()
        try:
            if file_format == "csv":
                df = self._load_csv(path)
            elif file_format == "json":
                df = self._load_json(path)
            elif file_format == "jsonl":
                df = pd.read_json(path, lines=True)
            elif file_format == "parquet":
                df = pq.read_table(path).to_pandas()
            else:
                raise ValueError(f"Unsupported file format: {file_format}")

        except Exception as e:
            logger.error(f"Failed to load provider directory {path}: {e}")
            raise

        logger.info(f"Loaded {len(df)} provider documents from {path}")
        return df

    def _load_csv(self, path: str) -> pd.DataFrame:
        """Load CSV export, decoding JSON text in list columns."""
        df = pd.read_csv(path, dtype={"id": str})
        for column in self.list_columns:
            if column in df.columns:
                df[column] = df[column].apply(self._decode_cell)
        return df

    def _load_json(self, path: str) -> pd.DataFrame:
        """Load a JSON array, or an object holding the array under the records key."""
        with open(path, 'r') as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get(self.records_key, [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of provider documents in {path}")

        return pd.DataFrame(data)

    @staticmethod
    def _decode_cell(value: Any) -> Any:
        if isinstance(value, str) and value.strip().startswith(("[", "{")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                logger.warning(f"Could not decode list value: {value[:50]}")
        return value

    def load_documents(self, path: str, file_format: Optional[str] = None) -> List[Dict]:
        """
        Load a provider directory as a list of documents.

        Args:
            path: Local file path
            file_format: File format (inferred if omitted)

        Returns:
            Provider documents in file order
        """
        df = self.load_file(path, file_format)
        return df.to_dict("records")


def load_patient_query(path: str) -> Dict[str, Any]:
    """
    Load a patient query document from JSON or YAML.

    Args:
        path: Path to query file

    Returns:
        Raw query mapping
    """
    query_file = Path(path)
    if not query_file.exists():
        raise FileNotFoundError(f"Patient query not found: {path}")

    with open(query_file, 'r') as f:
        if query_file.suffix.lower() in (".yaml", ".yml"):
            query = yaml.safe_load(f)
        elif query_file.suffix.lower() == ".json":
            query = json.load(f)
        else:
            raise ValueError(f"Unsupported query format: {path}")

    if not isinstance(query, dict):
        raise ValueError(f"Patient query in {path} must be a mapping")

    logger.info(f"Loaded patient query from {path}")
    return query


def load_provider_directory(path: str, config: Optional[Dict] = None) -> pd.DataFrame:
    """
    Convenience function to load a provider directory.

    Args:
        path: Local file path
        config: Ingestion configuration

    Returns:
        Provider DataFrame
    """
    loader = ProviderDirectoryLoader(config)
    return loader.load_file(path)

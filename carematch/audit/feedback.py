"""
Match feedback persistence for CareMatch.

Records post-consultation match scores for providers. Recorded feedback
is kept for reporting and review; it never changes how the matcher
scores candidates.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = ["doctor_id", "ai_match_score", "consultation_id", "recorded_at"]


class FeedbackSink(ABC):
    """Storage contract for post-consultation match scores."""

    @abstractmethod
    def record_match_score(self, doctor_id: str, score: float,
                           consultation_id: Optional[str] = None) -> None:
        """Persist one match score for a provider."""

    @abstractmethod
    def get_history(self, doctor_id: Optional[str] = None) -> pd.DataFrame:
        """Recorded scores, oldest first, optionally for one provider."""

    def average_score(self, doctor_id: str) -> Optional[float]:
        """
        Mean recorded score for a provider.

        Args:
            doctor_id: Provider id

        Returns:
            Mean score, or None when nothing has been recorded
        """
        history = self.get_history(doctor_id)
        if history.empty:
            return None
        return float(history["ai_match_score"].mean())


class InMemoryFeedbackSink(FeedbackSink):
    """Keeps feedback in process memory."""

    def __init__(self):
        self._rows: List[Dict] = []

    def record_match_score(self, doctor_id: str, score: float,
                           consultation_id: Optional[str] = None) -> None:
        self._rows.append({
            "doctor_id": doctor_id,
            "ai_match_score": float(score),
            "consultation_id": consultation_id,
            "recorded_at": datetime.now().isoformat(),
        })

    def get_history(self, doctor_id: Optional[str] = None) -> pd.DataFrame:
        rows = [row for row in self._rows if doctor_id is None or row["doctor_id"] == doctor_id]
        return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


class SqliteFeedbackSink(FeedbackSink):
    """
    Stores feedback in a SQLite database.

    Each call opens its own connection, so a sink can be shared freely
    between callers.
    """

    def __init__(self, db_path: str = "data/feedback.db"):
        """
        Initialize SQLite sink.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

        logger.info(f"Initialized SqliteFeedbackSink at {self.db_path}")

    def _init_database(self):
        """Initialize feedback database with required tables."""
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS match_feedback (
                    feedback_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    doctor_id TEXT NOT NULL,
                    ai_match_score REAL NOT NULL,
                    consultation_id TEXT,
                    recorded_at TEXT NOT NULL
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_match_feedback_doctor
                ON match_feedback (doctor_id)
            ''')
            conn.commit()
        finally:
            conn.close()

    def record_match_score(self, doctor_id: str, score: float,
                           consultation_id: Optional[str] = None) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute('''
                INSERT INTO match_feedback (doctor_id, ai_match_score, consultation_id, recorded_at)
                VALUES (?, ?, ?, ?)
            ''', [doctor_id, float(score), consultation_id, datetime.now().isoformat()])
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to record match score for {doctor_id}: {e}")
            raise
        finally:
            conn.close()

    def get_history(self, doctor_id: Optional[str] = None) -> pd.DataFrame:
        query = f"SELECT {', '.join(HISTORY_COLUMNS)} FROM match_feedback"
        params: List = []
        if doctor_id is not None:
            query += " WHERE doctor_id = ?"
            params.append(doctor_id)
        query += " ORDER BY feedback_id"

        conn = sqlite3.connect(self.db_path)
        try:
            return pd.read_sql_query(query, conn, params=params)
        finally:
            conn.close()


def update_doctor_ai_match_score(doctor_id: str, score: float, sink: FeedbackSink,
                                 consultation_id: Optional[str] = None) -> None:
    """
    Record a provider's match score after a consultation.

    Args:
        doctor_id: Provider id
        score: Match percentage from 0 to 100
        sink: Feedback storage
        consultation_id: Consultation the score came from (optional)
    """
    if not doctor_id:
        raise ValueError("doctor_id is required")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 100:
        raise ValueError(f"score must be between 0 and 100, got {score!r}")

    logger.info(f"Updating AI match score for doctor {doctor_id}: {score}%")
    sink.record_match_score(doctor_id, score, consultation_id)

"""
Ranking reports for CareMatch.

Summarizes match score distributions, exports reports and renders the
per-candidate sub-score breakdown as a plotly chart.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from ..match.matcher import match_scores_to_dataframe
from ..match.models import MatchScore
from ..normalize.config import SUB_SCORE_NAMES

logger = logging.getLogger(__name__)

PERCENTAGE_BUCKETS = [0, 20, 40, 60, 80, 100]
BUCKET_LABELS = ["0-20", "20-40", "40-60", "60-80", "80-100"]


def get_ranking_statistics(scores: Sequence[MatchScore]) -> Dict[str, Any]:
    """
    Calculate statistics for a ranking.

    Args:
        scores: Match scores

    Returns:
        Dictionary with percentage statistics, mean breakdown, percentage
        distribution and the count of candidates led by each factor
    """
    if not scores:
        return {"total_candidates": 0}

    df = match_scores_to_dataframe(scores)
    percentages = df["ai_match_percentage"].astype(float)

    score_stats = {
        "mean_percentage": float(percentages.mean()),
        "median_percentage": float(percentages.median()),
        "std_percentage": float(np.std(percentages.values)),
        "min_percentage": int(percentages.min()),
        "max_percentage": int(percentages.max()),
    }

    buckets = pd.cut(percentages, bins=PERCENTAGE_BUCKETS, labels=BUCKET_LABELS, include_lowest=True)
    distribution = {label: int(count) for label, count in buckets.value_counts(sort=False).items()}

    mean_breakdown = {name: float(df[name].mean()) for name in SUB_SCORE_NAMES}
    leading_factor = df[SUB_SCORE_NAMES].astype(float).idxmax(axis=1).value_counts().to_dict()

    return {
        "total_candidates": len(df),
        "score_statistics": score_stats,
        "percentage_distribution": distribution,
        "mean_breakdown": mean_breakdown,
        "leading_factor_counts": {name: int(count) for name, count in leading_factor.items()},
    }


def export_ranking_report(scores: Sequence[MatchScore], output_dir: str, format: str = "csv") -> str:
    """
    Export a ranking report.

    Args:
        scores: Match scores in rank order
        output_dir: Directory for the report
        format: Export format ('csv' or 'json')

    Returns:
        Path to exported file
    """
    if format not in ("csv", "json"):
        raise ValueError(f"Unsupported report format: {format}")

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if format == "json":
        filename = output_path / f"ranking_report_{timestamp}.json"
        report_data = {
            "export_timestamp": datetime.now().isoformat(),
            "statistics": get_ranking_statistics(scores),
            "matches": [match.to_dict() for match in scores],
        }
        with open(filename, 'w') as f:
            json.dump(report_data, f, indent=2, default=str)
    else:
        filename = output_path / f"ranking_report_{timestamp}.csv"
        df = match_scores_to_dataframe(scores)
        df.insert(0, "rank", range(1, len(df) + 1))
        df.to_csv(filename, index=False)

    logger.info(f"Exported ranking report to {filename}")
    return str(filename)


def build_breakdown_figure(scores: Sequence[MatchScore], title: str = "AI Match Breakdown") -> go.Figure:
    """
    Build a stacked bar chart of each candidate's sub-scores.

    Args:
        scores: Match scores in rank order
        title: Chart title

    Returns:
        Plotly figure
    """
    df = match_scores_to_dataframe(scores)
    df["candidate"] = df["doctor_name"].where(df["doctor_name"] != "", df["doctor_id"])

    long_df = df.melt(
        id_vars=["candidate", "ai_match_percentage"],
        value_vars=SUB_SCORE_NAMES,
        var_name="factor",
        value_name="points",
    )
    fig = px.bar(long_df, x="candidate", y="points", color="factor", title=title,
                 hover_data=["ai_match_percentage"])
    fig.update_layout(barmode="stack", xaxis_title="Candidate", yaxis_title="Points")
    return fig


def save_breakdown_chart(scores: Sequence[MatchScore], output_dir: str) -> str:
    """
    Write the breakdown chart as a standalone HTML file.

    Args:
        scores: Match scores in rank order
        output_dir: Directory for the chart

    Returns:
        Path to the HTML file
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    filename = output_path / "match_breakdown.html"

    fig = build_breakdown_figure(scores)
    fig.write_html(str(filename), include_plotlyjs="cdn")

    logger.info(f"Saved breakdown chart to {filename}")
    return str(filename)

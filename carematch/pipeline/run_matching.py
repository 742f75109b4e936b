"""
Matching pipeline for CareMatch.

Coordinates a ranking run from query and provider directory ingestion
through normalization, scoring and reporting.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..ingestion.directory_loader import ProviderDirectoryLoader, load_patient_query
from ..match.matcher import Matcher, match_scores_to_dataframe
from ..match.models import CandidateProvider, MatchScore, PatientQuery
from ..normalize.config import DEFAULT_CONFIG_PATH, SpecialtyTable, load_matching_config, validate_matching_config
from ..normalize.record_normalizer import RecordNormalizer
from ..reporting.summary import export_ranking_report, get_ranking_statistics, save_breakdown_chart

logger = logging.getLogger(__name__)


class MatchingPipeline:
    """
    Runs one ranking request end to end.

    Each stage is timed and logged; failures are logged and re-raised.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH, current_year: Optional[int] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config_path: Path to configuration file
            current_year: Reference year for recency bonuses (defaults to now)
        """
        self.config_path = config_path
        self.config = load_matching_config(config_path)
        if not validate_matching_config(self.config):
            raise ValueError(f"Invalid matching configuration: {config_path}")

        self.specialty_table = SpecialtyTable.from_config(self.config)
        self.matcher = Matcher(self.config, self.specialty_table, current_year=current_year)
        self.normalizer = RecordNormalizer(self.config.get("normalization", {}))
        self.loader = ProviderDirectoryLoader(self.config.get("ingestion", {}))

        self.pipeline_start_time = None
        self.stage_times: Dict[str, float] = {}

        logger.info("Initialized CareMatch pipeline")

    def _start_stage_timer(self, stage_name: str):
        """Start timing for a pipeline stage."""
        self.stage_times[stage_name] = time.time()
        logger.info(f"Starting stage: {stage_name}")

    def _end_stage_timer(self, stage_name: str):
        """End timing for a pipeline stage."""
        if stage_name in self.stage_times:
            duration = time.time() - self.stage_times[stage_name]
            logger.info(f"Completed stage: {stage_name} in {duration:.2f} seconds")

    def ingest(self, query_path: str, providers_path: str) -> Tuple[PatientQuery, List[CandidateProvider]]:
        """
        Load and normalize the query and provider directory.

        Args:
            query_path: Patient query file
            providers_path: Provider directory file

        Returns:
            Tuple of (patient query, candidate providers)
        """
        self._start_stage_timer("ingestion")
        raw_query = load_patient_query(query_path)
        providers_df = self.loader.load_file(providers_path)
        self._end_stage_timer("ingestion")

        self._start_stage_timer("normalization")
        query = self.normalizer.normalize_query(raw_query)
        candidates = self.normalizer.normalize_dataframe(providers_df)
        self._end_stage_timer("normalization")

        return query, candidates

    def rank(self, query: PatientQuery, candidates: List[CandidateProvider],
             limit: Optional[int] = None) -> List[MatchScore]:
        """Rank candidates and keep the top ``limit``."""
        self._start_stage_timer("ranking")
        matches = self.matcher.top_matches(query, candidates, limit)
        self._end_stage_timer("ranking")
        return matches

    def run_pipeline(self, query_path: str, providers_path: str, limit: Optional[int] = None,
                     output_path: Optional[str] = None, chart: bool = False) -> Dict:
        """
        Run the complete matching pipeline.

        Args:
            query_path: Patient query file
            providers_path: Provider directory file
            limit: Maximum number of matches to return
            output_path: Directory for results (optional)
            chart: Whether to write the breakdown chart

        Returns:
            Report dictionary with matches and statistics
        """
        self.pipeline_start_time = time.time()
        logger.info("Starting CareMatch pipeline")

        try:
            query, candidates = self.ingest(query_path, providers_path)
            matches = self.rank(query, candidates, limit)

            self._start_stage_timer("reporting")
            report = {
                "total_candidates": len(candidates),
                "returned_matches": len(matches),
                "matches": [match.to_dict() for match in matches],
                "statistics": get_ranking_statistics(matches),
            }

            if output_path:
                report["outputs"] = self._save_results(matches, output_path, chart)
            self._end_stage_timer("reporting")

            total_duration = time.time() - self.pipeline_start_time
            report["total_duration"] = total_duration
            logger.info(f"Pipeline completed successfully in {total_duration:.2f} seconds")

            return report

        except Exception as e:
            logger.error(f"Pipeline failed: {e}")
            raise

    def _save_results(self, matches: List[MatchScore], output_path: str, chart: bool) -> Dict[str, str]:
        """Save pipeline results to specified path."""
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)

        results_file = output_dir / "top_matches.csv"
        match_scores_to_dataframe(matches).to_csv(results_file, index=False)

        outputs = {
            "top_matches": str(results_file),
            "report": export_ranking_report(matches, output_path, format="json"),
        }
        if chart and matches:
            outputs["chart"] = save_breakdown_chart(matches, output_path)

        logger.info(f"Results saved to {output_path}")
        return outputs


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CareMatch ranking pipeline."""
    parser = argparse.ArgumentParser(description="CareMatch doctor-patient ranking")
    parser.add_argument("--query", required=True, help="Patient query file (JSON or YAML)")
    parser.add_argument("--providers", required=True, help="Provider directory file (CSV, JSON, JSONL or Parquet)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Configuration file path")
    parser.add_argument("--limit", type=int, default=None, help="Number of matches to return")
    parser.add_argument("--output", help="Output directory path")
    parser.add_argument("--chart", action="store_true", help="Write the sub-score breakdown chart")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args(argv)

    # Ensure log directory exists
    Path("logs").mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("logs/carematch.log")
        ]
    )

    try:
        pipeline = MatchingPipeline(args.config)
        report = pipeline.run_pipeline(
            query_path=args.query,
            providers_path=args.providers,
            limit=args.limit,
            output_path=args.output,
            chart=args.chart
        )

        print("\n" + "=" * 50)
        print("CAREMATCH RANKING SUMMARY")
        print("=" * 50)
        print(f"Candidates scored: {report['total_candidates']:,}")
        print(f"Matches returned: {report['returned_matches']:,}")
        for rank, match in enumerate(report["matches"], start=1):
            print(f"{rank:>3}. {match['doctorName'] or match['doctorId']:<30} {match['aiMatchPercentage']:>3}%")
        print(f"Total Duration: {report['total_duration']:.2f} seconds")
        print("=" * 50)

    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

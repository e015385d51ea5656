#!/usr/bin/env python3
"""
Batch Rating Runner

Rates every stats CSV in a directory:
1. Import (files that fail to parse are logged and skipped)
2. Rate with the shared configuration
3. Export per-file ratings
4. Write a batch summary

Each file gets its own import and pipeline run; nothing is shared between
datasets.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import List, Dict, Any
import argparse

sys.path.append(str(Path(__file__).parent.parent))

from src.io.record_importer import ImportRejectedError, import_records_file
from src.io.record_exporter import export_results_file
from src.io.safe_write import safe_write_json
from src.rating.rating_engine import (
    DEFAULT_CONFIG_PATH, apply_overrides, load_config, rate_with_config, validate_config
)
from src.rating.utils_stats import describe_distribution

logger = logging.getLogger(__name__)
error_logger = logging.getLogger('batch_errors')


def setup_logging(log_dir: Path):
    """Configure dual logging (info + errors)"""
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / 'batch_rating.log'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    error_handler = logging.FileHandler(log_dir / 'batch_errors.log')
    error_handler.setLevel(logging.ERROR)
    error_logger.addHandler(error_handler)


def rate_file(csv_path: Path, config: Dict[str, Any], output_dir: Path) -> Dict[str, Any]:
    """
    Rate a single stats file.

    Returns:
        Per-file outcome for the batch summary
    """
    logger.info(f"[START] {csv_path.name}")

    try:
        records = import_records_file(csv_path)
    except ImportRejectedError as e:
        logger.error(f"[REJECTED] {csv_path.name}: {e}")
        error_logger.error(f"{datetime.now().isoformat()} {csv_path}: {e}")
        return {'file': csv_path.name, 'status': 'rejected', 'error': str(e)}

    result = rate_with_config(records, config)
    if result.empty:
        logger.warning(f"[EMPTY] {csv_path.name}: no players")
        return {'file': csv_path.name, 'status': 'empty', 'players': 0}

    out_path = output_dir / f"ratings_{csv_path.stem}.csv"
    export_results_file(result, out_path)
    logger.info(f"[SUCCESS] {csv_path.name}: {len(result)} players")

    return {
        'file': csv_path.name,
        'status': 'rated',
        'players': len(result),
        'output': out_path,
        'top_player': result['name'].iloc[0],
        'top_rating': float(result['rating'].iloc[0]),
        'rating_distribution': describe_distribution(result['rating'].astype(float)),
    }


def run_batch(input_dir: Path, output_dir: Path, config: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Rate every *.csv in input_dir (sorted by name)."""
    files = sorted(input_dir.glob("*.csv"))
    if not files:
        logger.warning(f"No CSV files found in {input_dir}")
        return []

    logger.info(f"Rating {len(files)} files from {input_dir}")
    return [rate_file(path, config, output_dir) for path in files]


def main():
    parser = argparse.ArgumentParser(description="Rate every stats CSV in a directory")
    parser.add_argument("--input-dir", type=str, required=True,
                       help="Directory of stats CSV files")
    parser.add_argument("--output-dir", type=str, default="data/ratings/batch",
                       help="Directory for per-file ratings and the summary")
    parser.add_argument("--config", type=str, default=str(DEFAULT_CONFIG_PATH),
                       help="Configuration file path")
    parser.add_argument("--preset", type=str, help="Weight preset (overrides config)")
    parser.add_argument("--target-spread", type=float, help="Standard deviation of final ratings")
    parser.add_argument("--no-group", action="store_true", help="Standardize across all players")

    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    setup_logging(output_dir / "logs")

    config = load_config(Path(args.config))
    config = apply_overrides(config, {
        'PRESET': args.preset,
        'TARGET_SPREAD': args.target_spread,
        'BY_GROUP': False if args.no_group else None,
    })
    validate_config(config)

    outcomes = run_batch(Path(args.input_dir), output_dir, config)

    summary = {
        'timestamp': datetime.now().isoformat(),
        'input_dir': Path(args.input_dir),
        'files': len(outcomes),
        'rated': sum(1 for o in outcomes if o['status'] == 'rated'),
        'rejected': sum(1 for o in outcomes if o['status'] == 'rejected'),
        'config': config,
        'outcomes': outcomes,
    }
    safe_write_json(summary, output_dir / "batch_summary.json")

    logger.info(f"Batch complete: {summary['rated']}/{summary['files']} files rated, "
                f"{summary['rejected']} rejected")
    return 0 if summary['rejected'] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Rating results exporter.

Serializes a ranked result frame to CSV: name, role, agent and the rating
rounded to two decimals, then every raw field and every derived metric in a
fixed order. The raw columns use the canonical names the importer accepts.
"""

import pandas as pd
from pathlib import Path
from typing import Dict, Union
import logging

from src.io.safe_write import safe_write_csv
from src.rating.metrics import METRIC_COLUMNS
from src.rating.utils_stats import round2
from src.schema.player_stats_schema import RAW_NUMERIC_FIELDS

logger = logging.getLogger(__name__)

# 'adr' is both a raw field and a metric; it is written once
EXPORT_COLUMNS = list(dict.fromkeys(['name', 'role', 'agent', 'rating'] + RAW_NUMERIC_FIELDS + METRIC_COLUMNS))


def export_frame(result: pd.DataFrame) -> pd.DataFrame:
    """
    Select and order the export columns.

    Args:
        result: Ranked frame from run_rating

    Returns:
        New DataFrame in EXPORT_COLUMNS order with rounded ratings
    """
    missing = [c for c in EXPORT_COLUMNS if c not in result.columns]
    if missing:
        raise ValueError(f"Result frame is missing export columns: {missing}")

    out = result[EXPORT_COLUMNS].copy()
    out['rating'] = out['rating'].astype(float).map(round2)
    return out.reset_index(drop=True)


def export_results(result: pd.DataFrame) -> str:
    """Serialize ranked results to CSV text."""
    return export_frame(result).to_csv(index=False, lineterminator="\n")


def export_results_file(result: pd.DataFrame, path: Union[str, Path]) -> Dict[str, Union[str, int, Path]]:
    """
    Write ranked results to a CSV file atomically.

    Returns:
        Write metadata from safe_write_csv (path, checksum, size)
    """
    info = safe_write_csv(export_frame(result), path)
    logger.info(f"Exported {len(result)} ratings to {info['path']}")
    return info

#!/usr/bin/env python3
"""
Metric derivation for the player rating pipeline.

Converts raw per-player counters into per-round rate and ratio metrics.
Every rate divides by max(1, rounds) so a player with zero recorded rounds
never produces an infinite or undefined value.
"""

import pandas as pd
import numpy as np
from typing import Dict, Any, Mapping
import logging

from src.schema.player_stats_schema import RAW_NUMERIC_FIELDS, RAW_TEXT_FIELDS

logger = logging.getLogger(__name__)


# Metrics produced by derive_metrics, in standardization and export order
METRIC_COLUMNS = [
    'kpr', 'dpr', 'adr', 'kast', 'entry', 'acs_per_round', 'headshot',
    'consistency', 'clutch', 'multikill', 'support', 'objective',
]

# Multi-kill round tiers and their weight in the multikill metric
MULTIKILL_TIERS = {
    'two_kills': 0.5,
    'three_kills': 1.0,
    'four_kills': 1.5,
    'five_kills': 2.0,
}

# Floor for the consistency denominator so low-fragging players are not
# punished for tiny absolute differences
CONSISTENCY_FLOOR = 0.1


def _numeric(frame: pd.DataFrame, col: str) -> pd.Series:
    """Numeric view of a column; missing or non-numeric values read as 0."""
    if col not in frame.columns:
        return pd.Series(0.0, index=frame.index)
    return pd.to_numeric(frame[col], errors='coerce').fillna(0.0).astype(float)


def _side_kpr(split_kills: pd.Series, kills: pd.Series, side_rounds: pd.Series,
              kpr: pd.Series) -> pd.Series:
    """
    Kills per round on one side of the map.

    A missing (zero) split kill count falls back to half of the total kills;
    a side with no rounds falls back to the overall KPR.
    """
    side_kills = split_kills.where(split_kills != 0, kills * 0.5)
    has_rounds = side_rounds > 0
    safe_rounds = side_rounds.where(has_rounds, 1.0)
    return (side_kills / safe_rounds).where(has_rounds, kpr)


def derive_metrics(records: pd.DataFrame) -> pd.DataFrame:
    """
    Derive rate metrics for every player record.

    Args:
        records: Raw player records (see RAW_FIELDS); missing columns are
            treated as all-zero

    Returns:
        New DataFrame holding the original columns (raw numeric fields
        coerced to float, absent ones filled with 0) plus one column per
        entry in METRIC_COLUMNS. The raw 'adr' column is replaced by the
        derived ADR. The input frame is not modified.
    """
    derived = records.copy()

    for col in RAW_TEXT_FIELDS:
        if col not in derived.columns:
            derived[col] = ""

    num = {col: _numeric(records, col) for col in RAW_NUMERIC_FIELDS}
    for col, values in num.items():
        derived[col] = values

    R = num['rounds'].clip(lower=1.0)

    kpr = num['kills'] / R
    derived['kpr'] = kpr
    derived['dpr'] = num['deaths'] / R

    # Explicit ADR wins; otherwise spread total damage over rounds
    derived['adr'] = num['adr'].where(num['adr'] != 0, num['total_damage'] / R)

    derived['kast'] = num['kast_percent'] / 100.0
    derived['entry'] = (num['first_kills'] - num['first_deaths']) / R
    derived['acs_per_round'] = num['acs'] / R
    derived['headshot'] = num['hs_percent'] / 100.0

    attack_kpr = _side_kpr(num['kills_attack'], num['kills'], num['attack_rounds'], kpr)
    defense_kpr = _side_kpr(num['kills_defense'], num['kills'], num['defense_rounds'], kpr)
    denom = np.maximum(np.maximum(attack_kpr, defense_kpr), CONSISTENCY_FLOOR)
    consistency = 1.0 - (attack_kpr - defense_kpr).abs() / denom
    derived['consistency'] = consistency.clip(lower=0.0)

    derived['clutch'] = num['clutch_wins'] / R

    multikill = sum(num[col] * weight for col, weight in MULTIKILL_TIERS.items())
    derived['multikill'] = multikill / R

    derived['support'] = (num['assists'] + num['trade_kills'] + num['non_damage_assists'] * 0.5) / R
    derived['objective'] = (num['plants'] + num['defuses']) / R

    zero_rounds = int((num['rounds'] <= 0).sum())
    if zero_rounds:
        logger.warning(f"{zero_rounds} player(s) with no recorded rounds; rates use one round")

    return derived


def derive_record(record: Mapping[str, Any]) -> Dict[str, float]:
    """
    Derive the metric set for a single raw record.

    Args:
        record: Mapping of raw field name to value

    Returns:
        Dictionary of metric name to value
    """
    frame = derive_metrics(pd.DataFrame([dict(record)]))
    return {col: float(frame[col].iloc[0]) for col in METRIC_COLUMNS}

#!/usr/bin/env python3
"""
Player Stats Schema Definition

Defines the canonical raw-record and rating-result tables using Pandera for
validation. Column order here is the order used everywhere else: importer
output, exporter columns and the result frame.
"""

import pandera as pa
from pandera.typing import Series, DataFrame
import pandas as pd
import numpy as np
import logging

logger = logging.getLogger(__name__)


# Identity columns of a raw player record
RAW_TEXT_FIELDS = ['name', 'agent', 'role']

# Counters and scalar stats of a raw player record, in export order
RAW_NUMERIC_FIELDS = [
    'rounds', 'attack_rounds', 'defense_rounds',
    'kills', 'deaths', 'assists',
    'first_kills', 'first_deaths',
    'two_kills', 'three_kills', 'four_kills', 'five_kills',
    'clutch_wins', 'plants', 'defuses', 'trade_kills', 'non_damage_assists',
    'acs', 'adr', 'total_damage', 'kast_percent', 'hs_percent',
    'kills_attack', 'kills_defense',
    'deaths_attack', 'deaths_defense',
    'assists_attack', 'assists_defense',
    'acs_attack', 'acs_defense',
    'adr_attack', 'adr_defense',
    'kast_attack', 'kast_defense',
    'hs_attack', 'hs_defense',
]

RAW_FIELDS = RAW_TEXT_FIELDS + RAW_NUMERIC_FIELDS


class RawPlayerSchema(pa.DataFrameModel):
    """
    Pandera schema for imported raw player records.

    Text identity fields are never null (missing text is the empty string)
    and every numeric field is a coerced float. Rounds may be zero but not
    negative.
    """

    name: Series[str] = pa.Field(description="Player name")
    agent: Series[str] = pa.Field(description="Agent played (may be empty)")
    role: Series[str] = pa.Field(description="Canonical role or 'Unknown'")

    rounds: Series[float] = pa.Field(ge=0, description="Rounds played")
    attack_rounds: Series[float] = pa.Field(ge=0)
    defense_rounds: Series[float] = pa.Field(ge=0)

    kills: Series[float]
    deaths: Series[float]
    assists: Series[float]
    first_kills: Series[float]
    first_deaths: Series[float]
    two_kills: Series[float]
    three_kills: Series[float]
    four_kills: Series[float]
    five_kills: Series[float]
    clutch_wins: Series[float]
    plants: Series[float]
    defuses: Series[float]
    trade_kills: Series[float]
    non_damage_assists: Series[float]
    acs: Series[float] = pa.Field(description="Average combat score")
    adr: Series[float] = pa.Field(description="Average damage per round")
    total_damage: Series[float]
    kast_percent: Series[float] = pa.Field(description="KAST as 0-100")
    hs_percent: Series[float] = pa.Field(description="Headshot rate as 0-100")
    kills_attack: Series[float]
    kills_defense: Series[float]
    deaths_attack: Series[float]
    deaths_defense: Series[float]
    assists_attack: Series[float]
    assists_defense: Series[float]
    acs_attack: Series[float]
    acs_defense: Series[float]
    adr_attack: Series[float]
    adr_defense: Series[float]
    kast_attack: Series[float] = pa.Field(description="Attack-side KAST as 0-100")
    kast_defense: Series[float] = pa.Field(description="Defense-side KAST as 0-100")
    hs_attack: Series[float]
    hs_defense: Series[float]

    class Config:
        """Pandera configuration."""
        coerce = True
        strict = False


class RatingResultSchema(pa.DataFrameModel):
    """
    Pandera schema for the ranked output of the rating pipeline.

    Only the identity and headline columns are pinned; per-metric z-score and
    contribution columns vary with the metric set and are left open.
    """

    rank: Series[int] = pa.Field(ge=1, unique=True)
    name: Series[str]
    role: Series[str]
    raw_score: Series[float]
    rating: Series[float]

    class Config:
        """Pandera configuration."""
        coerce = True
        strict = False

    @pa.check("rating")
    def rating_is_finite(cls, series: Series[float]) -> Series[bool]:
        """Ratings must never be NaN or infinite."""
        return pd.Series(np.isfinite(series.to_numpy(dtype=float)), index=series.index)

    @pa.dataframe_check
    def sorted_by_rating(cls, df: DataFrame) -> bool:
        """Rows are in non-increasing rating order."""
        return bool(df["rating"].is_monotonic_decreasing)


def validate_dataframe(df: pd.DataFrame, schema=RawPlayerSchema) -> pd.DataFrame:
    """
    Validate a DataFrame against a player stats schema.

    Args:
        df: pandas DataFrame to validate
        schema: Pandera schema class (default: RawPlayerSchema)

    Returns:
        Validated (and coerced) DataFrame

    Raises:
        pa.errors.SchemaError: If validation fails
    """
    try:
        return schema.validate(df)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        logger.error(f"{schema.__name__} validation failed: {e}")
        logger.debug(f"DataFrame shape: {df.shape}")
        logger.debug(f"DataFrame columns: {list(df.columns)}")
        if getattr(e, 'failure_cases', None) is not None:
            logger.debug(f"Failure cases:\n{e.failure_cases}")
        raise


def empty_raw_frame() -> pd.DataFrame:
    """An empty raw-record frame with every canonical column."""
    frame = pd.DataFrame({col: pd.Series(dtype=str) for col in RAW_TEXT_FIELDS})
    for col in RAW_NUMERIC_FIELDS:
        frame[col] = pd.Series(dtype=float)
    return frame

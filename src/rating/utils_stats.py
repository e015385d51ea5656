#!/usr/bin/env python3
"""
Statistical utilities for the player rating pipeline.

Provides the population statistics, z-scoring and epsilon guards shared by
the standardization and rescaling stages.
"""

import pandas as pd
import numpy as np
from typing import Dict, Tuple
import logging

logger = logging.getLogger(__name__)

# Substituted for a spread that is numerically zero
EPSILON = 1e-6

# Spreads at or below this are treated as zero (floating-point noise)
ZERO_SPREAD_TOL = 1e-12


def population_mean(values: pd.Series) -> float:
    """Arithmetic mean; 0.0 for an empty series."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values.to_numpy(dtype=float)))


def population_std(values: pd.Series) -> float:
    """
    Population standard deviation (ddof=0).

    A series with one element or fewer has no spread and returns 0.0.
    """
    if len(values) <= 1:
        return 0.0
    arr = values.to_numpy(dtype=float)
    return float(np.sqrt(np.mean((arr - arr.mean()) ** 2)))


def safe_spread(spread: float) -> Tuple[float, bool]:
    """
    Guard a spread against division by zero.

    Args:
        spread: Standard deviation to check

    Returns:
        Tuple of (usable spread, whether epsilon was substituted)
    """
    if not np.isfinite(spread) or spread <= ZERO_SPREAD_TOL:
        return EPSILON, True
    return spread, False


def robust_z(values: pd.Series) -> pd.Series:
    """
    Standardize a series to zero mean and unit spread.

    Despite the name this is the ordinary mean / population-std z-score,
    not a median/MAD estimator.

    Args:
        values: Metric values for one comparison group

    Returns:
        Series of z-scores aligned to the input index
    """
    if values.empty:
        return values.astype(float)

    mean_val = population_mean(values)
    spread, substituted = safe_spread(population_std(values))
    if substituted and len(values) > 1:
        logger.debug(f"Zero spread for '{values.name}' over {len(values)} values, using epsilon")

    return (values.astype(float) - mean_val) / spread


def describe_distribution(values: pd.Series) -> Dict[str, float]:
    """
    Summarize a distribution for logging and run summaries.

    Args:
        values: Numeric series

    Returns:
        Dictionary with count, mean, std (population), min and max
    """
    if values.empty:
        return {'count': 0, 'mean': 0.0, 'std': 0.0, 'min': 0.0, 'max': 0.0}

    return {
        'count': int(len(values)),
        'mean': population_mean(values),
        'std': population_std(values),
        'min': float(values.min()),
        'max': float(values.max()),
    }


def round2(x: float) -> float:
    """Round half away from zero to two decimals."""
    return float(np.sign(x) * np.floor(abs(x) * 100 + 0.5) / 100)

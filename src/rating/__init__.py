"""
Rating module for the player value rating pipeline.

This module provides metric derivation, per-group standardization, weighted
scoring, rescaling and ranking, plus the named weight presets.
"""

from .rating_engine import run_rating, collect_results, contribution_breakdown
from .metrics import derive_metrics, METRIC_COLUMNS
from .presets import PRESETS, resolve_weights
from .utils_stats import robust_z

__all__ = [
    'run_rating',
    'collect_results',
    'contribution_breakdown',
    'derive_metrics',
    'METRIC_COLUMNS',
    'PRESETS',
    'resolve_weights',
    'robust_z'
]

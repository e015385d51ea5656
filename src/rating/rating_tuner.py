#!/usr/bin/env python3
"""
Rating Preset Comparison Harness

Rates one dataset under several weight presets and compares each ranking
against a baseline preset to show how sensitive the order is to weighting.
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import List, Dict, Any, Optional, Iterable
import logging
import argparse
from scipy.stats import spearmanr, kendalltau

from src.rating.presets import PRESETS, resolve_weights
from src.rating.rating_engine import run_rating

logger = logging.getLogger(__name__)

EMPTY_COMPARISON = {
    'spearman_correlation': 0.0,
    'kendall_correlation': 0.0,
    'top3_overlap': 0.0,
    'top5_overlap': 0.0,
    'top10_overlap': 0.0,
    'median_rank_delta': 0.0,
    'p90_rank_delta': 0.0,
    'max_rank_delta': 0.0
}


def compare_rankings(df_base: pd.DataFrame, df_test: pd.DataFrame) -> Dict[str, float]:
    """
    Compare two rating runs over the same players.

    Players are aligned on 'input_index', so duplicate names are handled.

    Args:
        df_base: Baseline result frame
        df_test: Result frame to compare

    Returns:
        Dictionary of comparison metrics
    """
    if df_base.empty or df_test.empty:
        return dict(EMPTY_COMPARISON)

    merged = pd.merge(
        df_base[['input_index', 'rank']],
        df_test[['input_index', 'rank']],
        on='input_index',
        suffixes=('_base', '_test')
    )

    if merged.empty:
        return dict(EMPTY_COMPARISON)

    if len(merged) > 1:
        spearman_corr, _ = spearmanr(merged['rank_base'], merged['rank_test'])
        kendall_corr, _ = kendalltau(merged['rank_base'], merged['rank_test'])
    else:
        spearman_corr, kendall_corr = 1.0, 1.0

    def top_k_overlap(k):
        k = min(k, len(merged))
        base_top = set(merged.nsmallest(k, 'rank_base')['input_index'])
        test_top = set(merged.nsmallest(k, 'rank_test')['input_index'])
        return len(base_top & test_top) / k

    rank_deltas = np.abs(merged['rank_test'] - merged['rank_base'])

    return {
        'spearman_correlation': float(spearman_corr),
        'kendall_correlation': float(kendall_corr),
        'top3_overlap': top_k_overlap(3),
        'top5_overlap': top_k_overlap(5),
        'top10_overlap': top_k_overlap(10),
        'median_rank_delta': float(rank_deltas.median()),
        'p90_rank_delta': float(rank_deltas.quantile(0.9)),
        'max_rank_delta': float(rank_deltas.max())
    }


def compare_presets(records: pd.DataFrame, baseline: str = 'balanced',
                    presets: Optional[Iterable[str]] = None, by_group: bool = True,
                    target_spread: float = 0.15) -> pd.DataFrame:
    """
    Rate records under each preset and compare against the baseline.

    Args:
        records: Raw player records
        baseline: Preset every other run is compared with
        presets: Presets to evaluate (default: all)
        by_group: Grouping flag passed to every run
        target_spread: Rating spread passed to every run

    Returns:
        DataFrame with one row per preset, sorted by Spearman correlation
    """
    presets = list(presets) if presets is not None else list(PRESETS)

    df_base = run_rating(records, resolve_weights(baseline), by_group, target_spread)
    top_base = df_base['name'].iloc[0] if not df_base.empty else ""

    rows = []
    for name in presets:
        logger.info(f"Comparing preset '{name}' against '{baseline}'")
        df_test = run_rating(records, resolve_weights(name), by_group, target_spread)
        metrics = compare_rankings(df_base, df_test)
        rows.append({
            'preset': name,
            'baseline': baseline,
            'top_player': df_test['name'].iloc[0] if not df_test.empty else "",
            'top_changed': bool(not df_test.empty and df_test['name'].iloc[0] != top_base),
            **metrics
        })

    comparison = pd.DataFrame(rows)
    if not comparison.empty:
        comparison = comparison.sort_values('spearman_correlation', ascending=False, kind='mergesort')
    return comparison.reset_index(drop=True)


def main():
    """CLI entry point for preset comparison."""
    parser = argparse.ArgumentParser(description="Compare rating weight presets")
    parser.add_argument("--input", type=str, help="Stats CSV to rate")
    parser.add_argument("--sample", action="store_true", help="Use the bundled sample dataset")
    parser.add_argument("--baseline", type=str, default="balanced", choices=list(PRESETS),
                       help="Baseline preset")
    parser.add_argument("--no-group", action="store_true", help="Standardize across all players")
    parser.add_argument("--target-spread", type=float, default=0.15,
                       help="Standard deviation of final ratings")
    parser.add_argument("--output", type=str, default="data/ratings/preset_comparison.csv",
                       help="Comparison CSV path")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    from src.io.record_importer import import_records, import_records_file
    from src.io.safe_write import safe_write_csv

    if args.sample:
        from src.rating.sample_data import SAMPLE_CSV
        records = import_records(SAMPLE_CSV)
    elif args.input:
        records = import_records_file(Path(args.input))
    else:
        parser.error("one of --input or --sample is required")

    comparison = compare_presets(records, args.baseline, by_group=not args.no_group,
                                 target_spread=args.target_spread)

    for row in comparison.to_dict(orient='records'):
        logger.info(f"  {row['preset']:<22} spearman={row['spearman_correlation']:.3f} "
                    f"kendall={row['kendall_correlation']:.3f} top={row['top_player']}")

    safe_write_csv(comparison, args.output)
    print(f"Compared {len(comparison)} presets against '{args.baseline}'")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Player Rating Engine

Turns raw per-player round statistics into a single comparable rating:
metric derivation, per-group standardization, signed weighted combination,
global rescaling to a target mean/spread, and ranking.

run_rating is a pure function of its inputs; file handling lives in main()
and in src.io.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import List, Dict, Any, Optional, Mapping, Iterable, Union
import logging
import argparse
import sys
import yaml
from datetime import datetime

from src.rating.metrics import METRIC_COLUMNS, derive_metrics
from src.rating.presets import PRESETS, resolve_weights, parse_weight_overrides
from src.rating.utils_stats import (
    robust_z, population_mean, population_std, safe_spread, describe_distribution
)
from src.schema.player_stats_schema import RAW_FIELDS, RAW_NUMERIC_FIELDS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("rating_config.yaml")

# Group key used when every player is compared against everyone
GLOBAL_GROUP = "ALL"

# Metrics where a higher value must lower the rating
NEGATIVE_METRICS = frozenset({'dpr'})

# Weight keys that differ from the metric column they weight
METRIC_WEIGHT_KEYS = MappingProxyType({'acs_per_round': 'acs'})

RESULT_ID_COLUMNS = ['rank', 'name', 'role', 'agent', 'rating', 'raw_score', 'input_index', 'group']


def weight_key(metric: str) -> str:
    """Weight-vector key for a metric column."""
    return METRIC_WEIGHT_KEYS.get(metric, metric)


def metric_sign(metric: str) -> float:
    return -1.0 if metric in NEGATIVE_METRICS else 1.0


def z_column(metric: str) -> str:
    return f"z_{metric}"


def contrib_column(metric: str) -> str:
    return f"contrib_{weight_key(metric)}"


def result_columns(metrics: List[str] = METRIC_COLUMNS) -> List[str]:
    """
    Column order of the ranked result frame.

    A metric sharing its name with a raw field ('adr') appears once, in the
    raw field's position, holding the derived value.
    """
    columns = (
        RESULT_ID_COLUMNS
        + RAW_NUMERIC_FIELDS
        + list(metrics)
        + [z_column(m) for m in metrics]
        + [contrib_column(m) for m in metrics]
    )
    return list(dict.fromkeys(columns))


@dataclass(frozen=True)
class RatingResult:
    """One player's rating with its full breakdown."""

    rank: int
    name: str
    role: str
    rating: float
    raw_score: float
    contributions: Mapping[str, float]
    zscores: Mapping[str, float]
    metrics: Mapping[str, float]
    record: Mapping[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'rank': self.rank,
            'name': self.name,
            'role': self.role,
            'rating': self.rating,
            'raw_score': self.raw_score,
            'contributions': dict(self.contributions),
            'zscores': dict(self.zscores),
            'metrics': dict(self.metrics),
            'record': dict(self.record),
        }


def group_players(frame: pd.DataFrame, by_group: bool) -> pd.Series:
    """
    Assign every player to exactly one comparison group.

    Args:
        frame: Player frame with a 'role' column
        by_group: Compare within roles when True, across everyone when False

    Returns:
        Series of group keys aligned to frame.index
    """
    if by_group and 'role' in frame.columns:
        return frame['role'].fillna("").astype(str).rename('group')
    return pd.Series(GLOBAL_GROUP, index=frame.index, name='group')


def standardize(frame: pd.DataFrame, groups: pd.Series,
                metrics: List[str] = METRIC_COLUMNS) -> pd.DataFrame:
    """
    Z-score every metric within each comparison group.

    Uses the group's mean and population standard deviation; a zero spread is
    replaced by epsilon so single-player or uniform groups score 0.

    Args:
        frame: Frame holding the derived metric columns
        groups: Group key per player (from group_players)
        metrics: Metric columns to standardize

    Returns:
        DataFrame of z_<metric> columns aligned to frame.index
    """
    z_frame = pd.DataFrame(index=frame.index, columns=[z_column(m) for m in metrics], dtype=float)

    for group_key, members in frame.groupby(groups, sort=False, dropna=False):
        degenerate = []
        for metric in metrics:
            values = members[metric].astype(float)
            z_frame.loc[members.index, z_column(metric)] = robust_z(values)
            if len(values) > 1 and safe_spread(population_std(values))[1]:
                degenerate.append(metric)

        if len(members) == 1:
            logger.info(f"Group '{group_key}' has a single player; all z-scores are 0")
        elif degenerate:
            logger.info(f"Group '{group_key}': zero spread (epsilon used) for {degenerate}")

    return z_frame


def score_weighted(z_frame: pd.DataFrame, weights: Mapping[str, float],
                   metrics: List[str] = METRIC_COLUMNS) -> pd.DataFrame:
    """
    Combine standardized scores into one signed raw score per player.

    contribution = weight * sign * z, with sign -1 for death rate. Metrics
    without a weight contribute 0.

    Args:
        z_frame: Output of standardize
        weights: Metric weight vector ('acs' weights acs_per_round)
        metrics: Metrics to combine

    Returns:
        DataFrame of contrib_<key> columns plus 'raw_score'
    """
    contrib = pd.DataFrame(index=z_frame.index)

    for metric in metrics:
        weight = float(weights.get(weight_key(metric), 0.0) or 0.0)
        contrib[contrib_column(metric)] = weight * metric_sign(metric) * z_frame[z_column(metric)].astype(float)

    contrib['raw_score'] = contrib.sum(axis=1)
    return contrib


def rescale(raw_scores: pd.Series, target_spread: float) -> pd.Series:
    """
    Map raw scores onto a distribution with mean 1.0 and the target spread.

    Always computed across all players, independent of grouping.

    Args:
        raw_scores: Raw score per player
        target_spread: Desired standard deviation of the ratings

    Returns:
        Series of ratings aligned to raw_scores.index
    """
    mu = population_mean(raw_scores)
    sigma, substituted = safe_spread(population_std(raw_scores))
    if substituted and len(raw_scores) > 1:
        logger.warning("Raw scores have no spread; every player rates 1.00")

    scale = target_spread / sigma
    return (1.0 + (raw_scores.astype(float) - mu) * scale).rename('rating')


def rank_players(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Order players by rating, best first.

    Ties keep their original input order ('input_index' when present,
    otherwise the current row order).

    Returns:
        New DataFrame with a 1-based 'rank' column
    """
    ranked = frame.copy()
    if 'input_index' not in ranked.columns:
        ranked['input_index'] = range(len(ranked))

    ranked = ranked.sort_values(['rating', 'input_index'], ascending=[False, True])
    ranked = ranked.reset_index(drop=True)
    ranked['rank'] = range(1, len(ranked) + 1)
    return ranked


def empty_result_frame(metrics: List[str] = METRIC_COLUMNS) -> pd.DataFrame:
    """Result frame with every column and no rows."""
    frame = pd.DataFrame(columns=result_columns(metrics))
    for col in ('name', 'role', 'agent', 'group'):
        frame[col] = frame[col].astype(str)
    return frame


def run_rating(records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
               weights: Mapping[str, float], by_group: bool = True, target_spread: float = 0.15) -> pd.DataFrame:
    """
    Run the complete rating pipeline.

    Args:
        records: Raw player records (one row per player, see RAW_FIELDS), as
            a DataFrame or an iterable of record mappings
        weights: Metric weight vector
        by_group: Standardize within roles instead of across all players
        target_spread: Standard deviation of the final ratings

    Returns:
        Ranked DataFrame with raw fields, derived metrics, z-scores,
        contributions, raw_score and rating (columns from result_columns)

    Raises:
        ValueError: If target_spread is not a positive number
    """
    if not np.isfinite(target_spread) or target_spread <= 0:
        raise ValueError(f"target_spread must be positive, got {target_spread}")

    if not isinstance(records, pd.DataFrame):
        records = pd.DataFrame(list(records))

    if records.empty:
        logger.warning("No player records to rate")
        return empty_result_frame()

    frame = records.reset_index(drop=True)
    frame['input_index'] = range(len(frame))

    # Stage 1: derive per-round metrics
    logger.info(f"Stage 1: Deriving metrics for {len(frame)} players")
    derived = derive_metrics(frame)

    # Stage 2: comparison groups
    logger.info(f"Stage 2: Grouping players ({'by role' if by_group else 'single pool'})")
    groups = group_players(derived, by_group)
    sizes = groups.value_counts(sort=False).to_dict()
    logger.info(f"Group sizes: {sizes}")

    # Stage 3: per-group standardization
    logger.info("Stage 3: Standardizing metrics within groups")
    z_frame = standardize(derived, groups)

    # Stage 4: signed weighted combination
    logger.info("Stage 4: Combining weighted z-scores")
    contrib = score_weighted(z_frame, weights)

    # Stage 5: global rescale
    logger.info(f"Stage 5: Rescaling to mean 1.00, spread {target_spread:.2f}")
    rating = rescale(contrib['raw_score'], target_spread)

    result = pd.concat([derived, z_frame, contrib], axis=1)
    result['group'] = groups
    result['rating'] = rating

    # Stage 6: rank
    logger.info("Stage 6: Ranking players")
    ranked = rank_players(result)

    columns = result_columns()
    extras = [c for c in ranked.columns if c not in columns]
    ranked = ranked[columns + extras]

    dist = describe_distribution(ranked['rating'])
    logger.info(f"Rating distribution: mean={dist['mean']:.4f} std={dist['std']:.4f} "
                f"range=[{dist['min']:.3f}, {dist['max']:.3f}]")
    logger.info(f"Rating complete: {len(ranked)} players rated")
    return ranked


def contribution_breakdown(result: pd.DataFrame,
                           metrics: List[str] = METRIC_COLUMNS) -> pd.DataFrame:
    """
    Per-player signed contributions, keyed by weight name.

    Returns:
        DataFrame with 'name' followed by one column per weight key
    """
    cols = {contrib_column(m): weight_key(m) for m in metrics}
    breakdown = result[['name'] + list(cols)].rename(columns=cols)
    return breakdown.reset_index(drop=True)


def collect_results(result: pd.DataFrame,
                    metrics: List[str] = METRIC_COLUMNS) -> List[RatingResult]:
    """Convert a ranked result frame into immutable RatingResult records."""
    collected = []
    for row in result.to_dict(orient='records'):
        collected.append(RatingResult(
            rank=int(row['rank']),
            name=str(row['name']),
            role=str(row['role']),
            rating=float(row['rating']),
            raw_score=float(row['raw_score']),
            contributions=MappingProxyType({weight_key(m): float(row[contrib_column(m)]) for m in metrics}),
            zscores=MappingProxyType({m: float(row[z_column(m)]) for m in metrics}),
            metrics=MappingProxyType({m: float(row[m]) for m in metrics}),
            record=MappingProxyType({f: row[f] for f in RAW_FIELDS if f in row}),
        ))
    return collected


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the YAML rating configuration.

    Args:
        path: Config file (default: rating_config.yaml beside this module)

    Returns:
        Configuration dictionary
    """
    path = Path(path) if path else DEFAULT_CONFIG_PATH
    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}
    config.setdefault('WEIGHT_OVERRIDES', {})
    return config


def apply_overrides(base_cfg: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply parameter overrides to a base configuration.

    WEIGHT_OVERRIDES is merged key by key; every other key is replaced.
    None values are ignored so unset CLI flags do not clobber the file.
    """
    config = base_cfg.copy()
    config['WEIGHT_OVERRIDES'] = dict(base_cfg.get('WEIGHT_OVERRIDES') or {})

    for key, value in overrides.items():
        if value is None:
            continue
        if key == 'WEIGHT_OVERRIDES':
            config['WEIGHT_OVERRIDES'].update(value)
        else:
            config[key] = value
    return config


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a configuration before running.

    Raises:
        ValueError: Unknown preset, non-positive spread or bad TOP_N
    """
    preset = config.get('PRESET', 'balanced')
    if preset not in PRESETS:
        raise ValueError(f"Unknown PRESET '{preset}'. Available: {', '.join(PRESETS)}")

    spread = config.get('TARGET_SPREAD', 0.15)
    if not isinstance(spread, (int, float)) or isinstance(spread, bool) or spread <= 0:
        raise ValueError(f"TARGET_SPREAD must be a positive number, got {spread!r}")

    top_n = config.get('TOP_N', 10)
    if not isinstance(top_n, int) or top_n < 1:
        raise ValueError(f"TOP_N must be a positive integer, got {top_n!r}")

    if not isinstance(config.get('BY_GROUP', True), bool):
        raise ValueError("BY_GROUP must be true or false")

    return config


def rate_with_config(records: pd.DataFrame, config: Dict[str, Any]) -> pd.DataFrame:
    """Resolve weights from a configuration and run the pipeline."""
    weights = resolve_weights(config.get('PRESET', 'balanced'), config.get('WEIGHT_OVERRIDES'))
    return run_rating(
        records, weights,
        by_group=config.get('BY_GROUP', True),
        target_spread=float(config.get('TARGET_SPREAD', 0.15)),
    )


def build_summary(result: pd.DataFrame, config: Dict[str, Any], source: str,
                  timestamp: str) -> Dict[str, Any]:
    """Run summary written beside the ratings CSV."""
    top_n = config.get('TOP_N', 10)
    return {
        'timestamp': timestamp,
        'source': source,
        'preset': config.get('PRESET', 'balanced'),
        'weights': resolve_weights(config.get('PRESET', 'balanced'), config.get('WEIGHT_OVERRIDES')),
        'by_group': config.get('BY_GROUP', True),
        'target_spread': config.get('TARGET_SPREAD', 0.15),
        'total_players': len(result),
        'group_sizes': {str(k): int(v) for k, v in result['group'].value_counts(sort=False).items()},
        'rating_distribution': describe_distribution(result['rating'].astype(float)),
        'top_players': [
            {'rank': int(r['rank']), 'name': r['name'], 'role': r['role'], 'rating': float(r['rating'])}
            for r in result.head(top_n).to_dict(orient='records')
        ],
        'config': config,
    }


def main():
    """CLI entry point for the rating engine."""
    parser = argparse.ArgumentParser(description="Player value rating engine")
    parser.add_argument("--input", type=str,
                       help="Stats CSV to rate")
    parser.add_argument("--sample", action="store_true",
                       help="Rate the bundled sample dataset instead of --input")
    parser.add_argument("--output-root", type=str, default="data/ratings",
                       help="Output directory")
    parser.add_argument("--config", type=str, default=str(DEFAULT_CONFIG_PATH),
                       help="Configuration file path")
    parser.add_argument("--preset", type=str, choices=list(PRESETS),
                       help="Weight preset (overrides config)")
    parser.add_argument("--weight", action="append", default=[], metavar="METRIC=VALUE",
                       help="Per-metric weight override, repeatable")
    group_opt = parser.add_mutually_exclusive_group()
    group_opt.add_argument("--by-group", dest="by_group", action="store_true", default=None,
                          help="Standardize within roles")
    group_opt.add_argument("--no-group", dest="by_group", action="store_false",
                          help="Standardize across all players")
    parser.add_argument("--target-spread", type=float,
                       help="Standard deviation of final ratings")
    parser.add_argument("--top-n", type=int,
                       help="Players to list in the log and summary")
    parser.add_argument("--self-check", action="store_true",
                       help="Run the built-in checks against the sample dataset and exit")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    if args.self_check:
        from src.rating.self_check import run_self_checks, format_self_checks
        checks = run_self_checks()
        print(format_self_checks(checks))
        sys.exit(0 if all(c['passed'] for c in checks) else 1)

    if not args.input and not args.sample:
        parser.error("one of --input or --sample is required")

    from src.io.record_importer import import_records, import_records_file
    from src.io.record_exporter import export_results_file
    from src.io.safe_write import safe_write_json

    try:
        config = load_config(Path(args.config))
        config = apply_overrides(config, {
            'PRESET': args.preset,
            'BY_GROUP': args.by_group,
            'TARGET_SPREAD': args.target_spread,
            'TOP_N': args.top_n,
            'WEIGHT_OVERRIDES': parse_weight_overrides(args.weight),
        })
        validate_config(config)

        if args.sample:
            from src.rating.sample_data import SAMPLE_CSV
            records = import_records(SAMPLE_CSV)
            source = "sample"
        else:
            records = import_records_file(Path(args.input))
            source = args.input

        result_df = rate_with_config(records, config)

        if result_df.empty:
            logger.warning("No ratings generated")
            return

        for r in result_df.head(config.get('TOP_N', 10)).to_dict(orient='records'):
            logger.info(f"  #{r['rank']:>2} {r['name']:<16} {r['role']:<10} {r['rating']:.2f}")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = Path(args.output_root)
        output_dir.mkdir(parents=True, exist_ok=True)

        export_results_file(result_df, output_dir / f"ratings_{timestamp}.csv")
        summary = build_summary(result_df, config, source, timestamp)
        safe_write_json(summary, output_dir / f"summary_{timestamp}.json")

        print(f"Rating complete! {len(result_df)} players rated")

    except Exception as e:
        logger.error(f"Rating failed: {e}")
        raise


if __name__ == "__main__":
    main()

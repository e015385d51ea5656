#!/usr/bin/env python3
"""
Built-in sanity checks for the rating pipeline.

Rates the bundled sample with the balanced preset, role grouping and a 0.15
spread, then checks the headline guarantees of the output.
"""

from typing import Any, Dict, List
import logging

from src.io.record_importer import import_records
from src.normalizers.agent_roles import UNKNOWN_ROLE
from src.rating.presets import resolve_weights
from src.rating.rating_engine import run_rating
from src.rating.sample_data import SAMPLE_CSV
from src.rating.utils_stats import population_mean, population_std

logger = logging.getLogger(__name__)


def approx(a: float, b: float, eps: float = 0.015) -> bool:
    return abs(a - b) <= eps


def run_self_checks(csv_text: str = SAMPLE_CSV, target_spread: float = 0.15) -> List[Dict[str, Any]]:
    """
    Run the pipeline on a dataset and report pass/fail per check.

    Returns:
        List of {'id', 'passed', 'got'} dictionaries
    """
    records = import_records(csv_text)
    result = run_rating(records, resolve_weights('balanced'), by_group=True,
                        target_spread=target_spread)

    mu = population_mean(result['rating'])
    sd = population_std(result['rating'])
    ratings = result['rating'].tolist()
    ordered = len(ratings) > 1 and all(a >= b for a, b in zip(ratings, ratings[1:]))
    roles_mapped = bool((records['role'] != UNKNOWN_ROLE).all())

    checks = [
        {'id': 'mean == 1.00', 'passed': approx(mu, 1.0, 1e-9), 'got': f"{mu:.6f}"},
        {'id': f'std ~ {target_spread:.2f}', 'passed': approx(sd, target_spread, 0.02), 'got': f"{sd:.3f}"},
        {'id': 'sort consistency', 'passed': ordered, 'got': "OK" if ordered else "NG"},
        {'id': 'role mapping', 'passed': roles_mapped, 'got': "OK" if roles_mapped else "Some Unknown"},
    ]

    for check in checks:
        level = logging.INFO if check['passed'] else logging.WARNING
        logger.log(level, f"Self-check {check['id']}: {'PASS' if check['passed'] else 'FAIL'} ({check['got']})")

    return checks


def format_self_checks(checks: List[Dict[str, Any]]) -> str:
    lines = [f"{'PASS' if c['passed'] else 'FAIL'}  {c['id']:<18} {c['got']}" for c in checks]
    return "\n".join(lines)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    print(format_self_checks(run_self_checks()))

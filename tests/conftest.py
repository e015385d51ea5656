#!/usr/bin/env python3
"""
Pytest configuration and fixtures
"""

import pytest
import pandas as pd
import tempfile
import shutil
from pathlib import Path
import sys

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.rating.sample_data import SAMPLE_CSV
from src.schema.player_stats_schema import RAW_NUMERIC_FIELDS


@pytest.fixture
def sample_csv():
    """Ten-player scrim export in the source column format"""
    return SAMPLE_CSV


@pytest.fixture
def sample_records(sample_csv):
    """Imported raw records for the sample export"""
    from src.io.record_importer import import_records
    return import_records(sample_csv)


@pytest.fixture
def balanced_weights():
    """Mutable copy of the balanced preset"""
    from src.rating.presets import resolve_weights
    return resolve_weights('balanced')


@pytest.fixture
def make_records():
    """Factory for raw-record frames; unspecified numeric fields are 0"""
    def _make(rows):
        frame = pd.DataFrame(rows)
        for col in ('name', 'agent', 'role'):
            if col not in frame.columns:
                frame[col] = ""
        for col in RAW_NUMERIC_FIELDS:
            if col not in frame.columns:
                frame[col] = 0.0
        return frame
    return _make


@pytest.fixture
def full_record():
    """One player with every counter populated"""
    return {
        'name': 'Tester', 'agent': 'Jett', 'role': 'Duelist',
        'rounds': 10, 'attack_rounds': 5, 'defense_rounds': 5,
        'kills': 20, 'deaths': 10, 'assists': 5,
        'first_kills': 3, 'first_deaths': 1,
        'two_kills': 4, 'three_kills': 2, 'four_kills': 1, 'five_kills': 0,
        'clutch_wins': 1, 'plants': 2, 'defuses': 1,
        'trade_kills': 3, 'non_damage_assists': 2,
        'acs': 250, 'adr': 150, 'total_damage': 0,
        'kast_percent': 75, 'hs_percent': 25,
        'kills_attack': 12, 'kills_defense': 8,
    }


@pytest.fixture
def temp_data_dir():
    """Temporary directory for test data"""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def sample_csv_file(temp_data_dir, sample_csv):
    """Sample export written to disk"""
    file_path = temp_data_dir / 'sample_stats.csv'
    file_path.write_text(sample_csv, encoding='utf-8')
    return file_path

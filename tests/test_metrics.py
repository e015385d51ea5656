#!/usr/bin/env python3
"""
Test suite for metric derivation
"""

import pytest
import pandas as pd
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.rating.metrics import METRIC_COLUMNS, derive_metrics, derive_record


class TestDeriveRecord:
    """Test cases for single-record derivation"""

    def test_per_round_rates(self, full_record):
        """Test that counters are divided by rounds"""
        m = derive_record(full_record)

        assert m['kpr'] == pytest.approx(2.0)
        assert m['dpr'] == pytest.approx(1.0)
        assert m['entry'] == pytest.approx(0.2)
        assert m['acs_per_round'] == pytest.approx(25.0)
        assert m['clutch'] == pytest.approx(0.1)
        assert m['objective'] == pytest.approx(0.3)

    def test_percentages_become_fractions(self, full_record):
        """Test KAST and headshot percentages are scaled to 0-1"""
        m = derive_record(full_record)

        assert m['kast'] == pytest.approx(0.75)
        assert m['headshot'] == pytest.approx(0.25)

    def test_multikill_tiers(self, full_record):
        """Test multikill weights 0.5/1/1.5/2 per tier"""
        m = derive_record(full_record)

        # (4*0.5 + 2*1 + 1*1.5 + 0*2) / 10
        assert m['multikill'] == pytest.approx(0.55)

    def test_support_counts_half_non_damage_assists(self, full_record):
        """Test support combines assists, trades and half of non-damage assists"""
        m = derive_record(full_record)

        # (5 + 3 + 2*0.5) / 10
        assert m['support'] == pytest.approx(0.9)

    def test_explicit_adr_used(self, full_record):
        """Test explicit ADR takes precedence over total damage"""
        full_record['total_damage'] = 9999
        assert derive_record(full_record)['adr'] == pytest.approx(150.0)

    def test_adr_falls_back_to_total_damage(self, full_record):
        """Test ADR derives from total damage when no explicit value"""
        full_record['adr'] = 0
        full_record['total_damage'] = 1400
        assert derive_record(full_record)['adr'] == pytest.approx(140.0)

    def test_zero_rounds_floored_to_one(self):
        """Test zero rounds never divides by zero"""
        m = derive_record({'name': 'Nobody', 'rounds': 0, 'kills': 3, 'deaths': 2})

        assert m['kpr'] == pytest.approx(3.0)
        assert m['dpr'] == pytest.approx(2.0)

    def test_missing_fields_default_to_zero(self):
        """Test a bare record derives without error"""
        m = derive_record({'name': 'Empty'})

        assert set(m) == set(METRIC_COLUMNS)
        assert m['kpr'] == 0.0
        assert m['adr'] == 0.0
        assert m['headshot'] == 0.0


class TestConsistency:
    """Test cases for the attack/defense consistency metric"""

    def test_uneven_sides(self, full_record):
        """Test consistency penalizes a gap between sides"""
        m = derive_record(full_record)

        # attack 12/5 = 2.4, defense 8/5 = 1.6 -> 1 - 0.8/2.4
        assert m['consistency'] == pytest.approx(1 - 0.8 / 2.4)

    def test_even_sides_score_one(self, full_record):
        """Test identical side KPR gives full consistency"""
        full_record['kills_attack'] = 10
        full_record['kills_defense'] = 10
        assert derive_record(full_record)['consistency'] == pytest.approx(1.0)

    def test_missing_split_kills_use_half_of_total(self):
        """Test missing split kills fall back to half the total"""
        m = derive_record({'rounds': 11, 'attack_rounds': 6, 'defense_rounds': 5, 'kills': 24})

        attack, defense = 12 / 6, 12 / 5
        assert m['consistency'] == pytest.approx(1 - abs(attack - defense) / defense)

    def test_no_side_rounds_uses_overall_kpr(self):
        """Test players without side rounds are fully consistent"""
        m = derive_record({'rounds': 10, 'kills': 15})
        assert m['consistency'] == pytest.approx(1.0)

    def test_low_fragger_denominator_floor(self):
        """Test the 0.1 floor on the consistency denominator"""
        m = derive_record({
            'rounds': 20, 'attack_rounds': 10, 'defense_rounds': 10,
            'kills': 1, 'kills_attack': 0.5, 'kills_defense': 0.1,
        })

        # attack 0.05, defense 0.01, floor 0.1 -> 1 - 0.04/0.1
        assert m['consistency'] == pytest.approx(0.6)

    def test_consistency_never_negative(self):
        """Test consistency is clipped at zero"""
        m = derive_record({
            'rounds': 10, 'attack_rounds': 5, 'defense_rounds': 5,
            'kills': 10, 'kills_attack': 10, 'kills_defense': -10,
        })
        assert m['consistency'] == 0.0


class TestDeriveMetrics:
    """Test cases for frame-level derivation"""

    def test_adds_every_metric_column(self, sample_records):
        """Test all metric columns are produced"""
        derived = derive_metrics(sample_records)

        for col in METRIC_COLUMNS:
            assert col in derived.columns
        assert len(derived) == len(sample_records)

    def test_input_not_mutated(self, sample_records):
        """Test derivation returns a new frame"""
        before = sample_records.copy()
        derive_metrics(sample_records)

        pd.testing.assert_frame_equal(sample_records, before)

    def test_non_numeric_values_read_as_zero(self):
        """Test junk in numeric columns becomes 0"""
        frame = pd.DataFrame({'name': ['A'], 'rounds': ['ten'], 'kills': ['abc'], 'deaths': [None]})
        derived = derive_metrics(frame)

        assert derived['kpr'].iloc[0] == 0.0
        assert derived['dpr'].iloc[0] == 0.0
        assert derived['rounds'].iloc[0] == 0.0

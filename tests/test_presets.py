#!/usr/bin/env python3
"""
Test suite for weight presets
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.rating.presets import (
    DEFAULT_WEIGHTS, PRESETS, WEIGHT_KEYS, WeightPreset, get_preset,
    parse_weight_overrides, resolve_weights
)


class TestPresets:
    """Test cases for the predefined weight vectors"""

    def test_preset_names(self):
        assert list(PRESETS) == [
            'balanced', 'firepower-focused', 'stability-focused',
            'entry-focused', 'combat-score-focused',
        ]

    def test_balanced_matches_defaults(self):
        assert dict(PRESETS['balanced'].weights) == dict(DEFAULT_WEIGHTS)
        assert PRESETS['balanced'].weights['dpr'] == 0.40

    def test_weights_use_known_keys(self):
        for preset in PRESETS.values():
            assert set(preset.weights) <= set(WEIGHT_KEYS)

    def test_death_weight_stored_positive(self):
        """Test the scorer, not the preset, carries the dpr sign"""
        for preset in PRESETS.values():
            assert preset.weights['dpr'] > 0

    def test_presets_are_immutable(self):
        with pytest.raises(TypeError):
            PRESETS['balanced'].weights['kpr'] = 1.0
        with pytest.raises(TypeError):
            PRESETS['custom'] = WeightPreset('custom', 'Custom', {})

    def test_preset_copies_input_mapping(self):
        source = {'kpr': 0.5}
        preset = WeightPreset('custom', 'Custom', source)
        source['kpr'] = 9.0

        assert preset.weights['kpr'] == 0.5

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match='Unknown weight preset'):
            get_preset('nope')


class TestResolveWeights:
    """Test cases for building a weight vector"""

    def test_returns_fresh_copy(self):
        weights = resolve_weights('balanced')
        weights['kpr'] = 5.0

        assert resolve_weights('balanced')['kpr'] == 0.30

    def test_overrides_applied(self):
        weights = resolve_weights('entry-focused', {'kpr': 0.5, 'clutch': 0.2})

        assert weights['kpr'] == 0.5
        assert weights['clutch'] == 0.2
        assert weights['entry'] == 0.35

    def test_unknown_metric_ignored(self, caplog):
        with caplog.at_level('WARNING'):
            weights = resolve_weights('balanced', {'bogus': 1.0})

        assert 'bogus' not in weights
        assert 'bogus' in caplog.text

    def test_negative_weight_allowed(self, caplog):
        with caplog.at_level('WARNING'):
            weights = resolve_weights('balanced', {'headshot': -0.1})

        assert weights['headshot'] == -0.1
        assert 'Negative weights' in caplog.text


class TestParseWeightOverrides:
    """Test cases for metric=value parsing"""

    def test_parses_pairs(self):
        assert parse_weight_overrides(['kpr=0.4', ' dpr = 0.5']) == {'kpr': 0.4, 'dpr': 0.5}

    def test_empty(self):
        assert parse_weight_overrides([]) == {}
        assert parse_weight_overrides(None) == {}

    @pytest.mark.parametrize('pair', ['kpr', 'kpr=high'])
    def test_bad_pairs(self, pair):
        with pytest.raises(ValueError):
            parse_weight_overrides([pair])

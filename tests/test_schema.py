#!/usr/bin/env python3
"""
Test suite for player stats schema validation
"""

import pytest
import pandas as pd
import pandera as pa
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from src.rating.rating_engine import run_rating
from src.schema.player_stats_schema import (
    RAW_FIELDS, RawPlayerSchema, RatingResultSchema, empty_raw_frame, validate_dataframe
)


class TestRawPlayerSchema:
    """Test cases for RawPlayerSchema"""

    def test_valid_records(self, make_records):
        records = make_records([{'name': 'A', 'role': 'Duelist', 'rounds': 10, 'kills': 12}])
        validated = validate_dataframe(records)

        assert len(validated) == 1
        assert validated['kills'].dtype == float

    def test_numbers_coerced(self, make_records):
        records = make_records([{'name': 'A', 'rounds': '10', 'kills': '12'}])
        validated = validate_dataframe(records)

        assert validated['rounds'].iloc[0] == 10.0

    def test_negative_rounds_fail(self, make_records):
        records = make_records([{'name': 'A', 'rounds': -1}])

        with pytest.raises(pa.errors.SchemaError):
            validate_dataframe(records)

    def test_negative_counters_allowed(self, make_records):
        """Test only round counts are range-checked"""
        records = make_records([{'name': 'A', 'rounds': 5, 'first_kills': -1}])
        assert len(validate_dataframe(records)) == 1

    def test_missing_column_fails(self):
        with pytest.raises(pa.errors.SchemaError):
            validate_dataframe(pd.DataFrame({'name': ['A']}))

    def test_empty_raw_frame(self):
        frame = empty_raw_frame()

        assert list(frame.columns) == RAW_FIELDS
        assert len(validate_dataframe(frame)) == 0


class TestRatingResultSchema:
    """Test cases for RatingResultSchema"""

    def test_pipeline_output_valid(self, sample_records, balanced_weights):
        result = run_rating(sample_records, balanced_weights)
        assert len(validate_dataframe(result, RatingResultSchema)) == 10

    def test_unsorted_output_fails(self, sample_records, balanced_weights):
        result = run_rating(sample_records, balanced_weights)
        shuffled = result.iloc[::-1].reset_index(drop=True)

        with pytest.raises(pa.errors.SchemaError):
            validate_dataframe(shuffled, RatingResultSchema)

    def test_non_finite_rating_fails(self):
        frame = pd.DataFrame({
            'rank': [1, 2], 'name': ['A', 'B'], 'role': ['Duelist', 'Duelist'],
            'raw_score': [0.1, 0.0], 'rating': [float('inf'), 1.0],
        })
        with pytest.raises(pa.errors.SchemaError):
            validate_dataframe(frame, RatingResultSchema)

    def test_duplicate_rank_fails(self):
        frame = pd.DataFrame({
            'rank': [1, 1], 'name': ['A', 'B'], 'role': ['Duelist', 'Duelist'],
            'raw_score': [0.1, 0.0], 'rating': [1.1, 0.9],
        })
        with pytest.raises(pa.errors.SchemaError):
            validate_dataframe(frame, RatingResultSchema)

"""
Tests for interaction matrices and matrix building.

Tests for hummnet/networks/matrix.py
"""

from __future__ import annotations

import pickle
import random
from dataclasses import replace

import numpy as np
import pytest

from hummnet.common import (
    DuplicateCellError,
    EmptyInputError,
    MissingWeightError,
    NetworkInputError,
)
from hummnet.networks import InteractionMatrix, build_matrix


class TestBuildMatrix:
    """Test build_matrix."""

    def test_sorted_labels(self, simple_records):
        """Test labels are the sorted distinct entities."""
        matrix = build_matrix(simple_records)
        assert matrix.rows == ("Besleria", "Costus", "Heliconia")
        assert matrix.columns == ("Phaethornis", "Thalurania")

    def test_cell_values(self, simple_records):
        """Test cells hold record weights and zeros elsewhere."""
        matrix = build_matrix(simple_records)
        assert matrix.value("Heliconia", "Phaethornis") == 4.0
        assert matrix.value("Besleria", "Phaethornis") == 0.0
        np.testing.assert_array_equal(matrix.values, [[0, 3], [2, 0], [4, 1]])

    def test_permutation_invariant(self, simple_records):
        """Test any record order gives the identical matrix."""
        reference = build_matrix(simple_records)
        rng = random.Random(7)
        for _ in range(10):
            shuffled = list(simple_records)
            rng.shuffle(shuffled)
            assert build_matrix(shuffled) == reference

    def test_no_zero_padding(self, records_of):
        """Test only entities present in the records become labels."""
        matrix = build_matrix(records_of({("Costus", "Amazilia"): 1}))
        assert matrix.shape == (1, 1)

    def test_empty_input(self):
        """Test empty input raises EmptyInputError."""
        with pytest.raises(EmptyInputError):
            build_matrix([])

    def test_duplicate_cell(self, simple_records):
        """Test two records for one cell raise DuplicateCellError."""
        with pytest.raises(DuplicateCellError) as info:
            build_matrix(simple_records + simple_records[:1])
        assert info.value.row == "Heliconia"
        assert isinstance(info.value, NetworkInputError)

    def test_raw_count_field(self, records_of):
        """Test building the raw-count matrix."""
        records = records_of({("Costus", "Amazilia"): 0.5, ("Costus", "Phaethornis"): 0.25})
        records = [replace(r, raw_count=7.0) for r in records]
        matrix = build_matrix(records, weight_field="raw_count")
        np.testing.assert_array_equal(matrix.values, [[7.0, 7.0]])

    def test_missing_raw_count(self, records_of):
        """Test a missing raw count raises MissingWeightError."""
        records = records_of({("Costus", "Amazilia"): 1}, with_counts=False)
        with pytest.raises(MissingWeightError):
            build_matrix(records, weight_field="raw_count")

    def test_unknown_weight_field(self, simple_records):
        """Test an unknown weight field is a ValueError."""
        with pytest.raises(ValueError):
            build_matrix(simple_records, weight_field="rate")


class TestInteractionMatrix:
    """Test InteractionMatrix behaviour."""

    def test_read_only(self, matrix_of):
        """Test the value array cannot be modified."""
        matrix = matrix_of([[1, 2], [3, 4]])
        with pytest.raises(ValueError):
            matrix.values[0, 0] = 10

    def test_input_array_copied(self):
        """Test later changes to the source array do not leak in."""
        source = np.ones((2, 2))
        matrix = InteractionMatrix(source, ["a", "b"], ["x", "y"])
        source[0, 0] = 5
        assert matrix.values[0, 0] == 1

    def test_shape_mismatch(self):
        """Test labels must match the array shape."""
        with pytest.raises(ValueError):
            InteractionMatrix(np.ones((2, 2)), ["a"], ["x", "y"])

    def test_duplicate_labels(self):
        """Test duplicate labels are rejected."""
        with pytest.raises(ValueError):
            InteractionMatrix(np.ones((2, 1)), ["a", "a"], ["x"])

    def test_negative_values(self):
        """Test negative weights are rejected."""
        with pytest.raises(ValueError):
            InteractionMatrix(np.array([[-1.0]]), ["a"], ["x"])

    def test_degenerate(self, matrix_of):
        """Test matrices below 2x2 are degenerate."""
        assert matrix_of([[1]]).is_degenerate
        assert matrix_of([[1, 2, 3]]).is_degenerate
        assert not matrix_of([[1, 0], [0, 1]]).is_degenerate

    def test_totals(self, matrix_of):
        """Test marginal and grand totals."""
        matrix = matrix_of([[1, 2], [3, 0]])
        np.testing.assert_array_equal(matrix.row_totals, [3, 3])
        np.testing.assert_array_equal(matrix.column_totals, [4, 2])
        assert matrix.total == 6
        assert matrix.n_links == 3

    def test_is_integer(self, matrix_of):
        """Test integer detection."""
        assert matrix_of([[1, 2]]).is_integer()
        assert not matrix_of([[1.5, 2]]).is_integer()

    def test_binary(self, matrix_of):
        """Test presence/absence conversion."""
        np.testing.assert_array_equal(
            matrix_of([[0.2, 0], [3, 1]]).binary().values, [[1, 0], [1, 1]]
        )

    def test_reindex_pads_zeros(self, matrix_of):
        """Test reindexing onto a superset pads with zeros."""
        matrix = matrix_of([[1, 2]], rows=["b"], columns=["x", "z"])
        wider = matrix.reindex(["a", "b"], ["x", "y", "z"])
        np.testing.assert_array_equal(wider.values, [[0, 0, 0], [1, 0, 2]])

    def test_reindex_cannot_drop(self, matrix_of):
        """Test reindexing may not drop existing labels."""
        matrix = matrix_of([[1, 2]], rows=["b"], columns=["x", "z"])
        with pytest.raises(ValueError):
            matrix.reindex(["b"], ["x"])

    def test_empty(self):
        """Test the empty matrix."""
        empty = InteractionMatrix.empty()
        assert empty.shape == (0, 0)
        assert empty.total == 0.0
        assert empty.reindex(["a"], ["x"]).values.tolist() == [[0.0]]

    def test_to_dict(self, matrix_of):
        """Test nested dict of non-zero cells."""
        matrix = matrix_of([[1, 0], [0, 2]])
        assert matrix.to_dict() == {"plant1": {"bird1": 1.0}, "plant2": {"bird2": 2.0}}

    def test_pickle_round_trip(self, matrix_of):
        """Test pickling keeps labels, values and read-only state."""
        matrix = matrix_of([[1, 2], [3, 4]])
        restored = pickle.loads(pickle.dumps(matrix))
        assert restored == matrix
        assert not restored.values.flags.writeable

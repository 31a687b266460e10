"""
Pytest configuration and shared fixtures for hummnet tests.

Provides interaction records, small matrices and a synthetic study with
two sampling methods, two replicates and two periods.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import numpy as np
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from hummnet.common import InteractionRecord
from hummnet.networks import InteractionMatrix


def make_records(
    cells: dict,
    replicate_id: str = "2019_A",
    period: str = "pre",
    sampling_method: str = "camera",
    with_counts: bool = True,
) -> List[InteractionRecord]:
    """Records of one network from a {(plant, bird): weight} mapping."""
    return [
        InteractionRecord(
            replicate_id=replicate_id,
            period=period,
            sampling_method=sampling_method,
            row_entity=plant,
            column_entity=bird,
            weight=weight,
            raw_count=weight if with_counts else None,
        )
        for (plant, bird), weight in cells.items()
    ]


def matrix_from_array(values, rows=None, columns=None) -> InteractionMatrix:
    """InteractionMatrix with default plant/bird labels."""
    values = np.asarray(values, dtype=float)
    rows = rows or [f"plant{i + 1}" for i in range(values.shape[0])]
    columns = columns or [f"bird{j + 1}" for j in range(values.shape[1])]
    return InteractionMatrix(values, rows, columns)


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def simple_records() -> List[InteractionRecord]:
    """Camera records of one 3x2 network."""
    return make_records(
        {
            ("Heliconia", "Phaethornis"): 4,
            ("Heliconia", "Thalurania"): 1,
            ("Costus", "Phaethornis"): 2,
            ("Besleria", "Thalurania"): 3,
        }
    )


# =============================================================================
# Matrix Fixtures
# =============================================================================


@pytest.fixture
def turnover_pair():
    """
    Pre/post pair over plant1-3 where bird3 is replaced by bird4.

    before = [[1,1,0],[1,0,1],[1,0,0]] on bird1-3
    after  = [[0,1,0],[1,0,1],[1,1,1]] on bird1, bird2, bird4
    """
    before = matrix_from_array(
        [[1, 1, 0], [1, 0, 1], [1, 0, 0]], columns=["bird1", "bird2", "bird3"]
    )
    after = matrix_from_array(
        [[0, 1, 0], [1, 0, 1], [1, 1, 1]], columns=["bird1", "bird2", "bird4"]
    )
    return before, after


@pytest.fixture
def specialist_matrix() -> InteractionMatrix:
    """Two generalist birds sharing plant1-2 and a specialist on plant3."""
    return matrix_from_array(
        [[4, 4, 0], [4, 4, 0], [0, 0, 2]],
        columns=["birdA", "birdB", "birdC"],
    )


# =============================================================================
# Study Fixtures
# =============================================================================


@pytest.fixture
def study_records() -> List[InteractionRecord]:
    """
    Synthetic study: camera/pollen x 2019_A/2019_B x pre/post.

    - pollen/2019_B/post has no records (build failure)
    - camera/2019_A/post has a single bird (network too small)
    """
    base = {
        ("Heliconia", "Phaethornis"): 5,
        ("Heliconia", "Thalurania"): 1,
        ("Costus", "Phaethornis"): 2,
        ("Costus", "Amazilia"): 1,
        ("Besleria", "Thalurania"): 3,
        ("Besleria", "Amazilia"): 2,
    }
    shifted = {
        ("Heliconia", "Phaethornis"): 3,
        ("Costus", "Thalurania"): 2,
        ("Besleria", "Thalurania"): 1,
        ("Palicourea", "Amazilia"): 4,
    }
    single_bird = {
        ("Heliconia", "Phaethornis"): 2,
        ("Costus", "Phaethornis"): 1,
    }

    records = []
    records += make_records(base, "2019_A", "pre", "camera")
    records += make_records(single_bird, "2019_A", "post", "camera")
    records += make_records(base, "2019_B", "pre", "camera")
    records += make_records(shifted, "2019_B", "post", "camera")
    records += make_records(shifted, "2019_A", "pre", "pollen")
    records += make_records(base, "2019_A", "post", "pollen")
    records += make_records(base, "2019_B", "pre", "pollen")
    return records


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def records_of():
    """Factory: records of one network from a {(plant, bird): weight} mapping."""
    return make_records


@pytest.fixture
def matrix_of():
    """Factory: InteractionMatrix from a nested list with default labels."""
    return matrix_from_array

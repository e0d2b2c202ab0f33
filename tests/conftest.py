"""Pytest configuration for bootlr tests.

Tests run with far fewer bootstrap replications than the recommended
50,000 to stay fast; pyproject.toml silences the resulting
LowReplicationWarning.
"""

import numpy as np
import pytest

from bootlr import SearchParameters


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def fast_parameters():
    """Coarser grid than the default to keep boundary searches quick."""
    return SearchParameters(shrink_factor=5.0, tolerance=0.0005, points_per_round=40)

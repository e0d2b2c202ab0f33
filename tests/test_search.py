"""Tests for search module."""

import dataclasses
import logging
import math
import warnings

import numpy as np
import pytest

from bootlr import (
    ConvergenceError,
    GridEvaluationError,
    ProbabilityDomainWarning,
    SearchDepthExceededError,
    SearchParameters,
    median_consistently_saturated,
    sequential_grid_search,
)


def always(x):
    return np.ones_like(x, dtype=bool)


class TestSequentialGridSearch:
    """Test sequential_grid_search function."""

    def test_unconstrained_quadratic(self):
        """Test that x**2 on [-1, 1] converges to 0.

        41 points put 0 on the grid; with an even count the two points
        nearest 0 tie in the first round and the search stops there.
        """
        tol = 1e-6
        x = sequential_grid_search(lambda x: x**2, always, (-1, 1), points_per_round=41, tolerance=tol)

        assert abs(x) < tol

    def test_symmetric_even_grid_stops_early(self):
        """Test that the default 40-point grid on [-1, 1] stops at a first-round tie."""
        x = sequential_grid_search(lambda x: x**2, always, (-1, 1))

        assert abs(x) == pytest.approx(1 / 39)

    def test_quadratic_asymmetric_bounds(self):
        """Test convergence towards 0 when no grid point hits it exactly."""
        x = sequential_grid_search(lambda x: x**2, always, (-1, 0.7), points_per_round=40)

        assert abs(x) < 5e-3

    def test_constrained_minimum(self):
        """Test that the smallest feasible input is found."""
        x = sequential_grid_search(
            lambda x: x,
            lambda x: x >= 0.3,
            (0, 1),
            points_per_round=41,
            shrink_factor=10,
            tolerance=1e-4,
        )

        assert 0.3 <= x < 0.301

    def test_ties_resolved_in_scan_order(self):
        """Test that the first of several tied minimizers is returned."""
        x = sequential_grid_search(lambda x: np.zeros_like(x), always, (0.2, 0.8), points_per_round=7)

        assert x == 0.2

    def test_no_feasible_point(self):
        """Test that an empty feasible set is a convergence failure."""
        with pytest.raises(ConvergenceError, match="looser tolerance"):
            sequential_grid_search(lambda x: x, lambda x: np.zeros_like(x, dtype=bool), (0, 1))

    def test_nan_objective(self):
        """Test that NaN from the objective is fatal."""
        with pytest.raises(GridEvaluationError, match="evaluating f"):
            sequential_grid_search(lambda x: np.full_like(x, np.nan), always, (0, 1))

    def test_nan_constraint(self):
        """Test that NaN from the constraint is fatal."""
        with pytest.raises(GridEvaluationError, match="evaluating constraint"):
            sequential_grid_search(lambda x: x, lambda x: np.full_like(x, np.nan), (0, 1))

    def test_nan_is_not_a_convergence_failure(self):
        """Test that evaluation errors are not retried as convergence failures."""
        with pytest.raises(GridEvaluationError) as excinfo:
            sequential_grid_search(lambda x: np.full_like(x, np.nan), always, (0, 1))

        assert not isinstance(excinfo.value, ConvergenceError)

    def test_max_depth(self):
        """Test that the search stops after max_depth rounds."""
        with pytest.raises(SearchDepthExceededError) as excinfo:
            sequential_grid_search(lambda x: x, always, (0, 1), tolerance=1e-300, max_depth=3)

        assert excinfo.value.depth == 3
        assert isinstance(excinfo.value, ConvergenceError)

    def test_verbose_logging(self, caplog):
        """Test that verbose mode logs each round at INFO."""
        with caplog.at_level(logging.INFO, logger="bootlr.search"):
            sequential_grid_search(lambda x: x**2, always, (-1, 1), points_per_round=41, verbose=True)

        assert "Grid searching between -1.0 and 1.0" in caplog.text
        assert "Success" in caplog.text

    def test_quiet_by_default(self, caplog):
        """Test that nothing is logged at INFO without verbose."""
        with caplog.at_level(logging.INFO, logger="bootlr.search"):
            sequential_grid_search(lambda x: x**2, always, (-1, 1), points_per_round=41)

        assert caplog.text == ""


class TestMedianConsistentlySaturated:
    """Test median_consistently_saturated function."""

    def test_out_of_domain_without_warning(self):
        """Test that pr > 1 returns False silently when warn=False."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert median_consistently_saturated(1.1, size=100, R=1000, warn=False) is False

    def test_out_of_domain_warns(self):
        """Test that pr < 0 returns False with a warning."""
        with pytest.warns(ProbabilityDomainWarning):
            assert median_consistently_saturated(-0.1, size=100, R=1000) is False

    def test_certain_success(self):
        """Test that pr = 1 always saturates."""
        assert median_consistently_saturated(1.0, size=100, R=1000, random_seed=0) is True

    def test_high_probability_saturates(self):
        """Test a probability well above the boundary."""
        # P(X = 100) = 0.999**100 ~ 0.90
        assert median_consistently_saturated(0.999, size=100, R=2000, random_seed=1) is True

    def test_low_probability_does_not_saturate(self):
        """Test probabilities well below the boundary."""
        assert median_consistently_saturated(0.98, size=100, R=2000, random_seed=1) is False
        assert median_consistently_saturated(0.5, size=10, R=2000, random_seed=1) is False

    def test_reproducible_with_seed(self):
        """Test that a fixed seed gives a fixed answer near the boundary."""
        first = median_consistently_saturated(0.9931, size=100, R=2000, random_seed=7)
        second = median_consistently_saturated(0.9931, size=100, R=2000, random_seed=7)

        assert first == second


class TestSearchParameters:
    """Test SearchParameters dataclass."""

    def test_defaults(self):
        """Test the default search parameters."""
        params = SearchParameters()

        assert params.shrink_factor == 5.0
        assert params.tolerance == 0.0005
        assert params.points_per_round == 80

    def test_loosen(self):
        """Test a single loosening step."""
        loosened = SearchParameters().loosen()

        assert loosened.shrink_factor == pytest.approx(3.6)
        assert loosened.tolerance == 0.001
        assert loosened.points_per_round == math.floor(80 * 1.3)

    def test_loosen_only_loosens(self):
        """Test that repeated loosening never tightens any parameter."""
        params = SearchParameters(shrink_factor=10.0, tolerance=0.01, points_per_round=2)
        for _ in range(20):
            loosened = params.loosen()
            assert loosened.tolerance >= params.tolerance
            assert 1 < loosened.shrink_factor <= params.shrink_factor
            assert loosened.points_per_round >= params.points_per_round
            params = loosened

    def test_loosen_returns_new_instance(self):
        """Test that loosening leaves the original untouched."""
        params = SearchParameters()
        params.loosen()

        assert params == SearchParameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.tolerance = 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"shrink_factor": 1.0}, {"tolerance": 0.0}, {"points_per_round": 1}],
    )
    def test_invalid(self, kwargs):
        """Test that out-of-range parameters are rejected."""
        with pytest.raises(ValueError):
            SearchParameters(**kwargs)

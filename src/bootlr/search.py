"""Naive sequential grid search and the median-saturation probe it drives.

The grid search is narrow-purpose: it minimizes a 1-D function subject to a
(possibly stochastic) boolean constraint by repeatedly evaluating an even
grid and zooming in on the best feasible point.
"""

import logging
import math
import warnings
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from .exceptions import (
    ConvergenceError,
    GridEvaluationError,
    ProbabilityDomainWarning,
    SearchDepthExceededError,
)

__all__ = [
    "CONVERGENCE_HINT",
    "MIN_RETRY_TOLERANCE",
    "SearchParameters",
    "sequential_grid_search",
    "median_consistently_saturated",
]

logger = logging.getLogger(__name__)

CONVERGENCE_HINT = (
    "Try setting a looser tolerance, a lower shrinkage value, or a higher number of points per round."
)

# Floor applied to the tolerance once a search has failed to converge
MIN_RETRY_TOLERANCE = 0.001


@dataclass(frozen=True)
class SearchParameters:
    """Control parameters for the boundary grid search.

    Attributes
    ----------
    shrink_factor : float
        Factor by which each round narrows the grid (> 1)
    tolerance : float
        Convergence tolerance on the searched probability (> 0)
    points_per_round : int
        Grid points evaluated per round (>= 2)
    """

    shrink_factor: float = 5.0
    tolerance: float = 0.0005
    points_per_round: int = 80

    def __post_init__(self) -> None:
        if not self.shrink_factor > 1:
            raise ValueError(f"shrink_factor must be > 1, got {self.shrink_factor}")
        if not self.tolerance > 0:
            raise ValueError(f"tolerance must be > 0, got {self.tolerance}")
        if self.points_per_round < 2:
            raise ValueError(f"points_per_round must be >= 2, got {self.points_per_round}")

    def loosen(self) -> "SearchParameters":
        """Return the parameters for the next attempt after a convergence failure."""
        return SearchParameters(
            shrink_factor=(self.shrink_factor - 1) * 0.65 + 1,
            tolerance=max(self.tolerance, MIN_RETRY_TOLERANCE),
            points_per_round=math.floor(self.points_per_round * 1.3),
        )


def _evaluate(func: Callable[[np.ndarray], np.ndarray], x: np.ndarray, name: str) -> np.ndarray:
    try:
        values = np.asarray(func(x), dtype=float)
    except (TypeError, ValueError) as exc:
        raise GridEvaluationError(f"Non-numeric values produced while evaluating {name}") from exc
    if values.shape != x.shape:
        values = np.broadcast_to(values, x.shape)
    if np.any(np.isnan(values)):
        raise GridEvaluationError(f"NaNs produced while evaluating {name}")
    return values


def sequential_grid_search(
    f: Callable[[np.ndarray], np.ndarray],
    constraint: Callable[[np.ndarray], np.ndarray],
    bounds: tuple[float, float],
    points_per_round: int = 40,
    shrink_factor: float = 10.0,
    tolerance: float = float(np.finfo(float).eps) ** 0.5,
    verbose: bool = False,
    max_depth: int = 200,
) -> float:
    """Minimize ``f`` subject to ``constraint`` by recursive grid refinement.

    Parameters
    ----------
    f : callable
        Vectorized objective: maps a 1-D array of inputs to their values
    constraint : callable
        Vectorized predicate: maps a 1-D array of inputs to booleans, True
        where the input is feasible. May be stochastic.
    bounds : tuple[float, float]
        Lower and upper bound of the first grid
    points_per_round : int, default=40
        Number of evenly spaced points evaluated per round
    shrink_factor : float, default=10.0
        Each round narrows the search width by ``1 / shrink_factor``;
        ideally no more than half of ``points_per_round``
    tolerance : float, default=sqrt(machine epsilon)
        Convergence tolerance on the objective value
    verbose : bool, default=False
        Log each round at INFO instead of DEBUG. Nothing is shown unless
        logging is configured, e.g. ``logging.basicConfig(level=logging.INFO)``
    max_depth : int, default=200
        Maximum number of rounds before giving up

    Returns
    -------
    float
        The feasible input with the smallest objective value found

    Raises
    ------
    GridEvaluationError
        If ``f`` or ``constraint`` produces NaN. This is a fatal error and
        not a ``ConvergenceError``, so it is never retried.
    ConvergenceError
        If no grid point in a round satisfies the constraint
    SearchDepthExceededError
        If no convergence after ``max_depth`` rounds

    Examples
    --------
    >>> always = lambda x: np.ones_like(x, dtype=bool)
    >>> x = sequential_grid_search(lambda x: x**2, always, (-1, 1), points_per_round=41)
    >>> abs(x) < 1e-3
    True

    Notes
    -----
    The search stops when the best value of this round is within
    ``tolerance`` of the previous round's best, or when a second feasible
    point of this round is within ``tolerance`` of the best. Ties for the
    minimum are resolved by taking the first point in scan order.

    A grid symmetric about the minimizer stops in its first round: for
    ``x**2`` on (-1, 1) with 40 points, the values at +/-0.0256 are within
    tolerance of each other and one of the two is returned. An odd
    ``points_per_round`` puts the centre on the grid.
    """
    log = logger.info if verbose else logger.debug
    lower, upper = float(bounds[0]), float(bounds[1])
    previous_best_value: float | None = None

    for _ in range(max_depth):
        log("Grid searching between %s and %s", lower, upper)
        x = np.linspace(lower, upper, points_per_round)
        fx = _evaluate(f, x, "f")
        cx = _evaluate(constraint, x, "constraint").astype(bool)

        if not np.any(cx):
            raise ConvergenceError(f"No value found while searching between {lower} and {upper}. {CONVERGENCE_HINT}")

        best_idx = int(np.flatnonzero(cx)[np.argmin(fx[cx])])
        best_x = float(x[best_idx])
        best_value = float(fx[best_idx])
        log("New value found as: %s, producing value %s", best_x, best_value)

        if previous_best_value is not None and abs(best_value - previous_best_value) < tolerance:
            log("Successive rounds within tolerance. Success!")
            return best_x

        others = cx & (x != best_x)
        if np.any(others) and abs(best_value - float(np.min(fx[others]))) < tolerance:
            log("Two values this round within tolerance. Success!")
            return best_x

        log("No values within tolerance. Narrowing the grid.")
        half_width = abs(upper - lower) / shrink_factor / 2
        lower, upper = best_x - half_width, best_x + half_width
        previous_best_value = best_value

    raise SearchDepthExceededError(
        f"Grid search did not converge within {max_depth} rounds. {CONVERGENCE_HINT}",
        depth=max_depth,
    )


def median_consistently_saturated(
    pr: float,
    size: int,
    R: int,
    n_consistent_runs: int = 5,
    warn: bool = True,
    random_seed: int | np.random.Generator | None = None,
) -> bool:
    """Check whether ``pr`` reliably gives a bootstrap median of ``size``.

    Draws ``R`` binomial(``size``, ``pr``) values ``n_consistent_runs`` times
    and reports whether every batch has a median equal to ``size``, i.e.
    whether a population probability of ``pr`` is consistently most likely
    to reproduce an all-successes sample such as 100/100.

    Parameters
    ----------
    pr : float
        Candidate population probability
    size : int
        Number of binomial trials
    R : int
        Number of bootstrap draws per run
    n_consistent_runs : int, default=5
        Number of runs whose medians must all equal ``size``
    warn : bool, default=True
        Emit :class:`ProbabilityDomainWarning` when ``pr`` is outside [0, 1]
    random_seed : int, Generator or None
        Seed or generator for the binomial draws

    Returns
    -------
    bool
        False outside [0, 1]; otherwise True only if all medians equal ``size``

    Examples
    --------
    >>> prs = np.arange(0.990, 0.995, 0.001)
    >>> bools = [median_consistently_saturated(p, size=100, R=10_000, random_seed=0) for p in prs]
    """
    if not 0.0 <= pr <= 1.0:
        if warn:
            warnings.warn(
                "Searching probabilities outside of [0, 1]. Returning False.",
                ProbabilityDomainWarning,
                stacklevel=2,
            )
        return False

    rng = np.random.default_rng(random_seed)
    for _ in range(n_consistent_runs):
        if np.median(rng.binomial(size, pr, size=R)) != size:
            return False
    return True

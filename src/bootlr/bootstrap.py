"""Bootstrap samples of a proportion, including the saturated (100%) case.

:func:`bootstrap_statistic` is the ordinary nonparametric bootstrap.
:func:`draw_maxed_out` stands in for it when every trial succeeded, where
ordinary resampling would return R identical values.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from joblib import Parallel, delayed

from .search import SearchParameters, median_consistently_saturated, sequential_grid_search

__all__ = [
    "BoundarySample",
    "bootstrap_statistic",
    "draw_maxed_out",
]

logger = logging.getLogger(__name__)

# Upper bound on resampled elements held in memory at once
_MAX_BATCH_ELEMENTS = 10_000_000


def bootstrap_statistic(
    data: np.ndarray,
    statistic: Callable[..., np.ndarray],
    n_resamples: int,
    random_seed: int | np.random.Generator | None = None,
    batch_size: int | None = None,
) -> np.ndarray:
    """Resample ``data`` with replacement and evaluate ``statistic`` on each resample.

    Parameters
    ----------
    data : np.ndarray
        1-D sample to resample
    statistic : callable
        Vectorized statistic called as ``statistic(batch, axis=-1)`` on a
        ``(batch, len(data))`` block of resamples (e.g. ``np.mean``)
    n_resamples : int
        Number of bootstrap replicates R
    random_seed : int, Generator or None
        Seed or generator for the resampling indices
    batch_size : int, optional
        Replicates drawn per block; by default chosen to bound memory

    Returns
    -------
    np.ndarray
        Array of length ``n_resamples`` with the replicated statistic

    Examples
    --------
    >>> x = np.repeat([1, 0], [60, 40])
    >>> t = bootstrap_statistic(x, np.mean, 2000, random_seed=1)
    >>> t.shape
    (2000,)
    """
    data = np.asarray(data)
    if data.ndim != 1 or data.size == 0:
        raise ValueError("data must be a non-empty 1-D array")

    rng = np.random.default_rng(random_seed)
    if batch_size is None:
        batch_size = max(1, _MAX_BATCH_ELEMENTS // data.size)

    replicates = np.empty(n_resamples, dtype=float)
    for start in range(0, n_resamples, batch_size):
        stop = min(start + batch_size, n_resamples)
        idx = rng.integers(0, data.size, size=(stop - start, data.size))
        replicates[start:stop] = statistic(data[idx], axis=-1)
    return replicates


@dataclass(frozen=True)
class BoundarySample:
    """Bootstrap sample for a saturated proportion.

    Attributes
    ----------
    samples : np.ndarray
        R resampled proportions drawn at ``boundary_probability``
    boundary_probability : float
        Lowest population probability found whose bootstrap median is
        consistently the maximum; used in place of the point estimate 1.0
    """

    samples: np.ndarray
    boundary_probability: float


def draw_maxed_out(
    n: int,
    R: int,
    parameters: SearchParameters | None = None,
    verbose: bool = False,
    random_seed: int | np.random.Generator | None = None,
    n_jobs: int = 1,
) -> BoundarySample:
    """Draw a bootstrap sample of a proportion observed as ``n`` out of ``n``.

    Searches for the lowest probability whose bootstrap median is
    consistently ``n`` (see :func:`median_consistently_saturated`), then
    draws R binomial(``n``, p) / ``n`` values at that probability.

    Parameters
    ----------
    n : int
        Total number of positives (or negatives) in the population
    R : int
        Number of bootstrap replications
    parameters : SearchParameters, optional
        Grid search controls; defaults to ``SearchParameters()``
    verbose : bool, default=False
        Log search progress at INFO instead of DEBUG. Nothing is shown
        unless logging is configured, e.g. ``logging.basicConfig(level=logging.INFO)``
    random_seed : int, Generator or None
        Seed or generator for every random draw in the search and sample
    n_jobs : int, default=1
        Number of joblib workers evaluating grid points.
        -1 = use all cores, 1 = single-threaded.

    Returns
    -------
    BoundarySample
        The sample and the boundary probability it was drawn at

    Raises
    ------
    ConvergenceError
        If the grid search fails to converge with these parameters
    """
    if parameters is None:
        parameters = SearchParameters()
    rng = np.random.default_rng(random_seed)

    def constraint(probs: np.ndarray) -> np.ndarray:
        # One independent stream per grid point keeps results independent of n_jobs
        seeds = rng.integers(0, 2**63 - 1, size=len(probs))
        results = Parallel(n_jobs=n_jobs)(
            delayed(median_consistently_saturated)(pr, n, R, warn=False, random_seed=seed)
            for pr, seed in zip(probs, seeds)
        )
        return np.array(results, dtype=bool)

    boundary = sequential_grid_search(
        f=lambda probs: probs,
        constraint=constraint,
        bounds=(0.0, 1.0),
        points_per_round=parameters.points_per_round,
        shrink_factor=parameters.shrink_factor,
        tolerance=parameters.tolerance,
        verbose=verbose,
    )
    (logger.info if verbose else logger.debug)("Boundary probability for n=%d: %.6f", n, boundary)

    samples = rng.binomial(n, boundary, size=R) / n
    return BoundarySample(samples=samples, boundary_probability=float(boundary))

"""Likelihood ratios of a 2x2 diagnostic table with bootstrapped BCa intervals.

Sensitivity and specificity are bootstrapped independently, the replicates
are combined into LR+ and LR- replicates, and BCa intervals are taken on
the combined vectors. An arm observed at 100% (or 0%) is sampled at the
boundary probability found by :func:`bootlr.bootstrap.draw_maxed_out`
instead of by ordinary resampling. :func:`estimate_likelihood_ratio` wraps
the computation in a loop that loosens the boundary search on convergence
failure.
"""

import logging
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

import numpy as np

from .bootstrap import bootstrap_statistic, draw_maxed_out
from .exceptions import ConvergenceError, ExhaustedRetriesError, LowReplicationWarning
from .intervals import DEFAULT_CONFIDENCE, bca_interval
from .search import SearchParameters
from .statistics import ConfusionCounts, confusion_statistics

__all__ = [
    "DEFAULT_MAX_TRIES",
    "DEFAULT_REPLICATIONS",
    "RECOMMENDED_MIN_REPLICATIONS",
    "LRTestResult",
    "estimate_likelihood_ratio",
    "likelihood_ratio_intervals",
    "run_lr_test",
]

logger = logging.getLogger(__name__)

DEFAULT_REPLICATIONS = 50_000
RECOMMENDED_MIN_REPLICATIONS = 50_000
DEFAULT_MAX_TRIES = 20


@dataclass(frozen=True)
class LRTestResult:
    """Likelihood ratios of a 2x2 table with bootstrap confidence intervals.

    Attributes
    ----------
    pos_lr : float
        Positive likelihood ratio computed from the observed counts
    pos_lr_ci : tuple[float, float]
        (lower, upper) BCa interval for the positive likelihood ratio
    neg_lr : float
        Negative likelihood ratio computed from the observed counts
    neg_lr_ci : tuple[float, float]
        (lower, upper) BCa interval for the negative likelihood ratio
    inputs : ConfusionCounts
        The counts the test was run on
    statistics : Mapping[str, float]
        Sensitivity and specificity used to build the intervals; a
        saturated arm reports its boundary probability here. Stored as a
        read-only view.
    ci_type : str
        Interval method, always "BCa"
    ci_width : float
        Confidence level of the intervals
    attempts : int
        Number of estimation attempts needed
    parameters : SearchParameters
        Boundary search parameters of the successful attempt
    """

    pos_lr: float
    pos_lr_ci: tuple[float, float]
    neg_lr: float
    neg_lr_ci: tuple[float, float]
    inputs: ConfusionCounts
    statistics: Mapping[str, float]
    ci_type: str = "BCa"
    ci_width: float = DEFAULT_CONFIDENCE
    attempts: int = 1
    parameters: SearchParameters = field(default_factory=SearchParameters)

    def __post_init__(self) -> None:
        object.__setattr__(self, "statistics", MappingProxyType(dict(self.statistics)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "pos_lr": self.pos_lr,
            "pos_lr_ci": {"lower": self.pos_lr_ci[0], "upper": self.pos_lr_ci[1]},
            "neg_lr": self.neg_lr,
            "neg_lr_ci": {"lower": self.neg_lr_ci[0], "upper": self.neg_lr_ci[1]},
            "inputs": self.inputs.to_dict(),
            "statistics": dict(self.statistics),
            "ci_type": self.ci_type,
            "ci_width": self.ci_width,
            "attempts": self.attempts,
            "parameters": {
                "shrink_factor": self.parameters.shrink_factor,
                "tolerance": self.parameters.tolerance,
                "points_per_round": self.parameters.points_per_round,
            },
        }

    def __str__(self) -> str:
        from .report import format_lr_report

        return format_lr_report(self)


def _ratio(numerator: np.ndarray | float, denominator: np.ndarray | float) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.divide(numerator, denominator, dtype=float)


def _reciprocal_interval(interval: tuple[float, float]) -> tuple[float, float]:
    low, high = (float(v) for v in _ratio(1.0, np.asarray(interval, dtype=float)))
    return (low, high) if low <= high else (high, low)


def likelihood_ratio_intervals(
    sens_samples: np.ndarray,
    spec_samples: np.ndarray,
    sensitivity: float,
    specificity: float,
    **ci_options: Any,
) -> tuple[tuple[float, float], tuple[float, float]]:
    """Combine sensitivity and specificity replicates into LR+ and LR- intervals.

    Parameters
    ----------
    sens_samples : np.ndarray
        Bootstrap replicates of the sensitivity
    spec_samples : np.ndarray
        Bootstrap replicates of the specificity (same length)
    sensitivity : float
        Sensitivity the replicates are centred on
    specificity : float
        Specificity the replicates are centred on
    **ci_options
        Passed to :func:`bootlr.intervals.bca_interval` (e.g. ``conf``)

    Returns
    -------
    tuple
        ``(pos_lr_ci, neg_lr_ci)``, each a (lower, upper) pair

    Notes
    -----
    LR- = (1 - sens) / spec is undefined for a replicate with spec = 0, and
    LR+ = sens / (1 - spec) for one with spec = 1. In those cases the
    interval is computed on the reciprocal ratio around the reciprocal
    centre and its endpoints are inverted back, reordered so that
    lower <= upper.
    """
    sens_samples = np.asarray(sens_samples, dtype=float)
    spec_samples = np.asarray(spec_samples, dtype=float)
    if sens_samples.shape != spec_samples.shape:
        raise ValueError("sens_samples and spec_samples must have the same shape")

    neg_lr = float(_ratio(1 - sensitivity, specificity))
    if np.all(spec_samples != 0):
        neg_lr_ci = bca_interval(_ratio(1 - sens_samples, spec_samples), neg_lr, **ci_options)
    else:
        inverted = bca_interval(_ratio(spec_samples, 1 - sens_samples), float(_ratio(1.0, neg_lr)), **ci_options)
        neg_lr_ci = _reciprocal_interval(inverted)

    pos_lr = float(_ratio(sensitivity, 1 - specificity))
    if np.all(spec_samples != 1):
        pos_lr_ci = bca_interval(_ratio(sens_samples, 1 - spec_samples), pos_lr, **ci_options)
    else:
        inverted = bca_interval(_ratio(1 - spec_samples, sens_samples), float(_ratio(1.0, pos_lr)), **ci_options)
        pos_lr_ci = _reciprocal_interval(inverted)

    return pos_lr_ci, neg_lr_ci


def _sample_arm(
    observed: int,
    total: int,
    R: int,
    parameters: SearchParameters,
    verbose: bool,
    rng: np.random.Generator,
    n_jobs: int,
) -> tuple[np.ndarray, float]:
    """Bootstrap one arm; return the replicates and the value they centre on."""
    if observed == total:
        boundary = draw_maxed_out(total, R, parameters=parameters, verbose=verbose, random_seed=rng, n_jobs=n_jobs)
        return boundary.samples, boundary.boundary_probability
    if observed == 0:
        # 0% is the complement of a saturated arm
        boundary = draw_maxed_out(total, R, parameters=parameters, verbose=verbose, random_seed=rng, n_jobs=n_jobs)
        return 1.0 - boundary.samples, 1.0 - boundary.boundary_probability
    data = np.repeat([1, 0], [observed, total - observed])
    return bootstrap_statistic(data, np.mean, R, random_seed=rng), observed / total


def run_lr_test(
    true_pos: int,
    total_dz_pos: int,
    true_neg: int,
    total_dz_neg: int,
    R: int = DEFAULT_REPLICATIONS,
    verbose: bool = False,
    parameters: SearchParameters | None = None,
    random_seed: int | np.random.Generator | None = None,
    n_jobs: int = 1,
    **ci_options: Any,
) -> LRTestResult:
    """Run a single likelihood ratio estimation attempt.

    Parameters
    ----------
    true_pos : int
        Number of true positive tests
    total_dz_pos : int
        Total number of diseased subjects
    true_neg : int
        Number of true negative tests
    total_dz_neg : int
        Total number of non-diseased subjects
    R : int, default=50_000
        Bootstrap replications per arm
    verbose : bool, default=False
        Log progress at INFO instead of DEBUG. Nothing is shown unless
        logging is configured, e.g. ``logging.basicConfig(level=logging.INFO)``
    parameters : SearchParameters, optional
        Boundary search controls; defaults to ``SearchParameters()``
    random_seed : int, Generator or None
        Seed or generator for all random draws
    n_jobs : int, default=1
        Number of joblib workers for the boundary search
    **ci_options
        Passed to :func:`bootlr.intervals.bca_interval` (e.g. ``conf``)

    Returns
    -------
    LRTestResult

    Raises
    ------
    InvalidInputError
        If a total is zero or a count exceeds its total
    ConvergenceError
        If a boundary search fails to converge with ``parameters``
    """
    counts = ConfusionCounts(true_pos, total_dz_pos, true_neg, total_dz_neg)
    if R < RECOMMENDED_MIN_REPLICATIONS:
        warnings.warn(
            f"Setting the number of bootstrap replications to a number lower than "
            f"{RECOMMENDED_MIN_REPLICATIONS:,} may lead to unstable results",
            LowReplicationWarning,
            stacklevel=2,
        )
    counts.validate()
    if parameters is None:
        parameters = SearchParameters()
    rng = np.random.default_rng(random_seed)

    exact = confusion_statistics(true_pos, total_dz_pos, true_neg, total_dz_neg)
    sens_samples, sensitivity = _sample_arm(true_pos, total_dz_pos, R, parameters, verbose, rng, n_jobs)
    spec_samples, specificity = _sample_arm(true_neg, total_dz_neg, R, parameters, verbose, rng, n_jobs)

    pos_lr_ci, neg_lr_ci = likelihood_ratio_intervals(
        sens_samples, spec_samples, sensitivity, specificity, **ci_options
    )

    return LRTestResult(
        pos_lr=exact.pos_lr,
        pos_lr_ci=pos_lr_ci,
        neg_lr=exact.neg_lr,
        neg_lr_ci=neg_lr_ci,
        inputs=counts,
        statistics={"sensitivity": sensitivity, "specificity": specificity},
        ci_width=ci_options.get("conf", DEFAULT_CONFIDENCE),
        parameters=parameters,
    )


def estimate_likelihood_ratio(
    true_pos: int,
    total_dz_pos: int,
    true_neg: int,
    total_dz_neg: int,
    R: int = DEFAULT_REPLICATIONS,
    verbose: bool = False,
    parameters: SearchParameters | None = None,
    max_tries: int = DEFAULT_MAX_TRIES,
    random_seed: int | np.random.Generator | None = None,
    n_jobs: int = 1,
    **ci_options: Any,
) -> LRTestResult:
    """Compute LR+ and LR- with bootstrapped BCa confidence intervals.

    Sensitivity and specificity are bootstrapped, the replicates combined
    into likelihood ratios, and 95% BCa intervals taken. When sensitivity or
    specificity is exactly 0 or 1 the arm is sampled at the boundary
    probability found by a sequential grid search; if that search fails to
    converge, the attempt is repeated with looser search parameters.

    Parameters
    ----------
    true_pos : int
        Number of true positive tests
    total_dz_pos : int
        Total number of diseased ("sick") subjects
    true_neg : int
        Number of true negative tests
    total_dz_neg : int
        Total number of non-diseased ("well") subjects
    R : int, default=50_000
        Bootstrap replications per arm (tested at 50,000 or greater)
    verbose : bool, default=False
        Log progress at INFO instead of DEBUG. Nothing is shown unless
        logging is configured, e.g. ``logging.basicConfig(level=logging.INFO)``
    parameters : SearchParameters, optional
        Initial boundary search controls; defaults to ``SearchParameters()``
    max_tries : int, default=20
        Number of attempts before giving up
    random_seed : int, Generator or None
        Seed or generator shared by all attempts
    n_jobs : int, default=1
        Number of joblib workers for the boundary search.
        -1 = use all cores, 1 = single-threaded.
    **ci_options
        Passed to :func:`bootlr.intervals.bca_interval` (e.g. ``conf``)

    Returns
    -------
    LRTestResult

    Raises
    ------
    InvalidInputError
        If a total is zero or a count exceeds its total (never retried)
    ExhaustedRetriesError
        If all ``max_tries`` attempts fail to converge

    Examples
    --------
    >>> result = estimate_likelihood_ratio(100, 100, 60, 100, random_seed=42)
    >>> print(result)

    Notes
    -----
    This relies on a sequential grid search; certain combinations of inputs
    need a fast computer or substantial patience. Results vary between runs
    with different seeds, more so for small samples or sensitivity or
    specificity near 0 or 1.
    """
    if max_tries < 1:
        raise ValueError(f"max_tries must be >= 1, got {max_tries}")
    if parameters is None:
        parameters = SearchParameters()
    rng = np.random.default_rng(random_seed)
    log = logger.info if verbose else logger.debug

    for attempt in range(1, max_tries + 1):
        try:
            result = run_lr_test(
                true_pos,
                total_dz_pos,
                true_neg,
                total_dz_neg,
                R=R,
                verbose=verbose,
                parameters=parameters,
                random_seed=rng,
                n_jobs=n_jobs,
                **ci_options,
            )
        except ConvergenceError as exc:
            last_error = exc
            if attempt == max_tries:
                break
            parameters = parameters.loosen()
            log(
                "Failed to reach convergence in attempt %d (%s). Running attempt %d with "
                "shrink_factor=%s, tolerance=%s, points_per_round=%d",
                attempt,
                exc,
                attempt + 1,
                parameters.shrink_factor,
                parameters.tolerance,
                parameters.points_per_round,
            )
            continue
        if attempt > 1:
            log("Converged on attempt %d", attempt)
        return replace(result, attempts=attempt)

    raise ExhaustedRetriesError(
        f"Failed to reach convergence after {max_tries} attempts. "
        "If you can't get it to converge, try setting max_tries higher.",
        attempts=max_tries,
        parameters=parameters,
    ) from last_error

"""Top-level package for bootlr (bootstrapped likelihood ratio confidence intervals)."""

from importlib.metadata import version

__version__ = version("bootlr")  # Read from package metadata (pyproject.toml)

# Bootstrap samplers
from .bootstrap import (
    BoundarySample,
    bootstrap_statistic,
    draw_maxed_out,
)

# Likelihood ratio test
from .core import (
    LRTestResult,
    estimate_likelihood_ratio,
    likelihood_ratio_intervals,
    run_lr_test,
)

# Errors and warnings
from .exceptions import (
    BootLRError,
    ConvergenceError,
    ExhaustedRetriesError,
    GridEvaluationError,
    InvalidInputError,
    LowReplicationWarning,
    ProbabilityDomainWarning,
    SearchDepthExceededError,
)

# Confidence intervals
from .intervals import (
    bca_interval,
)

# Reporting
from .report import (
    format_lr_report,
    print_lr_report,
)

# Boundary search
from .search import (
    SearchParameters,
    median_consistently_saturated,
    sequential_grid_search,
)

# Confusion-table statistics
from .statistics import (
    ConfusionCounts,
    ConfusionStats,
    confusion_statistics,
)

__all__ = [
    # Likelihood ratio test
    "LRTestResult",
    "estimate_likelihood_ratio",
    "likelihood_ratio_intervals",
    "run_lr_test",
    # Statistics
    "ConfusionCounts",
    "ConfusionStats",
    "confusion_statistics",
    # Boundary search
    "SearchParameters",
    "median_consistently_saturated",
    "sequential_grid_search",
    # Bootstrap
    "BoundarySample",
    "bootstrap_statistic",
    "draw_maxed_out",
    # Intervals
    "bca_interval",
    # Reporting
    "format_lr_report",
    "print_lr_report",
    # Errors and warnings
    "BootLRError",
    "ConvergenceError",
    "ExhaustedRetriesError",
    "GridEvaluationError",
    "InvalidInputError",
    "LowReplicationWarning",
    "ProbabilityDomainWarning",
    "SearchDepthExceededError",
]

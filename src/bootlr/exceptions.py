"""Exception and warning classes raised by bootlr.

Fatal input problems derive from ``ValueError``; failures of the boundary
search derive from ``RuntimeError``. Only ``ConvergenceError`` (and its
subclasses) is retried by :func:`bootlr.estimate_likelihood_ratio`.
"""

__all__ = [
    "BootLRError",
    "InvalidInputError",
    "ConvergenceError",
    "SearchDepthExceededError",
    "GridEvaluationError",
    "ExhaustedRetriesError",
    "LowReplicationWarning",
    "ProbabilityDomainWarning",
]


class BootLRError(Exception):
    """Base class for all bootlr errors."""


class InvalidInputError(BootLRError, ValueError):
    """Counts that cannot describe a 2x2 diagnostic table."""


class ConvergenceError(BootLRError, RuntimeError):
    """Sequential grid search found no point satisfying its constraint."""


class SearchDepthExceededError(ConvergenceError):
    """Sequential grid search ran for ``max_depth`` rounds without converging."""

    def __init__(self, message: str, depth: int):
        super().__init__(message)
        self.depth = depth


class GridEvaluationError(BootLRError, ValueError):
    """The objective or constraint returned NaN during a grid search."""


class ExhaustedRetriesError(BootLRError, RuntimeError):
    """Every attempt of the retry loop ended in a convergence failure.

    Attributes
    ----------
    attempts : int
        Number of attempts made
    parameters : SearchParameters
        Search parameters used by the last attempt
    """

    def __init__(self, message: str, attempts: int, parameters):
        super().__init__(message)
        self.attempts = attempts
        self.parameters = parameters


class LowReplicationWarning(UserWarning):
    """Fewer bootstrap replications than recommended."""


class ProbabilityDomainWarning(UserWarning):
    """A probability outside [0, 1] was probed."""

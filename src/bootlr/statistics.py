"""Confusion-table statistics for a diagnostic test.

Sensitivity, specificity and the positive/negative likelihood ratios of a
2x2 table, following Deeks JJ, Altman DG. BMJ 2004; 329(7458): 168-169.
"""

from dataclasses import asdict, dataclass

import numpy as np

from .exceptions import InvalidInputError

__all__ = [
    "ConfusionCounts",
    "ConfusionStats",
    "confusion_statistics",
]


@dataclass(frozen=True)
class ConfusionCounts:
    """Observed counts of a 2x2 diagnostic table.

    Attributes
    ----------
    true_pos : int
        Number of true positive tests
    total_dz_pos : int
        Total number of diseased ("sick") subjects
    true_neg : int
        Number of true negative tests
    total_dz_neg : int
        Total number of non-diseased ("well") subjects
    """

    true_pos: int
    total_dz_pos: int
    true_neg: int
    total_dz_neg: int

    def validate(self) -> "ConfusionCounts":
        """Raise :class:`InvalidInputError` unless the counts form a valid table."""
        if self.total_dz_pos == 0 or self.total_dz_neg == 0:
            raise InvalidInputError(
                "total_dz_pos and total_dz_neg must both be positive "
                f"(got total_dz_pos={self.total_dz_pos}, total_dz_neg={self.total_dz_neg})."
            )
        if min(self.true_pos, self.total_dz_pos, self.true_neg, self.total_dz_neg) < 0:
            raise InvalidInputError("Counts must be non-negative.")
        if self.true_neg > self.total_dz_neg or self.true_pos > self.total_dz_pos:
            raise InvalidInputError(
                "You cannot have more test positive/negative than you have total positive/negative."
            )
        return self

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ConfusionStats:
    """Sensitivity, specificity and likelihood ratios.

    Fields are floats for scalar input and arrays for array input. A zero
    denominator gives ``inf`` (``nan`` for 0/0).
    """

    sensitivity: float | np.ndarray
    specificity: float | np.ndarray
    pos_lr: float | np.ndarray
    neg_lr: float | np.ndarray


def _as_output(values: np.ndarray, scalar: bool) -> float | np.ndarray:
    return float(values) if scalar else values


def confusion_statistics(
    true_pos: int | np.ndarray,
    total_dz_pos: int | np.ndarray,
    true_neg: int | np.ndarray,
    total_dz_neg: int | np.ndarray,
) -> ConfusionStats:
    """Compute sensitivity, specificity, LR+ and LR- for one or more tables.

    Parameters
    ----------
    true_pos : int or array-like
        Number of true positive tests
    total_dz_pos : int or array-like
        Total number of diseased subjects
    true_neg : int or array-like
        Number of true negative tests
    total_dz_neg : int or array-like
        Total number of non-diseased subjects

    Returns
    -------
    ConfusionStats
        Scalar fields for scalar input, parallel arrays for array input

    Examples
    --------
    >>> cs = confusion_statistics(25, 50, 45, 75)
    >>> print(f"LR+ = {cs.pos_lr:.3f}, LR- = {cs.neg_lr:.3f}")
    LR+ = 1.250, LR- = 0.833

    Notes
    -----
    No validation is done here; a zero total or a specificity of exactly 0
    or 1 propagates as ``inf``/``nan`` and callers must special-case it.
    """
    tp = np.asarray(true_pos, dtype=float)
    dz_pos = np.asarray(total_dz_pos, dtype=float)
    tn = np.asarray(true_neg, dtype=float)
    dz_neg = np.asarray(total_dz_neg, dtype=float)
    scalar = tp.ndim == dz_pos.ndim == tn.ndim == dz_neg.ndim == 0

    with np.errstate(divide="ignore", invalid="ignore"):
        sens = tp / dz_pos
        spec = tn / dz_neg
        pos_lr = sens / (1.0 - spec)
        neg_lr = (1.0 - sens) / spec

    return ConfusionStats(
        sensitivity=_as_output(sens, scalar),
        specificity=_as_output(spec, scalar),
        pos_lr=_as_output(pos_lr, scalar),
        neg_lr=_as_output(neg_lr, scalar),
    )

"""Human-readable report of a likelihood ratio test."""

from .core import LRTestResult

__all__ = [
    "VARIABILITY_NOTE",
    "format_lr_report",
    "print_lr_report",
]

VARIABILITY_NOTE = (
    "Note: This procedure depends on repeated random sampling. As such it is subject to some "
    "variability in results.\n"
    "  Variability is minimized by large numbers of replications (generally 50,000) "
    "[and averaging 5 repeated results],\n"
    "  but with small sample sizes or sensitivity or specificity near 0 or 1, variability "
    "becomes more pronounced.\n"
    "  This is not an error, it is a function of the nature of the procedure."
)


def format_lr_report(result: LRTestResult, digits: int = 3) -> str:
    """Format an :class:`LRTestResult` as text.

    Parameters
    ----------
    result : LRTestResult
        Result of :func:`bootlr.estimate_likelihood_ratio`
    digits : int, default=3
        Number of decimals for ratios and interval bounds

    Returns
    -------
    str
        Multi-line report with inputs, LR+ and LR- with intervals, and a
        note on bootstrap variability
    """
    counts = result.inputs.to_dict()
    pos_lo, pos_hi = result.pos_lr_ci
    neg_lo, neg_hi = result.neg_lr_ci

    lines = [
        "Likelihood ratio test of a 2x2 table",
        "",
        "data:",
        "  " + "  ".join(f"{name}={value}" for name, value in counts.items()),
        f"Positive LR: {result.pos_lr:.{digits}f} ({pos_lo:.{digits}f} - {pos_hi:.{digits}f})",
        f"Negative LR: {result.neg_lr:.{digits}f} ({neg_lo:.{digits}f} - {neg_hi:.{digits}f})",
        f"{result.ci_width:.0%} confidence intervals computed via {result.ci_type} bootstrapping.",
        VARIABILITY_NOTE,
    ]
    return "\n".join(lines)


def print_lr_report(result: LRTestResult, digits: int = 3) -> LRTestResult:
    """Print the report for ``result`` and return it unaltered."""
    print()
    print(format_lr_report(result, digits=digits))
    return result

"""Example: Likelihood Ratio Confidence Intervals.

This example computes LR+ and LR- with BCa bootstrap intervals for an
ordinary 2x2 table and for one where sensitivity is exactly 100%.
"""

import logging

from bootlr import SearchParameters, confusion_statistics, estimate_likelihood_ratio, print_lr_report


def main():
    """Run likelihood ratio examples."""

    print("=" * 80)
    print("BOOTSTRAPPED LIKELIHOOD RATIOS")
    print("=" * 80)

    # ========== Example 1: Interior Table ==========
    print("\n" + "=" * 60)
    print("Example 1: Sensitivity 60/100, specificity 70/100")
    print("=" * 60)

    cs = confusion_statistics(60, 100, 70, 100)
    print(f"\nPoint estimates:")
    print(f"  sensitivity: {cs.sensitivity:.3f}")
    print(f"  specificity: {cs.specificity:.3f}")
    print(f"  LR+:         {cs.pos_lr:.3f}")
    print(f"  LR-:         {cs.neg_lr:.3f}")

    result = estimate_likelihood_ratio(60, 100, 70, 100, random_seed=42)
    print_lr_report(result)

    # ========== Example 2: 100% Sensitivity ==========
    print("\n" + "=" * 60)
    print("Example 2: Sensitivity 100/100, specificity 60/100")
    print("=" * 60)

    # Show the boundary search trace
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    result = estimate_likelihood_ratio(100, 100, 60, 100, verbose=True, random_seed=42, n_jobs=-1)
    print_lr_report(result)

    print(f"\nBoundary sensitivity used for the intervals: {result.statistics['sensitivity']:.5f}")
    print(f"Attempts needed: {result.attempts}")

    # ========== Example 3: Tight Search Parameters ==========
    print("\n" + "=" * 60)
    print("Example 3: Starting from a tight search that may need retries")
    print("=" * 60)

    tight = SearchParameters(shrink_factor=20.0, tolerance=0.0001, points_per_round=20)
    result = estimate_likelihood_ratio(100, 100, 60, 100, parameters=tight, random_seed=7)

    print(f"\nAttempts needed: {result.attempts}")
    print(f"Final parameters: {result.parameters}")
    print(f"Positive LR: {result.pos_lr:.3f} ({result.pos_lr_ci[0]:.3f} - {result.pos_lr_ci[1]:.3f})")
    print(f"Negative LR: {result.neg_lr:.3f} ({result.neg_lr_ci[0]:.3f} - {result.neg_lr_ci[1]:.3f})")


if __name__ == "__main__":
    main()

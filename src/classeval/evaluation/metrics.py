from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from sklearn.metrics import auc, confusion_matrix

from classeval.exceptions import InvalidArgumentError


def ratio(numerator: float, denominator: float, default: float = math.nan) -> float:
    """Divide, returning `default` when the denominator is zero."""

    if denominator == 0:
        return default
    return numerator / denominator


def log2(value: float) -> float:
    """Base-2 logarithm with log2(0) == -inf."""

    if value == 0.0:
        return -math.inf
    return math.log2(value)


def xlog2x(probability: float) -> float:
    """Return p * log2(p) with the convention 0 * log2(0) == 0."""

    if probability <= 0.0:
        return 0.0
    return probability * math.log2(probability)


def f_measure(beta: float, recall: float, precision: float) -> float:
    """Weighted harmonic mean of precision and recall.

    F(beta) = (1 + beta^2) * p * r / (beta^2 * p + r); zero when both are zero.
    """

    beta_squared = beta * beta
    denominator = beta_squared * precision + recall
    if denominator == 0.0:
        return 0.0
    return (1.0 + beta_squared) * precision * recall / denominator


def chi_squared_independence(matrix: Sequence[Sequence[float]] | NDArray) -> float:
    """
    Pearson's chi-squared statistic for independence of a contingency table.

    Args:
        matrix: Rectangular table of non-negative, finite counts

    Returns:
        Sum over cells of (observed - expected)^2 / expected, where the expected
        count is row total * column total / grand total. Cells with zero
        expectation contribute nothing. NaN for an all-zero table.

    Raises:
        InvalidArgumentError: If the table is ragged, negative or not finite
    """
    try:
        counts = np.asarray(matrix, dtype=float)
    except ValueError as exc:
        raise InvalidArgumentError("Contingency table must be rectangular") from exc

    if counts.ndim != 2:
        raise InvalidArgumentError(
            f"Contingency table must be two-dimensional. Found ndim={counts.ndim}"
        )
    if not np.all(np.isfinite(counts)):
        raise InvalidArgumentError("Contingency table entries must be finite")
    if np.any(counts < 0):
        raise InvalidArgumentError("Contingency table entries must be non-negative")

    total = counts.sum()
    if total == 0:
        return math.nan

    expected = np.outer(counts.sum(axis=1), counts.sum(axis=0)) / total
    mask = expected > 0
    deviations = (counts[mask] - expected[mask]) ** 2 / expected[mask]
    return float(deviations.sum())


def area_under(curve: Sequence[Sequence[float]]) -> float:
    """
    Area under a piecewise-linear curve by the trapezoid rule.

    Args:
        curve: Points whose first two coordinates are (x, y); x must be
            non-decreasing

    Returns:
        Sum of (y1 + y2) / 2 * (x2 - x1) over consecutive points
    """
    points = np.asarray(curve, dtype=float)
    if len(points) < 2:
        return 0.0

    xs = points[:, 0]
    ys = points[:, 1]
    if np.any(np.diff(xs) < 0):
        raise InvalidArgumentError("Curve x coordinates must be non-decreasing")

    return float(auc(xs, ys))


def log2_sum_exp2(values: Sequence[float]) -> float:
    """Compute log2(sum(2 ** v)) stably by factoring out the maximum."""

    exponents = np.asarray(values, dtype=float)
    if exponents.size == 0:
        return -math.inf

    top = float(exponents.max())
    if top == -math.inf:
        return -math.inf
    return top + float(np.log2(np.exp2(exponents - top).sum()))


def calculate_confusion_matrix(
    references: Sequence[str],
    responses: Sequence[str],
    categories: Sequence[str],
) -> NDArray[np.int64]:
    """
    Count reference/response label pairs into a square matrix.

    Args:
        references: Ground truth categories
        responses: First-best response categories, parallel to references
        categories: Category order defining rows and columns

    Returns:
        Matrix whose [i, j] entry counts cases with reference categories[i]
        and response categories[j]
    """
    if len(references) != len(responses):
        raise InvalidArgumentError(
            f"References ({len(references)}) and responses ({len(responses)}) "
            "must have the same length"
        )

    unknown = (set(references) | set(responses)) - set(categories)
    if unknown:
        raise InvalidArgumentError(f"Unknown categories: {sorted(unknown)}")

    size = len(categories)
    if not references:
        return np.zeros((size, size), dtype=np.int64)

    # sklearn orders rows and columns by `labels`: reference \ response
    counts = confusion_matrix(references, responses, labels=list(categories))
    return counts.astype(np.int64)

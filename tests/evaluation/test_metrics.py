"""Tests for evaluation metric helpers."""

import math

import numpy as np
import pytest

from classeval.evaluation.metrics import (
    calculate_confusion_matrix,
    chi_squared_independence,
    f_measure,
    log2,
    log2_sum_exp2,
    ratio,
    xlog2x,
)
from classeval.exceptions import InvalidArgumentError


def test_ratio_default():
    """Test division with a fallback for zero denominators."""
    assert ratio(1, 4) == 0.25
    assert math.isnan(ratio(1, 0))
    assert ratio(1, 0, default=1.0) == 1.0


def test_log_conventions():
    """Test log2(0) and 0 * log2(0)."""
    assert log2(0.0) == -math.inf
    assert log2(8.0) == 3.0
    assert xlog2x(0.0) == 0.0
    assert xlog2x(0.5) == -0.5


def test_f_measure():
    """Test the weighted harmonic mean."""
    assert f_measure(1.0, 0.5, 0.5) == pytest.approx(0.5)
    assert f_measure(1.0, 0.0, 0.0) == 0.0
    assert f_measure(0.0, 0.2, 0.9) == pytest.approx(0.9)


def test_chi_squared_larsen_marx():
    """Test chi-squared independence on textbook contingency tables."""
    table = [[70, 65], [39, 28], [14, 3], [13, 2]]
    assert chi_squared_independence(table) == pytest.approx(11.3, abs=0.1)

    table = [[24, 8, 13], [8, 13, 11], [10, 9, 64]]
    assert chi_squared_independence(table) == pytest.approx(45.37, abs=0.1)


def test_chi_squared_independent_table_is_zero():
    """Test that a perfectly independent table scores zero."""
    assert chi_squared_independence([[1, 2], [2, 4]]) == pytest.approx(0.0)


def test_chi_squared_rejects_bad_tables():
    """Test ragged, negative and non-finite tables."""
    with pytest.raises(InvalidArgumentError, match="rectangular"):
        chi_squared_independence([[1, 2], [3]])
    with pytest.raises(InvalidArgumentError, match="non-negative"):
        chi_squared_independence([[1, -2], [3, 4]])
    with pytest.raises(InvalidArgumentError, match="finite"):
        chi_squared_independence([[1, math.nan], [3, 4]])
    with pytest.raises(InvalidArgumentError, match="finite"):
        chi_squared_independence([[1, math.inf], [3, 4]])
    with pytest.raises(InvalidArgumentError, match="two-dimensional"):
        chi_squared_independence([1, 2, 3])


def test_chi_squared_empty_table_is_nan():
    """Test an all-zero table."""
    assert math.isnan(chi_squared_independence([[0, 0], [0, 0]]))


def test_log2_sum_exp2():
    """Test stable base-2 log-sum-exp."""
    assert log2_sum_exp2([-1.0, -1.0]) == pytest.approx(0.0)
    assert log2_sum_exp2([-1000.0, -1000.0]) == pytest.approx(-999.0)
    assert log2_sum_exp2([-3.0, -math.inf]) == pytest.approx(-3.0)
    assert log2_sum_exp2([-math.inf]) == -math.inf
    assert log2_sum_exp2([]) == -math.inf


def test_calculate_confusion_matrix():
    """Test counting label pairs in category order."""
    references = ["a", "a", "b", "c"]
    responses = ["a", "b", "b", "a"]

    counts = calculate_confusion_matrix(references, responses, ["a", "b", "c"])

    assert counts.dtype == np.int64
    assert counts.tolist() == [[1, 1, 0], [0, 1, 0], [1, 0, 0]]


def test_calculate_confusion_matrix_empty():
    """Test empty label sequences."""
    counts = calculate_confusion_matrix([], [], ["a", "b"])

    assert counts.tolist() == [[0, 0], [0, 0]]


def test_calculate_confusion_matrix_validation():
    """Test length mismatches and unknown labels."""
    with pytest.raises(InvalidArgumentError, match="same length"):
        calculate_confusion_matrix(["a"], ["a", "b"], ["a", "b"])
    with pytest.raises(InvalidArgumentError, match="Unknown categories"):
        calculate_confusion_matrix(["a"], ["z"], ["a", "b"])

"""Tests for score-ranked precision-recall and ROC curves."""

import pytest
from sklearn.metrics import roc_auc_score

from classeval.evaluation import ScoreCurveBuilder, ScoredOutcome, area_under
from classeval.exceptions import InvalidArgumentError

# (correct, score) in descending score order
RANKED_CASES = [
    (False, -1.21),
    (True, -1.27),
    (False, -1.39),
    (True, -1.47),
    (True, -1.60),
    (False, -1.65),
    (False, -1.79),
    (False, -1.80),
    (True, -2.01),
    (False, -3.70),
]


def assert_curve(found, expected, abs=0.01):
    assert len(found) == len(expected)
    for point, target in zip(found, expected):
        assert point == pytest.approx(target, abs=abs)


@pytest.fixture
def builder():
    # Shuffled insertion order; ranking is by score
    builder = ScoreCurveBuilder()
    for correct, score in reversed(RANKED_CASES):
        builder.add_case(correct, score)
    builder.add_misses(1)
    return builder


def test_reference_counts(builder):
    """Test positive and negative reference tallies including misses."""
    assert builder.num_positive_ref == 5
    assert builder.num_negative_ref == 6
    assert builder.num_cases == 11


def test_outcomes_sorted_by_score(builder):
    """Test that outcomes come back by descending score."""
    scores = [outcome.score for outcome in builder.outcomes()]

    assert scores == sorted(scores, reverse=True)
    assert builder.outcomes()[0] == ScoredOutcome(score=-1.21, correct=False)


def test_pr_curve(builder):
    """Test the uninterpolated precision-recall curve."""
    assert_curve(
        builder.pr_curve(),
        [
            (0.0, 1.0),
            (0.2, 0.5),
            (0.2, 0.33),
            (0.4, 0.5),
            (0.6, 0.6),
            (0.6, 0.5),
            (0.6, 0.43),
            (0.6, 0.38),
            (0.8, 0.44),
            (0.8, 0.4),
            (1.0, 0.0),
        ],
    )


def test_interpolated_pr_curve(builder):
    """Test precision interpolation and trimming to one point per recall."""
    assert_curve(
        builder.pr_curve(interpolate=True),
        [
            (0.0, 1.0),
            (0.2, 0.6),
            (0.4, 0.6),
            (0.6, 0.6),
            (0.8, 0.44),
            (1.0, 0.0),
        ],
    )


def test_roc_curve(builder):
    """Test the uninterpolated ROC curve."""
    assert_curve(
        builder.roc_curve(),
        [
            (0.0, 0.0),
            (0.167, 0.0),
            (0.167, 0.2),
            (0.333, 0.2),
            (0.333, 0.4),
            (0.333, 0.6),
            (0.5, 0.6),
            (0.667, 0.6),
            (0.833, 0.6),
            (0.833, 0.8),
            (1.0, 0.8),
            (1.0, 1.0),
        ],
    )


def test_interpolated_roc_curve(builder):
    """Test that ROC interpolation keeps the last point per x value."""
    assert_curve(
        builder.roc_curve(interpolate=True),
        [
            (0.0, 0.0),
            (0.167, 0.2),
            (0.333, 0.6),
            (0.5, 0.6),
            (0.667, 0.6),
            (0.833, 0.8),
            (1.0, 1.0),
        ],
    )
    assert builder.area_under_roc_curve(interpolate=True) == pytest.approx(0.55)


def test_pr_score_curve(builder):
    """Test that the score curve carries scores and drops the end points."""
    curve = builder.pr_score_curve()

    assert len(curve) == len(RANKED_CASES)
    assert curve[0] == pytest.approx((0.0, 0.0, -1.21))
    assert curve[1] == pytest.approx((0.2, 0.5, -1.27))
    assert curve[-1] == pytest.approx((0.8, 0.4, -3.70))


def test_summary_statistics(builder):
    """Test rank-based summary statistics on the fixture."""
    assert builder.r_precision() == pytest.approx(0.6)
    assert builder.pr_breakeven_point() == pytest.approx(0.6)
    assert builder.reciprocal_rank() == pytest.approx(0.5)
    assert builder.maximum_f_measure() == pytest.approx(0.6)
    assert builder.average_precision() == pytest.approx(
        (0.5 + 0.5 + 0.6 + 4 / 9 + 0.0) / 5
    )


def test_eleven_point_precision(builder):
    """Test interpolated precision at the eleven standard recall levels."""
    assert builder.eleven_pt_interp_precision() == pytest.approx(
        [1.0, 0.6, 0.6, 0.6, 0.6, 0.6, 0.6, 4 / 9, 4 / 9, 0.0, 0.0], abs=1e-3
    )


def test_precision_at(builder):
    """Test precision at fixed ranks, counting missing outcomes as wrong."""
    assert builder.precision_at(0) == 1.0
    assert builder.precision_at(1) == 0.0
    assert builder.precision_at(5) == pytest.approx(0.6)
    assert builder.precision_at(10) == pytest.approx(0.4)
    assert builder.precision_at(20) == pytest.approx(0.2)
    assert builder.precision_at(100) == pytest.approx(0.04)

    with pytest.raises(InvalidArgumentError):
        builder.precision_at(-1)


def test_interpolation_removes_dips():
    """Test that interpolated precision is the best precision at higher recall."""
    builder = ScoreCurveBuilder()
    builder.add_case(True, 3.0)
    builder.add_case(False, 2.0)
    builder.add_case(True, 1.0)

    raw = builder.pr_curve()
    interpolated = builder.pr_curve(interpolate=True)

    assert raw[2] == pytest.approx((0.5, 0.5))
    for recall, precision in interpolated:
        best = max(p for r, p in raw if r >= recall)
        assert precision == pytest.approx(best)
    assert (0.5, 0.5) not in interpolated


def test_perfect_classifier():
    """Test the collapsed curve of a perfect ranking."""
    builder = ScoreCurveBuilder()
    builder.add_case(True, 1.0)

    assert builder.pr_curve() == [(0.0, 1.0), (1.0, 1.0), (1.0, 0.0)]
    assert builder.maximum_f_measure() == 1.0
    assert builder.reciprocal_rank() == 1.0
    assert builder.average_precision() == 1.0


def test_reciprocal_rank_extremes():
    """Test reciprocal rank when the top outcome is right and when none are."""
    builder = ScoreCurveBuilder()
    builder.add_case(True, 2.0)
    builder.add_case(False, 1.0)
    assert builder.reciprocal_rank() == 1.0

    builder = ScoreCurveBuilder()
    builder.add_case(False, 2.0)
    builder.add_case(False, 1.0)
    assert builder.reciprocal_rank() == 0.0


def test_ties_keep_insertion_order():
    """Test that equal scores rank in insertion order."""
    builder = ScoreCurveBuilder()
    builder.add_case(False, 1.0)
    builder.add_case(True, 1.0)

    assert [outcome.correct for outcome in builder.outcomes()] == [False, True]
    assert builder.reciprocal_rank() == 0.5


def test_areas_are_bounded(builder):
    """Test that curve areas stay within the unit square."""
    for interpolate in (False, True):
        assert 0.0 <= builder.area_under_pr_curve(interpolate) <= 1.0
        assert 0.0 <= builder.area_under_roc_curve(interpolate) <= 1.0


def test_roc_area_agrees_with_sklearn():
    """Test uninterpolated ROC area against scikit-learn for untied scores."""
    builder = ScoreCurveBuilder()
    labels, scores = [], []
    for correct, score in RANKED_CASES:
        builder.add_case(correct, score)
        labels.append(int(correct))
        scores.append(score)

    assert builder.area_under_roc_curve() == pytest.approx(
        roc_auc_score(labels, scores)
    )


def test_empty_builder_conventions():
    """Test degenerate denominators on an empty builder."""
    builder = ScoreCurveBuilder()

    assert builder.pr_curve() == [(0.0, 1.0), (1.0, 0.0)]
    assert builder.roc_curve() == [(0.0, 0.0), (1.0, 1.0)]
    assert builder.r_precision() == 1.0
    assert builder.average_precision() == 0.0
    assert builder.reciprocal_rank() == 0.0


def test_negative_misses_widen_roc():
    """Test that unseen negatives shrink the false positive rate."""
    builder = ScoreCurveBuilder()
    builder.add_case(False, 2.0)
    builder.add_case(True, 1.0)
    builder.add_negative_misses(1)

    assert builder.roc_curve()[1] == pytest.approx((0.5, 0.0))


def test_invalid_inputs_rejected():
    """Test NaN scores and negative miss counts."""
    builder = ScoreCurveBuilder()

    with pytest.raises(InvalidArgumentError, match="NaN"):
        builder.add_case(True, float("nan"))
    with pytest.raises(InvalidArgumentError, match="non-negative"):
        builder.add_misses(-1)
    with pytest.raises(InvalidArgumentError, match="non-negative"):
        builder.add_negative_misses(-1)


def test_from_outcomes_matches_add_case(builder):
    """Test rebuilding a curve from its outcomes."""
    rebuilt = ScoreCurveBuilder.from_outcomes(builder.outcomes())
    rebuilt.add_misses(1)

    assert rebuilt.pr_curve() == builder.pr_curve()
    assert rebuilt.roc_curve() == builder.roc_curve()


def test_area_under():
    """Test the trapezoid rule and its preconditions."""
    assert area_under([(0.0, 0.0), (1.0, 1.0)]) == pytest.approx(0.5)
    assert area_under([(0.0, 1.0), (0.5, 1.0), (0.5, 0.0), (1.0, 0.0)]) == (
        pytest.approx(0.5)
    )
    assert area_under([(0.0, 1.0)]) == 0.0

    with pytest.raises(InvalidArgumentError, match="non-decreasing"):
        area_under([(1.0, 0.0), (0.0, 1.0)])

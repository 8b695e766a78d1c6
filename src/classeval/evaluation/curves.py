from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from classeval.evaluation.metrics import area_under, f_measure, ratio
from classeval.exceptions import InvalidArgumentError

Point = tuple[float, ...]

# Slack for recall levels that miss 0.1 * i by a rounding error.
RECALL_EPSILON = 1e-13


@dataclass(frozen=True)
class ScoredOutcome:
    """A single scored response and whether it matched the reference."""

    score: float
    correct: bool
    first_best: bool = False


class ScoreCurveBuilder:
    """
    Precision-recall and ROC curves over score-ranked outcomes.

    Outcomes are ranked by descending score; ties keep insertion order.
    Positive and negative reference tallies can be widened with misses for
    result sets that do not enumerate every reference case.
    """

    def __init__(self) -> None:
        self._outcomes: list[ScoredOutcome] = []
        self._positive_ref = 0
        self._negative_ref = 0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[ScoredOutcome]) -> ScoreCurveBuilder:
        builder = cls()
        for outcome in outcomes:
            builder._add(outcome)
        return builder

    def add_case(self, correct: bool, score: float) -> None:
        self._add(ScoredOutcome(score=float(score), correct=bool(correct)))

    def _add(self, outcome: ScoredOutcome) -> None:
        if math.isnan(outcome.score):
            raise InvalidArgumentError("Score must not be NaN")
        self._outcomes.append(outcome)
        if outcome.correct:
            self._positive_ref += 1
        else:
            self._negative_ref += 1

    def add_misses(self, count: int) -> None:
        """Count positive references the scored results never returned."""

        if count < 0:
            raise InvalidArgumentError(
                f"Miss count must be non-negative. Found count={count}"
            )
        self._positive_ref += count

    def add_negative_misses(self, count: int) -> None:
        """Count negative references the scored results never returned."""

        if count < 0:
            raise InvalidArgumentError(
                f"Miss count must be non-negative. Found count={count}"
            )
        self._negative_ref += count

    @property
    def num_cases(self) -> int:
        return self._positive_ref + self._negative_ref

    @property
    def num_positive_ref(self) -> int:
        return self._positive_ref

    @property
    def num_negative_ref(self) -> int:
        return self._negative_ref

    def outcomes(self) -> list[ScoredOutcome]:
        """Outcomes by descending score, ties in insertion order."""
        return sorted(self._outcomes, key=lambda outcome: outcome.score, reverse=True)

    def _recall(self, true_positives: int) -> float:
        return ratio(true_positives, self._positive_ref, default=0.0)

    def _operating_points(self) -> list[tuple[float, float, float]]:
        # (recall, precision, score) after each ranked outcome
        points = []
        true_positives = 0
        for rank, outcome in enumerate(self.outcomes(), start=1):
            if outcome.correct:
                true_positives += 1
            points.append(
                (self._recall(true_positives), true_positives / rank, outcome.score)
            )
        return points

    # Curves

    def pr_curve(self, interpolate: bool = False) -> list[Point]:
        """
        Precision-recall curve as (recall, precision) points.

        The curve starts at (0, 1) and ends at (1, 0); operating points with
        zero recall and zero precision are skipped.

        Args:
            interpolate: Replace each precision with the best precision at that
                or any higher recall, keeping one point per recall value
        """
        curve: list[Point] = [(0.0, 1.0)]
        for recall, precision, _ in self._operating_points():
            if recall == 0.0 and precision == 0.0:
                continue
            curve.append((recall, precision))
        curve.append((1.0, 0.0))
        return _interpolate_pr(curve) if interpolate else curve

    def pr_score_curve(self, interpolate: bool = False) -> list[Point]:
        """(recall, precision, score) at every ranked outcome, without end points."""

        curve: list[Point] = list(self._operating_points())
        return _interpolate_pr(curve) if interpolate else curve

    def roc_curve(self, interpolate: bool = False) -> list[Point]:
        """
        ROC curve as (1 - specificity, recall) points from (0, 0) to (1, 1).

        Args:
            interpolate: Keep only the last point of each run sharing an
                x coordinate
        """
        curve: list[Point] = [(0.0, 0.0)]
        true_positives = 0
        true_negatives = self._negative_ref
        for outcome in self.outcomes():
            if outcome.correct:
                true_positives += 1
            else:
                true_negatives -= 1
            specificity = ratio(true_negatives, self._negative_ref, default=1.0)
            curve.append((1.0 - specificity, self._recall(true_positives)))
        curve.append((1.0, 1.0))
        return _interpolate_roc(curve) if interpolate else curve

    def area_under_pr_curve(self, interpolate: bool = False) -> float:
        return area_under(self.pr_curve(interpolate))

    def area_under_roc_curve(self, interpolate: bool = False) -> float:
        return area_under(self.roc_curve(interpolate))

    # Summary statistics

    def precision_at(self, rank: int) -> float:
        """Precision of the top `rank` outcomes; missing outcomes count as wrong."""

        if rank < 0:
            raise InvalidArgumentError(f"Rank must be non-negative. Found rank={rank}")
        if rank == 0:
            return 1.0
        correct = sum(outcome.correct for outcome in self.outcomes()[:rank])
        return correct / rank

    def r_precision(self) -> float:
        """Precision at the rank equal to the number of positive references."""

        if self._positive_ref == 0:
            return 1.0
        return self.precision_at(self._positive_ref)

    def pr_breakeven_point(self) -> float:
        return self.r_precision()

    def eleven_pt_interp_precision(self) -> list[float]:
        curve = self.pr_curve(interpolate=True)
        return [_precision_at_recall(curve, level / 10.0) for level in range(11)]

    def average_precision(self) -> float:
        """Mean precision at each true positive; misses contribute zero."""

        if self._positive_ref == 0:
            return 0.0
        total = 0.0
        recall = 0.0
        for point in self.pr_curve():
            if point[0] > recall:
                total += point[1]
                recall = point[0]
        return total / self._positive_ref

    def maximum_f_measure(self, beta: float = 1.0) -> float:
        return max(
            (f_measure(beta, point[0], point[1]) for point in self.pr_curve()),
            default=0.0,
        )

    def reciprocal_rank(self) -> float:
        for rank, outcome in enumerate(self.outcomes(), start=1):
            if outcome.correct:
                return 1.0 / rank
        return 0.0

    def __repr__(self) -> str:
        return (
            f"ScoreCurveBuilder(num_positive_ref={self._positive_ref}, "
            f"num_negative_ref={self._negative_ref})"
        )


def _interpolate_pr(curve: list[Point]) -> list[Point]:
    if not curve:
        return []

    # Right to left, precision becomes the running maximum.
    raised: list[Point] = []
    best = 0.0
    for point in reversed(curve):
        best = max(best, point[1])
        raised.append((point[0], best, *point[2:]))
    raised.reverse()

    # One point per recall value; the first carries the maximum.
    trimmed: list[Point] = []
    current = raised[0]
    for point in raised[1:]:
        if point[0] == current[0]:
            continue
        trimmed.append(current)
        current = point
    trimmed.append(current)
    return trimmed


def _interpolate_roc(curve: list[Point]) -> list[Point]:
    kept = [
        point for point, following in zip(curve, curve[1:]) if point[0] != following[0]
    ]
    kept.append(curve[-1])
    return kept


def _precision_at_recall(curve: list[Point], recall: float) -> float:
    for point in curve:
        if point[0] + RECALL_EPSILON >= recall:
            return point[1]
    return 0.0

from __future__ import annotations

import math
from dataclasses import dataclass

from classeval.evaluation.config import EvaluationResult
from classeval.evaluation.metrics import f_measure, ratio
from classeval.exceptions import InvalidArgumentError


@dataclass
class PairCounter:
    """Binary (positive/negative) reference versus response counts.

    Precision, recall and their rejection counterparts default to 1.0 when
    their denominator is zero; other undefined ratios are NaN.
    """

    tp: int = 0
    fp: int = 0
    tn: int = 0
    fn: int = 0

    def __post_init__(self) -> None:
        for name in ("tp", "fp", "tn", "fn"):
            if getattr(self, name) < 0:
                raise InvalidArgumentError(
                    f"Counts must be non-negative. Found {name}={getattr(self, name)}"
                )

    def add_case(self, reference: bool, response: bool, count: int = 1) -> None:
        """Record `count` cases with the given reference and response polarity."""

        if count < 0:
            raise InvalidArgumentError(
                f"Count must be non-negative. Found count={count}"
            )
        if reference and response:
            self.tp += count
        elif reference:
            self.fn += count
        elif response:
            self.fp += count
        else:
            self.tn += count

    def __add__(self, other: PairCounter) -> PairCounter:
        if not isinstance(other, PairCounter):
            return NotImplemented
        return PairCounter(
            tp=self.tp + other.tp,
            fp=self.fp + other.fp,
            tn=self.tn + other.tn,
            fn=self.fn + other.fn,
        )

    @property
    def positive_reference(self) -> int:
        return self.tp + self.fn

    @property
    def negative_reference(self) -> int:
        return self.fp + self.tn

    @property
    def positive_response(self) -> int:
        return self.tp + self.fp

    @property
    def negative_response(self) -> int:
        return self.fn + self.tn

    @property
    def total(self) -> int:
        return self.tp + self.fp + self.tn + self.fn

    @property
    def correct(self) -> int:
        return self.tp + self.tn

    def accuracy(self) -> float:
        return ratio(self.correct, self.total)

    def precision(self) -> float:
        return ratio(self.tp, self.positive_response, default=1.0)

    def recall(self) -> float:
        return ratio(self.tp, self.positive_reference, default=1.0)

    def rejection_recall(self) -> float:
        """True negative rate, also known as specificity."""
        return ratio(self.tn, self.negative_reference, default=1.0)

    def rejection_precision(self) -> float:
        return ratio(self.tn, self.negative_response, default=1.0)

    def specificity(self) -> float:
        return self.rejection_recall()

    def false_positive_rate(self) -> float:
        return 1.0 - self.rejection_recall()

    def f_measure(self, beta: float = 1.0) -> float:
        return f_measure(beta, self.recall(), self.precision())

    def jaccard_coefficient(self) -> float:
        return ratio(self.tp, self.tp + self.fp + self.fn)

    def fowlkes_mallows(self) -> float:
        return math.sqrt(self.positive_reference * self.positive_response)

    def yules_q(self) -> float:
        agree = self.tp * self.tn
        disagree = self.fp * self.fn
        return ratio(agree - disagree, agree + disagree)

    def yules_y(self) -> float:
        agree = math.sqrt(self.tp * self.tn)
        disagree = math.sqrt(self.fp * self.fn)
        return ratio(agree - disagree, agree + disagree)

    def reference_likelihood(self) -> float:
        return ratio(self.positive_reference, self.total)

    def response_likelihood(self) -> float:
        return ratio(self.positive_response, self.total)

    def random_accuracy(self) -> float:
        reference = self.reference_likelihood()
        response = self.response_likelihood()
        return reference * response + (1.0 - reference) * (1.0 - response)

    def random_accuracy_unbiased(self) -> float:
        average = (self.reference_likelihood() + self.response_likelihood()) / 2.0
        return average * average + (1.0 - average) * (1.0 - average)

    def kappa(self) -> float:
        return _kappa(self.accuracy(), self.random_accuracy())

    def kappa_unbiased(self) -> float:
        return _kappa(self.accuracy(), self.random_accuracy_unbiased())

    def kappa_no_prevalence(self) -> float:
        return 2.0 * self.accuracy() - 1.0

    def chi_squared(self) -> float:
        numerator = self.total * (self.tp * self.tn - self.fp * self.fn) ** 2
        denominator = (
            self.positive_reference
            * self.negative_reference
            * self.positive_response
            * self.negative_response
        )
        return ratio(numerator, denominator)

    def phi_squared(self) -> float:
        return ratio(self.chi_squared(), self.total)

    def accuracy_deviation(self) -> float:
        accuracy = self.accuracy()
        return math.sqrt(ratio(accuracy * (1.0 - accuracy), self.total))

    def to_result(self) -> EvaluationResult:
        return EvaluationResult(
            precision=self.precision(),
            recall=self.recall(),
            f1_score=self.f_measure(),
            accuracy=self.accuracy(),
            fpr=self.false_positive_rate(),
            specificity=self.specificity(),
            tp=self.tp,
            fp=self.fp,
            tn=self.tn,
            fn=self.fn,
            total_samples=self.total,
            positive_samples=self.positive_reference,
            negative_samples=self.negative_reference,
        )


def _kappa(accuracy: float, random_accuracy: float) -> float:
    return ratio(accuracy - random_accuracy, 1.0 - random_accuracy)

from __future__ import annotations

import math
import operator
from typing import Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from classeval.evaluation.metrics import (
    calculate_confusion_matrix,
    chi_squared_independence,
    log2,
    ratio,
    xlog2x,
)
from classeval.evaluation.pair_counter import PairCounter
from classeval.exceptions import InvalidArgumentError

CategoryKey = int | str

Z_95 = 1.96
Z_99 = 2.58


class ConfusionMatrix:
    """
    Reference versus response counts over a fixed list of categories.

    Row i holds the cases whose reference category is categories[i]; column j
    the cases whose first-best response is categories[j]. Every statistic is
    recomputed from the counts on each call.
    """

    def __init__(
        self,
        categories: Sequence[str],
        matrix: Sequence[Sequence[int]] | NDArray | None = None,
    ) -> None:
        categories = tuple(categories)
        if not categories:
            raise InvalidArgumentError(
                "Confusion matrix requires at least one category"
            )
        if len(set(categories)) != len(categories):
            raise InvalidArgumentError(
                f"Categories must be distinct. Found {list(categories)}"
            )

        self._categories = categories
        self._index = {category: i for i, category in enumerate(categories)}

        size = len(categories)
        if matrix is None:
            self._counts = np.zeros((size, size), dtype=np.int64)
            return

        supplied = np.array(matrix)
        if supplied.shape != (size, size):
            raise InvalidArgumentError(
                f"Matrix must be {size}x{size} for {size} categories. "
                f"Found shape {supplied.shape}"
            )
        if supplied.dtype.kind not in "iu" and not (
            supplied.dtype.kind == "f"
            and np.all(np.isfinite(supplied))
            and np.all(supplied == np.floor(supplied))
        ):
            raise InvalidArgumentError(
                f"Matrix counts must be integers. Found dtype {supplied.dtype}"
            )
        counts = supplied.astype(np.int64)
        if np.any(counts < 0):
            raise InvalidArgumentError("Matrix counts must be non-negative")
        self._counts = counts

    @classmethod
    def from_labels(
        cls,
        categories: Sequence[str],
        references: Sequence[str],
        responses: Sequence[str],
    ) -> ConfusionMatrix:
        """Build a matrix from parallel reference and response label sequences."""

        counts = calculate_confusion_matrix(references, responses, categories)
        logger.debug(
            "Built confusion matrix from labels",
            num_categories=len(categories),
            num_cases=len(references),
        )
        return cls(categories, counts)

    def copy(self) -> ConfusionMatrix:
        return ConfusionMatrix(self._categories, self._counts)

    # Categories

    @property
    def categories(self) -> tuple[str, ...]:
        return self._categories

    @property
    def num_categories(self) -> int:
        return len(self._categories)

    def index_of(self, category: str) -> int:
        try:
            return self._index[category]
        except KeyError:
            raise InvalidArgumentError(
                f"Unknown category: {category}. "
                f"Known categories are: {', '.join(self._categories)}"
            ) from None

    def _resolve(self, key: CategoryKey) -> int:
        if isinstance(key, str):
            return self.index_of(key)
        index = operator.index(key)
        if not 0 <= index < self.num_categories:
            raise InvalidArgumentError(
                f"Index out of range. Index={index} "
                f"num_categories={self.num_categories}"
            )
        return index

    # Mutation

    def increment(self, reference: CategoryKey, response: CategoryKey) -> None:
        self.increment_by_n(reference, response, 1)

    def increment_by_n(
        self, reference: CategoryKey, response: CategoryKey, n: int
    ) -> None:
        """Add `n` (possibly negative) to a cell; the cell may not go below zero."""

        try:
            n = operator.index(n)
        except TypeError:
            raise InvalidArgumentError(
                f"Count increment must be an integer. Found n={n!r}"
            ) from None
        i = self._resolve(reference)
        j = self._resolve(response)
        updated = int(self._counts[i, j]) + n
        if updated < 0:
            raise InvalidArgumentError(
                f"Count cannot become negative. Found count({i},{j})="
                f"{self._counts[i, j]} and n={n}"
            )
        self._counts[i, j] = updated

    # Counts

    def matrix(self) -> NDArray[np.int64]:
        return self._counts.copy()

    def count(self, reference: CategoryKey, response: CategoryKey) -> int:
        return int(self._counts[self._resolve(reference), self._resolve(response)])

    @property
    def total_count(self) -> int:
        return int(self._counts.sum())

    @property
    def total_correct(self) -> int:
        return int(np.trace(self._counts))

    def total_accuracy(self) -> float:
        return ratio(self.total_correct, self.total_count)

    def confidence(self, z: float) -> float:
        """Half-width of the normal-approximation interval around accuracy."""

        accuracy = self.total_accuracy()
        return z * math.sqrt(ratio(accuracy * (1.0 - accuracy), self.total_count))

    def confidence95(self) -> float:
        return self.confidence(Z_95)

    def confidence99(self) -> float:
        return self.confidence(Z_99)

    # One versus all

    def one_vs_all(self, category: CategoryKey) -> PairCounter:
        i = self._resolve(category)
        tp = int(self._counts[i, i])
        fn = int(self._counts[i, :].sum()) - tp
        fp = int(self._counts[:, i].sum()) - tp
        tn = self.total_count - tp - fn - fp
        return PairCounter(tp=tp, fp=fp, tn=tn, fn=fn)

    def _one_vs_alls(self) -> list[PairCounter]:
        return [self.one_vs_all(i) for i in range(self.num_categories)]

    def micro_average(self) -> PairCounter:
        return sum(self._one_vs_alls(), PairCounter())

    def macro_avg_precision(self) -> float:
        return float(np.mean([pair.precision() for pair in self._one_vs_alls()]))

    def macro_avg_recall(self) -> float:
        return float(np.mean([pair.recall() for pair in self._one_vs_alls()]))

    def macro_avg_f_measure(self) -> float:
        return float(np.mean([pair.f_measure() for pair in self._one_vs_alls()]))

    # Agreement

    def _reference_likelihoods(self) -> NDArray[np.float64]:
        total = self.total_count
        if total == 0:
            return np.full(self.num_categories, math.nan)
        return self._counts.sum(axis=1) / total

    def _response_likelihoods(self) -> NDArray[np.float64]:
        total = self.total_count
        if total == 0:
            return np.full(self.num_categories, math.nan)
        return self._counts.sum(axis=0) / total

    def random_accuracy(self) -> float:
        return float(
            np.dot(self._reference_likelihoods(), self._response_likelihoods())
        )

    def random_accuracy_unbiased(self) -> float:
        averages = (self._reference_likelihoods() + self._response_likelihoods()) / 2.0
        return float(np.sum(averages**2))

    def kappa(self) -> float:
        return _kappa(self.total_accuracy(), self.random_accuracy())

    def kappa_unbiased(self) -> float:
        return _kappa(self.total_accuracy(), self.random_accuracy_unbiased())

    def kappa_no_prevalence(self) -> float:
        return 2.0 * self.total_accuracy() - 1.0

    # Information theory

    def reference_entropy(self) -> float:
        return _entropy(self._reference_likelihoods())

    def response_entropy(self) -> float:
        return _entropy(self._response_likelihoods())

    def joint_entropy(self) -> float:
        total = self.total_count
        if total == 0:
            return math.nan
        return _entropy((self._counts / total).ravel())

    def cross_entropy(self) -> float:
        """-sum ref(i) * log2 resp(i); +inf if a reference category has no responses."""

        if self.total_count == 0:
            return math.nan
        total = 0.0
        for reference, response in zip(
            self._reference_likelihoods(), self._response_likelihoods()
        ):
            if reference > 0.0:
                total -= reference * log2(response)
        return total

    def conditional_entropy(self, category: CategoryKey | None = None) -> float:
        """
        Entropy of the response given the reference.

        Args:
            category: Reference category (index or name). If omitted, the
                reference-likelihood weighted average over all categories with
                reference cases

        Returns:
            Conditional entropy in bits; NaN for a category with no reference
            cases
        """
        if category is not None:
            row = self._counts[self._resolve(category)]
            row_total = int(row.sum())
            if row_total == 0:
                return math.nan
            return _entropy(row / row_total)

        if self.total_count == 0:
            return math.nan
        entropy = 0.0
        for i, likelihood in enumerate(self._reference_likelihoods()):
            if likelihood > 0.0:
                entropy += likelihood * self.conditional_entropy(i)
        return entropy

    def mutual_information(self) -> float:
        total = self.total_count
        if total == 0:
            return math.nan
        reference = self._reference_likelihoods()
        response = self._response_likelihoods()
        information = 0.0
        for i in range(self.num_categories):
            for j in range(self.num_categories):
                joint = self._counts[i, j] / total
                if joint > 0.0:
                    expected = reference[i] * response[j]
                    information += joint * math.log2(joint / expected)
        return information

    def kl_divergence(self) -> float:
        """KL divergence of the response likelihoods from the reference likelihoods."""

        if self.total_count == 0:
            return math.nan
        divergence = 0.0
        for reference, response in zip(
            self._reference_likelihoods(), self._response_likelihoods()
        ):
            if reference == 0.0:
                continue
            if response == 0.0:
                return math.inf
            divergence += reference * math.log2(reference / response)
        return divergence

    # Association

    def chi_squared(self) -> float:
        return chi_squared_independence(self._counts)

    def chi_squared_degrees_of_freedom(self) -> int:
        return (self.num_categories - 1) ** 2

    def phi_squared(self) -> float:
        return ratio(self.chi_squared(), self.total_count)

    def cramers_v(self) -> float:
        return math.sqrt(ratio(self.phi_squared(), self.num_categories - 1))

    def lambda_a(self) -> float:
        """Goodman-Kruskal lambda for predicting the reference from the response."""

        max_reference = int(self._counts.sum(axis=1).max())
        column_maxima = int(self._counts.max(axis=0).sum())
        return ratio(
            column_maxima - max_reference, self.total_count - max_reference
        )

    def lambda_b(self) -> float:
        """Goodman-Kruskal lambda for predicting the response from the reference."""

        max_response = int(self._counts.sum(axis=0).max())
        row_maxima = int(self._counts.max(axis=1).sum())
        return ratio(row_maxima - max_response, self.total_count - max_response)

    def __repr__(self) -> str:
        return (
            f"ConfusionMatrix(categories={list(self._categories)}, "
            f"total_count={self.total_count})"
        )


def _kappa(accuracy: float, random_accuracy: float) -> float:
    return ratio(accuracy - random_accuracy, 1.0 - random_accuracy)


def _entropy(probabilities: NDArray[np.float64]) -> float:
    if np.any(np.isnan(probabilities)):
        return math.nan
    return -sum(xlog2x(float(p)) for p in probabilities)

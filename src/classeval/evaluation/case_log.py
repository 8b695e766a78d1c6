from __future__ import annotations

from typing import Any, Callable, Iterator, Sequence

from classeval.classification import Classification
from classeval.evaluation.config import EvaluationCase
from classeval.evaluation.confusion import ConfusionMatrix
from classeval.evaluation.metrics import ratio
from classeval.evaluation.pair_counter import PairCounter
from classeval.exceptions import InvalidArgumentError, UnsupportedOperationError

ValueAtRank = Callable[[Classification, int], float]


class CaseLog:
    """
    Append-only log of evaluation cases plus the confusion matrix they drive.

    The log is the single source of truth: every case appended here is also
    counted in the matrix under its first-best response.
    """

    def __init__(self, categories: Sequence[str], store_inputs: bool = False) -> None:
        self._matrix = ConfusionMatrix(categories)
        self._cases: list[EvaluationCase] = []
        self.store_inputs = store_inputs

    @property
    def categories(self) -> tuple[str, ...]:
        return self._matrix.categories

    @property
    def num_categories(self) -> int:
        return self._matrix.num_categories

    def index_of(self, category: str) -> int:
        return self._matrix.index_of(category)

    def validate_category(self, category: str) -> None:
        self.index_of(category)

    def append(self, case: EvaluationCase) -> None:
        """Record a validated case; the input is dropped unless inputs are stored."""

        if not self.store_inputs and case.input is not None:
            case = EvaluationCase(case.reference, case.classification)
        self._matrix.increment(
            case.reference, case.classification.first_best_category
        )
        self._cases.append(case)

    def __len__(self) -> int:
        return len(self._cases)

    def __iter__(self) -> Iterator[EvaluationCase]:
        return iter(self._cases)

    def confusion_matrix(self) -> ConfusionMatrix:
        return self._matrix.copy()

    def case_types(
        self, category: str, reference_match: bool, response_match: bool
    ) -> list[Any]:
        """Inputs of the cases matching `category` as reference and as response."""

        if not self.store_inputs:
            raise UnsupportedOperationError(
                "Case inputs were not stored; construct the evaluator with "
                "store_inputs=True"
            )
        self.validate_category(category)
        return [
            case.input
            for case in self._cases
            if (case.reference == category) == reference_match
            and (case.classification.first_best_category == category)
            == response_match
        ]

    def one_versus_all(self, category: str) -> PairCounter:
        """Replay the log into a binary counter for `category` versus the rest."""

        self.validate_category(category)
        counter = PairCounter()
        for case in self._cases:
            counter.add_case(
                case.reference == category,
                case.classification.first_best_category == category,
            )
        return counter

    def average_value(self, reference: str, response: str, value: ValueAtRank) -> float:
        """Average value of `response` over cases with reference `reference`.

        Cases whose classification does not contain `response` are skipped.
        """

        self.validate_category(reference)
        self.validate_category(response)
        values = []
        for case in self._cases:
            if case.reference != reference:
                continue
            rank = case.classification.rank_of(response)
            if rank is not None:
                values.append(value(case.classification, rank))
        return ratio(sum(values), len(values))

    def average_reference_value(self, value: ValueAtRank) -> float:
        """Average value of the reference category over all cases.

        A reference missing from its classification contributes zero.
        """

        total = 0.0
        for case in self._cases:
            rank = case.classification.rank_of(case.reference)
            if rank is not None:
                total += value(case.classification, rank)
        return ratio(total, len(self._cases))

    def check_known(self, classification: Classification) -> None:
        unknown = [c for c in classification.categories if c not in self.categories]
        if unknown:
            raise InvalidArgumentError(
                f"Classification contains unknown categories: {unknown}. "
                f"Known categories are: {', '.join(self.categories)}"
            )

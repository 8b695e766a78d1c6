from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from classeval.classification import Capability, Classification
from classeval.evaluation.base import CaseView
from classeval.evaluation.case_log import CaseLog
from classeval.evaluation.config import EvaluationCase
from classeval.evaluation.curves import ScoreCurveBuilder, ScoredOutcome
from classeval.evaluation.metrics import log2_sum_exp2, ratio
from classeval.exceptions import InvalidArgumentError


class RankingView(CaseView):
    """Histogram of the rank at which each reference category was returned."""

    requires = Capability.RANKED
    name = "ranking"

    def __init__(self, log: CaseLog) -> None:
        super().__init__(log)
        size = log.num_categories
        self._rank_counts = np.zeros((size, size), dtype=np.int64)

    def observe(self, case: EvaluationCase) -> None:
        self._check_coverage(case)
        self._rank_counts[self.log.index_of(case.reference), self._rank(case)] += 1

    def _rank(self, case: EvaluationCase, category: str | None = None) -> int:
        # Absent categories count at the worst rank.
        if category is None:
            category = case.reference
        rank = case.classification.rank_of(category)
        return self.log.num_categories - 1 if rank is None else rank

    def rank_count(self, reference: str, rank: int) -> int:
        if not 0 <= rank < self.log.num_categories:
            raise InvalidArgumentError(
                f"Rank out of range. Rank={rank} "
                f"num_categories={self.log.num_categories}"
            )
        return int(self._rank_counts[self.log.index_of(reference), rank])

    def rank_histogram(self, reference: str) -> NDArray[np.int64]:
        return self._rank_counts[self.log.index_of(reference)].copy()

    def average_rank(self, reference: str, response: str) -> float:
        """Average rank of `response` over cases with reference `reference`."""

        self.log.validate_category(reference)
        self.log.validate_category(response)
        ranks = [
            self._rank(case, response)
            for case in self.log
            if case.reference == reference
        ]
        return ratio(sum(ranks), len(ranks))

    def average_rank_reference(self) -> float:
        ranks = np.arange(self.log.num_categories)
        return ratio(
            float((self._rank_counts * ranks).sum()), int(self._rank_counts.sum())
        )

    def mean_reciprocal_rank(self) -> float:
        reciprocals = 1.0 / (np.arange(self.log.num_categories) + 1.0)
        return ratio(
            float((self._rank_counts * reciprocals).sum()),
            int(self._rank_counts.sum()),
        )


class ScoringView(CaseView):
    """Per-category scored outcomes feeding precision-recall and ROC curves."""

    requires = Capability.SCORED
    name = "scoring"

    def __init__(self, log: CaseLog) -> None:
        super().__init__(log)
        self._outcomes: list[list[ScoredOutcome]] = [
            [] for _ in range(log.num_categories)
        ]

    @staticmethod
    def value(classification: Classification, rank: int) -> float:
        return classification.score(rank)

    def observe(self, case: EvaluationCase) -> None:
        self._check_coverage(case)
        classification = case.classification
        for rank in range(min(self.log.num_categories, classification.size)):
            category = classification.category(rank)
            self._outcomes[self.log.index_of(category)].append(
                ScoredOutcome(
                    score=self.value(classification, rank),
                    correct=category == case.reference,
                    first_best=rank == 0,
                )
            )

    def one_versus_all(self, category: str) -> ScoreCurveBuilder:
        return ScoreCurveBuilder.from_outcomes(
            self._outcomes[self.log.index_of(category)]
        )

    def average(self, reference: str, response: str) -> float:
        return self.log.average_value(reference, response, self.value)

    def average_reference(self) -> float:
        return self.log.average_reference_value(self.value)


class ConditioningView(ScoringView):
    """Scored outcomes driven by conditional probabilities instead of scores."""

    requires = Capability.CONDITIONAL
    name = "conditioning"

    @staticmethod
    def value(classification: Classification, rank: int) -> float:
        return classification.conditional_probability(rank)


class JointView(CaseView):
    """Joint log probability averages, replayed from the case log."""

    requires = Capability.JOINT
    name = "joint"

    @staticmethod
    def value(classification: Classification, rank: int) -> float:
        return classification.log2_joint_probability(rank)

    def observe(self, case: EvaluationCase) -> None:
        pass

    def average(self, reference: str, response: str) -> float:
        return self.log.average_value(reference, response, self.value)

    def average_reference(self) -> float:
        return self.log.average_reference_value(self.value)

    def corpus_log2_joint_probability(self) -> float:
        """Sum over cases of log2 of the total joint probability of the input."""

        return sum(
            (
                log2_sum_exp2(case.classification.log2_joint_probabilities or ())
                for case in self.log
            ),
            0.0,
        )

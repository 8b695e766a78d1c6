from __future__ import annotations

from typing import Any, Iterable

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from tqdm import tqdm

from classeval.classification import Capability, Classification, Classifier
from classeval.evaluation.base import CaseView
from classeval.evaluation.case_log import CaseLog
from classeval.evaluation.config import EvaluationCase, EvaluationConfig
from classeval.evaluation.confusion import ConfusionMatrix
from classeval.evaluation.curves import ScoreCurveBuilder
from classeval.evaluation.pair_counter import PairCounter
from classeval.evaluation.report import format_evaluation
from classeval.evaluation.views import (
    ConditioningView,
    JointView,
    RankingView,
    ScoringView,
)
from classeval.exceptions import InvalidArgumentError, UnsupportedOperationError

VIEW_TYPES: tuple[type[CaseView], ...] = (
    RankingView,
    ScoringView,
    ConditioningView,
    JointView,
)


class ClassifierEvaluator:
    """
    Incremental evaluation of a classifier against reference categories.

    One case log (with its confusion matrix) is shared by the statistic views
    the configured capability enables: ranking for ranked evaluators, plus
    scoring, conditioning and joint views for the richer capabilities.
    Statistics are recomputed on every query.
    """

    def __init__(
        self,
        config: EvaluationConfig,
        classifier: Classifier | None = None,
    ) -> None:
        self._config = config.model_copy()
        self._log = CaseLog(
            self._config.categories, store_inputs=self._config.store_inputs
        )
        self._views: dict[str, CaseView] = {
            view_type.name: view_type(self._log)
            for view_type in VIEW_TYPES
            if self._config.capability.includes(view_type.requires)
        }
        self._classifier: Classifier | None = None
        if classifier is not None:
            self.set_classifier(classifier)

        logger.debug(
            "Created evaluator",
            capability=self.capability.value,
            num_categories=self.num_categories,
            store_inputs=self._config.store_inputs,
            views=list(self._views),
        )

    # Configuration

    @property
    def config(self) -> EvaluationConfig:
        """A copy of the configuration; the evaluator keeps its own."""

        return self._config.model_copy()

    @property
    def capability(self) -> Capability:
        return self._config.capability

    @property
    def categories(self) -> tuple[str, ...]:
        return self._log.categories

    @property
    def num_categories(self) -> int:
        return self._log.num_categories

    @property
    def classifier(self) -> Classifier | None:
        return self._classifier

    def set_classifier(self, classifier: Classifier) -> None:
        """Swap in a classifier whose capability covers this evaluator's."""

        if not classifier.capability.includes(self.capability):
            raise UnsupportedOperationError(
                f"A {classifier.capability.value} classifier cannot drive a "
                f"{self.capability.value} evaluator"
            )
        self._classifier = classifier
        logger.debug(
            "Classifier set",
            classifier=type(classifier).__name__,
            capability=classifier.capability.value,
        )

    # Mutation

    def add_classification(
        self,
        reference: str,
        classification: Classification,
        input: Any = None,
    ) -> None:
        """
        Record one classification of an input with a known reference category.

        Args:
            reference: Reference (ground truth) category
            classification: Classifier response, carrying at least the
                evaluator's capability
            input: The classified input, kept only if inputs are stored

        Raises:
            InvalidArgumentError: If the reference or any response category is
                unknown, or the classification lacks the evaluator's capability
        """
        self._log.validate_category(reference)
        if not classification.capability.includes(self.capability):
            raise InvalidArgumentError(
                f"A {self.capability.value} evaluator requires at least a "
                f"{self.capability.value} classification. "
                f"Found {classification.capability.value}"
            )
        self._log.check_known(classification)

        case = EvaluationCase(reference, classification, input)
        self._log.append(case)
        for view in self._views.values():
            was_defective = view.defective
            view.observe(case)
            if view.defective and not was_defective:
                logger.warning(
                    "Classification covers {size} of {num_categories} categories; "
                    "{view} statistics are defective",
                    view=view.name,
                    size=classification.size,
                    num_categories=self.num_categories,
                )

        logger.debug(
            "Recorded case",
            reference=reference,
            response=classification.first_best_category,
            num_cases=self.num_cases,
        )

    def handle(self, input: Any, reference: str) -> None:
        """Classify `input` with the configured classifier and record the result."""

        if self._classifier is None:
            raise UnsupportedOperationError(
                "No classifier configured for this evaluator"
            )
        classification = self._classifier.classify(input)
        self.add_classification(reference, classification, input)

    def handle_all(
        self, examples: Iterable[tuple[Any, str]], progress: bool = False
    ) -> int:
        """Handle `(input, reference)` pairs in order; return how many were handled."""

        handled = 0
        for input, reference in tqdm(
            examples,
            desc="Evaluating",
            unit="case",
            disable=not progress,
        ):
            self.handle(input, reference)
            handled += 1

        logger.info(
            "Evaluation complete",
            cases_handled=handled,
            num_cases=self.num_cases,
            accuracy=self._log.confusion_matrix().total_accuracy(),
        )
        return handled

    # Base statistics

    @property
    def num_cases(self) -> int:
        return len(self._log)

    def cases(self) -> list[EvaluationCase]:
        return list(self._log)

    def confusion_matrix(self) -> ConfusionMatrix:
        return self._log.confusion_matrix()

    def true_positives(self, category: str) -> list[Any]:
        return self._log.case_types(category, True, True)

    def false_positives(self, category: str) -> list[Any]:
        return self._log.case_types(category, False, True)

    def false_negatives(self, category: str) -> list[Any]:
        return self._log.case_types(category, True, False)

    def true_negatives(self, category: str) -> list[Any]:
        return self._log.case_types(category, False, False)

    def one_versus_all(self, category: str) -> PairCounter:
        return self._log.one_versus_all(category)

    def _view(self, view_type: type[CaseView]) -> Any:
        view = self._views.get(view_type.name)
        if view is None:
            raise UnsupportedOperationError(
                f"{view_type.name.capitalize()} statistics require a "
                f"{view_type.requires.value} evaluator. "
                f"This evaluator is {self.capability.value}"
            )
        return view

    # Ranking

    def rank_count(self, reference: str, rank: int) -> int:
        return self._view(RankingView).rank_count(reference, rank)

    def rank_histogram(self, reference: str) -> NDArray[np.int64]:
        return self._view(RankingView).rank_histogram(reference)

    def average_rank(self, reference: str, response: str) -> float:
        return self._view(RankingView).average_rank(reference, response)

    def average_rank_reference(self) -> float:
        return self._view(RankingView).average_rank_reference()

    def mean_reciprocal_rank(self) -> float:
        return self._view(RankingView).mean_reciprocal_rank()

    # Scoring

    def scored_one_versus_all(self, category: str) -> ScoreCurveBuilder:
        return self._view(ScoringView).one_versus_all(category)

    def average_score(self, reference: str, response: str) -> float:
        return self._view(ScoringView).average(reference, response)

    def average_score_reference(self) -> float:
        return self._view(ScoringView).average_reference()

    # Conditioning

    def conditional_one_versus_all(self, category: str) -> ScoreCurveBuilder:
        return self._view(ConditioningView).one_versus_all(category)

    def average_conditional_probability(self, reference: str, response: str) -> float:
        return self._view(ConditioningView).average(reference, response)

    def average_conditional_probability_reference(self) -> float:
        return self._view(ConditioningView).average_reference()

    # Joint

    def average_log2_joint_probability(self, reference: str, response: str) -> float:
        return self._view(JointView).average(reference, response)

    def average_log2_joint_probability_reference(self) -> float:
        return self._view(JointView).average_reference()

    def corpus_log2_joint_probability(self) -> float:
        return self._view(JointView).corpus_log2_joint_probability()

    # Defective flags

    @property
    def defective_ranking(self) -> bool:
        return self._view(RankingView).defective

    @property
    def defective_scoring(self) -> bool:
        return self._view(ScoringView).defective

    @property
    def defective_conditioning(self) -> bool:
        return self._view(ConditioningView).defective

    # Reporting

    def report(self) -> str:
        return format_evaluation(self)

    def __str__(self) -> str:
        return self.report()

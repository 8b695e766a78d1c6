"""Evaluation statistics for classifiers."""

from classeval.evaluation.base import CaseView
from classeval.evaluation.case_log import CaseLog
from classeval.evaluation.classifier import ClassifierEvaluator
from classeval.evaluation.config import (
    EvaluationCase,
    EvaluationConfig,
    EvaluationResult,
)
from classeval.evaluation.confusion import ConfusionMatrix
from classeval.evaluation.curves import ScoreCurveBuilder, ScoredOutcome
from classeval.evaluation.metrics import (
    area_under,
    calculate_confusion_matrix,
    chi_squared_independence,
    f_measure,
    log2_sum_exp2,
)
from classeval.evaluation.pair_counter import PairCounter
from classeval.evaluation.report import (
    format_confusion_matrix,
    format_curve,
    format_evaluation,
    format_pair_counter,
    format_pr_curve,
    format_score_curve,
    matrix_to_csv,
)
from classeval.evaluation.views import (
    ConditioningView,
    JointView,
    RankingView,
    ScoringView,
)

__all__ = [
    "CaseLog",
    "CaseView",
    "ClassifierEvaluator",
    "ConditioningView",
    "ConfusionMatrix",
    "EvaluationCase",
    "EvaluationConfig",
    "EvaluationResult",
    "JointView",
    "PairCounter",
    "RankingView",
    "ScoreCurveBuilder",
    "ScoredOutcome",
    "ScoringView",
    "area_under",
    "calculate_confusion_matrix",
    "chi_squared_independence",
    "f_measure",
    "format_confusion_matrix",
    "format_curve",
    "format_evaluation",
    "format_pair_counter",
    "format_pr_curve",
    "format_score_curve",
    "log2_sum_exp2",
    "matrix_to_csv",
]

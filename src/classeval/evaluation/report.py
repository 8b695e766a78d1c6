"""Human-readable renderings of evaluation statistics.

The layout is informational; nothing parses it back.
"""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Callable, Sequence, TypeVar

from classeval.evaluation.confusion import ConfusionMatrix
from classeval.evaluation.curves import ScoreCurveBuilder
from classeval.evaluation.metrics import f_measure
from classeval.evaluation.pair_counter import PairCounter
from classeval.exceptions import UnsupportedOperationError

if TYPE_CHECKING:
    from classeval.evaluation.classifier import ClassifierEvaluator

REPORT_RANKS = (5, 10, 25, 100, 500)

T = TypeVar("T")


def _lines(pairs: Sequence[tuple[str, object]], indent: str = "  ") -> list[str]:
    return [f"{indent}{label}={value}" for label, value in pairs]


def format_pair_counter(counter: PairCounter) -> str:
    return "\n".join(
        _lines(
            [
                ("True Positives", counter.tp),
                ("False Negatives", counter.fn),
                ("False Positives", counter.fp),
                ("True Negatives", counter.tn),
                ("Positive Reference", counter.positive_reference),
                ("Positive Response", counter.positive_response),
                ("Negative Reference", counter.negative_reference),
                ("Negative Response", counter.negative_response),
                ("Accuracy", counter.accuracy()),
                ("Recall", counter.recall()),
                ("Precision", counter.precision()),
                ("Rejection Recall", counter.rejection_recall()),
                ("Rejection Precision", counter.rejection_precision()),
                ("F(1)", counter.f_measure()),
                ("Fowlkes-Mallows", counter.fowlkes_mallows()),
                ("Jaccard Coefficient", counter.jaccard_coefficient()),
                ("Yule's Q", counter.yules_q()),
                ("Yule's Y", counter.yules_y()),
                ("Reference Likelihood", counter.reference_likelihood()),
                ("Response Likelihood", counter.response_likelihood()),
                ("Random Accuracy", counter.random_accuracy()),
                ("Random Accuracy Unbiased", counter.random_accuracy_unbiased()),
                ("kappa", counter.kappa()),
                ("kappa Unbiased", counter.kappa_unbiased()),
                ("kappa No Prevalence", counter.kappa_no_prevalence()),
                ("chi Squared", counter.chi_squared()),
                ("phi Squared", counter.phi_squared()),
                ("Accuracy Deviation", counter.accuracy_deviation()),
            ]
        )
    )


def matrix_to_csv(matrix: ConfusionMatrix) -> str:
    """Render the counts as CSV with a header row and a label column."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["reference \\ response", *matrix.categories])
    for category, row in zip(matrix.categories, matrix.matrix()):
        writer.writerow([category, *(int(count) for count in row)])
    return buffer.getvalue()


def format_confusion_matrix(matrix: ConfusionMatrix) -> str:
    lines = [
        "Categories=" + str(list(matrix.categories)),
        "Total Count=" + str(matrix.total_count),
        "Total Correct=" + str(matrix.total_correct),
        "Total Accuracy=" + str(matrix.total_accuracy()),
        "95% Confidence Interval="
        f"{matrix.total_accuracy()} +/- {matrix.confidence95()}",
        "Confusion Matrix",
        matrix_to_csv(matrix).rstrip("\n"),
        "Macro-averaged Precision=" + str(matrix.macro_avg_precision()),
        "Macro-averaged Recall=" + str(matrix.macro_avg_recall()),
        "Macro-averaged F=" + str(matrix.macro_avg_f_measure()),
        "Micro-averaged Results",
        format_pair_counter(matrix.micro_average()),
    ]
    lines += _lines(
        [
            ("Random Accuracy", matrix.random_accuracy()),
            ("Random Accuracy Unbiased", matrix.random_accuracy_unbiased()),
            ("kappa", matrix.kappa()),
            ("kappa Unbiased", matrix.kappa_unbiased()),
            ("kappa No Prevalence", matrix.kappa_no_prevalence()),
            ("Reference Entropy", matrix.reference_entropy()),
            ("Response Entropy", matrix.response_entropy()),
            ("Cross Entropy", matrix.cross_entropy()),
            ("Joint Entropy", matrix.joint_entropy()),
            ("Conditional Entropy", matrix.conditional_entropy()),
            ("Mutual Information", matrix.mutual_information()),
            ("Kullback-Liebler Divergence", matrix.kl_divergence()),
            ("chi Squared", matrix.chi_squared()),
            ("chi-Squared Degrees of Freedom", matrix.chi_squared_degrees_of_freedom()),
            ("phi Squared", matrix.phi_squared()),
            ("Cramer's V", matrix.cramers_v()),
            ("lambda A", matrix.lambda_a()),
            ("lambda B", matrix.lambda_b()),
        ],
        indent="",
    )
    return "\n".join(lines)


def format_curve(curve: Sequence[Sequence[float]], header: Sequence[str]) -> str:
    """Render curve points as fixed-width columns under `header`."""

    lines = [" ".join(f"{name:>8}" for name in header)]
    for point in curve:
        lines.append(" ".join(f"{value:8.6f}" for value in point))
    return "\n".join(lines)


def format_pr_curve(curve: Sequence[Sequence[float]]) -> str:
    """Render a (recall, precision) curve as precision, recall and F(1) columns."""

    rows = [
        (point[1], point[0], f_measure(1.0, point[0], point[1])) for point in curve
    ]
    return format_curve(rows, ("PRECI.", "RECALL", "F"))


def format_score_curve(builder: ScoreCurveBuilder) -> str:
    pairs: list[tuple[str, object]] = [
        ("Area Under PR Curve (interpolated)", builder.area_under_pr_curve(True)),
        ("Area Under PR Curve (uninterpolated)", builder.area_under_pr_curve(False)),
        ("Area Under ROC Curve (interpolated)", builder.area_under_roc_curve(True)),
        ("Area Under ROC Curve (uninterpolated)", builder.area_under_roc_curve(False)),
        ("Average Precision", builder.average_precision()),
        ("Maximum F(1) Measure", builder.maximum_f_measure()),
        ("BEP (Precision-Recall break even point)", builder.pr_breakeven_point()),
        ("Reciprocal Rank", builder.reciprocal_rank()),
    ]
    outcomes = len(builder.outcomes())
    pairs += [
        (f"Precision at {rank}", builder.precision_at(rank))
        for rank in REPORT_RANKS
        if rank <= outcomes
    ]
    return "\n".join(_lines(pairs))


def _optional(section: Callable[[], T]) -> T | None:
    try:
        return section()
    except UnsupportedOperationError:
        return None


def format_evaluation(evaluator: ClassifierEvaluator) -> str:
    """Render every statistic the evaluator's capability supports."""

    lines = [
        "BASE CLASSIFIER EVALUATION",
        f"Capability={evaluator.capability.value}",
        f"Number of Cases={evaluator.num_cases}",
        format_confusion_matrix(evaluator.confusion_matrix()),
    ]

    average_rank = _optional(evaluator.average_rank_reference)
    if average_rank is not None:
        lines.append(f"Average Reference Rank={average_rank}")
        lines.append(f"Mean Reciprocal Rank={evaluator.mean_reciprocal_rank()}")
    average_score = _optional(evaluator.average_score_reference)
    if average_score is not None:
        lines.append(f"Average Score Reference={average_score}")
    average_conditional = _optional(
        evaluator.average_conditional_probability_reference
    )
    if average_conditional is not None:
        lines.append(
            f"Average Conditional Probability Reference={average_conditional}"
        )
    corpus_joint = _optional(evaluator.corpus_log2_joint_probability)
    if corpus_joint is not None:
        lines.append(
            "Average Log2 Joint Probability Reference="
            f"{evaluator.average_log2_joint_probability_reference()}"
        )
        lines.append(f"Corpus Log2 Joint Probability={corpus_joint}")

    lines.append("ONE VERSUS ALL EVALUATIONS BY CATEGORY")
    for index, category in enumerate(evaluator.categories):
        lines.append(f"CATEGORY[{index}]={category}")
        lines.append("First-Best Precision/Recall Evaluation")
        lines.append(format_pair_counter(evaluator.one_versus_all(category)))

        histogram = _optional(lambda: evaluator.rank_histogram(category))
        if histogram is not None:
            lines.append("Rank Histogram=")
            lines.append(",".join(str(int(count)) for count in histogram))
            lines.append("Average Rank Histogram=")
            lines.append(
                ",".join(
                    str(evaluator.average_rank(category, response))
                    for response in evaluator.categories
                )
            )

        scored = _optional(lambda: evaluator.scored_one_versus_all(category))
        if scored is not None:
            lines.append("Scored One Versus All")
            lines.append(format_score_curve(scored))

        conditional = _optional(
            lambda: evaluator.conditional_one_versus_all(category)
        )
        if conditional is not None:
            lines.append("Conditional One Versus All")
            lines.append(format_score_curve(conditional))

    return "\n".join(lines)

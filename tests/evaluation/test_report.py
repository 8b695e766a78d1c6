"""Tests for text renderings of evaluation statistics."""

from classeval.classification import Capability, Classification
from classeval.evaluation import (
    ClassifierEvaluator,
    ConfusionMatrix,
    EvaluationConfig,
    PairCounter,
    ScoreCurveBuilder,
    format_confusion_matrix,
    format_pair_counter,
    format_pr_curve,
    format_score_curve,
    matrix_to_csv,
)


def test_matrix_to_csv():
    """Test the CSV layout of a confusion matrix."""
    matrix = ConfusionMatrix(["a", "b"], [[3, 1], [0, 2]])

    assert matrix_to_csv(matrix) == "reference \\ response,a,b\na,3,1\nb,0,2\n"


def test_format_pair_counter():
    """Test that binary statistics are labelled one per line."""
    text = format_pair_counter(PairCounter(tp=9, fn=3, fp=4, tn=11))

    assert "  True Positives=9" in text
    assert "  Recall=0.75" in text
    assert "kappa Unbiased=" in text
    assert len(text.splitlines()) == 28


def test_format_confusion_matrix():
    """Test the matrix section of a report."""
    text = format_confusion_matrix(ConfusionMatrix(["a", "b"], [[3, 1], [0, 2]]))

    assert "Total Count=6" in text
    assert "Total Correct=5" in text
    assert "a,3,1" in text
    assert "Micro-averaged Results" in text
    assert "lambda B=" in text


def test_format_pr_curve():
    """Test precision, recall and F columns."""
    text = format_pr_curve([(0.0, 1.0), (0.5, 0.5)])
    header, first, second = text.splitlines()

    assert header.split() == ["PRECI.", "RECALL", "F"]
    assert first.split() == ["1.000000", "0.000000", "0.000000"]
    assert second.split() == ["0.500000", "0.500000", "0.500000"]


def test_format_score_curve_lists_reachable_ranks():
    """Test that precision at N is reported only for ranks within the outcomes."""
    builder = ScoreCurveBuilder()
    for index in range(6):
        builder.add_case(index % 2 == 0, float(-index))

    text = format_score_curve(builder)

    assert "Average Precision=" in text
    assert "Precision at 5=" in text
    assert "Precision at 10" not in text


def test_first_best_report_omits_richer_sections():
    """Test that a first-best report skips rank and score sections."""
    evaluator = ClassifierEvaluator(EvaluationConfig(categories=("a", "b")))
    evaluator.add_classification("a", Classification.first_best("a"))
    evaluator.add_classification("b", Classification.first_best("a"))

    text = evaluator.report()

    assert text.startswith("BASE CLASSIFIER EVALUATION")
    assert "Capability=first_best" in text
    assert "Number of Cases=2" in text
    assert "CATEGORY[1]=b" in text
    assert "Mean Reciprocal Rank" not in text
    assert "Scored One Versus All" not in text
    assert str(evaluator) == text


def test_joint_report_includes_every_section():
    """Test that a joint report renders every statistic family."""
    config = EvaluationConfig(categories=("a", "b"), capability=Capability.JOINT)
    evaluator = ClassifierEvaluator(config)
    evaluator.add_classification("a", Classification.joint_from(["a", "b"], [-1, -2]))
    evaluator.add_classification("b", Classification.joint_from(["a", "b"], [-1, -3]))

    text = evaluator.report()

    assert "Average Reference Rank=0.5" in text
    assert "Rank Histogram=\n1,0" in text
    assert "Scored One Versus All" in text
    assert "Conditional One Versus All" in text
    assert "Corpus Log2 Joint Probability=" in text

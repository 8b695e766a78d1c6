"""Classification results and the classifier interface consumed by evaluators."""

from classeval.classification.base import Capability, Classifier, FunctionClassifier
from classeval.classification.model import (
    Classification,
    clamp_log2_joint_probabilities,
    log2_joint_to_conditional,
)

__all__ = [
    "Capability",
    "Classification",
    "Classifier",
    "FunctionClassifier",
    "clamp_log2_joint_probabilities",
    "log2_joint_to_conditional",
]

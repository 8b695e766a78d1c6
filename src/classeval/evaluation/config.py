from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from classeval.classification import Capability, Classification


class EvaluationConfig(BaseModel):
    """Configuration for a classifier evaluation."""

    categories: tuple[str, ...]
    capability: Capability = Capability.FIRST_BEST
    store_inputs: bool = False

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("categories")
    @classmethod
    def _check_categories(cls, categories: tuple[str, ...]) -> tuple[str, ...]:
        if not categories:
            raise ValueError("At least one category is required")
        duplicates = sorted({c for c in categories if categories.count(c) > 1})
        if duplicates:
            raise ValueError(f"Categories must be distinct. Duplicated: {duplicates}")
        return categories


@dataclass(frozen=True)
class EvaluationCase:
    """One recorded classification outcome."""

    reference: str
    classification: Classification
    input: Any = None


@dataclass
class EvaluationResult:
    """Snapshot of a one-versus-all (binary) evaluation."""

    # Core classification metrics
    precision: float
    recall: float
    f1_score: float
    accuracy: float

    fpr: float  # False positive rate
    specificity: float  # True negative rate (1 - FPR)

    # Raw confusion matrix counts
    tp: int
    fp: int
    tn: int
    fn: int

    # Sample counts
    total_samples: int
    positive_samples: int
    negative_samples: int

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar

if TYPE_CHECKING:
    from classeval.classification.model import Classification


class Capability(str, Enum):
    """What a classification (or classifier) can report, weakest first."""

    FIRST_BEST = "first_best"
    RANKED = "ranked"
    SCORED = "scored"
    CONDITIONAL = "conditional"
    JOINT = "joint"

    @property
    def level(self) -> int:
        return _LEVELS[self]

    def includes(self, other: Capability) -> bool:
        """Return True if this capability provides everything `other` does."""
        return self.level >= other.level


_LEVELS = {capability: level for level, capability in enumerate(Capability)}


class Classifier(ABC):
    """Abstract classifier consumed by the evaluators.

    Subclasses declare the richest result they produce through `capability`;
    an evaluator only accepts classifiers whose capability includes its own.
    """

    capability: ClassVar[Capability] = Capability.FIRST_BEST

    @abstractmethod
    def classify(self, input: Any) -> Classification:
        """Classify a single input."""
        ...


class FunctionClassifier(Classifier):
    """Adapt a plain callable to the `Classifier` interface."""

    def __init__(
        self,
        function: Callable[[Any], Classification],
        *,
        capability: Capability = Capability.FIRST_BEST,
    ) -> None:
        self._function = function
        self.capability = capability  # type: ignore[misc]

    def classify(self, input: Any) -> Classification:
        return self._function(input)

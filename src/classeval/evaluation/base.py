from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from classeval.classification import Capability
from classeval.evaluation.case_log import CaseLog
from classeval.evaluation.config import EvaluationCase


class CaseView(ABC):
    """Base class for statistics derived from the shared case log."""

    # Weakest evaluator capability that enables this view
    requires: ClassVar[Capability]
    name: ClassVar[str]

    def __init__(self, log: CaseLog) -> None:
        self.log = log
        self.defective = False

    @abstractmethod
    def observe(self, case: EvaluationCase) -> None:
        """
        Update the view with a case the log has just recorded.

        Args:
            case: Validated case whose classification carries at least the
                capability this view requires
        """
        ...

    def _check_coverage(self, case: EvaluationCase) -> None:
        if case.classification.size < self.log.num_categories:
            self.defective = True

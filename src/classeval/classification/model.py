from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from classeval.classification.base import Capability
from classeval.exceptions import InvalidArgumentError, UnsupportedOperationError
from classeval.settings import settings

# Positive log2 joint probabilities smaller than this are rounding noise.
LOG2_CLAMP_LIMIT = 1e-10


def _default_tolerance() -> float:
    return settings.probability_tolerance


def _as_floats(values: Sequence[float] | None) -> tuple[float, ...] | None:
    if values is None:
        return None
    return tuple(float(value) for value in values)


def _check_length(name: str, values: Sequence[float] | None, size: int) -> None:
    if values is not None and len(values) != size:
        raise InvalidArgumentError(
            f"Categories and {name} must be of the same length. "
            f"Found {size} categories and {len(values)} {name}"
        )


def _check_non_increasing(name: str, values: Sequence[float]) -> None:
    for rank in range(1, len(values)):
        if values[rank - 1] < values[rank]:
            raise InvalidArgumentError(
                f"{name.capitalize()} must be in non-increasing order. "
                f"Found {name}[{rank - 1}]={values[rank - 1]} "
                f"< {name}[{rank}]={values[rank]}"
            )


def _check_log2_probabilities(values: Sequence[float]) -> None:
    for rank, value in enumerate(values):
        if math.isnan(value) or value > 0.0:
            raise InvalidArgumentError(
                f"Log probabilities must be non-positive numbers. "
                f"Found log2 probability [{rank}]={value}"
            )


def clamp_log2_joint_probabilities(values: Sequence[float]) -> tuple[float, ...]:
    """Clamp near-zero positive log2 joint probabilities to zero, then validate.

    `-inf` is legal (zero probability); NaN and positive values are rejected.
    """

    clamped = []
    for rank, value in enumerate(values):
        value = float(value)
        if 0.0 < value < LOG2_CLAMP_LIMIT:
            value = 0.0
        if value > 0.0 or math.isnan(value):
            raise InvalidArgumentError(
                f"Joint probabilities must be zero or negative. "
                f"Found log2 joint probability [{rank}]={value}"
            )
        clamped.append(value)
    return tuple(clamped)


def log2_joint_to_conditional(log2_joint: Sequence[float]) -> tuple[float, ...]:
    """Convert log2 joint probabilities to conditional probabilities.

    Subtracts the maximum before exponentiating so that very small joint
    probabilities do not underflow, then renormalises. If every input is
    `-inf` the result is uniform.
    """

    if not log2_joint:
        return ()
    joints = np.asarray(log2_joint, dtype=float)
    top = float(joints.max())
    if top == -math.inf:
        return tuple(1.0 / len(joints) for _ in joints)
    ratios = np.exp2(joints - top)
    return tuple(float(ratio) for ratio in ratios / ratios.sum())


def _sorted_descending(
    categories: Sequence[str], values: Sequence[float]
) -> tuple[list[str], list[float]]:
    pairs = sorted(zip(categories, values), key=lambda pair: pair[1], reverse=True)
    return [category for category, _ in pairs], [value for _, value in pairs]


@dataclass(frozen=True)
class Classification:
    """The result of classifying one input.

    A single record covers every capability: a first-best result carries one
    category, a ranked result an ordered tuple of categories, and the optional
    score, conditional probability and log2 joint probability tuples add the
    scored, conditional and joint capabilities. Invariants are checked once,
    at construction.
    """

    categories: tuple[str, ...]
    scores: tuple[float, ...] | None = None
    conditional_probabilities: tuple[float, ...] | None = None
    log2_joint_probabilities: tuple[float, ...] | None = None
    ranked: bool = True
    tolerance: float = field(
        default_factory=_default_tolerance, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        categories = tuple(self.categories)
        if not categories:
            raise InvalidArgumentError("Classification requires at least one category")
        if len(set(categories)) != len(categories):
            raise InvalidArgumentError(
                f"Classification categories must be distinct. Found {list(categories)}"
            )
        if not self.ranked and len(categories) != 1:
            raise InvalidArgumentError(
                "First-best classification carries exactly one category. "
                f"Found {len(categories)}"
            )

        scores = _as_floats(self.scores)
        conditional = _as_floats(self.conditional_probabilities)
        joint = self.log2_joint_probabilities
        if joint is not None:
            joint = clamp_log2_joint_probabilities(joint)

        if scores is not None and not self.ranked:
            raise InvalidArgumentError("Scores require a ranked classification")
        if conditional is not None and scores is None:
            raise InvalidArgumentError("Conditional probabilities require scores")
        if joint is not None and conditional is None:
            raise InvalidArgumentError(
                "Joint probabilities require conditional probabilities"
            )

        size = len(categories)
        _check_length("scores", scores, size)
        _check_length("conditional probabilities", conditional, size)
        _check_length("log2 joint probabilities", joint, size)

        if scores is not None:
            if any(math.isnan(score) for score in scores):
                raise InvalidArgumentError(f"Scores must not be NaN. Found {scores}")
            _check_non_increasing("scores", scores)

        if conditional is not None:
            if self.tolerance < 0.0 or math.isnan(self.tolerance):
                raise InvalidArgumentError(
                    "Tolerance must be a non-negative number. "
                    f"Found tolerance={self.tolerance}"
                )
            for rank, probability in enumerate(conditional):
                if not 0.0 <= probability <= 1.0:
                    raise InvalidArgumentError(
                        "Conditional probabilities must be between 0.0 and 1.0. "
                        f"Found conditional probability [{rank}]={probability}"
                    )
            total = math.fsum(conditional)
            if abs(total - 1.0) > self.tolerance:
                raise InvalidArgumentError(
                    "Conditional probabilities must sum to 1.0. "
                    f"Acceptable tolerance={self.tolerance} Found sum={total}"
                )
            _check_non_increasing("conditional probabilities", conditional)

        if joint is not None:
            _check_non_increasing("log2 joint probabilities", joint)

        object.__setattr__(self, "categories", categories)
        object.__setattr__(self, "scores", scores)
        object.__setattr__(self, "conditional_probabilities", conditional)
        object.__setattr__(self, "log2_joint_probabilities", joint)

    # Builders

    @classmethod
    def first_best(cls, category: str) -> Classification:
        return cls(categories=(category,), ranked=False)

    @classmethod
    def ranked_from(cls, categories: Sequence[str]) -> Classification:
        return cls(categories=tuple(categories))

    @classmethod
    def scored_from(
        cls, categories: Sequence[str], scores: Sequence[float]
    ) -> Classification:
        return cls(categories=tuple(categories), scores=tuple(scores))

    @classmethod
    def conditional_from(
        cls,
        categories: Sequence[str],
        probabilities: Sequence[float],
        *,
        scores: Sequence[float] | None = None,
        tolerance: float | None = None,
    ) -> Classification:
        """Build a conditional result; scores default to the probabilities."""

        extra = {} if tolerance is None else {"tolerance": tolerance}
        return cls(
            categories=tuple(categories),
            scores=tuple(probabilities if scores is None else scores),
            conditional_probabilities=tuple(probabilities),
            **extra,
        )

    @classmethod
    def joint_from(
        cls,
        categories: Sequence[str],
        log2_joint_probabilities: Sequence[float],
        *,
        scores: Sequence[float] | None = None,
    ) -> Classification:
        """Build a joint result, deriving conditional probabilities.

        Scores default to the log2 joint probabilities.
        """

        joint = clamp_log2_joint_probabilities(log2_joint_probabilities)
        _check_length("log2 joint probabilities", joint, len(categories))
        return cls(
            categories=tuple(categories),
            scores=joint if scores is None else tuple(scores),
            conditional_probabilities=log2_joint_to_conditional(joint),
            log2_joint_probabilities=joint,
            tolerance=math.inf,
        )

    @classmethod
    def conditional_from_log2_probs(
        cls, categories: Sequence[str], log2_probabilities: Sequence[float]
    ) -> Classification:
        """Build a conditional result from unnormalised, unsorted log2 probabilities."""

        values = _as_floats(log2_probabilities) or ()
        _check_length("log2 probabilities", values, len(categories))
        _check_log2_probabilities(values)
        ordered, probabilities = _sorted_descending(
            categories, log2_joint_to_conditional(values)
        )
        return cls.conditional_from(ordered, probabilities)

    @classmethod
    def conditional_from_probs(
        cls, categories: Sequence[str], ratios: Sequence[float]
    ) -> Classification:
        """Build a conditional result from unnormalised, unsorted probability ratios."""

        values = _as_floats(ratios) or ()
        _check_length("probability ratios", values, len(categories))
        if not values:
            raise InvalidArgumentError("Classification requires at least one category")
        for rank, ratio in enumerate(values):
            if ratio < 0.0 or not math.isfinite(ratio):
                raise InvalidArgumentError(
                    "Probability ratios must be non-negative and finite. "
                    f"Found probability ratio [{rank}]={ratio}"
                )
        if math.fsum(values) == 0.0:
            uniform = [1.0 / len(values)] * len(values)
            return cls.conditional_from(categories, uniform)
        log2_values = [
            math.log2(ratio) if ratio > 0.0 else -math.inf for ratio in values
        ]
        return cls.conditional_from_log2_probs(categories, log2_values)

    @classmethod
    def joint_from_unsorted(
        cls, categories: Sequence[str], log2_joint_probabilities: Sequence[float]
    ) -> Classification:
        values = _as_floats(log2_joint_probabilities) or ()
        _check_length("log2 joint probabilities", values, len(categories))
        _check_log2_probabilities(values)
        ordered, joint = _sorted_descending(categories, values)
        return cls.joint_from(ordered, joint)

    # Accessors

    @property
    def size(self) -> int:
        return len(self.categories)

    @property
    def first_best_category(self) -> str:
        return self.categories[0]

    @property
    def capability(self) -> Capability:
        if self.log2_joint_probabilities is not None:
            return Capability.JOINT
        if self.conditional_probabilities is not None:
            return Capability.CONDITIONAL
        if self.scores is not None:
            return Capability.SCORED
        if self.ranked:
            return Capability.RANKED
        return Capability.FIRST_BEST

    def rank_of(self, category: str) -> int | None:
        """Return the rank of `category`, or None if it does not appear."""
        try:
            return self.categories.index(category)
        except ValueError:
            return None

    def category(self, rank: int) -> str:
        self._check_rank(rank)
        return self.categories[rank]

    def score(self, rank: int) -> float:
        if self.scores is None:
            raise UnsupportedOperationError(
                f"{self.capability.value} classification carries no scores"
            )
        self._check_rank(rank)
        return self.scores[rank]

    def conditional_probability(self, rank: int) -> float:
        if self.conditional_probabilities is None:
            raise UnsupportedOperationError(
                f"{self.capability.value} classification carries no "
                "conditional probabilities"
            )
        self._check_rank(rank)
        return self.conditional_probabilities[rank]

    def conditional_probability_of(self, category: str) -> float:
        rank = self.rank_of(category)
        if rank is None:
            raise InvalidArgumentError(
                f"{category} is not a valid category for this classification. "
                f"Valid categories are: {', '.join(self.categories)}"
            )
        return self.conditional_probability(rank)

    def log2_joint_probability(self, rank: int) -> float:
        """Return the log2 joint probability at `rank`; `-inf` past the end."""

        if self.log2_joint_probabilities is None:
            raise UnsupportedOperationError(
                f"{self.capability.value} classification carries no "
                "joint probabilities"
            )
        if rank < 0:
            raise InvalidArgumentError(f"Rank must be non-negative. Found rank={rank}")
        if rank >= self.size:
            return -math.inf
        return self.log2_joint_probabilities[rank]

    def _check_rank(self, rank: int) -> None:
        if not 0 <= rank < self.size:
            raise InvalidArgumentError(
                f"Rank out of bounds. Rank={rank} size={self.size}"
            )

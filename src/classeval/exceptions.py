from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised when an argument violates a documented precondition.

    Covers unknown categories, out-of-range indices or ranks, mismatched
    lengths, non-monotonic scores and malformed probabilities. Raised before
    any state is mutated.
    """


class UnsupportedOperationError(RuntimeError):
    """Raised when an operation is not available in the current configuration."""

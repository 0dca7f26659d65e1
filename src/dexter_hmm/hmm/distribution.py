"""
Probability distribution helpers.

A distribution is a 1-D float array whose entries sum to one once normalized.
"""

import numpy as np

from ..config import get_config
from ..exceptions import DegenerateDistributionError


def as_distribution(values) -> np.ndarray:
    """Convert any sequence of numbers to a 1-D float array."""
    array = np.array(values, dtype=float)
    if array.ndim != 1:
        raise DegenerateDistributionError(
            f"Distribution must be one-dimensional, got shape {array.shape}"
        )
    return array


def normalize(values) -> np.ndarray:
    """
    Divide every entry by the sum of all entries.

    Args:
        values: Non-negative weights

    Returns:
        A new array summing to 1.0

    Raises:
        DegenerateDistributionError: If the weights are empty, negative,
            non-finite or sum to zero
    """
    array = as_distribution(values)

    if array.size == 0:
        raise DegenerateDistributionError("Cannot normalize an empty distribution")

    if not np.all(np.isfinite(array)):
        raise DegenerateDistributionError(f"Distribution contains non-finite values: {array}")

    if np.any(array < 0):
        raise DegenerateDistributionError(f"Distribution contains negative values: {array}")

    total = array.sum()
    if total <= 0:
        raise DegenerateDistributionError(f"Cannot normalize a zero-sum distribution of length {array.size}")

    return array / total


def is_normalized(values, tolerance: float = None) -> bool:
    """Check that a distribution is non-negative and sums to one within tolerance."""
    if tolerance is None:
        tolerance = get_config('hmm', 'tolerance')

    array = as_distribution(values)
    if array.size == 0 or np.any(array < 0):
        return False

    return bool(abs(array.sum() - 1.0) <= tolerance)

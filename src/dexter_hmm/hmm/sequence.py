"""
Observation sequence handling.

Converts user-supplied points and sequences to integer arrays and checks them
against a model's emission vocabulary.
"""

from typing import Sequence

import numpy as np

from ..exceptions import DimensionMismatchError, EmptySequenceError


def to_point(point) -> np.ndarray:
    """
    Convert a point to a 1-D integer array.

    A bare integer is treated as a one-dimensional point.
    """
    if np.isscalar(point):
        point = [point]

    array = np.asarray(point)
    if array.ndim != 1:
        raise DimensionMismatchError(f"Point must be one-dimensional, got shape {array.shape}")
    if array.size and not np.issubdtype(array.dtype, np.integer):
        raise DimensionMismatchError(f"Point symbols must be integers, got {array.dtype}")

    return array.astype(int)


def to_sequence(sequence) -> np.ndarray:
    """
    Convert a sequence of points to an integer array of shape [T, D].

    A flat sequence of integers is read as T one-dimensional points.
    """
    points = [to_point(point) for point in sequence]
    if not points:
        return np.empty((0, 0), dtype=int)

    dimensions = {len(point) for point in points}
    if len(dimensions) != 1:
        raise DimensionMismatchError(f"All points must have the same length, got lengths {sorted(dimensions)}")

    return np.vstack(points)


def check_point(point: np.ndarray, symbols_per_dimension: Sequence[int]) -> None:
    """Raise DimensionMismatchError if a point does not fit the vocabulary."""
    if len(point) != len(symbols_per_dimension):
        raise DimensionMismatchError(
            f"Point has {len(point)} dimensions, model expects {len(symbols_per_dimension)}"
        )

    for d, (symbol, n_symbols) in enumerate(zip(point, symbols_per_dimension)):
        if symbol < 0 or symbol >= n_symbols:
            raise DimensionMismatchError(
                f"Symbol {symbol} in dimension {d} is out of range [0, {n_symbols - 1}]"
            )


def validate_sequence(sequence, symbols_per_dimension: Sequence[int],
                      allow_empty: bool = False) -> np.ndarray:
    """
    Convert and validate an observation sequence.

    Args:
        sequence: Points in time order
        symbols_per_dimension: Vocabulary size of every emission dimension
        allow_empty: Accept a zero-length sequence

    Returns:
        Integer array of shape [T, D]

    Raises:
        EmptySequenceError: If the sequence is empty and allow_empty is False
        DimensionMismatchError: If any point does not fit the vocabulary
    """
    observations = to_sequence(sequence)

    if len(observations) == 0:
        if not allow_empty:
            raise EmptySequenceError("Observation sequence is empty")
        return np.empty((0, len(symbols_per_dimension)), dtype=int)

    if observations.shape[1] != len(symbols_per_dimension):
        raise DimensionMismatchError(
            f"Points have {observations.shape[1]} dimensions, model expects {len(symbols_per_dimension)}"
        )

    limits = np.asarray(symbols_per_dimension)
    invalid = (observations < 0) | (observations >= limits)
    if np.any(invalid):
        t, d = np.argwhere(invalid)[0]
        raise DimensionMismatchError(
            f"Symbol {observations[t, d]} at time {t}, dimension {d} is out of range [0, {limits[d] - 1}]"
        )

    return observations

"""
Hidden state of a discrete HMM.
"""

from typing import List, Optional

import numpy as np

from .distribution import as_distribution
from .sequence import check_point, to_point


class State:
    """
    A hidden state with its initial, transition and emission parameters.

    Emissions hold one distribution per observation dimension. Dimensions are
    assumed conditionally independent given the state, so the likelihood of a
    point is the product of the per-dimension probabilities.

    The index is assigned by the owning Model and equals the state's position
    in it.
    """

    def __init__(self, initial_probability: float, transitions, emissions, index: Optional[int] = None):
        self.initial_probability = float(initial_probability)
        self.transitions = as_distribution(transitions)
        self.emissions: List[np.ndarray] = [as_distribution(e) for e in emissions]
        self.index = index

    @property
    def n_dimensions(self) -> int:
        return len(self.emissions)

    @property
    def symbols_per_dimension(self) -> List[int]:
        return [len(e) for e in self.emissions]

    def likelihood(self, point) -> float:
        """
        Probability of emitting a point from this state.

        Raises:
            DimensionMismatchError: If the point does not fit the emissions
        """
        point = to_point(point)
        check_point(point, self.symbols_per_dimension)

        p = 1.0
        for emission, symbol in zip(self.emissions, point):
            p *= emission[symbol]
        return float(p)

    def copy(self) -> 'State':
        return State(self.initial_probability, self.transitions.copy(),
                     [e.copy() for e in self.emissions], index=self.index)

    def __repr__(self) -> str:
        return (f"State(index={self.index}, initial_probability={self.initial_probability:.6g}, "
                f"n_successors={len(self.transitions)}, symbols_per_dimension={self.symbols_per_dimension})")

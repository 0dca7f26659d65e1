"""
Discrete Hidden Markov Model with multivariate emissions.

A Model is an ordered collection of States addressed by integer index. Each
observation is a point with one discrete symbol per emission dimension.
"""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .baum_welch import reestimate
from .distribution import normalize
from .inference import (
    backtrack,
    backward_table,
    emission_likelihoods,
    forward_table,
    log_likelihood_from_scale,
    scaled_forward_table,
    viterbi_table,
)
from .sequence import validate_sequence
from .state import State
from ..config import get_config
from ..exceptions import (
    DegenerateDistributionError,
    DimensionMismatchError,
    ModelConstructionError,
    NoViablePathError,
    UnknownStateError,
)
from ..logger import get_hmm_logger

logger = get_hmm_logger()

StateRef = Union[State, int]


class Model:
    """
    Discrete HMM built from explicit States.

    The constructor assigns indices 0..N-1 in the given order and normalizes
    the initial probabilities across states and each state's transitions and
    emissions. Queries never modify the model; train() replaces every
    parameter at once after a full Baum-Welch iteration.

    Example:
        >>> model = Model([
        ...     State(0.5, [0.9, 0.1], [[0.9, 0.1]]),
        ...     State(0.5, [0.1, 0.9], [[0.1, 0.9]]),
        ... ])
        >>> for _ in range(10):
        ...     model.train([0, 0, 0, 1, 1, 1])
        >>> model.probability([0, 0, 0, 1, 1, 1]) > model.probability([1, 1, 1, 0, 0, 0])
        True
    """

    def __init__(self, states: Sequence[State]):
        """
        Args:
            states: States in index order

        Raises:
            ModelConstructionError: If no states are given or a state is repeated
            DimensionMismatchError: If the states disagree on shapes
            DegenerateDistributionError: If any distribution sums to zero
        """
        states = list(states)
        if not states:
            raise ModelConstructionError("Model requires at least one state")

        if len({id(s) for s in states}) != len(states):
            raise ModelConstructionError("The same State object was given more than once")

        self._check_shapes(states)

        # Normalize everything before touching the given states
        pi = normalize([s.initial_probability for s in states])
        transitions = [normalize(s.transitions) for s in states]
        emissions = [[normalize(e) for e in s.emissions] for s in states]

        for index, state in enumerate(states):
            state.index = index
            state.initial_probability = float(pi[index])
            state.transitions = transitions[index]
            state.emissions = emissions[index]

        self._states = states

        logger.debug(f"Initialized Model with {self.n_states} states and "
                     f"symbols per dimension {self.symbols_per_dimension}")

    @staticmethod
    def _check_shapes(states: List[State]) -> None:
        n_states = len(states)
        symbols = states[0].symbols_per_dimension

        if not symbols:
            raise DimensionMismatchError("States need at least one emission dimension")

        for i, state in enumerate(states):
            if len(state.transitions) != n_states:
                raise DimensionMismatchError(
                    f"State {i} has {len(state.transitions)} transitions, expected {n_states}"
                )
            if state.symbols_per_dimension != symbols:
                raise DimensionMismatchError(
                    f"State {i} has symbols per dimension {state.symbols_per_dimension}, expected {symbols}"
                )

    @classmethod
    def from_parameters(cls, pi, transitions, emissions) -> 'Model':
        """
        Build a model from parameter arrays.

        Args:
            pi: Initial weights [N]
            transitions: Transition weights [N, N]
            emissions: Per state, either one distribution (single dimension)
                or a list of distributions (one per dimension)
        """
        if len(pi) != len(transitions) or len(pi) != len(emissions):
            raise DimensionMismatchError(
                f"Got {len(pi)} initial weights, {len(transitions)} transition rows "
                f"and {len(emissions)} emission sets"
            )

        states = []
        for p, row, state_emissions in zip(pi, transitions, emissions):
            if np.isscalar(state_emissions[0]):
                state_emissions = [state_emissions]
            states.append(State(p, row, state_emissions))

        return cls(states)

    @classmethod
    def random(cls, n_states: int, symbols_per_dimension: Union[int, Sequence[int]],
               random_state: Optional[int] = None) -> 'Model':
        """
        Build a model with uniform initial probabilities and random
        row-stochastic transitions and emissions.

        Args:
            n_states: Number of hidden states
            symbols_per_dimension: Vocabulary size, or one size per dimension
            random_state: Seed for reproducible initialization
        """
        if n_states < 1:
            raise ModelConstructionError(f"n_states must be positive, got {n_states}")

        if isinstance(symbols_per_dimension, (int, np.integer)):
            symbols_per_dimension = [int(symbols_per_dimension)]

        if random_state is None:
            random_state = get_config('hmm', 'random_seed')
        rng = np.random.RandomState(random_state)

        A = rng.rand(n_states, n_states)
        emissions = [rng.rand(n_states, n_symbols) for n_symbols in symbols_per_dimension]

        states = [
            State(1.0, A[i], [B[i] for B in emissions])
            for i in range(n_states)
        ]
        return cls(states)

    @property
    def states(self) -> Tuple[State, ...]:
        return tuple(self._states)

    @property
    def n_states(self) -> int:
        return len(self._states)

    @property
    def n_dimensions(self) -> int:
        return self._states[0].n_dimensions

    @property
    def symbols_per_dimension(self) -> List[int]:
        return self._states[0].symbols_per_dimension

    def __len__(self) -> int:
        return len(self._states)

    def __getitem__(self, index: int) -> State:
        return self._states[index]

    def _arrays(self) -> Tuple[np.ndarray, np.ndarray, List[np.ndarray]]:
        pi = np.array([s.initial_probability for s in self._states])
        A = np.vstack([s.transitions for s in self._states])
        emissions = [
            np.vstack([s.emissions[d] for s in self._states])
            for d in range(self.n_dimensions)
        ]
        return pi, A, emissions

    def get_parameters(self) -> Tuple[np.ndarray, np.ndarray, List[np.ndarray]]:
        """
        Get current model parameters.

        Returns:
            Tuple of (pi, A, emissions) where emissions holds one [N, V_d]
            matrix per dimension
        """
        return self._arrays()

    def validate_stochastic_matrices(self, tolerance: Optional[float] = None) -> bool:
        """
        Check that every distribution in the model is normalized.

        Raises:
            DegenerateDistributionError: If any distribution is negative or
                does not sum to one within tolerance
        """
        if tolerance is None:
            tolerance = get_config('hmm', 'tolerance')

        pi, A, emissions = self._arrays()

        if np.any(pi < 0) or abs(pi.sum() - 1.0) > tolerance:
            raise DegenerateDistributionError(f"Initial probabilities sum to {pi.sum()}, expected 1.0")

        if np.any(A < 0) or np.any(np.abs(A.sum(axis=1) - 1.0) > tolerance):
            raise DegenerateDistributionError(f"Transition rows don't sum to 1.0: {A.sum(axis=1)}")

        for d, B in enumerate(emissions):
            if np.any(B < 0) or np.any(np.abs(B.sum(axis=1) - 1.0) > tolerance):
                raise DegenerateDistributionError(
                    f"Emission rows of dimension {d} don't sum to 1.0: {B.sum(axis=1)}"
                )

        return True

    def _resolve(self, state: StateRef) -> int:
        index = state if isinstance(state, (int, np.integer)) else state.index

        if index is None or not 0 <= index < self.n_states:
            raise UnknownStateError(f"State index {index} is out of range for {self.n_states} states")
        if isinstance(state, State) and self._states[index] is not state:
            raise UnknownStateError(f"{state!r} does not belong to this model")

        return int(index)

    def forward(self, prefix, state: StateRef) -> float:
        """
        Probability of observing exactly prefix and ending in state.

        Raises:
            EmptySequenceError: If prefix is empty
            UnknownStateError: If state is not a state of this model
            DimensionMismatchError: If a point does not fit the model
        """
        index = self._resolve(state)
        observations = validate_sequence(prefix, self.symbols_per_dimension)

        pi, A, emissions = self._arrays()
        alpha = forward_table(pi, A, emission_likelihoods(emissions, observations))
        return float(alpha[-1, index])

    def backward(self, suffix, state: StateRef) -> float:
        """
        Probability of observing suffix given the chain is in state right
        before it begins. An empty suffix has probability 1.
        """
        index = self._resolve(state)
        observations = validate_sequence(suffix, self.symbols_per_dimension, allow_empty=True)

        if len(observations) == 0:
            return 1.0

        _, A, emissions = self._arrays()
        beta = backward_table(A, emission_likelihoods(emissions, observations))
        return float(beta[0, index])

    def probability(self, sequence) -> float:
        """
        Total likelihood of the sequence under the current parameters.

        Raises:
            EmptySequenceError: If the sequence is empty
            DimensionMismatchError: If a point does not fit the model
        """
        observations = validate_sequence(sequence, self.symbols_per_dimension)

        pi, A, emissions = self._arrays()
        alpha = forward_table(pi, A, emission_likelihoods(emissions, observations))

        # Summed in state order so the result equals the sum of forward() calls
        return sum(float(alpha[-1, i]) for i in range(self.n_states))

    def log_probability(self, sequence) -> float:
        """
        Natural log of probability(); -inf for an impossible sequence.

        Computed from the scaling coefficients of the forward pass, so it
        stays finite on sequences long enough for probability() to underflow.
        """
        observations = validate_sequence(sequence, self.symbols_per_dimension)

        pi, A, emissions = self._arrays()
        _, c_scale = scaled_forward_table(pi, A, emission_likelihoods(emissions, observations))
        return log_likelihood_from_scale(c_scale)

    def viterbi(self, sequence, final_state: StateRef) -> List[State]:
        """
        Most probable state path that ends in final_state.

        Ties between equally probable predecessors go to the lowest index.

        Raises:
            EmptySequenceError: If the sequence is empty
            NoViablePathError: If every path to final_state has probability 0
            UnknownStateError: If final_state is not a state of this model
        """
        index = self._resolve(final_state)
        observations = validate_sequence(sequence, self.symbols_per_dimension)

        pi, A, emissions = self._arrays()
        delta, psi = viterbi_table(pi, A, emission_likelihoods(emissions, observations))

        if not np.isfinite(delta[-1, index]):
            raise NoViablePathError(
                f"No path with positive probability ends in state {index} "
                f"for a sequence of length {len(observations)}"
            )

        return [self._states[i] for i in backtrack(psi, index)]

    def decode(self, sequence) -> List[State]:
        """Most probable state path over all final states."""
        observations = validate_sequence(sequence, self.symbols_per_dimension)

        pi, A, emissions = self._arrays()
        delta, psi = viterbi_table(pi, A, emission_likelihoods(emissions, observations))

        final = int(np.argmax(delta[-1, :]))
        if not np.isfinite(delta[-1, final]):
            raise NoViablePathError(
                f"No path with positive probability for a sequence of length {len(observations)}"
            )

        return [self._states[i] for i in backtrack(psi, final)]

    def train(self, sequence) -> None:
        """
        Run one Baum-Welch iteration on the sequence and commit the result.

        All expected counts are computed from the current parameters; the new
        states are only swapped in once fully re-estimated and normalized.
        On any error the model is left unchanged.

        Raises:
            EmptySequenceError: If the sequence is empty
            DimensionMismatchError: If a point does not fit the model
            DegenerateDistributionError: If the sequence is impossible under
                the model or a state cannot be re-estimated
        """
        observations = validate_sequence(sequence, self.symbols_per_dimension)

        pi, A, emissions = self._arrays()
        update = reestimate(pi, A, emissions, observations)

        scratch = [
            State(update.pi[i], update.A[i], [B[i] for B in update.emissions], index=i)
            for i in range(self.n_states)
        ]

        self._states = scratch

        logger.debug(f"Committed Baum-Welch update: T={len(observations)}, "
                     f"previous log-likelihood={update.log_probability:.6f}")

    def __repr__(self) -> str:
        """String representation of the HMM."""
        return f"Model(n_states={self.n_states}, symbols_per_dimension={self.symbols_per_dimension})"

"""
One Baum-Welch (EM) iteration for a discrete multivariate-emission HMM.

The E-step reads only the frozen parameter arrays passed in; the M-step
writes into freshly allocated arrays. The caller decides when, and whether,
to swap the new parameters in.

Expected counts come from the scaled forward-backward tables, so sequences of
any length can be trained on without underflow.
"""

from typing import List, NamedTuple, Sequence

import numpy as np

from .inference import (
    emission_likelihoods,
    log_likelihood_from_scale,
    scaled_backward_table,
    scaled_forward_table,
)
from .distribution import normalize
from ..exceptions import DegenerateDistributionError
from ..logger import get_hmm_logger

logger = get_hmm_logger()


class Reestimate(NamedTuple):
    """Re-estimated parameters and the log-likelihood they were computed under."""
    pi: np.ndarray
    A: np.ndarray
    emissions: List[np.ndarray]
    log_probability: float


def occupation_probabilities(alpha: np.ndarray, beta: np.ndarray) -> np.ndarray:
    """
    gamma[t, s] = P(q_t = s | O).

    alpha is the scaled [T, N] table; beta is the scaled [T+1, N] table with
    beta[t+1] the suffix after t.
    """
    return alpha * beta[1:, :]


def transition_occupations(alpha: np.ndarray, beta: np.ndarray, A: np.ndarray,
                           L: np.ndarray, c_scale: np.ndarray) -> np.ndarray:
    """
    xi[t, i, j] = P(q_t = i, q_t+1 = j | O) for t in [0, T-2].
    """
    # alpha[t, i] * A[i, j] * L[t+1, j] * beta(o_t+2.., j), short of c_scale[t+1]
    return (alpha[:-1, :, None] * A[None, :, :] *
            (L[1:, :] * beta[2:, :])[:, None, :]) / c_scale[1:, None, None]


def reestimate(pi: np.ndarray, A: np.ndarray, emissions: Sequence[np.ndarray],
               observations: np.ndarray) -> Reestimate:
    """
    Compute one EM update from the current parameters.

    Args:
        pi: Initial probabilities [N]
        A: Transition matrix [N, N]
        emissions: Per-dimension emission matrices [N, V_d]
        observations: Validated, non-empty integer observations [T, D]

    Returns:
        Reestimate with normalized new parameters and log P(O) under the old ones

    Raises:
        DegenerateDistributionError: If the sequence is impossible under the
            current model, or a state has no expected occupancy to re-estimate
            its transitions or emissions from
    """
    T = len(observations)
    n_states = len(pi)

    L = emission_likelihoods(emissions, observations)
    alpha, c_scale = scaled_forward_table(pi, A, L)

    log_probability = log_likelihood_from_scale(c_scale)
    if not np.isfinite(log_probability):
        raise DegenerateDistributionError(
            "Sequence has probability 0 under the current model, cannot re-estimate"
        )

    beta = scaled_backward_table(A, L, c_scale)

    gamma = occupation_probabilities(alpha, beta)
    xi = transition_occupations(alpha, beta, A, L, c_scale)

    new_pi = gamma[0, :].copy()

    # Transitions: expected i -> j counts over expected departures from i
    departures = gamma[:-1, :].sum(axis=0)
    transition_counts = xi.sum(axis=0)
    new_A = np.zeros((n_states, n_states))
    for i in range(n_states):
        if departures[i] <= 0:
            raise DegenerateDistributionError(
                f"State {i} has no expected departures in a sequence of length {T}, "
                f"cannot re-estimate its transitions"
            )
        new_A[i, :] = transition_counts[i, :] / departures[i]

    # Emissions: expected symbol counts over expected visits, per dimension
    visits = gamma.sum(axis=0)
    new_emissions = []
    for d, B in enumerate(emissions):
        counts = np.zeros_like(B)
        for v in range(B.shape[1]):
            mask = observations[:, d] == v
            counts[:, v] = gamma[mask, :].sum(axis=0)

        new_B = np.zeros_like(B)
        for s in range(n_states):
            if visits[s] <= 0:
                raise DegenerateDistributionError(
                    f"State {s} is never occupied, cannot re-estimate its emissions"
                )
            new_B[s, :] = counts[s, :] / visits[s]
        new_emissions.append(new_B)

    # Absorb floating-point drift
    new_pi = normalize(new_pi)
    new_A = np.vstack([normalize(row) for row in new_A])
    new_emissions = [np.vstack([normalize(row) for row in B]) for B in new_emissions]

    logger.debug(f"Baum-Welch step: T={T}, N={n_states}, log_probability={log_probability:.6f}")

    return Reestimate(new_pi, new_A, new_emissions, log_probability)

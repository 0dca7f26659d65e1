"""
Forward, backward and Viterbi recursions.

All recursions run bottom-up over dense [time, state] tables that are
allocated per call, so no table outlives the sequence it was built for and
recursion depth never grows with the sequence length.

The unscaled tables give exact probabilities for short sequences. Training,
log-likelihoods and decoding use the scaled or log-space variants, which stay
finite on sequences of any length.

Conventions for a model with N states and a sequence of length T:

- pi: initial probabilities [N]
- A: transitions [N, N] where A[i, j] = P(q_t+1 = j | q_t = i)
- emissions: one matrix [N, V_d] per observation dimension d
- L: emission likelihoods [T, N] where L[t, j] = P(o_t | q_t = j)
"""

from typing import List, Sequence, Tuple

import numpy as np


def emission_likelihoods(emissions: Sequence[np.ndarray], observations: np.ndarray) -> np.ndarray:
    """
    Likelihood of every observation under every state.

    Args:
        emissions: Per-dimension emission matrices [N, V_d]
        observations: Validated integer observations [T, D]

    Returns:
        L: Likelihoods [T, N], the product over dimensions of B_d[j, o_t[d]]
    """
    T = len(observations)
    n_states = emissions[0].shape[0]

    L = np.ones((T, n_states))
    for d, B in enumerate(emissions):
        L *= B[:, observations[:, d]].T

    return L


def forward_table(pi: np.ndarray, A: np.ndarray, L: np.ndarray) -> np.ndarray:
    """
    Unscaled forward probabilities.

    Returns:
        alpha: [T, N] where alpha[t, j] = P(o_0..o_t, q_t = j)
    """
    T, n_states = L.shape
    alpha = np.zeros((T, n_states))

    alpha[0, :] = pi * L[0, :]

    for t in range(1, T):
        alpha[t, :] = (alpha[t-1, :] @ A) * L[t, :]

    return alpha


def backward_table(A: np.ndarray, L: np.ndarray) -> np.ndarray:
    """
    Unscaled backward probabilities, one row longer than the sequence.

    Returns:
        beta: [T+1, N] where beta[t, i] = P(o_t..o_T-1 | q_t-1 = i), i.e. the
        probability of the suffix starting at t given the chain is in state i
        just before it. beta[T, :] = 1 for the empty suffix.
    """
    T, n_states = L.shape
    beta = np.zeros((T + 1, n_states))

    beta[T, :] = 1.0

    for t in range(T - 1, -1, -1):
        beta[t, :] = A @ (L[t, :] * beta[t+1, :])

    return beta


def scaled_forward_table(pi: np.ndarray, A: np.ndarray, L: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Forward probabilities with per-step scaling to prevent numerical underflow.

    Returns:
        Tuple of:
        - alpha: Scaled forward probabilities [T, N], each row summing to 1
        - c_scale: Scaling coefficients [T], c_scale[t] = P(o_t | o_0..o_t-1)

    log P(O) = sum(log(c_scale)). If the sequence is impossible, the first
    zero coefficient and everything after it are left at 0.
    """
    T, n_states = L.shape
    alpha = np.zeros((T, n_states))
    c_scale = np.zeros(T)

    alpha[0, :] = pi * L[0, :]

    for t in range(T):
        if t > 0:
            alpha[t, :] = (alpha[t-1, :] @ A) * L[t, :]

        c_scale[t] = alpha[t, :].sum()
        if c_scale[t] <= 0:
            alpha[t:, :] = 0.0
            break

        alpha[t, :] /= c_scale[t]

    return alpha, c_scale


def scaled_backward_table(A: np.ndarray, L: np.ndarray, c_scale: np.ndarray) -> np.ndarray:
    """
    Backward probabilities scaled with the forward coefficients.

    Row t is divided by c_scale[t..T-1], so alpha[t] * beta[t+1] is the
    state occupation probability at t. All coefficients must be positive.

    Returns:
        beta: [T+1, N] with beta[T, :] = 1
    """
    T, n_states = L.shape
    beta = np.zeros((T + 1, n_states))

    beta[T, :] = 1.0

    for t in range(T - 1, -1, -1):
        beta[t, :] = A @ (L[t, :] * beta[t+1, :]) / c_scale[t]

    return beta


def log_likelihood_from_scale(c_scale: np.ndarray) -> float:
    """log P(O) from scaling coefficients; -inf for an impossible sequence."""
    if np.any(c_scale <= 0):
        return float('-inf')
    return float(np.sum(np.log(c_scale)))


def viterbi_table(pi: np.ndarray, A: np.ndarray, L: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Max-product recursion in log space.

    Returns:
        Tuple of:
        - delta: [T, N] log probability of the best path ending in each
          state, -inf where no path has positive probability
        - psi: [T, N] best predecessor of each state (psi[0] is unused)

    Among equally probable predecessors the lowest index is kept.
    """
    T, n_states = L.shape
    delta = np.zeros((T, n_states))
    psi = np.zeros((T, n_states), dtype=int)

    with np.errstate(divide='ignore'):
        log_pi, log_A, log_L = np.log(pi), np.log(A), np.log(L)

    delta[0, :] = log_pi + log_L[0, :]

    columns = np.arange(n_states)
    for t in range(1, T):
        # candidates[i, j]: best path to i, then i -> j, then emit o_t from j
        candidates = delta[t-1, :, None] + log_A + log_L[t, None, :]
        # argmax returns the first maximum
        psi[t, :] = np.argmax(candidates, axis=0)
        delta[t, :] = candidates[psi[t, :], columns]

    return delta, psi


def backtrack(psi: np.ndarray, final_state: int) -> List[int]:
    """Follow best-predecessor pointers back from final_state."""
    T = len(psi)
    path = [final_state]

    for t in range(T - 1, 0, -1):
        path.append(int(psi[t, path[-1]]))

    path.reverse()
    return path

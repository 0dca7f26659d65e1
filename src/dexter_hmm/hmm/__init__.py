"""
Hidden Markov Model module.

Discrete multivariate-emission HMM with forward/backward evaluation, Viterbi
decoding and Baum-Welch training.
"""

from .distribution import normalize, is_normalized
from .state import State
from .model import Model

__all__ = [
    "normalize",
    "is_normalized",
    "State",
    "Model"
]

"""
Dexter HMM: discrete Hidden Markov Models from scratch

Forward/backward evaluation, Viterbi decoding and Baum-Welch training for
HMMs with one or more discrete emission dimensions.
"""

__version__ = "0.1.0"
__author__ = "Dexter Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .hmm import Model, State, normalize
from .exceptions import (
    DexterHMMError,
    ModelConstructionError,
    DimensionMismatchError,
    DegenerateDistributionError,
    EmptySequenceError,
    NoViablePathError,
    UnknownStateError
)

__all__ = [
    "get_config",
    "set_config",
    "get_logger",
    "Model",
    "State",
    "normalize",
    "DexterHMMError",
    "ModelConstructionError",
    "DimensionMismatchError",
    "DegenerateDistributionError",
    "EmptySequenceError",
    "NoViablePathError",
    "UnknownStateError",
    "__version__"
]

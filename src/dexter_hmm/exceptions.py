"""
Exception hierarchy for the Dexter HMM engine.
"""


class DexterHMMError(Exception):
    """Base exception for the Dexter HMM engine."""
    pass


class ModelConstructionError(DexterHMMError, ValueError):
    """Model built from an empty or otherwise unusable set of states."""
    pass


class DimensionMismatchError(DexterHMMError, ValueError):
    """Point length or symbol index out of range for the model."""
    pass


class DegenerateDistributionError(DexterHMMError, ArithmeticError):
    """Normalization attempted on a zero-sum or invalid distribution."""
    pass


class EmptySequenceError(DexterHMMError, ValueError):
    """Zero-length sequence passed where observations are required."""
    pass


class NoViablePathError(DexterHMMError):
    """Viterbi decoding found no path with positive probability."""
    pass


class UnknownStateError(DexterHMMError, ValueError):
    """State reference that is out of range or belongs to another model."""
    pass

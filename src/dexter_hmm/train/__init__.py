"""
Training module.

Drive repeated Baum-Welch iterations with convergence monitoring.
"""

from .trainer import ModelTrainer

__all__ = [
    "ModelTrainer"
]

"""
Command-line interface module.

CLI tools for training, scoring and decoding small discrete HMMs.
"""

from .main import app

__all__ = [
    "app"
]

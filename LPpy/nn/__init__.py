"""
Neural network layers for LPpy.
"""

from .pooling import FeatureLPPool

__all__ = [
    "FeatureLPPool",
]

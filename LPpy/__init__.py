"""
LPpy: feature-dimension Lp-norm pooling for NumPy arrays

Sliding-window Lp-norm pooling along the feature axis of rank 1-4 arrays,
with its exact gradient and a small autograd layer on top.
"""

import logging

from .core import Context, Function, Module, Tensor
from .nn import FeatureLPPool
from .ops import (
    InvalidParameter,
    LPPoolingParams,
    ShapeMismatch,
    UnsupportedRank,
    feature_lp_pooling_backward,
    feature_lp_pooling_forward,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

forward = feature_lp_pooling_forward
backward = feature_lp_pooling_backward

__version__ = "0.1.0"

__all__ = [
    'Tensor',
    'Function',
    'Context',
    'Module',
    'FeatureLPPool',
    'LPPoolingParams',
    'InvalidParameter',
    'UnsupportedRank',
    'ShapeMismatch',
    'forward',
    'backward',
    'feature_lp_pooling_forward',
    'feature_lp_pooling_backward',
]

"""
Operations module for LPpy.

Shape normalization, compute kernels and the feature Lp pooling operations.
"""

from .errors import InvalidParameter, LPPoolingError, ShapeMismatch, UnsupportedRank
from .kernels import DEFAULT_KERNEL, LoopKernel, LPPoolingKernel, VectorizedKernel
from .lp_pooling import (
    FeatureLPPoolingFunction,
    LPPoolingParams,
    feature_lp_pooling_backward,
    feature_lp_pooling_forward,
    update_grad_input,
    update_output,
)
from .shape import (
    CanonicalView,
    canonicalize,
    derive_output_shape,
    output_size,
    resize_for_output,
    resize_like,
    upcast,
)

__all__ = [
    # Errors
    "LPPoolingError",
    "InvalidParameter",
    "UnsupportedRank",
    "ShapeMismatch",
    # Shape normalization
    "CanonicalView",
    "canonicalize",
    "upcast",
    "output_size",
    "derive_output_shape",
    "resize_for_output",
    "resize_like",
    # Kernels
    "LPPoolingKernel",
    "VectorizedKernel",
    "LoopKernel",
    "DEFAULT_KERNEL",
    # Pooling operations
    "LPPoolingParams",
    "update_output",
    "update_grad_input",
    "feature_lp_pooling_forward",
    "feature_lp_pooling_backward",
    "FeatureLPPoolingFunction",
]

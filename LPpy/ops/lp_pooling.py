"""
Feature Lp pooling: a sliding window of `width` elements taken every
`stride` elements along the feature axis, each window reduced to its Lp norm
``(sum |x|^power)^(1/power)``.

The public entry points validate their arguments, canonicalize every tensor
to ``[batch, feature, extra1, extra2]`` and size the output buffers before
handing the views to a kernel. Nothing is kept between calls.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
from numpy.typing import NDArray

from ..core import Function, Tensor
from ..core.context import Context
from .errors import InvalidParameter, ShapeMismatch, UnsupportedRank
from .kernels import DEFAULT_KERNEL, LPPoolingKernel
from .shape import (
    CanonicalView,
    canonicalize,
    output_size,
    resize_for_output,
    resize_like,
    upcast,
)

logger = logging.getLogger(__name__)

MIN_WIDTH = 2
MAX_WIDTH = 16
MIN_STRIDE = 1
MAX_STRIDE = 4


@dataclass(frozen=True)
class LPPoolingParams:
    """
    Parameters of one feature Lp pooling call.

    Attributes:
        width: Number of consecutive features per window (2-16)
        stride: Step between the starts of consecutive windows (1-4)
        power: Norm exponent, any positive real
        batch_mode: Whether the leading raw axis is a batch axis
    """

    width: int
    stride: int
    power: float = 2.0
    batch_mode: bool = True

    def validate(self) -> "LPPoolingParams":
        """
        Checks the parameter ranges and returns self.

        Raises:
            InvalidParameter: If width, stride or power is out of range
        """
        if not _is_int(self.width) or not MIN_WIDTH <= self.width <= MAX_WIDTH:
            raise InvalidParameter(f"width: must be between {MIN_WIDTH} -> {MAX_WIDTH}")
        if not _is_int(self.stride) or not MIN_STRIDE <= self.stride <= MAX_STRIDE:
            raise InvalidParameter(f"stride: must be between {MIN_STRIDE} -> {MAX_STRIDE}")
        if (
            isinstance(self.power, bool)
            or not isinstance(self.power, (int, float, np.integer, np.floating))
            or not math.isfinite(self.power)
            or self.power <= 0
        ):
            raise InvalidParameter("power: must be a positive finite number")
        return self


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _check_floating(name: str, array: NDArray[Any]) -> None:
    if not np.issubdtype(array.dtype, np.floating):
        raise TypeError(f"{name}: expected a floating point array, got {array.dtype}")


def _check_feature_size(input_view: CanonicalView, width: int) -> None:
    if input_view.feature_size < width:
        raise ShapeMismatch("input: feature dimension must be >= width")


def update_output(
    input_view: CanonicalView,
    output_view: CanonicalView,
    params: LPPoolingParams,
    kernel: Optional[LPPoolingKernel] = None,
) -> None:
    """
    Runs the forward reduction on already validated canonical views.

    Args:
        input_view: Canonical input
        output_view: Canonical output sized for `input_view` and `params`
        params: Pooling parameters
        kernel: Compute backend, defaults to the vectorized NumPy kernel
    """
    kernel = kernel or DEFAULT_KERNEL
    logger.debug(
        "Feature Lp pooling forward: %s -> %s (width=%d, stride=%d, power=%s, kernel=%s)",
        input_view.sizes,
        output_view.sizes,
        params.width,
        params.stride,
        params.power,
        kernel.name,
    )
    kernel.update_output(
        input_view.data, output_view.data, params.width, params.stride, float(params.power)
    )


def update_grad_input(
    grad_output_view: CanonicalView,
    input_view: CanonicalView,
    output_view: CanonicalView,
    grad_input_view: CanonicalView,
    params: LPPoolingParams,
    kernel: Optional[LPPoolingKernel] = None,
) -> None:
    """Runs the gradient computation on already validated canonical views."""
    kernel = kernel or DEFAULT_KERNEL
    logger.debug(
        "Feature Lp pooling backward: %s -> %s (width=%d, stride=%d, power=%s, kernel=%s)",
        grad_output_view.sizes,
        grad_input_view.sizes,
        params.width,
        params.stride,
        params.power,
        kernel.name,
    )
    kernel.update_grad_input(
        grad_output_view.data,
        input_view.data,
        output_view.data,
        grad_input_view.data,
        params.width,
        params.stride,
        float(params.power),
    )


def feature_lp_pooling_forward(
    input: NDArray[Any],
    width: int,
    stride: int,
    power: float = 2.0,
    batch_mode: bool = True,
    output: Optional[NDArray[Any]] = None,
    kernel: Optional[LPPoolingKernel] = None,
) -> NDArray[Any]:
    """
    Computes feature Lp pooling of `input`.

    Args:
        input: Floating point array of rank 1-3 (no batch mode) or 2-4
            (batch mode)
        width: Window width, 2-16
        stride: Window stride, 1-4
        power: Norm exponent, > 0
        batch_mode: Whether the first axis of `input` is a batch axis
        output: Optional buffer to write into; reused when its shape and
            dtype already match, replaced otherwise
        kernel: Compute backend

    Returns:
        Array with the shape of `input` except the feature axis, which has
        ``(n - width) // stride + 1`` elements

    Raises:
        InvalidParameter: If width, stride or power is out of range
        UnsupportedRank: If the rank of `input` is not supported in this mode
        ShapeMismatch: If the feature axis is shorter than `width`
    """
    params = LPPoolingParams(width, stride, power, batch_mode).validate()

    input = np.asarray(input)
    _check_floating("input", input)
    input_view = canonicalize(input, batch_mode)
    _check_feature_size(input_view, width)

    output = resize_for_output(output, input, batch_mode, width, stride)
    output_view = canonicalize(output, batch_mode)

    update_output(input_view, output_view, params, kernel)
    return output


def feature_lp_pooling_backward(
    grad_output: NDArray[Any],
    input: NDArray[Any],
    output: NDArray[Any],
    width: int,
    stride: int,
    power: float = 2.0,
    batch_mode: bool = True,
    grad_input: Optional[NDArray[Any]] = None,
    kernel: Optional[LPPoolingKernel] = None,
) -> NDArray[Any]:
    """
    Computes the gradient of feature Lp pooling with respect to `input`.

    Args:
        grad_output: Gradient w.r.t. `output`; must match its size and layout
        input: Input of the forward pass
        output: Result of the forward pass on `input`
        width, stride, power, batch_mode: Same values as the forward pass
        grad_input: Optional buffer to write into, reused when it already
            matches `input`
        kernel: Compute backend

    Returns:
        Gradient with the raw shape of `input`. Windows that overlap
        contribute additively.

    Raises:
        InvalidParameter: If width, stride or power is out of range
        UnsupportedRank: If any tensor's rank is not supported in this mode
        ShapeMismatch: If the tensors are not consistent with each other
    """
    params = LPPoolingParams(width, stride, power, batch_mode).validate()

    input = np.asarray(input)
    grad_output = np.asarray(grad_output)
    output = np.asarray(output)
    _check_floating("input", input)
    _check_floating("gradOutput", grad_output)
    _check_floating("output", output)

    input_view = canonicalize(input, batch_mode)
    _check_feature_size(input_view, width)

    grad_output_4d = upcast(grad_output, batch_mode)
    output_4d = upcast(output, batch_mode)
    if grad_output_4d is None or output_4d is None:
        raise UnsupportedRank("output and/or gradOutput are improperly sized")

    grad_output_view = CanonicalView(grad_output_4d, tuple(grad_output.shape), batch_mode)
    output_view = CanonicalView(output_4d, tuple(output.shape), batch_mode)

    if not output_view.is_same_size_and_stride(grad_output_view):
        raise ShapeMismatch("output and gradOutput sizes do not match")

    if output_size(input_view.feature_size, width, stride) != output_view.feature_size:
        raise ShapeMismatch(
            "input and output sizes do not match with respect to width and stride"
        )

    in_sizes, out_sizes = input_view.sizes, output_view.sizes
    if (in_sizes[0],) + in_sizes[2:] != (out_sizes[0],) + out_sizes[2:]:
        raise ShapeMismatch(
            "input and output sizes do not match outside the feature dimension"
        )

    grad_input = resize_like(grad_input, input)
    grad_input_view = canonicalize(grad_input, batch_mode)

    update_grad_input(grad_output_view, input_view, output_view, grad_input_view, params, kernel)
    return grad_input


class FeatureLPPoolingFunction(Function):
    """Autograd function wrapping feature Lp pooling."""

    @staticmethod
    def forward(
        ctx: Context,
        x: Tensor,
        params: LPPoolingParams,
        kernel: Optional[LPPoolingKernel] = None,
    ) -> Tensor:
        output = feature_lp_pooling_forward(
            x.data,
            params.width,
            params.stride,
            params.power,
            params.batch_mode,
            kernel=kernel,
        )

        ctx.save_for_backward(x)
        ctx.save_arguments(params=params, kernel=kernel, output=output)
        return Tensor(output)

    @staticmethod
    def backward(
        ctx: Context, grad_output: NDArray[Any], grad_dict: Dict[int, NDArray[Any]]
    ) -> None:
        (x,) = ctx.saved_tensors
        params = ctx.saved_arguments["params"]
        output = ctx.saved_arguments["output"]

        if x.requires_grad:
            # Match the layout of the saved output
            grad_output = np.ascontiguousarray(
                np.broadcast_to(grad_output, output.shape), dtype=output.dtype
            )
            grad = feature_lp_pooling_backward(
                grad_output,
                x.data,
                output,
                params.width,
                params.stride,
                params.power,
                params.batch_mode,
                kernel=ctx.saved_arguments["kernel"],
            )
            # x may feed several operations
            if id(x) in grad_dict:
                grad = grad_dict[id(x)] + grad
            grad_dict[id(x)] = grad

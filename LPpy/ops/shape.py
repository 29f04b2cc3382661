"""
Shape normalization for feature Lp pooling.

Raw tensors of rank 1-4 are reinterpreted as a rank-4 view laid out as
``[batch, feature, extra1, extra2]``:

    no batch mode:
        [feature]
        [feature][extra1]
        [feature][extra1][extra2]

    batch mode:
        [batch][feature]
        [batch][feature][extra1]
        [batch][feature][extra1][extra2]

Missing axes are inserted with ``np.newaxis`` so the canonical view always
shares memory with the raw array.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import UnsupportedRank

logger = logging.getLogger(__name__)

MAX_RANK = 4


def output_size(input_size: int, width: int, stride: int) -> int:
    """Number of windows of `width` taken every `stride` elements."""
    return (input_size - width) // stride + 1


def feature_axis(batch_mode: bool) -> int:
    """Index of the feature axis in the raw (non-canonical) shape."""
    return 1 if batch_mode else 0


def is_supported_rank(rank: int, batch_mode: bool) -> bool:
    if batch_mode:
        return 2 <= rank <= MAX_RANK
    return 1 <= rank <= MAX_RANK - 1


def rank_error(batch_mode: bool) -> UnsupportedRank:
    """Builds the error reported for a rank that cannot be canonicalized."""
    if batch_mode:
        return UnsupportedRank("batch_mode: input must be 2-4 dimensions")
    return UnsupportedRank("no batch_mode: input must be 1-3 dimensions")


def upcast(array: NDArray[Any], batch_mode: bool) -> Optional[NDArray[Any]]:
    """
    Reinterprets `array` as a rank-4 canonical view.

    In batch mode the first raw axis is the batch and the second the feature;
    trailing singleton axes are appended. Without batch mode a leading
    singleton batch axis is inserted and the first raw axis is the feature.

    Args:
        array: Raw array of rank 1-4
        batch_mode: Whether the leading axis is a batch axis

    Returns:
        A rank-4 view of `array`, or None if the rank is not supported
        in the requested mode
    """
    if not is_supported_rank(array.ndim, batch_mode):
        return None

    if batch_mode:
        # [batch][feature] + trailing extras
        return array[(Ellipsis,) + (np.newaxis,) * (MAX_RANK - array.ndim)]

    # [feature] + extras, then a leading batch axis
    view = array[(Ellipsis,) + (np.newaxis,) * (MAX_RANK - 1 - array.ndim)]
    return view[np.newaxis]


@dataclass(frozen=True, eq=False)
class CanonicalView:
    """
    Rank-4 view ``[batch, feature, extra1, extra2]`` over a raw array.

    Attributes:
        data: The rank-4 ndarray; shares memory with the raw array
        raw_shape: Shape of the raw array the view was built from
        batch_mode: Mode used to interpret the raw array
    """

    data: NDArray[Any]
    raw_shape: Tuple[int, ...]
    batch_mode: bool

    @property
    def sizes(self) -> Tuple[int, ...]:
        return tuple(int(s) for s in self.data.shape)

    @property
    def strides(self) -> Tuple[int, ...]:
        """Element (not byte) strides of each canonical axis."""
        itemsize = self.data.itemsize
        return tuple(int(s) // itemsize for s in self.data.strides)

    @property
    def batch_size(self) -> int:
        return self.sizes[0]

    @property
    def feature_size(self) -> int:
        return self.sizes[1]

    def is_same_size_and_stride(self, other: "CanonicalView") -> bool:
        """Compares sizes, and strides of every axis longer than one element."""
        if self.sizes != other.sizes:
            return False
        return all(
            size == 1 or a == b
            for size, a, b in zip(self.sizes, self.strides, other.strides)
        )


def canonicalize(array: NDArray[Any], batch_mode: bool) -> CanonicalView:
    """
    Builds the canonical rank-4 view of `array`.

    Raises:
        UnsupportedRank: If `array` is rank 1 in batch mode, rank 4 without
            batch mode, or outside 1-4 altogether
    """
    view = upcast(array, batch_mode)
    if view is None:
        raise rank_error(batch_mode)
    return CanonicalView(data=view, raw_shape=tuple(array.shape), batch_mode=batch_mode)


def derive_output_shape(
    input_shape: Tuple[int, ...], batch_mode: bool, width: int, stride: int
) -> Tuple[int, ...]:
    """
    Raw output shape for a raw input shape: only the feature axis shrinks.

    Raises:
        UnsupportedRank: If the input rank is not supported in this mode
    """
    if not is_supported_rank(len(input_shape), batch_mode):
        raise rank_error(batch_mode)

    axis = feature_axis(batch_mode)
    shape = list(input_shape)
    shape[axis] = output_size(shape[axis], width, stride)
    return tuple(shape)


def _reuse_or_allocate(
    buffer: Optional[NDArray[Any]], shape: Tuple[int, ...], dtype: Any, name: str
) -> NDArray[Any]:
    if (
        buffer is not None
        and buffer.shape == shape
        and buffer.dtype == dtype
        and buffer.flags.writeable
    ):
        return buffer

    if buffer is not None:
        logger.debug(
            "Reallocating %s buffer: %s %s -> %s %s",
            name,
            buffer.shape,
            buffer.dtype,
            shape,
            np.dtype(dtype),
        )
    return np.empty(shape, dtype=dtype)


def resize_for_output(
    buffer: Optional[NDArray[Any]],
    input: NDArray[Any],
    batch_mode: bool,
    width: int,
    stride: int,
) -> NDArray[Any]:
    """
    Returns an array shaped to hold the pooled output of `input`.

    `buffer` is returned unchanged when it already has the right shape and
    dtype; otherwise a fresh array is allocated. Contents are undefined.
    """
    shape = derive_output_shape(tuple(input.shape), batch_mode, width, stride)
    return _reuse_or_allocate(buffer, shape, input.dtype, "output")


def resize_like(buffer: Optional[NDArray[Any]], src: NDArray[Any]) -> NDArray[Any]:
    """Returns an array with the same raw shape (and rank) and dtype as `src`."""
    return _reuse_or_allocate(buffer, tuple(src.shape), src.dtype, "gradInput")

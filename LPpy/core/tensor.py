from numbers import Number
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

import numpy as np
from numpy.typing import DTypeLike, NDArray


class Tensor:
    """
    A floating point array with autograd capabilities.

    The Tensor wraps a numpy array and records how it was produced so that
    gradients can be propagated back to its inputs.

    Attributes:
        data: The underlying numpy array holding the tensor's values
        grad: Gradient of the loss with respect to this tensor
        _prev: Set of immediate predecessor nodes in computational graph
        _backward_fn: Function to compute gradients during backpropagation
        _is_leaf: Whether this tensor is a leaf node (created by user)
    """

    def __init__(
        self,
        data: Union[NDArray[Any], List[Any], Number, "Tensor"],
        requires_grad: bool = False,
        dtype: Optional[DTypeLike] = None,
    ):
        if isinstance(data, Tensor):
            data = data.data

        array = np.asarray(data, dtype=dtype)
        # Pooling is only defined for floating point values
        if dtype is None and not np.issubdtype(array.dtype, np.floating):
            array = array.astype(np.float64)
        self.data: NDArray[Any] = array

        self.grad: Optional[NDArray[Any]] = None
        self._requires_grad = requires_grad
        self._backward_fn: Optional[Callable[[NDArray[Any], Dict[int, NDArray[Any]]], None]] = None

        self._prev: Set["Tensor"] = set()
        self._is_leaf = True

        if requires_grad:
            self.zero_grad()

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(x) for x in self.data.shape)

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def requires_grad(self) -> bool:
        """Returns whether the tensor requires gradient computation."""
        return self._requires_grad

    def __len__(self) -> int:
        """Return length of first dimension."""
        return self.data.shape[0] if self.data.shape else 1

    def requires_grad_(self, requires_grad: bool = True) -> "Tensor":
        """Sets gradient computation requirement and returns self."""
        self._requires_grad = requires_grad
        if requires_grad and self.grad is None:
            self.zero_grad()
        return self

    def zero_grad(self) -> None:
        """Zeros out the gradient."""
        self.grad = np.zeros_like(self.data)

    def backward(self, gradient: Optional[NDArray[Any]] = None) -> None:
        """
        Computes gradients of the loss with respect to every leaf tensor that
        contributed to this one.

        Args:
            gradient: Gradient of the loss w.r.t. this tensor. May be omitted
                only for single-element tensors.
        """
        if not self.requires_grad:
            return

        if gradient is None:
            if self.data.size != 1:
                raise RuntimeError("grad can be implicitly created only for scalar outputs")
            gradient = np.ones(self.shape, dtype=self.dtype)

        gradient = np.asarray(gradient)
        if gradient.shape != self.data.shape:
            gradient = np.broadcast_to(gradient, self.data.shape)

        from .autograd import get_autograd_engine

        get_autograd_engine().backward(self, gradient)

    def __repr__(self) -> str:
        return f"Tensor({self.data}, requires_grad={self.requires_grad})"

    def numpy(self) -> NDArray[Any]:
        """Returns the underlying numpy array."""
        return self.data

    @classmethod
    def from_numpy(cls, array: NDArray[Any], requires_grad: bool = False) -> "Tensor":
        """Creates a Tensor from a copy of a numpy array."""
        return cls(array.copy(), requires_grad=requires_grad)

    def feature_lp_pool(
        self, width: int, stride: int, power: float = 2.0, batch_mode: bool = True
    ) -> "Tensor":
        """Applies feature Lp pooling along the feature axis."""
        from ..ops.lp_pooling import FeatureLPPoolingFunction, LPPoolingParams

        params = LPPoolingParams(width, stride, power, batch_mode).validate()
        return FeatureLPPoolingFunction.apply(self, params)

    def copy(self) -> "Tensor":
        """Creates a deep copy of the tensor."""
        new_tensor = Tensor(self.data.copy(), requires_grad=self.requires_grad)
        if self.grad is not None:
            new_tensor.grad = self.grad.copy()
        return new_tensor

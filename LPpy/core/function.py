from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from .context import Context
from .tensor import Tensor


class Function(ABC):
    """
    Base class for differentiable operations.

    Subclasses implement a static `forward` that computes the result and saves
    what it needs in the Context, and a static `backward` that writes the
    gradient of each input into the shared gradient dictionary.
    """

    requires_grad: bool = True

    @staticmethod
    @abstractmethod
    def forward(ctx: Context, *args: Any, **kwargs: Any) -> Tensor:
        """
        Performs the forward computation.

        Args:
            ctx: Context object for saving information needed in backward pass
            *args: Input tensors and other arguments
            **kwargs: Additional keyword arguments for the operation

        Returns:
            Result of the computation as a Tensor
        """
        raise NotImplementedError

    @staticmethod
    @abstractmethod
    def backward(ctx: Context, grad_output: np.ndarray, grad_dict: Dict[int, np.ndarray]) -> None:
        """
        Computes gradients of the operation with respect to its inputs.

        Args:
            ctx: Context object containing saved tensors from forward pass
            grad_output: Gradient of the loss with respect to the output
            grad_dict: Dictionary mapping tensor IDs to their gradients
        """
        raise NotImplementedError

    @classmethod
    def apply(cls, *args: Any, **kwargs: Any) -> Tensor:
        """
        Runs the forward pass and, when any tensor input requires gradients,
        links the result into the autograd graph.
        """
        ctx = Context()
        result = cls.forward(ctx, *args, **kwargs)

        needs_grad = cls.requires_grad and any(
            isinstance(arg, Tensor) and arg.requires_grad for arg in args
        )

        if needs_grad:

            def backward_fn(grad_output: np.ndarray, grad_dict: Dict[int, np.ndarray]) -> None:
                cls.backward(ctx, grad_output, grad_dict)

            result._backward_fn = backward_fn
            result._is_leaf = False
            result.requires_grad_(True)

            for arg in args:
                if isinstance(arg, Tensor):
                    result._prev.add(arg)

        return result

    @staticmethod
    def verify_backward(
        forward_fn: Callable[..., np.ndarray],
        backward_fn: Callable[[np.ndarray], Sequence[Optional[np.ndarray]]],
        inputs: Sequence[np.ndarray],
        grad_output: Optional[np.ndarray] = None,
        epsilon: float = 1e-6,
        tolerance: float = 1e-5,
    ) -> bool:
        """
        Compares an analytical backward pass against central differences.

        The scalar being differentiated is ``sum(grad_output * forward_fn(*inputs))``,
        so `backward_fn(grad_output)` must return one gradient per input
        (None to skip an input).

        Args:
            forward_fn: Maps the input arrays to an output array
            backward_fn: Maps the output gradient to the input gradients
            inputs: Input arrays; not modified
            grad_output: Weights of the output elements, ones by default
            epsilon: Finite difference step
            tolerance: Largest accepted relative error

        Returns:
            True if every gradient matches within `tolerance`
        """
        inputs = [np.array(inp, dtype=np.float64) for inp in inputs]
        output = forward_fn(*inputs)
        if grad_output is None:
            grad_output = np.ones_like(output)

        def compute_numerical_gradient(idx: int) -> np.ndarray:
            perturbed = [inp.copy() for inp in inputs]
            target = perturbed[idx]
            grad = np.zeros_like(target)

            it = np.nditer(target, flags=["multi_index"])
            while not it.finished:
                ix = it.multi_index
                old_value = target[ix]

                target[ix] = old_value + epsilon
                pos_output = forward_fn(*perturbed)
                target[ix] = old_value - epsilon
                neg_output = forward_fn(*perturbed)
                target[ix] = old_value

                grad[ix] = np.sum(grad_output * (pos_output - neg_output)) / (2 * epsilon)
                it.iternext()

            return grad

        analytical_grads = backward_fn(grad_output)

        for idx, analytical in enumerate(analytical_grads):
            if analytical is None:
                continue
            numerical = compute_numerical_gradient(idx)
            rel_error = np.max(
                np.abs(analytical - numerical)
                / (np.maximum(np.abs(analytical), np.abs(numerical)) + epsilon)
            )
            if rel_error > tolerance:
                return False

        return True

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from numpy.typing import NDArray


class LPPoolingKernel(ABC):
    """
    Compute backend for feature Lp pooling.

    A kernel receives rank-4 canonical arrays ``[batch, feature, extra1,
    extra2]`` that have already been validated and sized, and writes its
    result in place. Kernels hold no state between calls, so a single
    instance may be shared freely.

    Forward:
        output[b, k, e1, e2] = (sum_t |input[b, k*S + t, e1, e2]|^P)^(1/P)

    Backward:
        gradInput[b, j, e1, e2] = sum over windows k covering j of
            gradOutput[b, k] * sign(x) * |x|^(P-1) / output[b, k]^(P-1)

    where x = input[b, j, e1, e2]. A zero output, or a zero x, contributes
    no gradient.
    """

    name: str = "kernel"

    @abstractmethod
    def update_output(
        self,
        input: NDArray[Any],
        output: NDArray[Any],
        width: int,
        stride: int,
        power: float,
    ) -> None:
        """
        Fills `output` with the Lp norm of every feature window of `input`.

        Args:
            input: Canonical input of shape (B, F, E1, E2)
            output: Canonical output of shape (B, K, E1, E2) with
                K = (F - width) // stride + 1
            width: Window width along the feature axis
            stride: Step between consecutive windows
            power: Norm exponent P > 0
        """
        raise NotImplementedError

    @abstractmethod
    def update_grad_input(
        self,
        grad_output: NDArray[Any],
        input: NDArray[Any],
        output: NDArray[Any],
        grad_input: NDArray[Any],
        width: int,
        stride: int,
        power: float,
    ) -> None:
        """
        Overwrites `grad_input` with the gradient of the pooling w.r.t. `input`.

        Args:
            grad_output: Gradient w.r.t. the output, same shape as `output`
            input: Canonical input used in the forward pass
            output: Result of the forward pass
            grad_input: Destination, same shape as `input`
            width, stride, power: Same parameters as the forward pass
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class VectorizedKernel(LPPoolingKernel):
    """
    NumPy kernel working on strided slices of the feature axis.

    For a window offset t the slice ``input[:, t::stride]`` (truncated to the
    number of windows) holds element t of every window, so both passes loop
    over the at most 16 offsets and vectorize the rest.
    """

    name = "vectorized"

    def update_output(self, input, output, width, stride, power):
        span = stride * (output.shape[1] - 1) + 1

        acc = np.zeros(output.shape, dtype=output.dtype)
        for t in range(width):
            acc += np.abs(input[:, t : t + span : stride]) ** power

        output[...] = acc ** (1.0 / power)

    def update_grad_input(self, grad_output, input, output, grad_input, width, stride, power):
        span = stride * (output.shape[1] - 1) + 1

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            nonzero = output != 0
            scale = np.where(nonzero, grad_output / np.where(nonzero, output, 1) ** (power - 1), 0)

            grad_input[...] = 0
            for t in range(width):
                x = input[:, t : t + span : stride]
                local = np.where(x != 0, np.sign(x) * np.abs(x) ** (power - 1), 0)
                # Offsets within one slice are distinct, windows overlap across t
                grad_input[:, t : t + span : stride] += local * scale


class LoopKernel(LPPoolingKernel):
    """
    Element-by-element kernel.

    Slow but direct: the forward pass reduces each output cell on its own and
    the backward pass visits each input cell and sums the windows covering
    it, so no two iterations ever write the same element.
    """

    name = "loop"

    def update_output(self, input, output, width, stride, power):
        B, K, E1, E2 = output.shape

        for b in range(B):
            for k in range(K):
                start = k * stride
                for e1 in range(E1):
                    for e2 in range(E2):
                        acc = 0.0
                        for t in range(width):
                            acc += abs(float(input[b, start + t, e1, e2])) ** power
                        output[b, k, e1, e2] = acc ** (1.0 / power)

    def update_grad_input(self, grad_output, input, output, grad_input, width, stride, power):
        B, F, E1, E2 = input.shape
        K = output.shape[1]

        for b in range(B):
            for j in range(F):
                # Windows k with k*stride <= j <= k*stride + width - 1
                k_lo = max(0, -((width - 1 - j) // stride))
                k_hi = min(K - 1, j // stride)
                for e1 in range(E1):
                    for e2 in range(E2):
                        x = float(input[b, j, e1, e2])
                        total = 0.0
                        if x != 0.0:
                            local = np.sign(x) * abs(x) ** (power - 1)
                            for k in range(k_lo, k_hi + 1):
                                out = float(output[b, k, e1, e2])
                                if out != 0.0:
                                    total += (
                                        float(grad_output[b, k, e1, e2])
                                        * local
                                        / out ** (power - 1)
                                    )
                        grad_input[b, j, e1, e2] = total


DEFAULT_KERNEL: LPPoolingKernel = VectorizedKernel()

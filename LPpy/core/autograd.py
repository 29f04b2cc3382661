import threading
from typing import Any, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

from .tensor import Tensor


class AutogradEngine:
    """
    Runs the backward pass in reverse topological order over the graph that
    tensors record through `Tensor._prev`.

    The engine keeps no references to tensors between calls; a graph lives
    exactly as long as the tensors that make it up.
    """

    def __init__(self) -> None:
        # Re-entrancy is tracked per thread so independent graphs can be
        # differentiated concurrently
        self._local = threading.local()

    @property
    def is_computing(self) -> bool:
        """Whether a backward pass is running on the calling thread."""
        return getattr(self._local, "computing", False)

    def backward(self, tensor: "Tensor", gradient: Optional[NDArray[Any]] = None) -> None:
        """
        Propagates `gradient` from `tensor` to every leaf it depends on.

        Leaf gradients are accumulated into `Tensor.grad`.

        Raises:
            RuntimeError: On a nested backward call or a cyclic graph
        """
        if self.is_computing:
            raise RuntimeError("Nested gradient computation detected")

        self._local.computing = True
        try:
            grad_dict: Dict[int, NDArray[Any]] = {}
            if gradient is None:
                grad_dict[id(tensor)] = np.ones_like(tensor.data)
            else:
                grad_dict[id(tensor)] = gradient

            for node in reversed(self._topological_sort(tensor)):
                node_id = id(node)
                if node_id not in grad_dict or not node.requires_grad:
                    continue

                current_grad = grad_dict[node_id]

                if node._backward_fn is not None:
                    node._backward_fn(current_grad, grad_dict)

                if not node._prev:
                    if node.grad is None:
                        node.grad = np.array(current_grad, dtype=node.dtype)
                    else:
                        node.grad = node.grad + current_grad
        finally:
            self._local.computing = False

    def _topological_sort(self, start_tensor: "Tensor") -> List["Tensor"]:
        """
        Orders the tensors reachable from `start_tensor` so that every tensor
        comes after its inputs.

        Raises:
            RuntimeError: If graph contains cycles
        """
        result: List[Tensor] = []
        visited = set()
        temp_visited = set()

        def visit(node: "Tensor") -> None:
            if id(node) in temp_visited:
                raise RuntimeError("Cycle detected in computation graph")

            if id(node) not in visited:
                temp_visited.add(id(node))
                for prev in node._prev:
                    visit(prev)
                temp_visited.remove(id(node))
                visited.add(id(node))
                result.append(node)

        visit(start_tensor)
        return result


# Global autograd engine instance
_autograd_engine = AutogradEngine()


def get_autograd_engine() -> AutogradEngine:
    """Returns the global autograd engine instance."""
    return _autograd_engine

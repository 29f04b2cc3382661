from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class Context:
    """
    Storage shared by the forward and backward pass of one Function call.

    Attributes:
        _saved_tensors: Tensors saved during the forward pass
        _non_tensor_args: Other values the backward pass needs (parameters,
            forward results)
    """

    _saved_tensors: List[Any] = field(default_factory=list)
    _non_tensor_args: Dict[str, Any] = field(default_factory=dict)

    def save_for_backward(self, *args: Any) -> None:
        """Saves the tensors needed by the backward pass."""
        self._saved_tensors = list(args)

    def save_arguments(self, **kwargs: Any) -> None:
        """Saves additional named values for the backward pass."""
        self._non_tensor_args.update(kwargs)

    @property
    def saved_tensors(self) -> Tuple[Any, ...]:
        return tuple(self._saved_tensors)

    @property
    def saved_arguments(self) -> Dict[str, Any]:
        """Returns a copy of the saved non-tensor arguments."""
        return self._non_tensor_args.copy()

    def clear(self) -> None:
        self._saved_tensors.clear()
        self._non_tensor_args.clear()

"""
Core functionality for LPpy.

Tensors, the autograd engine and the Function/Module base classes that the
pooling operations and layers are built on.
"""

from .tensor import Tensor
from .autograd import AutogradEngine, get_autograd_engine
from .context import Context
from .function import Function
from .module import Module

__all__ = [
    "Tensor",
    "Function",
    "Context",
    "Module",
    "AutogradEngine",
    "get_autograd_engine",
]

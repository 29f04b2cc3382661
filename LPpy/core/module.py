from collections import OrderedDict
from typing import Any, Optional


class Module:
    """
    Base class for layers.

    Layers hold their configuration as attributes and may contain other
    Modules, allowing to nest them in a tree structure.
    """

    def __init__(self):
        object.__setattr__(self, 'training', True)
        object.__setattr__(self, '_modules', OrderedDict())

    def add_module(self, name: str, module: Optional['Module']) -> None:
        """Add a child module to the current module.

        Args:
            name: Name of the child module
            module: The module to add
        """
        if not isinstance(module, (Module, type(None))):
            raise TypeError(f"{name} is not a Module subclass")

        if '_modules' not in self.__dict__:
            raise TypeError(
                "cannot assign module before Module.__init__() call"
            )

        self._modules[name] = module

    def __getattr__(self, name: str) -> Any:
        """Looks up child modules not found as regular attributes."""
        if '_modules' in self.__dict__:
            modules = self.__dict__['_modules']
            if name in modules:
                return modules[name]

        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if isinstance(value, Module):
            self.add_module(name, value)
        else:
            object.__setattr__(self, name, value)

    def train(self, mode: bool = True) -> 'Module':
        """Sets the module in training mode."""
        self.training = mode
        for module in self._modules.values():
            if module is not None:
                module.train(mode)
        return self

    def eval(self) -> 'Module':
        """Sets the module in evaluation mode."""
        return self.train(False)

    def __call__(self, *args, **kwargs):
        return self.forward(*args, **kwargs)

    def forward(self, *args, **kwargs):
        """Define the computation performed at every call."""
        raise NotImplementedError

    def __repr__(self):
        extra_lines = []
        extra_repr = self.extra_repr()
        if extra_repr:
            extra_lines = extra_repr.split('\n')

        child_lines = []
        for key, module in self._modules.items():
            mod_str = _addindent(repr(module), 2)
            child_lines.append('(' + key + '): ' + mod_str)

        lines = extra_lines + child_lines

        main_str = self.__class__.__name__ + '('
        if lines:
            if len(lines) == 1 and not child_lines:
                main_str += lines[0]
            else:
                main_str += '\n  ' + '\n  '.join(lines) + '\n'
        main_str += ')'
        return main_str

    def extra_repr(self) -> str:
        """Set the extra representation of the module."""
        return ''


def _addindent(s_: str, numSpaces: int) -> str:
    """Helper for indenting multiline strings."""
    s = s_.split('\n')
    if len(s) == 1:
        return s_
    first = s.pop(0)
    s = [(numSpaces * ' ') + line for line in s]
    return first + '\n' + '\n'.join(s)

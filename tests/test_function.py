import pytest
from LPpy.core import Function, Tensor
import numpy as np


class TestFunction:
    """Tests for Function base class and utilities"""

    class Double(Function):
        """Simple test function implementation"""

        @staticmethod
        def forward(ctx, x, scale=2.0):
            ctx.save_for_backward(x)
            ctx.save_arguments(scale=scale)
            return Tensor(x.data * scale)

        @staticmethod
        def backward(ctx, grad_output, grad_dict):
            x, = ctx.saved_tensors
            if x.requires_grad:
                grad_dict[id(x)] = grad_output * ctx.saved_arguments["scale"]

    def test_function_application(self):
        """Test applying a function to inputs"""
        x = Tensor([1.0], requires_grad=True)
        result = self.Double.apply(x, scale=3.0)

        assert isinstance(result, Tensor)
        assert np.array_equal(result.data, [3.0])
        assert result.requires_grad
        assert result._backward_fn is not None
        assert x in result._prev

    def test_no_graph_without_grad(self):
        x = Tensor([1.0])
        result = self.Double.apply(x)
        assert not result.requires_grad
        assert result._backward_fn is None

    def test_backward_through_function(self):
        x = Tensor([1.0, 2.0], requires_grad=True)
        result = self.Double.apply(x, scale=3.0)
        result.backward(np.array([1.0, 2.0]))
        assert np.array_equal(x.grad, [3.0, 6.0])

    def test_verify_backward(self):
        """Test gradient verification utility"""
        def forward_fn(x):
            return x ** 2

        def correct_backward_fn(grad_output):
            return (grad_output * 2 * x,)

        def incorrect_backward_fn(grad_output):
            return (grad_output * 3 * x,)

        x = np.array([1.0, -2.0, 0.5])
        assert Function.verify_backward(forward_fn, correct_backward_fn, (x,))
        assert not Function.verify_backward(forward_fn, incorrect_backward_fn, (x,))

    def test_verify_backward_weighted(self):
        """Output gradients weight the numerical derivative"""
        x = np.array([1.0, 2.0])
        grad_output = np.array([0.5, -4.0])

        assert Function.verify_backward(
            lambda a: 3 * a, lambda g: (3 * g,), (x,), grad_output=grad_output
        )
        assert not Function.verify_backward(
            lambda a: 3 * a, lambda g: (3 * np.ones_like(g),), (x,), grad_output=grad_output
        )

    def test_verify_backward_skips_none(self):
        x = np.array([1.0])
        y = np.array([2.0])
        assert Function.verify_backward(
            lambda a, b: a * b, lambda g: (g * y, None), (x, y)
        )

    def test_abstract_methods(self):
        """Test that abstract methods raise NotImplementedError"""

        class IncompleteFunction(Function):
            pass

        with pytest.raises(TypeError):
            IncompleteFunction()

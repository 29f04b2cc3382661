import pytest
import numpy as np
from LPpy.core import Tensor
from LPpy.nn import FeatureLPPool
from LPpy.ops import (
    FeatureLPPoolingFunction,
    InvalidParameter,
    LoopKernel,
    LPPoolingParams,
    ShapeMismatch,
    UnsupportedRank,
    feature_lp_pooling_backward,
    feature_lp_pooling_forward,
)


class TestFeatureLPPool:
    """Tests for the FeatureLPPool layer"""

    def test_forward_basic(self):
        """Test L2 pooling over pairs of features"""
        pool = FeatureLPPool(width=2, stride=1, power=2.0)
        x = Tensor(np.array([[3.0, 4.0, 0.0, 12.0],
                             [1.0, 0.0, 0.0, 1.0]]), requires_grad=True)

        output = pool(x)
        assert output.shape == (2, 3)
        assert np.allclose(output.data, [[5.0, 4.0, 12.0],
                                         [1.0, 0.0, 1.0]])

    def test_backward_basic(self):
        """Gradients reach the input through Tensor.backward"""
        pool = FeatureLPPool(width=2, stride=2, power=2.0)
        x = Tensor(np.array([[3.0, 4.0, -6.0, 8.0]]), requires_grad=True)

        output = pool(x)
        output.backward(np.ones_like(output.data))
        assert x.grad is not None
        assert np.allclose(x.grad, [[0.6, 0.8, -0.6, 0.8]])

    def test_backward_matches_functional(self):
        """The layer gradient equals the functional backward"""
        x_data = np.random.randn(3, 8, 2)
        pool = FeatureLPPool(width=3, stride=1, power=1.5)
        x = Tensor(x_data, requires_grad=True)

        output = pool(x)
        grad_output = np.random.randn(*output.shape)
        output.backward(grad_output)

        expected = feature_lp_pooling_backward(
            grad_output, x_data, output.data, 3, 1, 1.5, True
        )
        assert np.allclose(x.grad, expected)

    def test_unbatched(self):
        pool = FeatureLPPool(width=3, stride=1, power=1.0, batch_mode=False)
        x = Tensor(np.array([1.0, -2.0, 3.0, -4.0, 5.0]), requires_grad=True)

        output = pool(x)
        assert np.allclose(output.data, [6.0, 9.0, 12.0])

        output.backward(np.ones(3))
        assert np.allclose(x.grad, [1.0, -2.0, 3.0, -2.0, 1.0])

    def test_rank4_batched(self):
        pool = FeatureLPPool(width=4, stride=4)
        x = Tensor(np.random.randn(2, 16, 3, 3))
        assert pool(x).shape == (2, 4, 3, 3)

    def test_no_grad_input(self):
        """Inputs without requires_grad build no graph"""
        pool = FeatureLPPool(width=2, stride=1)
        x = Tensor(np.random.randn(2, 4))
        output = pool(x)
        assert not output.requires_grad
        assert output._backward_fn is None

    def test_gradient_accumulates(self):
        """Two backward passes add up in x.grad"""
        pool = FeatureLPPool(width=2, stride=1)
        x = Tensor(np.array([[3.0, 4.0]]), requires_grad=True)

        pool(x).backward(np.ones((1, 1)))
        pool(x).backward(np.ones((1, 1)))
        assert np.allclose(x.grad, [[1.2, 1.6]])

    def test_invalid_parameters(self):
        """Invalid parameters are rejected at construction"""
        with pytest.raises(InvalidParameter):
            FeatureLPPool(width=1, stride=1)
        with pytest.raises(InvalidParameter):
            FeatureLPPool(width=17, stride=1)
        with pytest.raises(InvalidParameter):
            FeatureLPPool(width=2, stride=0)
        with pytest.raises(InvalidParameter):
            FeatureLPPool(width=2, stride=5)
        with pytest.raises(InvalidParameter):
            FeatureLPPool(width=2, stride=1, power=0.0)

    def test_invalid_inputs(self):
        with pytest.raises(UnsupportedRank):
            FeatureLPPool(width=2, stride=1, batch_mode=True)(Tensor(np.ones(4)))
        with pytest.raises(UnsupportedRank):
            FeatureLPPool(width=2, stride=1, batch_mode=False)(Tensor(np.ones((1, 4, 1, 1))))
        with pytest.raises(ShapeMismatch):
            FeatureLPPool(width=5, stride=1)(Tensor(np.ones((2, 4))))

    def test_custom_kernel(self):
        x_data = np.random.randn(2, 6)
        loop = FeatureLPPool(width=3, stride=2, kernel=LoopKernel())
        default = FeatureLPPool(width=3, stride=2)

        x1 = Tensor(x_data, requires_grad=True)
        x2 = Tensor(x_data, requires_grad=True)
        out1, out2 = loop(x1), default(x2)
        assert np.allclose(out1.data, out2.data)

        out1.backward(np.ones_like(out1.data))
        out2.backward(np.ones_like(out2.data))
        assert np.allclose(x1.grad, x2.grad)

    def test_properties_and_repr(self):
        pool = FeatureLPPool(width=4, stride=2, power=3.0, batch_mode=False)
        assert pool.width == 4
        assert pool.stride == 2
        assert pool.power == 3.0
        assert pool.batch_mode is False
        assert pool.params == LPPoolingParams(4, 2, 3.0, False)
        assert repr(pool) == (
            "FeatureLPPool(width=4, stride=2, power=3.0, batch_mode=False)"
        )


class TestFeatureLPPoolingFunction:
    """Tests for the autograd Function and the Tensor shortcut"""

    def test_apply(self):
        x = Tensor(np.random.randn(2, 5), requires_grad=True)
        params = LPPoolingParams(2, 1, 2.0, True)
        result = FeatureLPPoolingFunction.apply(x, params)

        assert isinstance(result, Tensor)
        assert result.requires_grad
        assert result._backward_fn is not None
        assert np.allclose(result.data, feature_lp_pooling_forward(x.data, 2, 1, 2.0))

    def test_tensor_method(self):
        x = Tensor(np.random.randn(4, 3), requires_grad=True)
        result = x.feature_lp_pool(width=2, stride=1, batch_mode=False)
        assert result.shape == (3, 3)

        result.backward(np.ones((3, 3)))
        assert x.grad.shape == (4, 3)

    def test_tensor_method_validates(self):
        with pytest.raises(InvalidParameter):
            Tensor(np.ones((2, 8))).feature_lp_pool(width=2, stride=9)

    def test_non_contiguous_grad_output(self):
        """Gradients of any layout are accepted from the engine"""
        x = Tensor(np.random.randn(3, 6), requires_grad=True)
        result = x.feature_lp_pool(width=3, stride=1)
        grad_output = np.ones((4, 3)).T
        result.backward(grad_output)
        assert x.grad.shape == (3, 6)

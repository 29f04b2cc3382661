import pytest
from LPpy.core import Context, Tensor
from LPpy.ops import LPPoolingParams
import numpy as np


class TestContext:
    """Tests for Context class functionality"""

    def test_save_and_retrieve_tensors(self):
        """Test saving and retrieving tensors"""
        ctx = Context()
        tensor1 = Tensor([1.0])
        tensor2 = Tensor([2.0])

        ctx.save_for_backward(tensor1, tensor2)
        saved = ctx.saved_tensors

        assert len(saved) == 2
        assert saved[0] is tensor1
        assert saved[1] is tensor2

    def test_save_and_retrieve_arguments(self):
        """Test saving pooling parameters and forward results"""
        ctx = Context()
        params = LPPoolingParams(3, 1)
        output = np.ones((2, 3))
        ctx.save_arguments(params=params, output=output)

        args = ctx.saved_arguments
        assert args["params"] is params
        assert args["output"] is output

    def test_saved_arguments_is_copy(self):
        ctx = Context()
        ctx.save_arguments(width=2)
        ctx.saved_arguments["width"] = 5
        assert ctx.saved_arguments["width"] == 2

    def test_save_arguments_updates(self):
        ctx = Context()
        ctx.save_arguments(width=2)
        ctx.save_arguments(stride=1)
        assert ctx.saved_arguments == {"width": 2, "stride": 1}

    def test_clear_functionality(self):
        """Test clearing all stored data"""
        ctx = Context()
        ctx.save_for_backward(Tensor([1.0]))
        ctx.save_arguments(arg1="test")

        ctx.clear()

        assert len(ctx.saved_tensors) == 0
        assert len(ctx.saved_arguments) == 0

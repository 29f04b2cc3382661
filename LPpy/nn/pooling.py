from typing import Optional

from ..core import Module, Tensor
from ..ops.kernels import LPPoolingKernel
from ..ops.lp_pooling import FeatureLPPoolingFunction, LPPoolingParams


class FeatureLPPool(Module):
    """
    Lp-norm pooling across the feature axis.

    Slides a window of `width` features with step `stride` and replaces each
    window with ``(sum |x|^power)^(1/power)``. In batch mode inputs are
    (N, C), (N, C, H) or (N, C, H, W) and C is pooled; otherwise inputs are
    (C,), (C, H) or (C, H, W).
    """

    def __init__(
        self,
        width: int,
        stride: int,
        power: float = 2.0,
        batch_mode: bool = True,
        kernel: Optional[LPPoolingKernel] = None,
    ):
        super().__init__()

        self.params = LPPoolingParams(width, stride, power, batch_mode).validate()
        self.kernel = kernel

    @property
    def width(self) -> int:
        return self.params.width

    @property
    def stride(self) -> int:
        return self.params.stride

    @property
    def power(self) -> float:
        return self.params.power

    @property
    def batch_mode(self) -> bool:
        return self.params.batch_mode

    def forward(self, x: Tensor) -> Tensor:
        return FeatureLPPoolingFunction.apply(x, self.params, kernel=self.kernel)

    def extra_repr(self) -> str:
        return (
            f"width={self.width}, stride={self.stride}, "
            f"power={self.power}, batch_mode={self.batch_mode}"
        )

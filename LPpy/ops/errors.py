class LPPoolingError(ValueError):
    """Base class for caller errors raised by feature Lp pooling."""


class InvalidParameter(LPPoolingError):
    """Raised when width, stride or power fall outside their allowed range."""


class UnsupportedRank(LPPoolingError):
    """Raised when a tensor's rank cannot be canonicalized in the given mode."""


class ShapeMismatch(LPPoolingError):
    """
    Raised when tensor sizes are inconsistent with each other or with the
    pooling window: feature axis smaller than the width, output and gradOutput
    that disagree, or an output that does not match the input for the given
    width and stride.
    """

"""sizefactors: centering of single-cell size factors."""

from sizefactors.api import SizeFactorCenterer
from sizefactors.centering import center, center_blocked, compute_blocked_mean, compute_mean
from sizefactors.config import BlockMode, CenterOptions, HandlerAction, SanitizeOptions
from sizefactors.sanitize import Diagnostics, InvalidSizeFactorError, sanitize

__version__ = "0.1.0"
__all__ = [
    "SizeFactorCenterer",
    "BlockMode",
    "CenterOptions",
    "HandlerAction",
    "SanitizeOptions",
    "Diagnostics",
    "InvalidSizeFactorError",
    "compute_mean",
    "center",
    "compute_blocked_mean",
    "center_blocked",
    "sanitize",
    "__version__",
]

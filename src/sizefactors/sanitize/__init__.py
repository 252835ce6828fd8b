"""Invalid size factor classification and replacement."""

from sizefactors.sanitize.diagnostics import (
    Diagnostics,
    ElementwiseClassifier,
    InvalidClassifier,
    elementwise,
    flag_invalid,
    is_invalid,
)
from sizefactors.sanitize.replace import InvalidSizeFactorError, sanitize

__all__ = [
    "Diagnostics",
    "ElementwiseClassifier",
    "InvalidClassifier",
    "InvalidSizeFactorError",
    "elementwise",
    "flag_invalid",
    "is_invalid",
    "sanitize",
]

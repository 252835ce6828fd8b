"""Classification of invalid size factors.

A size factor is invalid if it is zero, negative, NaN or infinite. Such
values usually come from low-quality cells that were not filtered out.
Classification never modifies the values; it only records which categories
were seen in a :class:`Diagnostics` record so that a later call to
:func:`sizefactors.sanitize.sanitize` can decide whether replacement is
needed.

Any callable matching :class:`InvalidClassifier` can be passed to the
centering functions in place of :func:`flag_invalid`. Classifiers that take
one value at a time, like :func:`is_invalid`, are wrapped with
:func:`elementwise`::

    @elementwise
    def non_positive(value, diagnostics):
        return not value > 0

Array classifiers are called once on the whole array::

    def finite_only(values, diagnostics):
        mask = ~np.isfinite(values)
        diagnostics.has_nan |= bool(np.isnan(values).any())
        return mask
"""

from __future__ import annotations

import functools
import math
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Protocol

import numpy as np


@dataclass
class Diagnostics:
    """Flags for the categories of invalid size factors that were observed.

    Flags accumulate across calls and are never cleared by this package.
    Call :meth:`reset` between independent runs.
    """

    has_negative: bool = False
    has_zero: bool = False
    has_nan: bool = False
    has_infinite: bool = False

    @property
    def any_invalid(self) -> bool:
        return self.has_negative or self.has_zero or self.has_nan or self.has_infinite

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, False)

    def merge(self, other: Diagnostics) -> Diagnostics:
        """OR-combine *other* into this record and return ``self``."""
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) or getattr(other, f.name))
        return self


class InvalidClassifier(Protocol):
    """Protocol for invalid-value classifiers.

    Returns a boolean mask (``True`` = invalid, excluded from means) and
    records the categories seen in *diagnostics*.
    """

    def __call__(self, values: np.ndarray, diagnostics: Diagnostics) -> np.ndarray: ...


class ElementwiseClassifier:
    """Adapter for classifiers written for one value at a time.

    Calling the adapter classifies a single value, as the wrapped function
    does. The centering functions call :meth:`mask` instead, which applies
    the function once per element.
    """

    def __init__(self, func: Callable[[float, Diagnostics], bool]):
        self.func = func
        functools.update_wrapper(self, func)

    def __call__(self, value: float, diagnostics: Diagnostics) -> bool:
        return self.func(value, diagnostics)

    def mask(self, values: np.ndarray, diagnostics: Diagnostics) -> np.ndarray:
        values = np.asarray(values)
        return np.fromiter(
            (self.func(v, diagnostics) for v in values.tolist()),
            dtype=bool,
            count=values.size,
        )


# Convenience alias for wrapping a scalar classifier.
elementwise = ElementwiseClassifier


def classify(
    classifier: InvalidClassifier | ElementwiseClassifier,
    values: np.ndarray,
    diagnostics: Diagnostics,
) -> np.ndarray:
    """Boolean mask of invalid *values* from either kind of classifier."""
    if isinstance(classifier, ElementwiseClassifier):
        return classifier.mask(values, diagnostics)
    return np.asarray(classifier(values, diagnostics), dtype=bool)


@elementwise
def is_invalid(value: float, diagnostics: Diagnostics) -> bool:
    """Classify a single size factor, updating *diagnostics*."""
    if math.isnan(value):
        diagnostics.has_nan = True
        return True
    if math.isinf(value):
        # -inf is negative as far as sanitization is concerned
        if value > 0:
            diagnostics.has_infinite = True
        else:
            diagnostics.has_negative = True
        return True
    if value < 0:
        diagnostics.has_negative = True
        return True
    if value == 0:
        diagnostics.has_zero = True
        return True
    return False


def flag_invalid(values: np.ndarray, diagnostics: Diagnostics) -> np.ndarray:
    """Vectorised :func:`is_invalid`.

    Parameters
    ----------
    values : np.ndarray
        Size factors.
    diagnostics : Diagnostics
        Updated in place.

    Returns
    -------
    np.ndarray
        Boolean mask of invalid entries.
    """
    values = np.asarray(values)
    nan = np.isnan(values)
    posinf = np.isposinf(values)
    negative = values < 0
    zero = values == 0

    if nan.any():
        diagnostics.has_nan = True
    if posinf.any():
        diagnostics.has_infinite = True
    if negative.any():
        diagnostics.has_negative = True
    if zero.any():
        diagnostics.has_zero = True

    return nan | posinf | negative | zero

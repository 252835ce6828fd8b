"""Replacement of invalid size factors."""

from __future__ import annotations

import logging

import numpy as np

from sizefactors._utils import as_size_factor_buffer
from sizefactors.config import HandlerAction, SanitizeOptions
from sizefactors.sanitize.diagnostics import Diagnostics, flag_invalid

logger = logging.getLogger(__name__)


class InvalidSizeFactorError(ValueError):
    """Raised when an invalid size factor category is configured as an error."""


def _check(action: HandlerAction, present: bool, label: str) -> bool:
    """Return whether this category should be replaced."""
    if not present or action == HandlerAction.IGNORE:
        return False
    if action == HandlerAction.ERROR:
        raise InvalidSizeFactorError(f"Detected {label} size factors")
    return True


def sanitize(
    size_factors: np.ndarray,
    diagnostics: Diagnostics | None = None,
    options: SanitizeOptions | None = None,
) -> np.ndarray:
    """Replace invalid size factors in place.

    This should be run after centering, so that the replacement values do
    not influence the mean. Diagnostics from the centering call can be
    reused to avoid another scan for invalid categories.

    Parameters
    ----------
    size_factors : np.ndarray
        Floating-point size factors, modified in place.
    diagnostics : Diagnostics | None
        Categories known to be present. Computed with :func:`flag_invalid`
        when omitted.
    options : SanitizeOptions | None
        Handling per category; every category raises by default.

    Returns
    -------
    np.ndarray
        The same array, for chaining.

    Raises
    ------
    InvalidSizeFactorError
        If a category present in *diagnostics* is handled with ``ERROR``.
    """
    as_size_factor_buffer(size_factors)
    opts = options if options is not None else SanitizeOptions()

    if diagnostics is None:
        diagnostics = Diagnostics()
        flag_invalid(size_factors, diagnostics)

    fix_zero = _check(opts.handle_zero, diagnostics.has_zero, "zero")
    fix_negative = _check(opts.handle_negative, diagnostics.has_negative, "negative")
    fix_nan = _check(opts.handle_nan, diagnostics.has_nan, "NaN")
    fix_infinite = _check(opts.handle_infinite, diagnostics.has_infinite, "infinite")

    if not (fix_zero or fix_negative or fix_nan or fix_infinite):
        return size_factors

    valid = np.isfinite(size_factors) & (size_factors > 0)
    if valid.any():
        smallest = size_factors[valid].min()
        largest = size_factors[valid].max()
    else:
        logger.warning("No valid size factors available; replacing invalid values with 1")
        smallest = largest = 1.0

    # Masks are computed before any replacement.
    zero = size_factors == 0
    negative = size_factors < 0
    nan = np.isnan(size_factors)
    posinf = np.isposinf(size_factors)

    if fix_zero:
        size_factors[zero] = smallest
    if fix_negative:
        size_factors[negative] = smallest
    if fix_nan:
        size_factors[nan] = 1.0
    if fix_infinite:
        size_factors[posinf] = largest

    logger.debug(
        "Sanitized size factors (zero=%s, negative=%s, nan=%s, infinite=%s)",
        fix_zero,
        fix_negative,
        fix_nan,
        fix_infinite,
    )
    return size_factors

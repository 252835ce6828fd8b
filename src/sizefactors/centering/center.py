"""Centering of size factors to a mean of 1.

Centering keeps normalized expression values on roughly the same scale as
the original counts, so that a pseudo-count added before log-transformation
has a predictable shrinkage effect. Size factors should be centered before
log-normalization.

All functions here divide in place and never divide by zero: a mean of 0
(no contributing values) leaves the corresponding values untouched.
"""

from __future__ import annotations

import logging

import numpy as np

from sizefactors._utils import as_block_labels, as_size_factor_buffer, count_groups
from sizefactors.config import BlockMode, CenterOptions
from sizefactors.sanitize.diagnostics import (
    Diagnostics,
    ElementwiseClassifier,
    InvalidClassifier,
    classify,
    flag_invalid,
)

logger = logging.getLogger(__name__)


def compute_mean(
    size_factors: np.ndarray,
    diagnostics: Diagnostics | None = None,
    options: CenterOptions | None = None,
    classifier: InvalidClassifier | ElementwiseClassifier = flag_invalid,
) -> float:
    """Mean size factor.

    Parameters
    ----------
    size_factors : np.ndarray
        Size factor for each cell.
    diagnostics : Diagnostics | None
        Filled with the invalid categories seen, only when
        ``options.ignore_invalid`` is set.
    options : CenterOptions | None
        Centering options.
    classifier : InvalidClassifier | ElementwiseClassifier
        Decides which values are excluded when ``ignore_invalid`` is set.
        Array classifiers are called once with all values. Scalar
        classifiers must be wrapped with
        :func:`~sizefactors.sanitize.elementwise`, as
        :func:`~sizefactors.sanitize.is_invalid` already is.

    Returns
    -------
    float
        Mean over the contributing values, or 0 if there are none.
    """
    opts = options if options is not None else CenterOptions()
    values = np.asarray(size_factors)

    if opts.ignore_invalid:
        diag = diagnostics if diagnostics is not None else Diagnostics()
        keep = ~classify(classifier, values, diag)
        total = values[keep].sum()
        denom = int(np.count_nonzero(keep))
    else:
        total = values.sum()
        denom = values.size

    if denom:
        return float(total / denom)
    return 0.0


def center(
    size_factors: np.ndarray,
    diagnostics: Diagnostics | None = None,
    options: CenterOptions | None = None,
    classifier: InvalidClassifier | ElementwiseClassifier = flag_invalid,
) -> float:
    """Center size factors in place so that their mean is 1.

    Parameters are as for :func:`compute_mean`; *size_factors* must be a
    one-dimensional floating-point array.

    Returns
    -------
    float
        The mean before centering. If it is 0 the array is left unchanged.
    """
    as_size_factor_buffer(size_factors)
    mean = compute_mean(size_factors, diagnostics, options, classifier)

    # NaN is truthy, so a NaN mean propagates into every value.
    if mean:
        size_factors /= mean
        logger.debug("Centered %d size factors by mean %g", size_factors.size, mean)
    else:
        logger.warning("Mean size factor is zero; size factors were not centered")
    return mean


def compute_blocked_mean(
    size_factors: np.ndarray,
    block: np.ndarray,
    diagnostics: Diagnostics | None = None,
    options: CenterOptions | None = None,
    classifier: InvalidClassifier | ElementwiseClassifier = flag_invalid,
    num_blocks: int | None = None,
) -> np.ndarray:
    """Mean size factor for each block.

    Parameters
    ----------
    size_factors : np.ndarray
        Size factor for each cell.
    block : np.ndarray
        Integer block assignment for each cell, in ``[0, N)``.
    diagnostics, options, classifier
        As for :func:`compute_mean`.
    num_blocks : int | None
        Total number of blocks ``N``. Defaults to ``max(block) + 1``.

    Returns
    -------
    np.ndarray
        Array of length ``N``. Blocks without contributing values have a
        mean of 0.
    """
    opts = options if options is not None else CenterOptions()
    values = np.asarray(size_factors)
    if values.ndim != 1:
        raise ValueError(f"Size factors must be one-dimensional, got shape {values.shape}")
    block = as_block_labels(block, values.shape[0])

    ngroups = count_groups(block)
    if num_blocks is not None:
        if num_blocks < ngroups:
            raise ValueError(
                f"num_blocks={num_blocks} but block labels go up to {ngroups - 1}"
            )
        ngroups = num_blocks

    if opts.ignore_invalid:
        diag = diagnostics if diagnostics is not None else Diagnostics()
        keep = ~classify(classifier, values, diag)
        values = values[keep]
        block = block[keep]

    dtype = values.dtype if np.issubdtype(values.dtype, np.floating) else np.float64
    group_sum = np.bincount(block, weights=values, minlength=ngroups).astype(dtype, copy=False)
    group_num = np.bincount(block, minlength=ngroups)

    group_mean = np.zeros(ngroups, dtype=dtype)
    np.divide(group_sum, group_num, out=group_mean, where=group_num > 0)
    return group_mean


def center_blocked(
    size_factors: np.ndarray,
    block: np.ndarray,
    diagnostics: Diagnostics | None = None,
    options: CenterOptions | None = None,
    classifier: InvalidClassifier | ElementwiseClassifier = flag_invalid,
    num_blocks: int | None = None,
) -> np.ndarray:
    """Center size factors in place, accounting for blocks.

    The per-block means are reconciled according to ``options.block_mode``
    (see :class:`~sizefactors.config.CenterOptions`).

    Returns
    -------
    np.ndarray
        Per-block means before centering, whichever mode was used.
    """
    opts = options if options is not None else CenterOptions()
    as_size_factor_buffer(size_factors)
    group_mean = compute_blocked_mean(
        size_factors, block, diagnostics, opts, classifier, num_blocks
    )
    block = np.asarray(block, dtype=np.intp)

    if opts.block_mode == BlockMode.PER_BLOCK:
        div = group_mean[block]
        nonzero = div != 0
        size_factors[nonzero] /= div[nonzero]
        logger.debug("Centered %d blocks separately", group_mean.size)

    elif opts.block_mode == BlockMode.LOWEST:
        # Blocks with a zero mean are either empty or full of zeros.
        positive = group_mean[group_mean > 0]
        if positive.size:
            lowest = positive.min()
            size_factors /= lowest
            logger.debug("Scaled all blocks by the lowest block mean %g", lowest)
        else:
            logger.warning("No block has a positive mean; size factors were not centered")

    return group_mean

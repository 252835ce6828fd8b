"""Shared utility functions."""

from __future__ import annotations

import numpy as np


def as_size_factor_buffer(size_factors: np.ndarray) -> np.ndarray:
    """Validate a size factor array that will be modified in place.

    Parameters
    ----------
    size_factors : np.ndarray
        One-dimensional floating-point array.

    Returns
    -------
    np.ndarray
        The same object, unchanged.
    """
    if not isinstance(size_factors, np.ndarray):
        raise TypeError(
            f"Size factors must be a numpy array to be centered in place, "
            f"got {type(size_factors).__name__}"
        )
    if not np.issubdtype(size_factors.dtype, np.floating):
        raise TypeError(f"Size factors must have a floating-point dtype, got {size_factors.dtype}")
    if size_factors.ndim != 1:
        raise ValueError(f"Size factors must be one-dimensional, got shape {size_factors.shape}")
    return size_factors


def as_block_labels(block: np.ndarray, num: int) -> np.ndarray:
    """Validate block assignments against the number of cells."""
    block = np.asarray(block)
    if block.ndim != 1:
        raise ValueError(f"Block labels must be one-dimensional, got shape {block.shape}")
    if block.shape[0] != num:
        raise ValueError(
            f"Length mismatch: {num} size factors but {block.shape[0]} block labels"
        )
    if block.size and not np.issubdtype(block.dtype, np.integer):
        raise TypeError(f"Block labels must be integers, got {block.dtype}")
    if block.size and block.min() < 0:
        raise ValueError("Block labels must be non-negative")
    return block.astype(np.intp, copy=False)


def count_groups(block: np.ndarray) -> int:
    """Number of blocks implied by contiguous labels ``0..N-1``.

    Returns 0 for an empty array.
    """
    block = np.asarray(block)
    if block.size == 0:
        return 0
    return int(block.max()) + 1

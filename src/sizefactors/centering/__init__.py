"""Centering of size factors, globally or within blocks."""

from sizefactors.centering.center import (
    center,
    center_blocked,
    compute_blocked_mean,
    compute_mean,
)

__all__ = [
    "compute_mean",
    "center",
    "compute_blocked_mean",
    "center_blocked",
]

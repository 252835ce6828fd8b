"""High-level size factor centering API."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields, replace
from typing import Any

import numpy as np
import pandas as pd

from sizefactors.centering.center import center, center_blocked
from sizefactors.config import CenterOptions, SanitizeOptions
from sizefactors.sanitize.diagnostics import (
    Diagnostics,
    ElementwiseClassifier,
    InvalidClassifier,
    flag_invalid,
)
from sizefactors.sanitize.replace import sanitize as sanitize_size_factors

logger = logging.getLogger(__name__)


class SizeFactorCenterer:
    """Center size factors to a mean of 1, optionally within blocks.

    Parameters
    ----------
    config : CenterOptions | None
        Full configuration. Individual keyword arguments override fields
        of the given (or default) config.
    classifier : InvalidClassifier | ElementwiseClassifier
        Invalid-value classifier used when ``ignore_invalid`` is set.
    **kwargs
        Passed to :class:`CenterOptions`.

    Examples
    --------
    >>> from sizefactors import SizeFactorCenterer
    >>> c = SizeFactorCenterer(block_mode="per_block")
    >>> centered = c.fit_transform(sf, block=batch)
    """

    def __init__(
        self,
        config: CenterOptions | None = None,
        classifier: InvalidClassifier | ElementwiseClassifier = flag_invalid,
        **kwargs: Any,
    ):
        cfg = config if config is not None else CenterOptions()

        known = {f.name for f in fields(cfg)}
        for key in kwargs:
            if key not in known:
                raise TypeError(f"Unknown parameter: {key!r}")

        self.config = replace(cfg, **kwargs)
        self.classifier = classifier

        # Populated after fit_transform
        self.mean_: float | np.ndarray | None = None
        self.diagnostics_: Diagnostics | None = None
        self.blocks_: pd.Index | None = None
        self.params_: dict[str, Any] = asdict(self.config)

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    def fit_transform(
        self,
        size_factors: np.ndarray,
        block: np.ndarray | None = None,
        num_blocks: int | None = None,
        copy: bool = True,
    ) -> np.ndarray:
        """Center size factors.

        Parameters
        ----------
        size_factors : np.ndarray
            Size factor for each cell.
        block : np.ndarray | None
            Integer block assignment for each cell.
        num_blocks : int | None
            Total number of blocks, if some have no cells.
        copy : bool
            Work on a copy. With ``False`` a writable float array is
            centered in place.

        Returns
        -------
        np.ndarray
            Centered size factors.
        """
        sf = np.asarray(size_factors)
        if not np.issubdtype(sf.dtype, np.floating):
            sf = sf.astype(np.float64)
        elif copy:
            sf = sf.copy()

        if block is None and num_blocks is not None:
            raise ValueError("num_blocks requires block")

        diag = Diagnostics()
        if block is None:
            self.mean_ = center(sf, diag, self.config, self.classifier)
            self.blocks_ = None
        else:
            self.mean_ = center_blocked(
                sf, block, diag, self.config, self.classifier, num_blocks=num_blocks
            )
            self.blocks_ = pd.RangeIndex(len(self.mean_), name="block")

        if diag.any_invalid:
            logger.warning(
                "Invalid size factors detected (zero=%s, negative=%s, nan=%s, infinite=%s); "
                "consider sanitizing after centering",
                diag.has_zero,
                diag.has_negative,
                diag.has_nan,
                diag.has_infinite,
            )
        self.diagnostics_ = diag
        return sf

    def center_anndata(
        self,
        adata: Any,
        key: str = "size_factors",
        block_key: str | None = None,
        sanitize: bool = False,
        sanitize_options: SanitizeOptions | None = None,
    ) -> float | pd.Series:
        """Center size factors stored in ``adata.obs``.

        Parameters
        ----------
        adata : anndata.AnnData
            Annotated data with size factors in ``obs[key]``.
        key : str
            Column holding the size factors; overwritten with the result.
        block_key : str | None
            Column holding block labels (e.g. batch). Any labels are
            accepted and converted to category codes.
        sanitize : bool
            Replace invalid values after centering.
        sanitize_options : SanitizeOptions | None
            Passed to :func:`sizefactors.sanitize.sanitize`.

        Returns
        -------
        float | pd.Series
            Mean size factor, or per-block means indexed by block label.
        """
        import anndata as ad

        if not isinstance(adata, ad.AnnData):
            raise TypeError(f"Expected an AnnData object, got {type(adata).__name__}")
        if key not in adata.obs:
            raise KeyError(f"Size factors not found in adata.obs[{key!r}]")

        sf = adata.obs[key].to_numpy(dtype=np.float64, copy=True)

        if block_key is None:
            self.fit_transform(sf, copy=False)
        else:
            if block_key not in adata.obs:
                raise KeyError(f"Block labels not found in adata.obs[{block_key!r}]")
            labels = pd.Categorical(adata.obs[block_key])
            if (labels.codes < 0).any():
                raise ValueError(f"Missing block labels in adata.obs[{block_key!r}]")
            self.fit_transform(sf, block=labels.codes, num_blocks=len(labels.categories), copy=False)
            self.blocks_ = pd.Index(labels.categories, name=block_key)

        if sanitize:
            # Diagnostics are only filled when invalid values were looked for.
            diag = self.diagnostics_ if self.config.ignore_invalid else None
            sanitize_size_factors(sf, diag, sanitize_options)

        adata.obs[key] = sf

        if block_key is None:
            return self.mean_
        return pd.Series(self.mean_, index=self.blocks_, name="mean")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def summary(self) -> pd.DataFrame:
        """Per-block means from the last call, as a DataFrame."""
        self._check_fitted()
        if self.blocks_ is None:
            return pd.DataFrame({"mean": [self.mean_]}, index=pd.Index(["all"], name="block"))

        means = np.asarray(self.mean_)
        df = pd.DataFrame({"mean": means}, index=self.blocks_)
        positive = means[means > 0]
        lowest = positive.min() if positive.size else 0.0
        df["lowest"] = (means == lowest) & (means > 0)
        return df

    def _check_fitted(self) -> None:
        if self.mean_ is None:
            raise RuntimeError("Call fit_transform() or center_anndata() first.")

"""Configuration dataclasses for size factor centering and sanitization."""

from dataclasses import dataclass
from enum import Enum


class BlockMode(str, Enum):
    """Strategy for reconciling per-block means in blocked centering."""

    PER_BLOCK = "per_block"
    LOWEST = "lowest"


class HandlerAction(str, Enum):
    """What to do with one category of invalid size factors."""

    IGNORE = "ignore"
    ERROR = "error"
    SANITIZE = "sanitize"


@dataclass(frozen=True)
class CenterOptions:
    """Options for centering.

    Attributes
    ----------
    block_mode : BlockMode
        Cross-block strategy used by blocked centering.

        - ``PER_BLOCK``: each block is scaled to a mean of 1, exactly as if it
          had been centered on its own. Systematic coverage differences
          between blocks are lost.
        - ``LOWEST``: every size factor is divided by the smallest positive
          block mean, downscaling all blocks to the lowest-coverage one.
    ignore_invalid : bool
        Skip zero, negative, NaN and infinite values when computing means.
        Invalid values are still divided, not removed; use
        :func:`sizefactors.sanitize.sanitize` afterwards. Set to ``False``
        for speed when the input is known to be clean.
    """

    block_mode: BlockMode = BlockMode.LOWEST
    ignore_invalid: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "block_mode", BlockMode(self.block_mode))


@dataclass(frozen=True)
class SanitizeOptions:
    """Per-category handling of invalid size factors.

    Attributes
    ----------
    handle_zero : HandlerAction
        Zeros are replaced with the smallest positive finite value.
    handle_negative : HandlerAction
        Negatives (including ``-inf``) are replaced like zeros.
    handle_nan : HandlerAction
        NaNs are replaced with 1.
    handle_infinite : HandlerAction
        ``+inf`` is replaced with the largest finite value.
    """

    handle_zero: HandlerAction = HandlerAction.ERROR
    handle_negative: HandlerAction = HandlerAction.ERROR
    handle_nan: HandlerAction = HandlerAction.ERROR
    handle_infinite: HandlerAction = HandlerAction.ERROR

    def __post_init__(self) -> None:
        for name in ("handle_zero", "handle_negative", "handle_nan", "handle_infinite"):
            object.__setattr__(self, name, HandlerAction(getattr(self, name)))

"""
Configuration defaults for infotables.

Every tunable constant of the WOE/IV engine lives here and is passed
explicitly to the entry points, so nothing depends on process-wide state.
"""

import numbers
from dataclasses import dataclass, fields, replace
from typing import Any


@dataclass(frozen=True)
class InfoConfig:
    """
    Defaults for binning, smoothing and the AdjIV penalty.

    Parameters
    ----------
    bins : int, default=10
        Target number of equal-frequency bins for numeric variables.
    smoothing : float, default=0.5
        Count substituted for a zero good or bad count before WOE is computed.
    bin_penalty : float, default=1.0
        Weight of the bin-count penalty. The total penalty is
        ``bin_penalty * n_bins / n_records``, spread evenly over the bins.
    stability_weight : float, default=1.0
        Multiplier applied to the train/validation instability penalty.
    alpha : float, default=0.05
        Significance level for IV confidence intervals.
    """

    bins: int = 10
    smoothing: float = 0.5
    bin_penalty: float = 1.0
    stability_weight: float = 1.0
    alpha: float = 0.05

    def __post_init__(self):
        if isinstance(self.bins, bool) or not isinstance(self.bins, numbers.Integral):
            raise ValueError(f"bins must be an integer, got {self.bins!r}")
        if self.bins < 1:
            raise ValueError(f"bins must be >= 1, got {self.bins}")
        if self.smoothing <= 0:
            raise ValueError(f"smoothing must be positive, got {self.smoothing}")
        if self.bin_penalty < 0:
            raise ValueError(f"bin_penalty must be >= 0, got {self.bin_penalty}")
        if self.stability_weight < 0:
            raise ValueError(
                f"stability_weight must be >= 0, got {self.stability_weight}"
            )
        if not 0 < self.alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {self.alpha}")

    def replace(self, **changes: Any) -> "InfoConfig":
        """Return a copy with the given fields changed."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        return replace(self, **changes)


DEFAULT_CONFIG = InfoConfig()

__all__ = ["InfoConfig", "DEFAULT_CONFIG"]

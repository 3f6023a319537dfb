"""woe.py."""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Union

import numpy as np
import pandas as pd
from scipy.stats import norm

from .binning import BinTable
from .config import DEFAULT_CONFIG, InfoConfig
from .exceptions import DegenerateOutcomeError

if TYPE_CHECKING:
    from .uplift import NwoeTable
    from .validation import Stability


def bin_outcome_counts(
    codes: np.ndarray, outcome: np.ndarray, n_bins: int
) -> tuple[np.ndarray, np.ndarray]:
    """Count outcome=1 (good) and outcome=0 (bad) records per bin, ignoring unmatched codes."""
    matched = codes >= 0
    codes = codes[matched]
    outcome = outcome[matched]
    good = np.bincount(codes, weights=(outcome == 1).astype(float), minlength=n_bins)
    bad = np.bincount(codes, weights=(outcome == 0).astype(float), minlength=n_bins)
    return good.astype(int), bad.astype(int)


def woe_components(
    good: np.ndarray,
    bad: np.ndarray,
    total_good: float,
    total_bad: float,
    smoothing: float,
) -> dict[str, np.ndarray]:
    """
    Distributions, WOE and IV contributions per bin.

    A zero good or bad count is replaced by ``smoothing`` before the
    distributions are taken; totals are left as observed. Bins with no
    records at all get ``woe = NaN`` and contribute nothing to IV.
    """
    good = np.asarray(good, dtype=float)
    bad = np.asarray(bad, dtype=float)
    empty = (good + bad) == 0

    adj_good = np.where(good == 0, smoothing, good)
    adj_bad = np.where(bad == 0, smoothing, bad)
    dist_good = np.where(empty, 0.0, adj_good / total_good)
    dist_bad = np.where(empty, 0.0, adj_bad / total_bad)

    with np.errstate(divide="ignore", invalid="ignore"):
        woe = np.where(
            empty, np.nan, np.log(adj_good / total_good) - np.log(adj_bad / total_bad)
        )
        woe_se = np.where(empty, np.nan, np.sqrt(1.0 / adj_good + 1.0 / adj_bad))
    iv = np.where(empty, 0.0, (dist_good - dist_bad) * np.nan_to_num(woe))

    return {
        "dist_good": dist_good,
        "dist_bad": dist_bad,
        "woe": woe,
        "woe_se": woe_se,
        "iv": iv,
        "empty": empty,
    }


@dataclass(frozen=True, eq=False)
class WoeTable:
    """
    Bin-level WOE/IV table of one variable.

    The frame has one row per bin with columns ``bin, count, count_pct, good,
    bad, event_rate, dist_good, dist_bad, woe, woe_se, iv, iv_cum, penalty,
    penalty_cum``. ``iv`` and ``penalty`` are each bin's own contribution,
    the ``_cum`` columns their running totals in bin order.
    """

    score_column: ClassVar[str] = "iv"
    value_column: ClassVar[str] = "woe"

    variable: str
    bin_table: BinTable
    frame: pd.DataFrame
    total_good: int
    total_bad: int

    @property
    def n_bins(self) -> int:
        return len(self.frame)

    @property
    def iv(self) -> float:
        return float(np.sum(self.frame["iv"].to_numpy()))

    @property
    def score(self) -> float:
        return self.iv

    @property
    def penalty(self) -> float:
        return float(np.sum(self.frame["penalty"].to_numpy()))

    @property
    def adj_iv(self) -> float:
        return self.iv - self.penalty

    @property
    def adj_score(self) -> float:
        return self.adj_iv

    def pattern(self) -> list[tuple[str, float]]:
        """Ordered ``(bin label, WOE)`` pairs, as consumed by plotting code."""
        return list(zip(self.frame["bin"], self.frame["woe"].astype(float)))


def compute_woe(
    bin_table: BinTable,
    values: Any,
    outcome: Any,
    smoothing: float = DEFAULT_CONFIG.smoothing,
    codes: Optional[np.ndarray] = None,
) -> WoeTable:
    """
    Compute WOE and IV per bin.

    Parameters
    ----------
    bin_table : BinTable
        Bins to score, usually learned on the same data.
    values : array-like
        Raw variable values, aligned with ``outcome``.
    outcome : array-like
        Binary 0/1 outcome. Outcome 1 is "good" in the WOE ratio.
    smoothing : float, default=0.5
        Substitute for zero good/bad counts.
    codes : np.ndarray, optional
        Precomputed bin indices for ``values`` (``-1`` = unmatched).

    Returns:
    -------
    WoeTable

    Raises:
    ------
    DegenerateOutcomeError
        If the matched records contain only one outcome class.
    """
    outcome = np.asarray(outcome)
    if codes is None:
        codes = bin_table.assign(values)
    n_bins = len(bin_table)
    good, bad = bin_outcome_counts(codes, outcome, n_bins)
    total_good = int(good.sum())
    total_bad = int(bad.sum())
    if total_good == 0 or total_bad == 0:
        raise DegenerateOutcomeError(
            f"Outcome for variable '{bin_table.variable}' has a single class "
            f"(good={total_good}, bad={total_bad})"
        )

    parts = woe_components(good, bad, total_good, total_bad, smoothing)
    count = good + bad
    n_matched = count.sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        event_rate = np.where(count > 0, good / np.maximum(count, 1), np.nan)

    frame = pd.DataFrame(
        {
            "bin": bin_table.labels,
            "count": count,
            "count_pct": count / n_matched * 100,
            "good": good,
            "bad": bad,
            "event_rate": event_rate,
            "dist_good": parts["dist_good"],
            "dist_bad": parts["dist_bad"],
            "woe": parts["woe"],
            "woe_se": parts["woe_se"],
            "iv": parts["iv"],
        }
    )
    frame["iv_cum"] = frame["iv"].cumsum()
    frame["penalty"] = 0.0
    frame["penalty_cum"] = 0.0

    return WoeTable(
        variable=bin_table.variable,
        bin_table=bin_table,
        frame=frame,
        total_good=total_good,
        total_bad=total_bad,
    )


def apply_penalties(
    table: Union[WoeTable, "NwoeTable"],
    stability: Optional["Stability"] = None,
    config: InfoConfig = DEFAULT_CONFIG,
) -> Union[WoeTable, "NwoeTable"]:
    """
    Add bin-count and instability penalties to a WOE or NWOE table.

    Each scored bin carries ``config.bin_penalty / n_records`` of the
    bin-count penalty, so the total grows with the number of bins. Bins
    excluded from NIV (one treatment arm empty) are not scored and carry no
    penalty. When ``stability`` is given, its per-bin values scaled by
    ``config.stability_weight`` are added on top; the penalty of the
    validation "other" bucket, which has no row of its own, is spread evenly
    over the scored bins.
    """
    n_records = max(table.bin_table.n_records, 1)
    scored = np.ones(table.n_bins, dtype=bool)
    if "excluded" in table.frame:
        scored = ~table.frame["excluded"].to_numpy(dtype=bool)
    penalty = np.where(scored, config.bin_penalty / n_records, 0.0)
    if stability is not None:
        instability = np.asarray(stability.per_bin, dtype=float)
        if scored.any():
            instability = instability + np.where(
                scored, stability.other_penalty / scored.sum(), 0.0
            )
        penalty = penalty + config.stability_weight * instability

    frame = table.frame.copy()
    frame["penalty"] = penalty
    frame["penalty_cum"] = frame["penalty"].cumsum()
    return replace(table, frame=frame)


def iv_standard_error(table: WoeTable) -> float:
    """
    Standard error of IV using the delta method.

    Var(IV) ≈ Σ_j (dist_good_j - dist_bad_j)² * Var(WOE_j)
            + Σ_j WOE_j² * Var(dist_good_j - dist_bad_j)
    """
    frame = table.frame[table.frame["count"] > 0]
    iv_variance = 0.0
    for _, row in frame.iterrows():
        iv_weight = row["dist_good"] - row["dist_bad"]
        iv_variance += (iv_weight**2) * (row["woe_se"] ** 2)

        # Sampling variance of the rate difference, only for fully observed bins
        if row["good"] > 0 and row["bad"] > 0:
            good_rate_var = row["dist_good"] * (1 - row["dist_good"]) / table.total_good
            bad_rate_var = row["dist_bad"] * (1 - row["dist_bad"]) / table.total_bad
            iv_variance += (row["woe"] ** 2) * (good_rate_var + bad_rate_var)

    return float(np.sqrt(iv_variance))


def iv_confidence_interval(
    iv_value: float, iv_se: float, alpha: float = DEFAULT_CONFIG.alpha
) -> tuple[float, float]:
    """Normal-approximation confidence interval for IV, lower bound clipped at 0."""
    if np.isnan(iv_se) or np.isinf(iv_se):
        return (np.nan, np.nan)

    z_crit = norm.ppf(1 - alpha / 2)
    margin = z_crit * iv_se
    return (max(0.0, iv_value - margin), iv_value + margin)


__all__ = [
    "WoeTable",
    "compute_woe",
    "apply_penalties",
    "woe_components",
    "bin_outcome_counts",
    "iv_standard_error",
    "iv_confidence_interval",
]

"""
uplift.py.

Net Weight of Evidence (NWOE) and Net Information Value (NIV) for uplift
screening. Each bin is split by treatment flag and WOE is computed separately
within the test and control groups; NWOE is their difference.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

import numpy as np
import pandas as pd

from .binning import BinTable
from .config import DEFAULT_CONFIG
from .exceptions import DegenerateOutcomeError, InsufficientGroupError
from .logging_config import logger
from .woe import bin_outcome_counts, woe_components


@dataclass(frozen=True, eq=False)
class NwoeTable:
    """
    Bin-level NWOE/NIV table of one variable.

    Frame columns: ``bin, count, n_treatment, n_control, rate_treatment,
    rate_control, woe_treatment, woe_control, nwoe, niv_weight, niv, niv_cum,
    penalty, penalty_cum, excluded``.
    """

    score_column: ClassVar[str] = "niv"
    value_column: ClassVar[str] = "nwoe"

    variable: str
    bin_table: BinTable
    frame: pd.DataFrame

    @property
    def n_bins(self) -> int:
        return len(self.frame)

    @property
    def niv(self) -> float:
        return float(np.sum(self.frame["niv"].to_numpy()))

    @property
    def score(self) -> float:
        return self.niv

    @property
    def penalty(self) -> float:
        return float(np.sum(self.frame["penalty"].to_numpy()))

    @property
    def adj_niv(self) -> float:
        return self.niv - self.penalty

    @property
    def adj_score(self) -> float:
        return self.adj_niv

    @property
    def excluded_bins(self) -> list[str]:
        return self.frame.loc[self.frame["excluded"], "bin"].tolist()

    def pattern(self) -> list[tuple[str, float]]:
        """Ordered ``(bin label, NWOE)`` pairs."""
        return list(zip(self.frame["bin"], self.frame["nwoe"].astype(float)))


def _rate(good: np.ndarray, count: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(count > 0, good / np.maximum(count, 1), np.nan)


def compute_nwoe(
    bin_table: BinTable,
    values: Any,
    outcome: Any,
    treatment: Any,
    smoothing: float = DEFAULT_CONFIG.smoothing,
    codes: Optional[np.ndarray] = None,
    allow_empty: bool = False,
) -> NwoeTable:
    """
    Compute NWOE and NIV per bin.

    ``NWOE_i = WOE_i(treatment) - WOE_i(control)`` with the smoothing rule of
    :func:`infotables.woe.woe_components` applied within each arm, and
    ``NIV_i = (p1t_i * p0c_i - p0t_i * p1c_i) * NWOE_i`` where ``p1t_i`` is
    the share of treated positives in bin i (``p0t``, ``p1c``, ``p0c``
    likewise).

    Bins with no records in one arm are excluded: ``nwoe`` is NaN, ``niv`` is
    0 and ``excluded`` is True.

    Parameters
    ----------
    allow_empty : bool, default=False
        Return the table even if every bin is excluded.

    Raises:
    ------
    DegenerateOutcomeError
        If either arm contains a single outcome class.
    InsufficientGroupError
        If every bin is excluded and ``allow_empty`` is False.
    """
    outcome = np.asarray(outcome)
    treated = np.asarray(treatment) == 1
    if codes is None:
        codes = bin_table.assign(values)
    n_bins = len(bin_table)

    good_t, bad_t = bin_outcome_counts(codes[treated], outcome[treated], n_bins)
    good_c, bad_c = bin_outcome_counts(codes[~treated], outcome[~treated], n_bins)
    for arm, good, bad in (("treatment", good_t, bad_t), ("control", good_c, bad_c)):
        if good.sum() == 0 or bad.sum() == 0:
            raise DegenerateOutcomeError(
                f"Outcome within the {arm} group of variable '{bin_table.variable}' "
                f"has a single class (good={good.sum()}, bad={bad.sum()})"
            )

    n_t = good_t + bad_t
    n_c = good_c + bad_c
    excluded = (n_t == 0) | (n_c == 0)

    parts_t = woe_components(good_t, bad_t, good_t.sum(), bad_t.sum(), smoothing)
    parts_c = woe_components(good_c, bad_c, good_c.sum(), bad_c.sum(), smoothing)

    nwoe = np.where(excluded, np.nan, parts_t["woe"] - parts_c["woe"])
    niv_weight = (
        parts_t["dist_good"] * parts_c["dist_bad"]
        - parts_t["dist_bad"] * parts_c["dist_good"]
    )
    niv = np.where(excluded, 0.0, niv_weight * np.nan_to_num(nwoe))

    labels = bin_table.labels
    populated_excluded = [
        label for label, flag, n in zip(labels, excluded, n_t + n_c) if flag and n > 0
    ]
    if populated_excluded:
        logger.warning(
            f"Variable '{bin_table.variable}': bins {populated_excluded} have no "
            "records in one treatment arm and are excluded from NIV"
        )
    if excluded.all() and not allow_empty:
        raise InsufficientGroupError(
            f"Variable '{bin_table.variable}' has no bin with records in both "
            "treatment and control groups"
        )

    frame = pd.DataFrame(
        {
            "bin": labels,
            "count": n_t + n_c,
            "n_treatment": n_t,
            "n_control": n_c,
            "rate_treatment": _rate(good_t, n_t),
            "rate_control": _rate(good_c, n_c),
            "woe_treatment": parts_t["woe"],
            "woe_control": parts_c["woe"],
            "nwoe": nwoe,
            "niv_weight": niv_weight,
            "niv": niv,
        }
    )
    frame["niv_cum"] = frame["niv"].cumsum()
    frame["penalty"] = 0.0
    frame["penalty_cum"] = 0.0
    frame["excluded"] = excluded

    return NwoeTable(variable=bin_table.variable, bin_table=bin_table, frame=frame)


__all__ = ["NwoeTable", "compute_nwoe"]

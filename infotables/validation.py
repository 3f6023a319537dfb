"""
validation.py.

External cross-validation of WOE and NWOE patterns. Bins learned on the
training data are applied unchanged to a validation dataset, WOE is
recomputed there, and the divergence between the two WOE vectors becomes the
instability part of the AdjIV penalty.

Validation records that match no training bin (unseen categories, or missing
values when training had no missing bin) go to the training missing bin when
there is one. Otherwise they form an "other" bucket with no training WOE,
whose whole validation contribution is charged as instability.
"""

from dataclasses import dataclass
from typing import Any, Union

import numpy as np

from .config import DEFAULT_CONFIG
from .logging_config import logger
from .uplift import NwoeTable, compute_nwoe
from .woe import WoeTable, compute_woe, woe_components


@dataclass(frozen=True, eq=False)
class Stability:
    """
    Train/validation instability of one variable.

    Attributes:
    ----------
    per_bin : np.ndarray
        Instability penalty per training bin.
    valid_table : WoeTable or NwoeTable
        Table recomputed on the validation data with the training bins.
    n_other : int
        Validation records that matched no training bin.
    other_penalty : float
        Instability charged for the "other" bucket holding those records.
    """

    per_bin: np.ndarray
    valid_table: Union[WoeTable, NwoeTable]
    n_other: int = 0
    other_penalty: float = 0.0

    @property
    def total(self) -> float:
        return float(np.sum(self.per_bin)) + self.other_penalty


def _assign_validation(table: Union[WoeTable, NwoeTable], values: Any) -> np.ndarray:
    """Unseen levels go to the training missing bin, or to the other bucket (-1)."""
    codes = table.bin_table.assign(values, unmatched_to_missing=True)
    n_other = int((codes == -1).sum())
    if n_other:
        logger.warning(
            f"Variable '{table.variable}': {n_other} validation records match "
            "no training bin and are grouped into the 'other' bucket"
        )
    return codes


def _other_iv(codes: np.ndarray, outcome: np.ndarray, smoothing: float) -> float:
    """``|(dist_good - dist_bad) * WOE|`` of the other bucket on all validation records."""
    other = codes == -1
    if not other.any():
        return 0.0
    parts = woe_components(
        [int((outcome[other] == 1).sum())],
        [int((outcome[other] == 0).sum())],
        int((outcome == 1).sum()),
        int((outcome == 0).sum()),
        smoothing,
    )
    return float(abs(parts["iv"][0]))


def _other_niv(
    codes: np.ndarray, outcome: np.ndarray, treated: np.ndarray, smoothing: float
) -> float:
    """NIV analogue of :func:`_other_iv`; zero when the bucket lacks an arm."""
    other = codes == -1
    arms = []
    for arm in (treated, ~treated):
        in_other = other & arm
        if not in_other.any():
            return 0.0
        arms.append(
            woe_components(
                [int((outcome[in_other] == 1).sum())],
                [int((outcome[in_other] == 0).sum())],
                int((outcome[arm] == 1).sum()),
                int((outcome[arm] == 0).sum()),
                smoothing,
            )
        )
    parts_t, parts_c = arms
    weight = (
        parts_t["dist_good"][0] * parts_c["dist_bad"][0]
        - parts_t["dist_bad"][0] * parts_c["dist_good"][0]
    )
    return float(abs(weight * (parts_t["woe"][0] - parts_c["woe"][0])))


def validate(
    train_table: WoeTable,
    values: Any,
    outcome: Any,
    smoothing: float = DEFAULT_CONFIG.smoothing,
) -> Stability:
    """
    Compare training WOE against WOE recomputed on validation data.

    The penalty of bin i is ``|(dist_good_i - dist_bad_i) * (WOE_train_i -
    WOE_valid_i)|`` using the training distributions. A bin without
    validation records gets its full training contribution ``|IV_i|``, and
    the other bucket its full validation contribution.

    Raises:
    ------
    DegenerateOutcomeError
        If the matched validation records contain a single outcome class.
    """
    outcome = np.asarray(outcome)
    codes = _assign_validation(train_table, values)
    valid_table = compute_woe(
        train_table.bin_table, values, outcome, smoothing=smoothing, codes=codes
    )

    train = train_table.frame
    valid = valid_table.frame
    weight = (train["dist_good"] - train["dist_bad"]).to_numpy()
    diff = (train["woe"] - valid["woe"]).to_numpy()
    empty = valid["count"].to_numpy() == 0

    per_bin = np.where(
        empty,
        np.abs(train["iv"].to_numpy()),
        np.abs(weight * np.nan_to_num(diff)),
    )
    return Stability(
        per_bin=per_bin,
        valid_table=valid_table,
        n_other=int((codes == -1).sum()),
        other_penalty=_other_iv(codes, outcome, smoothing),
    )


def validate_uplift(
    train_table: NwoeTable,
    values: Any,
    outcome: Any,
    treatment: Any,
    smoothing: float = DEFAULT_CONFIG.smoothing,
) -> Stability:
    """
    NWOE analogue of :func:`validate`.

    The penalty of bin i is ``|niv_weight_i * (NWOE_train_i - NWOE_valid_i)|``.
    A bin missing one arm in validation gets its full ``|NIV_i|``; bins
    already excluded in training contribute nothing.
    """
    outcome = np.asarray(outcome)
    treated = np.asarray(treatment) == 1
    codes = _assign_validation(train_table, values)
    valid_table = compute_nwoe(
        train_table.bin_table,
        values,
        outcome,
        treatment,
        smoothing=smoothing,
        codes=codes,
        allow_empty=True,
    )

    train = train_table.frame
    valid = valid_table.frame
    train_excluded = train["excluded"].to_numpy()
    valid_excluded = valid["excluded"].to_numpy()
    diff = np.nan_to_num((train["nwoe"] - valid["nwoe"]).to_numpy())

    per_bin = np.where(
        valid_excluded,
        np.abs(train["niv"].to_numpy()),
        np.abs(train["niv_weight"].to_numpy() * diff),
    )
    per_bin = np.where(train_excluded, 0.0, per_bin)
    return Stability(
        per_bin=per_bin,
        valid_table=valid_table,
        n_other=int((codes == -1).sum()),
        other_penalty=_other_niv(codes, outcome, treated, smoothing),
    )


__all__ = ["Stability", "validate", "validate_uplift"]

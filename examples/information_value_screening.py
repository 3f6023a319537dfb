#!/usr/bin/env python3
"""
Variable screening with Information Value and Net Information Value.

This example builds a synthetic marketing campaign with a purchase outcome
and a treatment flag, ranks the predictors by penalized IV using an external
validation set, and repeats the ranking for uplift with NIV.
"""

import numpy as np
import pandas as pd

from infotables import create_infotables
from infotables.logging_config import setup_logger

setup_logger(level="INFO")


def make_campaign(n_samples: int, seed: int) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    n_open_rev_acts = rng.poisson(3, n_samples)
    tot_hi_crdt_crdt_lmt = rng.lognormal(9, 1, n_samples)
    d_region = rng.choice(["A", "B", "C"], n_samples, p=[0.5, 0.3, 0.2])
    treatment = rng.integers(0, 2, n_samples)

    logit = (
        -1.2
        + 0.3 * (n_open_rev_acts - 3)
        + 0.6 * treatment * (d_region == "B")
        - 0.4 * treatment * (n_open_rev_acts > 5)
    )
    purchase = (rng.random(n_samples) < 1 / (1 + np.exp(-logit))).astype(int)

    # Credit limit is not always reported
    tot_hi_crdt_crdt_lmt[rng.random(n_samples) < 0.08] = np.nan

    return pd.DataFrame(
        {
            "N_OPEN_REV_ACTS": n_open_rev_acts,
            "TOT_HI_CRDT_CRDT_LMT": tot_hi_crdt_crdt_lmt,
            "D_REGION": d_region,
            "TREATMENT": treatment,
            "PURCHASE": purchase,
        }
    )


train = make_campaign(10000, seed=1)
valid = make_campaign(10000, seed=2)

print("Ranking variables by adjusted IV (test group only)")
print("=" * 50)
test_train = train[train["TREATMENT"] == 1].drop(columns="TREATMENT")
test_valid = valid[valid["TREATMENT"] == 1].drop(columns="TREATMENT")
iv = create_infotables(test_train, y="PURCHASE", valid=test_valid)
print(iv.summary[["variable", "iv", "adj_iv", "n_bins", "rank"]].to_string(index=False))

print("\nWOE table for N_OPEN_REV_ACTS")
print(iv.get_table("N_OPEN_REV_ACTS")[["bin", "count", "woe", "iv_cum", "penalty_cum"]])

print("\nSame variable with 20 bins (ties keep the bin count lower)")
iv_20 = create_infotables(
    test_train, y="PURCHASE", valid=test_valid, bins=20, variables=["N_OPEN_REV_ACTS"]
)
print(iv_20.get_table("N_OPEN_REV_ACTS")[["bin", "count", "woe"]])

print("\nRanking variables by adjusted NIV (test and control groups)")
print("=" * 50)
niv = create_infotables(train, y="PURCHASE", trt="TREATMENT", valid=valid)
print(niv.summary[["variable", "niv", "adj_niv", "n_bins", "rank"]].to_string(index=False))

print("\nNWOE pattern for N_OPEN_REV_ACTS")
for label, value in niv.woe_pattern("N_OPEN_REV_ACTS"):
    print(f"  {label:>12}  {value:+.4f}")

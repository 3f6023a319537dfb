"""Pytest configuration and shared fixtures for infotables tests."""

import numpy as np
import pandas as pd
import pytest

from infotables.logging_config import setup_logger

setup_logger(level="WARNING")


def _make_dataset(n_samples: int, seed: int) -> pd.DataFrame:
    """Marketing-style dataset with a purchase outcome and a treatment flag."""
    rng = np.random.default_rng(seed)
    n_open_acts = rng.poisson(3, n_samples)
    income = rng.normal(50, 15, n_samples)
    region = rng.choice(["north", "south", "east", "west"], n_samples)
    noise = rng.normal(0, 1, n_samples)
    treatment = rng.integers(0, 2, n_samples)

    # Purchase rises with open accounts; treatment helps the south region only
    logit = -1.0 + 0.35 * (n_open_acts - 3) + 0.8 * treatment * (region == "south")
    purchase = (rng.random(n_samples) < 1 / (1 + np.exp(-logit))).astype(int)

    income[rng.random(n_samples) < 0.05] = np.nan
    return pd.DataFrame(
        {
            "N_OPEN_ACTS": n_open_acts,
            "INCOME": income,
            "REGION": region,
            "NOISE": noise,
            "TREATMENT": treatment,
            "PURCHASE": purchase,
        }
    )


@pytest.fixture(scope="session")
def train_data():
    """Training dataset shared across tests."""
    return _make_dataset(2000, seed=42)


@pytest.fixture(scope="session")
def valid_data():
    """Validation dataset drawn from the same process as the training data."""
    return _make_dataset(2000, seed=7)


@pytest.fixture
def step_data():
    """Eight records split cleanly into two outcome groups."""
    return pd.DataFrame(
        {
            "x": [1, 2, 3, 4, 5, 6, 7, 8],
            "y": [1, 1, 1, 1, 0, 0, 0, 0],
        }
    )

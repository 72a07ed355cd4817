"""
Shared fixtures: a synthetic bank-churn table with the real column layout.
"""

import os

os.environ.setdefault("MPLBACKEND", "Agg")

from pathlib import Path  # noqa: E402

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from bank_churn.config import REQUIRED_COLS  # noqa: E402


def make_raw_churn(n: int = 600, seed: int = 7) -> pd.DataFrame:
    """
    Build a raw table shaped like the bank churn CSV.

    Churn is driven by age, activity and number of products so the models have
    something to learn.
    """
    rng = np.random.default_rng(seed)
    age = rng.integers(18, 93, n)
    active = rng.integers(0, 2, n)
    products = rng.choice([1, 2, 3, 4], n, p=[0.5, 0.42, 0.06, 0.02])
    geography = rng.choice(["France", "Germany", "Spain"], n, p=[0.5, 0.25, 0.25])

    logit = -3.0 + 0.06 * (age - 40) - 0.9 * active + 1.2 * (products >= 3) + 0.6 * (geography == "Germany")
    exited = (rng.random(n) < 1 / (1 + np.exp(-logit))).astype(int)

    df = pd.DataFrame(
        {
            "RowNumber": np.arange(1, n + 1),
            "CustomerId": 15_600_000 + np.arange(n),
            "Surname": rng.choice(["Hargrave", "Hill", "Onio", "Boni", "Mitchell", "Chu"], n),
            "CreditScore": rng.integers(350, 851, n),
            "Geography": geography,
            "Gender": rng.choice(["Female", "Male"], n),
            "Age": age,
            "Tenure": rng.integers(0, 11, n),
            "Balance": np.round(np.where(rng.random(n) < 0.35, 0.0, rng.normal(120_000, 30_000, n).clip(0)), 2),
            "NumOfProducts": products,
            "HasCrCard": rng.integers(0, 2, n),
            "IsActiveMember": active,
            "EstimatedSalary": np.round(rng.uniform(11.58, 199_992.48, n), 2),
            "Exited": exited,
        }
    )
    return df[REQUIRED_COLS]


@pytest.fixture
def raw_df() -> pd.DataFrame:
    return make_raw_churn()


@pytest.fixture
def raw_csv(tmp_path: Path, raw_df: pd.DataFrame) -> Path:
    path = tmp_path / "Churn_Modelling.csv"
    raw_df.to_csv(path, index=False)
    return path

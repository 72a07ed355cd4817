"""
Deterministic stratified train/test split.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import pandas as pd
from sklearn.model_selection import train_test_split

from .errors import ParameterError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSplit:
    train: pd.DataFrame
    test: pd.DataFrame


def stratified_split(
    df: pd.DataFrame,
    target: str,
    train_fraction: float,
    seed: int,
) -> DataSplit:
    """
    Partition df into train/test keeping the class proportions of `target`.

    Same (df, train_fraction, seed) always gives the same row partition; the
    original index is kept on both subsets.
    """
    if not 0.0 < train_fraction < 1.0:
        raise ParameterError(f"train_fraction must lie in (0, 1), got {train_fraction}")
    if target not in df.columns:
        raise ParameterError(f"Target column {target!r} not found in table")

    counts = df[target].value_counts()
    counts = counts[counts > 0]
    if (counts < 2).any():
        raise ParameterError(
            "Every class needs at least 2 rows to stratify; "
            f"class counts: {counts.to_dict()}"
        )

    # Same sizes train_test_split derives from train_size alone
    n_train = math.floor(train_fraction * len(df))
    n_test = len(df) - n_train
    n_classes = len(counts)
    if n_test < n_classes or n_train < n_classes:
        raise ParameterError(
            f"Split of {len(df)} rows at {train_fraction} leaves {n_train} train / {n_test} test rows, "
            f"fewer than the {n_classes} classes to stratify"
        )

    train, test = train_test_split(
        df,
        train_size=train_fraction,
        stratify=df[target],
        random_state=seed,
    )

    logger.info(
        "Split %d rows into %d train / %d test (seed=%d)",
        len(df), len(train), len(test), seed,
    )
    return DataSplit(train=train, test=test)


def class_proportions(df: pd.DataFrame, target: str) -> pd.Series:
    """
    Share of each class label in `target`, sorted by label.
    """
    return df[target].value_counts(normalize=True).sort_index()

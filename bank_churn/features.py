"""
Typed projections of the cleaned churn table.

Two views are derived from the same cleaned table:
- display view: human-readable categoricals (Churn as No/Yes), used for plots
- numeric view: every column numeric, used for correlations and model fitting
"""

from __future__ import annotations

import logging
from typing import Tuple

import pandas as pd

from .config import BINARY_COLS, CATEGORICAL_COLS, CHURN_LEVELS, FEATURE_COLS, TARGET_COL
from .errors import DataQualityError, SchemaError

logger = logging.getLogger(__name__)

_TEXT_COLS = CATEGORICAL_COLS + ["Surname"]


def _check_binary(series: pd.Series) -> None:
    bad = sorted(set(series.unique()) - {0, 1})
    if bad:
        raise DataQualityError(
            f"Column {series.name!r} must hold only 0/1, found {bad}"
        )


def _to_yes_no(series: pd.Series) -> pd.Series:
    _check_binary(series)
    labels = series.map({0: CHURN_LEVELS[0], 1: CHURN_LEVELS[1]})
    return pd.Series(
        pd.Categorical(labels, categories=CHURN_LEVELS),
        index=series.index,
        name=series.name,
    )


def to_display_view(df: pd.DataFrame) -> pd.DataFrame:
    """
    Cast categorical columns to pandas categoricals with readable labels.
    """
    if TARGET_COL not in df.columns:
        raise SchemaError(f"Target column {TARGET_COL!r} not found; clean the table first.")

    out = df.copy()
    for col in _TEXT_COLS:
        if col in out.columns:
            out[col] = out[col].astype("category")
    for col in BINARY_COLS + [TARGET_COL]:
        if col in out.columns:
            out[col] = _to_yes_no(out[col])
    return out


def _encode(series: pd.Series) -> pd.Series:
    if isinstance(series.dtype, pd.CategoricalDtype):
        codes = series.cat.codes
    else:
        levels = sorted(series.dropna().unique())
        codes = pd.Categorical(series, categories=levels).codes
    return pd.Series(codes, index=series.index, name=series.name).astype("int64")


def to_numeric_view(df: pd.DataFrame) -> pd.DataFrame:
    """
    Coerce every column to a numeric encoding.

    Text columns become integer codes over their sorted distinct values, so the
    same string always gets the same code for a given table. Categoricals keep
    the order of their declared levels (No -> 0, Yes -> 1).
    """
    if TARGET_COL not in df.columns:
        raise SchemaError(f"Target column {TARGET_COL!r} not found; clean the table first.")

    out = df.copy()
    for col in out.columns:
        if not pd.api.types.is_numeric_dtype(out[col]) or isinstance(out[col].dtype, pd.CategoricalDtype):
            out[col] = _encode(out[col])

    _check_binary(out[TARGET_COL])
    return out


def split_features_target(df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Split the numeric view into X (model inputs) and y (0/1 churn target).
    """
    missing = [c for c in FEATURE_COLS + [TARGET_COL] if c not in df.columns]
    if missing:
        raise SchemaError(f"Numeric view is missing model columns: {missing}")

    y = df[TARGET_COL].astype(int)
    X = df[FEATURE_COLS]
    return X, y

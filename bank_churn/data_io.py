"""
Data loading, cleaning and validation utilities.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List

import pandas as pd

from .config import (
    BINARY_COLS,
    CATEGORICAL_COLS,
    FEATURE_COLS,
    ID_COLS,
    INDEX_COL,
    NUMERIC_COLS,
    RAW_NUMERIC_COLS,
    RAW_TARGET_COL,
    REQUIRED_COLS,
    TARGET_COL,
)
from .errors import DataQualityError, SchemaError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureSchema:
    """
    A lightweight schema to record what features the models expect.
    """
    target: str
    id_cols: List[str]
    categorical_cols: List[str]
    binary_cols: List[str]
    numeric_cols: List[str]
    feature_cols: List[str]


def _check_required_columns(df: pd.DataFrame, required: List[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaError(
            "Table is missing required columns.\n"
            f"Missing: {missing}\n"
            f"Found: {sorted(df.columns.tolist())}"
        )


def _check_field_counts(f, csv_path: Path) -> None:
    """
    Every non-blank row must have as many fields as the header.

    pandas pads short rows with NaN, so they are caught here instead.
    """
    reader = csv.reader(f)
    header = next(reader, [])
    for row in reader:
        if row and len(row) != len(header):
            raise SchemaError(
                f"Malformed row at line {reader.line_num} of {csv_path}: "
                f"expected {len(header)} fields, found {len(row)}"
            )


def load_churn_csv(csv_path: Path) -> pd.DataFrame:
    """
    Load the churn CSV into a DataFrame.

    The file is closed as soon as pandas has materialized the table.
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")

    try:
        with csv_path.open("r", encoding="utf-8", newline="") as f:
            _check_field_counts(f, csv_path)
            f.seek(0)
            df = pd.read_csv(f)
    except pd.errors.ParserError as err:
        raise SchemaError(f"Malformed row in {csv_path}: {err}") from err

    _check_required_columns(df, REQUIRED_COLS)

    non_numeric = [c for c in RAW_NUMERIC_COLS if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise SchemaError(
            f"Columns expected to be numeric hold non-numeric values: {non_numeric}"
        )

    logger.info("Loaded %d rows x %d columns from %s", len(df), df.shape[1], csv_path)
    return df


def clean_churn_data(df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop the row-index column and rename the target to its canonical name.

    Returns a new DataFrame; the input is left untouched.
    """
    _check_required_columns(df, REQUIRED_COLS)
    if TARGET_COL in df.columns:
        raise SchemaError(
            f"Column {TARGET_COL!r} already present; renaming {RAW_TARGET_COL!r} would duplicate it"
        )

    cleaned = df.drop(columns=[INDEX_COL]).rename(columns={RAW_TARGET_COL: TARGET_COL})
    logger.info("Cleaned table: dropped %s, renamed %s -> %s", INDEX_COL, RAW_TARGET_COL, TARGET_COL)
    return cleaned


def verify_data_quality(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check that the cleaned table has no duplicate rows and no missing values.

    Nothing is repaired: any violation raises DataQualityError.
    """
    n_dupes = int(df.duplicated().sum())
    if n_dupes:
        raise DataQualityError(
            f"Found {n_dupes} duplicate row(s) out of {len(df)}; expected 0."
        )

    na_counts = df.isna().sum()
    na_counts = na_counts[na_counts > 0]
    if not na_counts.empty:
        raise DataQualityError(
            f"Found missing values (column -> count): {na_counts.to_dict()}"
        )

    logger.info("Data quality check passed: %d rows, no duplicates, no missing values", len(df))
    return df


def get_feature_schema() -> FeatureSchema:
    """
    Return the expected schema for this dataset.
    """
    return FeatureSchema(
        target=TARGET_COL,
        id_cols=ID_COLS,
        categorical_cols=CATEGORICAL_COLS,
        binary_cols=BINARY_COLS,
        numeric_cols=NUMERIC_COLS,
        feature_cols=FEATURE_COLS,
    )


def save_schema(schema: FeatureSchema, out_path: Path) -> None:
    """
    Save schema as JSON.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(asdict(schema), f, indent=2)

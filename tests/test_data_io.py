import json

import numpy as np
import pandas as pd
import pytest

from bank_churn.config import RAW_TARGET_COL, TARGET_COL
from bank_churn.data_io import (
    clean_churn_data,
    get_feature_schema,
    load_churn_csv,
    save_schema,
    verify_data_quality,
)
from bank_churn.errors import DataQualityError, SchemaError


def test_load_reads_all_rows(raw_csv, raw_df):
    df = load_churn_csv(raw_csv)
    assert df.shape == raw_df.shape
    assert list(df.columns) == list(raw_df.columns)


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_churn_csv(tmp_path / "nope.csv")


def test_load_missing_column_raises(tmp_path, raw_df):
    path = tmp_path / "no_gender.csv"
    raw_df.drop(columns=["Gender"]).to_csv(path, index=False)
    with pytest.raises(SchemaError, match="Gender"):
        load_churn_csv(path)


def test_load_non_numeric_value_raises(tmp_path, raw_df):
    bad = raw_df.astype({"Age": object})
    bad.loc[3, "Age"] = "forty"
    path = tmp_path / "bad_age.csv"
    bad.to_csv(path, index=False)
    with pytest.raises(SchemaError, match="Age"):
        load_churn_csv(path)


def test_load_row_with_extra_field_raises(tmp_path, raw_df):
    path = tmp_path / "extra_field.csv"
    raw_df.to_csv(path, index=False)
    with path.open("a", encoding="utf-8") as f:
        f.write("999,1,Smith,600,France,Male,40,3,0.0,1,1,1,5000.0,0,EXTRA\n")
    with pytest.raises(SchemaError, match="Malformed"):
        load_churn_csv(path)


def test_load_row_with_missing_fields_raises(tmp_path, raw_df):
    path = tmp_path / "short_row.csv"
    raw_df.to_csv(path, index=False)
    with path.open("a", encoding="utf-8") as f:
        f.write("999,1,Smith,600,France,Male,40\n")
    with pytest.raises(SchemaError, match="expected 14 fields, found 7"):
        load_churn_csv(path)


def test_load_accepts_quoted_comma_in_surname(tmp_path, raw_df):
    quoted = raw_df.copy()
    quoted.loc[0, "Surname"] = "Smith, Jr"
    path = tmp_path / "quoted.csv"
    quoted.to_csv(path, index=False)
    df = load_churn_csv(path)
    assert df.loc[0, "Surname"] == "Smith, Jr"
    assert len(df) == len(raw_df)


def test_clean_drops_index_and_renames_target(raw_df):
    cleaned = clean_churn_data(raw_df)
    assert cleaned.shape[1] == raw_df.shape[1] - 1
    assert "RowNumber" not in cleaned.columns
    assert RAW_TARGET_COL not in cleaned.columns
    assert TARGET_COL in cleaned.columns
    np.testing.assert_array_equal(cleaned[TARGET_COL].values, raw_df[RAW_TARGET_COL].values)


def test_clean_does_not_mutate_input(raw_df):
    before = raw_df.copy()
    clean_churn_data(raw_df)
    pd.testing.assert_frame_equal(raw_df, before)


def test_clean_keeps_extra_columns(raw_df):
    extra = raw_df.assign(Notes="n/a")
    cleaned = clean_churn_data(extra)
    assert "Notes" in cleaned.columns
    assert cleaned.shape[1] == extra.shape[1] - 1


def test_clean_without_target_raises(raw_df):
    with pytest.raises(SchemaError, match="Exited"):
        clean_churn_data(raw_df.drop(columns=["Exited"]))


def test_clean_without_feature_columns_raises(raw_df):
    with pytest.raises(SchemaError, match="Gender"):
        clean_churn_data(raw_df.drop(columns=["Gender", "Age"]))


def test_clean_refuses_existing_churn_column(raw_df):
    with pytest.raises(SchemaError, match="already present"):
        clean_churn_data(raw_df.assign(Churn=0))


def test_verify_passes_clean_table(raw_df):
    cleaned = clean_churn_data(raw_df)
    assert verify_data_quality(cleaned) is cleaned


def test_verify_rejects_duplicate_row(raw_df):
    # Same customer twice under a different row number: identical once RowNumber is gone
    dup = raw_df.iloc[[5]].assign(RowNumber=len(raw_df) + 1)
    cleaned = clean_churn_data(pd.concat([raw_df, dup], ignore_index=True))
    with pytest.raises(DataQualityError, match="1 duplicate"):
        verify_data_quality(cleaned)
    assert len(cleaned) == len(raw_df) + 1


def test_verify_rejects_missing_values(raw_df):
    holed = raw_df.copy()
    holed.loc[10, "Balance"] = np.nan
    with pytest.raises(DataQualityError, match="Balance"):
        verify_data_quality(clean_churn_data(holed))


def test_save_schema_round_trips_fields(tmp_path):
    out = tmp_path / "models" / "feature_schema.json"
    save_schema(get_feature_schema(), out)
    with out.open("r", encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["target"] == TARGET_COL
    assert "Surname" in saved["id_cols"]
    assert "Surname" not in saved["feature_cols"]

import pandas as pd
import pytest

from bank_churn.config import TARGET_COL
from bank_churn.data_io import clean_churn_data
from bank_churn.errors import ParameterError
from bank_churn.features import to_numeric_view
from bank_churn.splitting import class_proportions, stratified_split


@pytest.fixture
def numeric(raw_df):
    return to_numeric_view(clean_churn_data(raw_df))


def test_split_sizes_and_disjoint(numeric):
    split = stratified_split(numeric, TARGET_COL, 0.8, seed=42)
    assert len(split.train) == 480
    assert len(split.test) == 120
    assert split.train.index.intersection(split.test.index).empty
    assert split.train.index.union(split.test.index).sort_values().equals(numeric.index)


def test_split_is_deterministic(numeric):
    a = stratified_split(numeric, TARGET_COL, 0.8, seed=42)
    b = stratified_split(numeric, TARGET_COL, 0.8, seed=42)
    assert a.train.index.equals(b.train.index)
    assert a.test.index.equals(b.test.index)


def test_different_seed_changes_partition(numeric):
    a = stratified_split(numeric, TARGET_COL, 0.8, seed=42)
    b = stratified_split(numeric, TARGET_COL, 0.8, seed=7)
    assert not a.test.index.sort_values().equals(b.test.index.sort_values())


def test_split_keeps_class_proportions(numeric):
    split = stratified_split(numeric, TARGET_COL, 0.8, seed=42)
    full = class_proportions(numeric, TARGET_COL)
    for part in (split.train, split.test):
        diff = (class_proportions(part, TARGET_COL) - full).abs()
        assert diff.max() <= 0.05


def test_split_does_not_mutate_input(numeric):
    before = numeric.copy()
    stratified_split(numeric, TARGET_COL, 0.8, seed=1)
    pd.testing.assert_frame_equal(numeric, before)


@pytest.mark.parametrize("fraction", [0.0, 1.0, -0.2, 1.5])
def test_fraction_outside_unit_interval_raises(numeric, fraction):
    with pytest.raises(ParameterError, match="train_fraction"):
        stratified_split(numeric, TARGET_COL, fraction, seed=42)


def test_singleton_class_raises(numeric):
    lonely = numeric.copy()
    lonely[TARGET_COL] = 0
    lonely.iloc[0, lonely.columns.get_loc(TARGET_COL)] = 1
    with pytest.raises(ParameterError, match="at least 2"):
        stratified_split(lonely, TARGET_COL, 0.8, seed=42)


def test_missing_target_raises(numeric):
    with pytest.raises(ParameterError, match="not found"):
        stratified_split(numeric, "Exited", 0.8, seed=42)


def test_too_few_rows_for_each_subset_raises():
    tiny = pd.DataFrame({"x": range(5), TARGET_COL: [0, 0, 0, 1, 1]})
    with pytest.raises(ParameterError, match="fewer than the 2 classes"):
        stratified_split(tiny, TARGET_COL, 0.8, seed=42)


@pytest.mark.parametrize("n_rows, fraction", [(600, 0.8), (10, 0.7), (33, 0.3), (1000, 0.57)])
def test_sizes_match_train_test_split(n_rows, fraction):
    table = pd.DataFrame({"x": range(n_rows), TARGET_COL: [i % 2 for i in range(n_rows)]})
    split = stratified_split(table, TARGET_COL, fraction, seed=0)
    assert len(split.train) == int(fraction * n_rows)
    assert len(split.test) == n_rows - len(split.train)

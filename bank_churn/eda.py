"""
Exploratory data analysis (EDA) utilities.

This module produces the descriptive statistics and a small set of plots:
- Class balance (churn vs retained)
- Churn rate by categorical fields
- Numeric distributions split by churn
- Correlation heatmap (numeric view)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .config import BINARY_COLS, CATEGORICAL_COLS, CHURN_LEVELS, FEATURE_COLS, POSITIVE_LABEL, TARGET_COL

logger = logging.getLogger(__name__)

# Continuous fields worth a distribution plot
DISTRIBUTION_COLS = ["CreditScore", "Age", "Tenure", "Balance", "NumOfProducts", "EstimatedSalary"]


def _savefig(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=200)
    plt.close(fig)


def describe_dataset(display_df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """
    Summary statistics for numeric fields and level counts for the categoricals.
    """
    numeric_summary = display_df[DISTRIBUTION_COLS].describe().T

    churn = display_df[TARGET_COL].value_counts().reindex(CHURN_LEVELS, fill_value=0)
    churn_summary = pd.DataFrame({"count": churn, "share": churn / churn.sum()})

    level_counts = {
        col: display_df[col].value_counts().sort_index()
        for col in CATEGORICAL_COLS + BINARY_COLS
    }
    categorical_summary = pd.concat(level_counts, names=["column", "level"]).rename("count").to_frame()

    logger.info(
        "Churn split: %s",
        ", ".join(f"{lvl}={share:.2%}" for lvl, share in churn_summary["share"].items()),
    )
    return {
        "numeric": numeric_summary,
        "churn": churn_summary,
        "categorical": categorical_summary,
    }


def plot_class_balance(display_df: pd.DataFrame, out_path: Path) -> None:
    """
    Plot churn vs non-churn counts.
    """
    counts = display_df[TARGET_COL].value_counts().reindex(CHURN_LEVELS, fill_value=0)

    fig = plt.figure(figsize=(6, 4))
    plt.bar([f"Churn: {lvl}" for lvl in counts.index], counts.values)
    plt.title("Class Balance (Churn vs Non-churn)")
    plt.ylabel("Number of customers")
    _savefig(fig, out_path)


def plot_churn_by_categorical(display_df: pd.DataFrame, cat_cols: List[str], out_path: Path) -> None:
    """
    Plot churn rate by each categorical column.
    """
    is_churn = (display_df[TARGET_COL] == POSITIVE_LABEL).astype(float)

    n = len(cat_cols)
    fig = plt.figure(figsize=(7, 3.5 * n))

    for i, col in enumerate(cat_cols, start=1):
        ax = plt.subplot(n, 1, i)
        rates = is_churn.groupby(display_df[col], observed=True).mean().sort_values(ascending=False)
        ax.bar(rates.index.astype(str), rates.values)
        ax.set_title(f"Churn rate by {col}")
        ax.set_ylabel("Churn rate")
        ax.set_ylim(0, max(0.05, rates.max() * 1.15))
        ax.tick_params(axis="x", rotation=0)

    _savefig(fig, out_path)


def plot_numeric_distributions(display_df: pd.DataFrame, num_cols: List[str], out_path: Path) -> None:
    """
    Plot numeric distributions for churn vs non-churn.
    """
    churn = display_df[display_df[TARGET_COL] == POSITIVE_LABEL]
    non = display_df[display_df[TARGET_COL] != POSITIVE_LABEL]

    n = len(num_cols)
    fig = plt.figure(figsize=(7, 2.8 * n))

    for i, col in enumerate(num_cols, start=1):
        ax = plt.subplot(n, 1, i)

        # Use shared bins for fair comparison
        values = display_df[col].dropna().values
        bins = np.histogram_bin_edges(values, bins=min(30, max(10, int(np.sqrt(len(values))))))

        ax.hist(non[col].dropna(), bins=bins, alpha=0.6, label="Churn: No")
        ax.hist(churn[col].dropna(), bins=bins, alpha=0.6, label="Churn: Yes")
        ax.set_title(f"Distribution of {col}")
        ax.set_ylabel("Count")
        ax.legend()

    _savefig(fig, out_path)


def correlation_matrix(numeric_df: pd.DataFrame) -> pd.DataFrame:
    """
    Pearson correlations between model inputs and the target (numeric view).
    """
    return numeric_df[FEATURE_COLS + [TARGET_COL]].corr()


def plot_correlation_heatmap(numeric_df: pd.DataFrame, out_path: Path) -> None:
    """
    Correlation heatmap for the numeric view (including target for a quick signal check).
    """
    corr_df = correlation_matrix(numeric_df)

    fig = plt.figure(figsize=(8, 7))
    plt.imshow(corr_df.values, aspect="auto", vmin=-1, vmax=1, cmap="coolwarm")
    plt.xticks(range(len(corr_df.columns)), corr_df.columns, rotation=90)
    plt.yticks(range(len(corr_df.index)), corr_df.index)
    plt.title("Correlation heatmap (numeric features + target)")
    plt.colorbar()
    _savefig(fig, out_path)


def run_eda(display_df: pd.DataFrame, numeric_df: pd.DataFrame, figures_dir: Path) -> Dict[str, pd.DataFrame]:
    """
    Generate all EDA plots to the figures directory and return the summary tables.
    """
    summary = describe_dataset(display_df)

    plot_class_balance(display_df, figures_dir / "class_balance.png")
    plot_churn_by_categorical(
        display_df,
        CATEGORICAL_COLS + BINARY_COLS + ["NumOfProducts"],
        figures_dir / "churn_by_category.png",
    )
    plot_numeric_distributions(display_df, DISTRIBUTION_COLS, figures_dir / "numeric_distributions.png")
    plot_correlation_heatmap(numeric_df, figures_dir / "correlation_heatmap.png")

    logger.info("EDA figures written to %s", figures_dir)
    return summary

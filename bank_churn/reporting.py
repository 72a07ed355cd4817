"""
Reporting for fitted models.

Feature importance is ranked under two schemes that are never combined:
- permutation: mean accuracy drop when a column is shuffled
- impurity: total Gini decrease attributed to the column by the fitted trees
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
from sklearn.inspection import permutation_importance
from sklearn.tree import plot_tree

from .config import CHURN_LEVELS, DECISION_TREE
from .modeling import ModelArtifact

logger = logging.getLogger(__name__)


def _savefig(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=200)
    plt.close(fig)


@dataclass(frozen=True)
class ImportanceRanking:
    permutation: pd.DataFrame
    impurity: pd.DataFrame


def rank_feature_importance(
    artifact: ModelArtifact,
    X: pd.DataFrame,
    y: pd.Series,
    n_repeats: int = 8,
    random_state: int = 42,
) -> ImportanceRanking:
    """
    Rank features by permutation importance on (X, y) and by impurity decrease.

    Each table has columns `feature`, `importance` (plus `std` for permutation)
    and `rank` (1 = most important), sorted by rank.
    """
    artifact.require_ready()
    X = X[artifact.feature_names]
    result = permutation_importance(
        artifact.estimator,
        X,
        y,
        n_repeats=n_repeats,
        random_state=random_state,
        scoring="accuracy",
    )
    permutation = pd.DataFrame(
        {
            "feature": artifact.feature_names,
            "importance": result.importances_mean,
            "std": result.importances_std,
        }
    )

    impurity = pd.DataFrame(
        {
            "feature": artifact.feature_names,
            "importance": artifact.estimator.feature_importances_,
        }
    )

    return ImportanceRanking(permutation=_rank(permutation), impurity=_rank(impurity))


def _rank(table: pd.DataFrame) -> pd.DataFrame:
    ranked = table.sort_values("importance", ascending=False, kind="stable").reset_index(drop=True)
    ranked["rank"] = range(1, len(ranked) + 1)
    return ranked


def plot_feature_importance(ranking: ImportanceRanking, title: str, out_path: Path, top_n: int = 15) -> None:
    """
    Both importance rankings side by side, each in its own order.
    """
    fig, (ax_perm, ax_imp) = plt.subplots(1, 2, figsize=(12, 5))

    perm = ranking.permutation.head(top_n)
    ax_perm.barh(perm["feature"][::-1], perm["importance"][::-1], xerr=perm["std"][::-1])
    ax_perm.set_title("Permutation importance")
    ax_perm.set_xlabel("Mean decrease in accuracy")

    imp = ranking.impurity.head(top_n)
    ax_imp.barh(imp["feature"][::-1], imp["importance"][::-1])
    ax_imp.set_title("Impurity importance")
    ax_imp.set_xlabel("Mean decrease in Gini")

    fig.suptitle(title)
    _savefig(fig, out_path)


def plot_cv_curve(artifact: ModelArtifact, out_path: Path) -> None:
    """
    Mean CV accuracy (with one std band) across the hyperparameter grid.
    """
    res = artifact.cv_results
    fig = plt.figure(figsize=(6, 4))
    plt.plot(res["value"], res["mean_accuracy"], marker="o")
    plt.fill_between(
        res["value"],
        res["mean_accuracy"] - res["std_accuracy"],
        res["mean_accuracy"] + res["std_accuracy"],
        alpha=0.2,
    )
    plt.axvline(artifact.best_value, linestyle="--")
    plt.title(f"{artifact.family}: {artifact.folds}-fold CV accuracy")
    plt.xlabel(artifact.param_name)
    plt.ylabel("Accuracy (cross-validation)")
    _savefig(fig, out_path)


def plot_decision_tree(artifact: ModelArtifact, out_path: Path, max_depth: int = 4) -> None:
    if artifact.family != DECISION_TREE:
        logger.debug("Skipping tree plot for %s", artifact.family)
        return

    fig = plt.figure(figsize=(16, 8))
    plot_tree(
        artifact.estimator,
        feature_names=artifact.feature_names,
        class_names=CHURN_LEVELS,
        filled=True,
        max_depth=max_depth,
        fontsize=7,
    )
    plt.title(f"Decision tree ({artifact.param_name}={artifact.best_value})")
    _savefig(fig, out_path)

"""
Modeling utilities:
- Build the candidate estimators (decision tree, random forest)
- Cross-validated grid search over one complexity hyperparameter
- The fitted ModelArtifact consumed by evaluation and reporting
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.ensemble import RandomForestClassifier
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.tree import DecisionTreeClassifier

from .config import DECISION_TREE, MODEL_FAMILIES, N_TREES, RANDOM_FOREST
from .errors import ParameterError
from .features import split_features_target

logger = logging.getLogger(__name__)

# Hyperparameter tuned for each family: cost-complexity pruning for the tree
# (rpart's cp), candidate features per split for the forest (mtry).
TUNED_PARAM = {
    DECISION_TREE: "ccp_alpha",
    RANDOM_FOREST: "max_features",
}


class TrainingState(str, Enum):
    UNTRAINED = "untrained"
    CROSS_VALIDATING = "cross_validating"
    BEST_SELECTED = "best_selected"
    REFIT = "refit"
    READY = "ready"


@dataclass
class ModelArtifact:
    """
    A fitted classifier plus how it was chosen.

    cv_results has one row per grid point, in grid order, with columns
    `value`, `mean_accuracy` and `std_accuracy`.
    """
    family: str
    estimator: BaseEstimator
    param_name: str
    best_value: object
    cv_results: pd.DataFrame
    feature_names: List[str]
    folds: int
    seed: int
    state: TrainingState = field(default=TrainingState.UNTRAINED)

    @property
    def best_cv_accuracy(self) -> float:
        return float(self.cv_results["mean_accuracy"].max())

    def require_ready(self) -> None:
        if self.state is not TrainingState.READY:
            raise RuntimeError(
                f"Model {self.family!r} is in state {self.state.value!r}; only ready models can predict."
            )

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        self.require_ready()
        return self.estimator.predict(X[self.feature_names])

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        """
        Probability of the positive (churn) class.
        """
        self.require_ready()
        return self.estimator.predict_proba(X[self.feature_names])[:, 1]


def make_estimator(family: str, random_state: int = 42, n_estimators: int = N_TREES) -> BaseEstimator:
    """
    Define the untuned classifier for a model family.
    """
    if family == DECISION_TREE:
        return DecisionTreeClassifier(criterion="gini", random_state=random_state)
    if family == RANDOM_FOREST:
        return RandomForestClassifier(
            n_estimators=n_estimators,
            random_state=random_state,
            n_jobs=-1,
        )
    raise ParameterError(f"Unknown model family {family!r}; expected one of {MODEL_FAMILIES}")


def _advance(family: str, current: TrainingState, new: TrainingState) -> TrainingState:
    logger.debug("%s: %s -> %s", family, current.value, new.value)
    return new


def train_model(
    train_df: pd.DataFrame,
    family: str,
    grid: Sequence,
    folds: int,
    seed: int = 42,
    n_estimators: int = N_TREES,
    n_jobs: Optional[int] = None,
) -> ModelArtifact:
    """
    Tune one hyperparameter by stratified k-fold CV, then refit on all of train_df.

    The grid point with the highest mean held-out-fold accuracy wins; ties go
    to the earliest grid point. Fold assignment is fixed by `seed`, so the
    outcome does not depend on `n_jobs`.
    """
    if family not in TUNED_PARAM:
        raise ParameterError(f"Unknown model family {family!r}; expected one of {MODEL_FAMILIES}")
    grid = list(grid)
    if not grid:
        raise ParameterError(f"Hyperparameter grid for {family!r} is empty")
    if folds < 2:
        raise ParameterError(f"Need at least 2 CV folds, got {folds}")
    if folds > len(train_df):
        raise ParameterError(
            f"CV folds ({folds}) exceed the number of training rows ({len(train_df)})"
        )

    X_train, y_train = split_features_target(train_df)
    param_name = TUNED_PARAM[family]
    state = TrainingState.UNTRAINED

    estimator = make_estimator(family, random_state=seed, n_estimators=n_estimators)
    cv = StratifiedKFold(n_splits=folds, shuffle=True, random_state=seed)
    search = GridSearchCV(
        estimator=estimator,
        param_grid={param_name: grid},
        scoring="accuracy",
        cv=cv,
        refit=False,
        error_score="raise",
        n_jobs=n_jobs,
        verbose=0,
    )

    state = _advance(family, state, TrainingState.CROSS_VALIDATING)
    logger.info(
        "%s: %d-fold CV over %s=%s (%d fits)",
        family, folds, param_name, grid, folds * len(grid),
    )
    try:
        search.fit(X_train, y_train)
    except ValueError as err:
        raise ParameterError(
            f"{family}: CV fit failed for {param_name} grid {grid}: {err}"
        ) from err

    cv_results = pd.DataFrame(
        {
            "value": grid,
            "mean_accuracy": search.cv_results_["mean_test_score"],
            "std_accuracy": search.cv_results_["std_test_score"],
        }
    )
    # np.argmax returns the first maximum, which keeps grid order on ties
    best_idx = int(np.argmax(cv_results["mean_accuracy"].to_numpy()))
    best_value = grid[best_idx]
    state = _advance(family, state, TrainingState.BEST_SELECTED)
    logger.info(
        "%s: best %s=%s (mean CV accuracy %.4f)",
        family, param_name, best_value, cv_results["mean_accuracy"].iloc[best_idx],
    )

    state = _advance(family, state, TrainingState.REFIT)
    final = make_estimator(family, random_state=seed, n_estimators=n_estimators)
    final.set_params(**{param_name: best_value})
    final.fit(X_train, y_train)

    state = _advance(family, state, TrainingState.READY)
    return ModelArtifact(
        family=family,
        estimator=final,
        param_name=param_name,
        best_value=best_value,
        cv_results=cv_results,
        feature_names=list(X_train.columns),
        folds=folds,
        seed=seed,
        state=state,
    )


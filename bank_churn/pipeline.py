"""
End-to-end run: load -> clean -> typed views -> split -> train -> evaluate -> report.

Every stage returns a new object, so each intermediate table can be inspected
or tested on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd
from joblib import dump

from .config import (
    CP_GRID,
    CV_FOLDS,
    DECISION_TREE,
    FIGURES_DIR,
    MODEL_FAMILIES,
    MODELS_DIR,
    MTRY_GRID,
    N_TREES,
    RANDOM_FOREST,
    RANDOM_STATE,
    REPORTS_DIR,
    TARGET_COL,
    TRAIN_FRACTION,
)
from .data_io import clean_churn_data, get_feature_schema, load_churn_csv, save_schema, verify_data_quality
from .eda import describe_dataset, run_eda
from .evaluation import EvaluationResult, evaluate_model, plot_confusion, save_json
from .features import split_features_target, to_display_view, to_numeric_view
from .modeling import ModelArtifact, train_model
from .reporting import (
    ImportanceRanking,
    plot_cv_curve,
    plot_decision_tree,
    plot_feature_importance,
    rank_feature_importance,
)
from .splitting import DataSplit, class_proportions, stratified_split

logger = logging.getLogger(__name__)

DEFAULT_GRIDS = {
    DECISION_TREE: CP_GRID,
    RANDOM_FOREST: MTRY_GRID,
}


@dataclass(frozen=True)
class RunConfig:
    train_fraction: float = TRAIN_FRACTION
    folds: int = CV_FOLDS
    seed: int = RANDOM_STATE
    families: Sequence[str] = tuple(MODEL_FAMILIES)
    grids: Dict[str, List] = field(default_factory=lambda: dict(DEFAULT_GRIDS))
    n_estimators: int = N_TREES
    n_jobs: Optional[int] = -1
    # None disables writing figures, tables and models
    reports_dir: Optional[Path] = REPORTS_DIR
    figures_dir: Optional[Path] = FIGURES_DIR
    models_dir: Optional[Path] = MODELS_DIR


@dataclass
class PipelineResult:
    cleaned: pd.DataFrame
    display: pd.DataFrame
    numeric: pd.DataFrame
    split: DataSplit
    summary: Dict[str, pd.DataFrame]
    artifacts: Dict[str, ModelArtifact]
    evaluations: Dict[str, EvaluationResult]
    importances: Dict[str, ImportanceRanking]


def prepare_data(raw: pd.DataFrame):
    """
    Clean and verify the raw table, then derive the display and numeric views.
    """
    cleaned = verify_data_quality(clean_churn_data(raw))
    return cleaned, to_display_view(cleaned), to_numeric_view(cleaned)


def run_pipeline(csv_path: Path, config: Optional[RunConfig] = None) -> PipelineResult:
    """
    Run the full analysis for one CSV file.
    """
    config = config or RunConfig()
    raw = load_churn_csv(csv_path)
    cleaned, display, numeric = prepare_data(raw)

    if config.models_dir is not None:
        save_schema(get_feature_schema(), config.models_dir / "feature_schema.json")

    # -------------------------
    # EDA
    # -------------------------
    if config.figures_dir is not None:
        summary = run_eda(display, numeric, config.figures_dir)
    else:
        summary = describe_dataset(display)
    if config.reports_dir is not None:
        config.reports_dir.mkdir(parents=True, exist_ok=True)
        summary["numeric"].to_csv(config.reports_dir / "summary_statistics.csv")

    # -------------------------
    # Hold out the test split before any tuning
    # -------------------------
    split = stratified_split(numeric, TARGET_COL, config.train_fraction, config.seed)
    logger.info(
        "Churn share full/train/test: %.4f / %.4f / %.4f",
        class_proportions(numeric, TARGET_COL).get(1, 0.0),
        class_proportions(split.train, TARGET_COL).get(1, 0.0),
        class_proportions(split.test, TARGET_COL).get(1, 0.0),
    )
    X_test, y_test = split_features_target(split.test)

    artifacts: Dict[str, ModelArtifact] = {}
    evaluations: Dict[str, EvaluationResult] = {}
    importances: Dict[str, ImportanceRanking] = {}

    for family in config.families:
        artifact = train_model(
            split.train,
            family,
            grid=config.grids.get(family, ()),
            folds=config.folds,
            seed=config.seed,
            n_estimators=config.n_estimators,
            n_jobs=config.n_jobs,
        )
        evaluation = evaluate_model(artifact, split.test)
        ranking = rank_feature_importance(artifact, X_test, y_test, random_state=config.seed)

        artifacts[family] = artifact
        evaluations[family] = evaluation
        importances[family] = ranking

        if config.figures_dir is not None:
            plot_cv_curve(artifact, config.figures_dir / f"{family}_cv_curve.png")
            plot_confusion(
                evaluation.confusion,
                f"{family}: confusion matrix (test)",
                config.figures_dir / f"{family}_confusion_matrix.png",
            )
            plot_feature_importance(
                ranking,
                f"{family}: feature importance",
                config.figures_dir / f"{family}_feature_importance.png",
            )
            plot_decision_tree(artifact, config.figures_dir / f"{family}_tree.png")
        if config.reports_dir is not None:
            ranking.permutation.to_csv(config.reports_dir / f"{family}_permutation_importance.csv", index=False)
            ranking.impurity.to_csv(config.reports_dir / f"{family}_impurity_importance.csv", index=False)
        if config.models_dir is not None:
            config.models_dir.mkdir(parents=True, exist_ok=True)
            dump(artifact, config.models_dir / f"{family}.joblib")

    if config.reports_dir is not None:
        save_json(_build_report(config, split, artifacts, evaluations), config.reports_dir / "metrics.json")

    return PipelineResult(
        cleaned=cleaned,
        display=display,
        numeric=numeric,
        split=split,
        summary=summary,
        artifacts=artifacts,
        evaluations=evaluations,
        importances=importances,
    )


def _build_report(
    config: RunConfig,
    split: DataSplit,
    artifacts: Dict[str, ModelArtifact],
    evaluations: Dict[str, EvaluationResult],
) -> Dict:
    models = {}
    for family, artifact in artifacts.items():
        evaluation = evaluations[family]
        models[family] = {
            "param_name": artifact.param_name,
            "best_value": artifact.best_value,
            "cv_best_accuracy": artifact.best_cv_accuracy,
            "cv_curve": artifact.cv_results.to_dict(orient="records"),
            "confusion_matrix": evaluation.confusion.to_dict(),
            "test_metrics": evaluation.metrics,
        }
    return {
        "seed": config.seed,
        "train_fraction": config.train_fraction,
        "folds": config.folds,
        "n_train": len(split.train),
        "n_test": len(split.test),
        "models": models,
    }

"""
Evaluation utilities:
- Confusion matrix over No/Yes churn labels
- Accuracy, sensitivity, specificity (nan when a denominator is zero)
- Threshold-free extras (ROC-AUC, top-k recall)
- Confusion matrix plot and JSON export
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix, roc_auc_score

from .config import CHURN_LEVELS, POSITIVE_LABEL, TARGET_COL
from .errors import DegenerateMetricError
from .modeling import ModelArtifact

logger = logging.getLogger(__name__)


def _savefig(fig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=200)
    plt.close(fig)


def _ratio(num: int, den: int, name: str, strict: bool) -> float:
    if den == 0:
        if strict:
            raise DegenerateMetricError(f"{name} is undefined: denominator is 0")
        return float("nan")
    return num / den


@dataclass(frozen=True)
class ConfusionMatrix:
    """
    2x2 counts of predicted vs actual churn, with Yes as the positive class.
    """
    tn: int
    fp: int
    fn: int
    tp: int

    @classmethod
    def from_labels(cls, actual: Sequence[str], predicted: Sequence[str]) -> "ConfusionMatrix":
        cm = confusion_matrix(actual, predicted, labels=CHURN_LEVELS)
        (tn, fp), (fn, tp) = cm.tolist()
        return cls(tn=int(tn), fp=int(fp), fn=int(fn), tp=int(tp))

    @property
    def total(self) -> int:
        return self.tn + self.fp + self.fn + self.tp

    def accuracy(self, strict: bool = False) -> float:
        return _ratio(self.tp + self.tn, self.total, "accuracy", strict)

    def sensitivity(self, strict: bool = False) -> float:
        return _ratio(self.tp, self.tp + self.fn, "sensitivity", strict)

    def specificity(self, strict: bool = False) -> float:
        return _ratio(self.tn, self.tn + self.fp, "specificity", strict)

    def precision(self, strict: bool = False) -> float:
        return _ratio(self.tp, self.tp + self.fp, "precision", strict)

    def f1(self, strict: bool = False) -> float:
        return _ratio(2 * self.tp, 2 * self.tp + self.fp + self.fn, "f1", strict)

    def as_array(self) -> np.ndarray:
        """
        Rows = actual (No, Yes), columns = predicted (No, Yes).
        """
        return np.array([[self.tn, self.fp], [self.fn, self.tp]])

    def to_dict(self) -> Dict[str, int]:
        return {"tn": self.tn, "fp": self.fp, "fn": self.fn, "tp": self.tp}


@dataclass(frozen=True)
class EvaluationResult:
    family: str
    confusion: ConfusionMatrix
    metrics: Dict[str, float]
    predictions: pd.Series
    probabilities: pd.Series


def to_labels(codes) -> np.ndarray:
    """
    Map 0/1 churn codes to their No/Yes labels.
    """
    return np.asarray(CHURN_LEVELS, dtype=object)[np.asarray(codes, dtype=int)]


def top_k_recall(y_true: np.ndarray, y_prob: np.ndarray, top_frac: float = 0.1) -> float:
    """
    Metric: among the top X% highest-risk customers,
    what fraction of all churners do we capture?
    """
    n = len(y_true)
    k = max(1, int(np.ceil(n * top_frac)))
    idx = np.argsort(-y_prob, kind="stable")[:k]
    captured_churners = y_true[idx].sum()
    total_churners = y_true.sum()
    return float(captured_churners / total_churners) if total_churners > 0 else float("nan")


def compute_metrics(cm: ConfusionMatrix, y_true: np.ndarray, y_prob: np.ndarray) -> Dict[str, float]:
    """
    Confusion-matrix metrics plus threshold-free ones computed from probabilities.
    """
    metrics = {
        "accuracy": cm.accuracy(),
        "sensitivity": cm.sensitivity(),
        "specificity": cm.specificity(),
        "precision": cm.precision(),
        "f1": cm.f1(),
    }
    if len(np.unique(y_true)) == 2:
        metrics["roc_auc"] = float(roc_auc_score(y_true, y_prob))
    else:
        metrics["roc_auc"] = float("nan")
    metrics["top_10pct_recall"] = top_k_recall(y_true, y_prob, top_frac=0.10)
    return metrics


def evaluate_model(artifact: ModelArtifact, test_df: pd.DataFrame) -> EvaluationResult:
    """
    Score a ready model on the held-out numeric test view.

    Pure function of (artifact, test_df): nothing is written.
    """
    y_true = test_df[TARGET_COL].astype(int).to_numpy()
    y_pred = artifact.predict(test_df)
    y_prob = artifact.predict_proba(test_df)

    actual = to_labels(y_true)
    predicted = to_labels(y_pred)
    cm = ConfusionMatrix.from_labels(actual, predicted)
    metrics = compute_metrics(cm, y_true, y_prob)

    logger.info(
        "%s on %d test rows: accuracy=%.4f sensitivity=%.4f specificity=%.4f",
        artifact.family, cm.total, metrics["accuracy"], metrics["sensitivity"], metrics["specificity"],
    )
    if math.isnan(metrics["sensitivity"]) or math.isnan(metrics["specificity"]):
        logger.warning("%s: some metrics are undefined on this test split (%s)", artifact.family, cm.to_dict())

    return EvaluationResult(
        family=artifact.family,
        confusion=cm,
        metrics=metrics,
        predictions=pd.Series(predicted, index=test_df.index, name="predicted"),
        probabilities=pd.Series(y_prob, index=test_df.index, name=f"p_{POSITIVE_LABEL.lower()}"),
    )


def plot_confusion(cm: ConfusionMatrix, title: str, out_path: Path) -> None:
    fig = plt.figure(figsize=(5.5, 4.8))
    plt.imshow(cm.as_array(), aspect="auto")
    plt.title(title)
    plt.xticks([0, 1], [f"Pred {label}" for label in CHURN_LEVELS])
    plt.yticks([0, 1], [f"True {label}" for label in CHURN_LEVELS])
    plt.colorbar()

    # Add counts as text
    for (i, j), val in np.ndenumerate(cm.as_array()):
        plt.text(j, i, str(val), ha="center", va="center")

    _savefig(fig, out_path)


def _json_safe(value):
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def save_json(obj: Dict, path: Path) -> None:
    """
    Write obj as JSON; nan floats become null.
    """
    def clean(o):
        if isinstance(o, dict):
            return {k: clean(v) for k, v in o.items()}
        if isinstance(o, list):
            return [clean(v) for v in o]
        return _json_safe(o)

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(clean(obj), f, indent=2)

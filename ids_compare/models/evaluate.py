from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import classification_report, confusion_matrix

from ids_compare.features.columns_nsl_kdd import LABELS
from ids_compare.utils.errors import UnknownLabel
from ids_compare.utils.io import ensure_dir, save_frame, save_json
from ids_compare.utils.logging import get_logger

logger = get_logger(__name__)


def _check_inputs(predicted, actual, labels: Sequence[str]):
    predicted = np.asarray(predicted, dtype=object)
    actual = np.asarray(actual, dtype=object)
    if predicted.shape != actual.shape:
        raise ValueError(f"predicted has {predicted.shape[0]} labels, actual has {actual.shape[0]}")
    if actual.size == 0:
        raise ValueError("Cannot score an empty evaluation set")
    known = set(labels)
    for value in np.concatenate([predicted, actual]):
        if value not in known:
            raise UnknownLabel(value)
    return predicted, actual


def confusion(predicted, actual, labels: Sequence[str] = LABELS) -> pd.DataFrame:
    """Counts over the fixed label space; rows are true labels, columns predicted."""
    predicted, actual = _check_inputs(predicted, actual, labels)
    cm = confusion_matrix(actual, predicted, labels=list(labels))
    return pd.DataFrame(
        cm,
        index=pd.Index(list(labels), name="actual"),
        columns=pd.Index(list(labels), name="predicted"),
    )


def per_class_scores(cm: pd.DataFrame) -> pd.DataFrame:
    """Precision, recall, F1 and support per class; any 0/0 ratio counts as 0."""
    counts = cm.to_numpy().astype(float)
    tp = np.diag(counts)
    predicted_totals = counts.sum(axis=0)
    support = counts.sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        precision = np.where(predicted_totals > 0, tp / predicted_totals, 0.0)
        recall = np.where(support > 0, tp / support, 0.0)
        denom = precision + recall
        f1 = np.where(denom > 0, 2 * precision * recall / denom, 0.0)
    return pd.DataFrame(
        {
            "precision": precision,
            "recall": recall,
            "f1": f1,
            "support": support.astype(int),
        },
        index=cm.index.rename("class"),
    )


def weighted_f1(per_class: pd.DataFrame) -> float:
    total = per_class["support"].sum()
    if total == 0:
        return 0.0
    return float(100.0 * (per_class["f1"] * per_class["support"]).sum() / total)


def score(predicted, actual, labels: Sequence[str] = LABELS) -> float:
    """Support-weighted F1 over the label space, in percent."""
    return weighted_f1(per_class_scores(confusion(predicted, actual, labels)))


@dataclass(frozen=True)
class ScoreReport:
    model: str
    confusion: pd.DataFrame
    per_class: pd.DataFrame
    weighted_f1: float
    accuracy: float

    def summary(self) -> dict:
        return {
            "model": self.model,
            "weighted_f1": round(self.weighted_f1, 4),
            "accuracy": round(self.accuracy, 4),
            "n_examples": int(self.per_class["support"].sum()),
        }


def evaluate(predicted, actual, model: str = "", labels: Sequence[str] = LABELS) -> ScoreReport:
    cm = confusion(predicted, actual, labels)
    per_class = per_class_scores(cm)
    counts = cm.to_numpy()
    accuracy = float(100.0 * np.trace(counts) / counts.sum())
    report = ScoreReport(
        model=model,
        confusion=cm,
        per_class=per_class,
        weighted_f1=weighted_f1(per_class),
        accuracy=accuracy,
    )
    logger.info(f"[+] {model or 'model'}: weighted F1 = {report.weighted_f1:.2f}, accuracy = {accuracy:.2f}")
    return report


def write_report(report: ScoreReport, out_dir: Union[str, Path], predicted=None, actual=None) -> Path:
    out = ensure_dir(out_dir)
    name = report.model or "model"
    save_frame(report.confusion, out / f"cm_{name}.csv")
    save_frame(report.per_class, out / f"per_class_{name}.csv")
    save_json(report.summary(), out / f"metrics_{name}.json")
    with open(out / f"report_{name}.txt", "w", encoding="utf-8") as f:
        f.write(f"Model: {name}\n")
        f.write(f"Weighted F1: {report.weighted_f1:.2f}\n")
        f.write(f"Accuracy: {report.accuracy:.2f}\n\n")
        f.write("Confusion matrix (rows = actual, columns = predicted)\n")
        f.write(report.confusion.to_string())
        f.write("\n")
        if predicted is not None and actual is not None:
            f.write("\n")
            f.write(str(classification_report(
                np.asarray(actual), np.asarray(predicted), labels=list(LABELS), zero_division=0
            )))
    logger.info(f"[+] Saved metrics for {name} -> {out / f'metrics_{name}.json'}")
    return out / f"metrics_{name}.json"

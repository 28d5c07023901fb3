from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from joblib import dump, load
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis
from sklearn.ensemble import RandomForestClassifier
from sklearn.model_selection import GridSearchCV, StratifiedKFold

from ids_compare.utils.errors import SchemaMismatch
from ids_compare.utils.logging import get_logger

logger = get_logger(__name__)


class Model(ABC):
    """Training interface shared by both classifiers.

    - fit: train on a feature matrix and its labels
    - predict: labels for a matrix with the same columns, in the same order
    - save_model/load_model: persist and restore with joblib
    """

    name = "model"

    def __init__(self, random_state: Optional[int] = 42) -> None:
        self.model: Any = None
        self.random_state = random_state
        self.feature_names: Optional[List[str]] = None
        self._is_fitted = False

    @abstractmethod
    def _build(self) -> Any:
        raise NotImplementedError

    def fit(self, X: pd.DataFrame, y) -> "Model":
        self.feature_names = [str(c) for c in X.columns]
        self.model = self._build()
        logger.info(f"[+] Training {self.name} on {X.shape[0]} rows x {X.shape[1]} features")
        self.model.fit(X.to_numpy(), np.asarray(y))
        self._is_fitted = True
        return self

    def _check_columns(self, X: pd.DataFrame) -> None:
        cols = [str(c) for c in X.columns]
        if cols != self.feature_names:
            missing = [c for c in self.feature_names if c not in cols]
            unexpected = [c for c in cols if c not in self.feature_names]
            raise SchemaMismatch(
                f"{self.name}: feature columns differ from training "
                f"(missing={missing}, unexpected={unexpected}, same set but reordered={not missing and not unexpected})",
                missing=missing,
                unexpected=unexpected,
            )

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        if not self._is_fitted:
            raise RuntimeError("Model not fitted")
        self._check_columns(X)
        return self.model.predict(X.to_numpy())

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        if not self._is_fitted:
            raise RuntimeError("Model not fitted")
        self._check_columns(X)
        return self.model.predict_proba(X.to_numpy())

    @property
    def classes_(self) -> np.ndarray:
        return self.model.classes_

    def save_model(self, path) -> None:
        if not self._is_fitted:
            raise RuntimeError("Model not fitted")
        dump(self, path)
        logger.info(f"[+] Saved {self.name} -> {path}")

    @classmethod
    def load_model(cls, path) -> "Model":
        inst = load(path)
        if not isinstance(inst, cls):
            raise TypeError(f"{path} holds a {type(inst).__name__}, not a {cls.__name__}")
        return inst


class LDAModel(Model):
    """Shared-covariance Gaussian classes, linear boundaries, argmax posterior."""

    name = "lda"

    def __init__(self, solver: str = "svd", priors=None, random_state: Optional[int] = 42) -> None:
        super().__init__(random_state=random_state)
        self.solver = solver
        self.priors = priors

    def _build(self) -> LinearDiscriminantAnalysis:
        return LinearDiscriminantAnalysis(solver=self.solver, priors=self.priors)


class RandomForestModel(Model):
    name = "rf"

    def __init__(
        self,
        n_estimators: int = 500,
        max_features: Any = "sqrt",
        min_samples_leaf: int = 1,
        max_depth: Optional[int] = None,
        min_samples_split: int = 2,
        n_jobs: int = -1,
        random_state: Optional[int] = 42,
    ) -> None:
        super().__init__(random_state=random_state)
        self.n_estimators = int(n_estimators)
        self.max_features = max_features
        self.min_samples_leaf = min_samples_leaf
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.n_jobs = n_jobs

    def _build(self) -> RandomForestClassifier:
        return RandomForestClassifier(
            n_estimators=self.n_estimators,
            criterion="gini",
            max_features=self.max_features,
            min_samples_leaf=self.min_samples_leaf,
            max_depth=self.max_depth,
            min_samples_split=self.min_samples_split,
            bootstrap=True,
            n_jobs=self.n_jobs,
            random_state=self.random_state,
        )

    def feature_importances(self) -> pd.Series:
        """Mean decrease in Gini impurity per feature, scaled so the largest is 1.0."""
        if not self._is_fitted:
            raise RuntimeError("Model not fitted")
        imp = pd.Series(self.model.feature_importances_, index=self.feature_names, name="importance")
        top = imp.max()
        if top > 0:
            imp = imp / top
        return imp.sort_values(ascending=False, kind="mergesort")


def select_features(importances: pd.Series, top_n: Optional[int] = None, threshold: Optional[float] = None) -> List[str]:
    """Feature names ranked by importance, cut to the first `top_n` and/or those >= `threshold`."""
    ranked = importances.sort_values(ascending=False, kind="mergesort")
    if threshold is not None:
        ranked = ranked[ranked >= threshold]
    if top_n is not None:
        ranked = ranked.iloc[:int(top_n)]
    if ranked.empty:
        raise ValueError("No features left after selection")
    return list(ranked.index)


# RandomForestModel constructor arguments that map 1:1 onto RandomForestClassifier
TUNABLE_RF_PARAMS = ("max_features", "min_samples_leaf", "max_depth", "min_samples_split")


REGISTRY = {
    "lda": LDAModel,
    "rf": RandomForestModel,
}


def train(name: str, features: pd.DataFrame, labels, **params) -> Model:
    try:
        cls = REGISTRY[name]
    except KeyError:
        raise ValueError(f"Unknown model name: {name!r} (choose from {sorted(REGISTRY)})") from None
    return cls(**params).fit(features, labels)


def predict(model: Model, features: pd.DataFrame) -> np.ndarray:
    return model.predict(features)


def tune_random_forest(
    features: pd.DataFrame,
    labels,
    grid: Dict[str, list],
    n_estimators: int = 100,
    cv_splits: int = 3,
    random_state: int = 42,
) -> Dict[str, Any]:
    """Grid search RF hyperparameters on stratified folds, scored by weighted F1."""
    unsupported = sorted(set(grid) - set(TUNABLE_RF_PARAMS))
    if unsupported:
        raise ValueError(f"Grid keys not accepted by RandomForestModel: {unsupported} (tunable: {list(TUNABLE_RF_PARAMS)})")
    clf = RandomForestClassifier(n_estimators=n_estimators, criterion="gini", random_state=random_state)
    cv = StratifiedKFold(n_splits=cv_splits, shuffle=True, random_state=random_state)
    gs = GridSearchCV(clf, grid, scoring="f1_weighted", cv=cv, n_jobs=-1, verbose=1)
    gs.fit(features.to_numpy(), np.asarray(labels))
    logger.info(f"[+] Best params: {gs.best_params_} (f1_weighted={gs.best_score_:.4f})")
    return dict(gs.best_params_)

from __future__ import annotations

import joblib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.svm import SVC

from tweetclf.utils.errors import ConfigurationError
from tweetclf.utils.logging import get_logger


@dataclass
class SVMConfig:
    kernel: str = "linear"
    C: float = 1.0
    gamma: Any = "scale"


@dataclass
class SVMSearchConfig:
    kernels: Sequence[str] = ("linear", "rbf")
    C_values: Sequence[float] = (0.1, 1.0, 10.0)
    gamma_values: Sequence[float] = (0.001, 0.01, 0.1)
    cv_folds: int = 10
    seed: int = 42


class SVMClassifier:
    def __init__(self, cfg: SVMConfig, model: Optional[SVC] = None):
        self.cfg = cfg
        self.model = model if model is not None else SVC(kernel=cfg.kernel, C=cfg.C, gamma=cfg.gamma)

    @property
    def classes_(self) -> np.ndarray:
        return self.model.classes_

    def fit(self, X, y):
        self.model.fit(X, y)
        return self

    def predict(self, X):
        return self.model.predict(X)

    def save(self, path: str):
        joblib.dump(self.model, path)

    def load(self, path: str):
        self.model = joblib.load(path)
        return self


@dataclass
class SearchResult:
    classifier: SVMClassifier
    best_params: Dict[str, Any]
    best_score: float
    cv_results: pd.DataFrame = field(repr=False)


def build_param_grid(cfg: SVMSearchConfig) -> List[Dict[str, list]]:
    """One sub-grid per kernel, values ascending so ties resolve to the smallest C/gamma."""
    grid = []
    for kernel in cfg.kernels:
        if kernel == "linear":
            grid.append({"kernel": ["linear"], "C": sorted(cfg.C_values)})
        elif kernel == "rbf":
            grid.append({"kernel": ["rbf"], "C": sorted(cfg.C_values), "gamma": sorted(cfg.gamma_values)})
        else:
            raise ConfigurationError(f"Unsupported kernel: {kernel}")
    if not grid:
        raise ConfigurationError("Empty hyperparameter grid")
    return grid


def check_fold_support(y, cv_folds: int) -> None:
    """Every label needs at least one member per fold."""
    counts = pd.Series(np.asarray(y)).value_counts()
    too_rare = counts[counts < cv_folds]
    if not too_rare.empty:
        detail = ", ".join(f"{label}={count}" for label, count in too_rare.sort_index().items())
        raise ConfigurationError(
            f"Cannot run {cv_folds}-fold stratified cross-validation: "
            f"label(s) with fewer than {cv_folds} training documents: {detail}"
        )


def grid_search_svm(X, y, cfg: SVMSearchConfig) -> SearchResult:
    """Pick kernel/C/gamma by k-fold CV accuracy and refit on all of ``X``."""
    logger = get_logger()
    check_fold_support(y, cfg.cv_folds)
    grid = build_param_grid(cfg)
    search = GridSearchCV(
        SVC(),
        param_grid=grid,
        scoring="accuracy",
        cv=StratifiedKFold(n_splits=cfg.cv_folds, shuffle=True, random_state=cfg.seed),
        refit=True,
        error_score="raise",
    )
    n_points = sum(int(np.prod([len(v) for v in sub.values()])) for sub in grid)
    logger.info(f"Grid search over {n_points} configurations with {cfg.cv_folds}-fold CV on {len(y)} documents")
    search.fit(X, y)

    best_params = dict(search.best_params_)
    best_svm = SVMConfig(
        kernel=best_params["kernel"],
        C=best_params["C"],
        gamma=best_params.get("gamma", "scale"),
    )
    logger.info(f"Best params: {best_params} (mean CV accuracy {search.best_score_:.4f})")

    cv_results = pd.DataFrame(search.cv_results_)
    keep = [c for c in cv_results.columns if c.startswith("param_")]
    keep += ["mean_test_score", "std_test_score", "rank_test_score"]
    return SearchResult(
        classifier=SVMClassifier(best_svm, model=search.best_estimator_),
        best_params=best_params,
        best_score=float(search.best_score_),
        cv_results=cv_results[keep],
    )

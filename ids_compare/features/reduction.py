"""Principal components fit once on training data and replayed on other batches.

`fit` standardizes each column (mean 0, unit sample variance) and computes
the rotation with a full SVD, so components come out in descending
eigenvalue order with a deterministic sign convention. `transform` only ever
applies the stored center, scale and rotation.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA

from ids_compare.utils.errors import DegenerateColumn, SchemaMismatch
from ids_compare.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class ReductionSpec:
    columns: Tuple[str, ...]
    center: np.ndarray
    scale: np.ndarray
    rotation: np.ndarray        # (n_columns, n_axes)
    eigenvalues: np.ndarray
    n_components: int
    dropped: Tuple[str, ...] = ()
    prefix: str = "PC"

    @property
    def component_names(self):
        return [f"{self.prefix}{i + 1}" for i in range(self.n_components)]


def fit(
    matrix: pd.DataFrame,
    n_components: int,
    drop_constant: bool = True,
    prefix: str = "PC",
) -> ReductionSpec:
    if matrix.shape[1] == 0:
        raise SchemaMismatch(f"No columns to reduce for {prefix}*: the branch is empty")
    X = matrix.astype(float)
    std = X.std(axis=0, ddof=1)
    constant = [c for c in X.columns if not np.isfinite(std[c]) or std[c] == 0.0]
    if constant:
        if not drop_constant:
            raise DegenerateColumn(constant)
        logger.warning(f"[!] Dropping {len(constant)} zero-variance columns: {constant}")
        X = X.drop(columns=constant)
        std = std.drop(labels=constant)
    if X.shape[1] == 0:
        # every column was constant
        raise DegenerateColumn(constant)

    n_axes = min(X.shape)
    if not 0 < n_components <= n_axes:
        raise ValueError(f"n_components={n_components} must be in [1, {n_axes}] for a {X.shape[0]}x{X.shape[1]} matrix")

    center = X.mean(axis=0).to_numpy()
    scale = std.to_numpy()
    Z = (X.to_numpy() - center) / scale

    pca = PCA(n_components=n_axes, svd_solver="full")
    pca.fit(Z)
    spec = ReductionSpec(
        columns=tuple(X.columns),
        center=center,
        scale=scale,
        rotation=pca.components_.T.copy(),
        eigenvalues=pca.explained_variance_.copy(),
        n_components=int(n_components),
        dropped=tuple(constant),
        prefix=prefix,
    )
    ratio = explained_variance_ratio(spec)
    logger.info(
        f"[+] PCA fit on {X.shape[0]}x{X.shape[1]}: keeping {n_components} components "
        f"({ratio[:n_components].sum():.2%} of variance)"
    )
    return spec


def transform(matrix: pd.DataFrame, spec: ReductionSpec, n_components: Optional[int] = None) -> pd.DataFrame:
    k = spec.n_components if n_components is None else int(n_components)
    if not 0 < k <= spec.rotation.shape[1]:
        raise ValueError(f"n_components={k} must be in [1, {spec.rotation.shape[1]}]")
    missing = [c for c in spec.columns if c not in matrix.columns]
    if missing:
        raise SchemaMismatch(f"Batch is missing columns the reduction was fit on: {missing}", missing=missing)
    Z = (matrix[list(spec.columns)].astype(float).to_numpy() - spec.center) / spec.scale
    scores = Z @ spec.rotation[:, :k]
    names = [f"{spec.prefix}{i + 1}" for i in range(k)]
    return pd.DataFrame(scores, index=matrix.index, columns=names)


def explained_variance_ratio(spec: ReductionSpec) -> np.ndarray:
    return spec.eigenvalues / spec.eigenvalues.sum()


def variance_table(spec: ReductionSpec) -> pd.DataFrame:
    """Eigenvalue, proportion and cumulative proportion of variance per component."""
    ratio = explained_variance_ratio(spec)
    return pd.DataFrame(
        {
            "eigenvalue": spec.eigenvalues,
            "proportion": ratio,
            "cumulative": np.cumsum(ratio),
        },
        index=pd.Index([f"{spec.prefix}{i + 1}" for i in range(len(ratio))], name="component"),
    )


def components_for_variance(spec: ReductionSpec, threshold: float) -> int:
    """Smallest number of leading components whose cumulative proportion reaches `threshold`."""
    if not 0.0 < threshold <= 1.0:
        raise ValueError("threshold must be in (0, 1]")
    cumulative = np.cumsum(explained_variance_ratio(spec))
    # guard against the last cumulative value landing a hair under 1.0
    return int(min(np.searchsorted(cumulative, threshold - 1e-12) + 1, len(cumulative)))

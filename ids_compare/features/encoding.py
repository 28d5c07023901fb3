"""Full-rank dummy encoding of nominal columns with levels fixed at fit time."""
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

from ids_compare.utils.errors import SchemaMismatch
from ids_compare.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EncodingSpec:
    """Ordered levels per nominal column. The first level of each column is the reference."""
    levels: Tuple[Tuple[str, Tuple[str, ...]], ...]

    @property
    def columns(self) -> List[str]:
        return [col for col, _ in self.levels]

    @property
    def feature_names(self) -> List[str]:
        return [f"{col}_{level}" for col, lvls in self.levels for level in lvls[1:]]

    @property
    def n_features(self) -> int:
        return sum(len(lvls) - 1 for _, lvls in self.levels)


def _as_str(values: pd.Series) -> pd.Series:
    return values.astype(str).str.strip()


def fit(training_rows: pd.DataFrame, columns: Iterable[str]) -> EncodingSpec:
    columns = list(columns)
    missing = [c for c in columns if c not in training_rows.columns]
    if missing:
        raise SchemaMismatch(f"Nominal columns not in training data: {missing}", missing=missing)
    levels = []
    for col in columns:
        lvls = tuple(sorted(_as_str(training_rows[col]).unique()))
        logger.debug(f"[+] {col}: {len(lvls)} levels {list(lvls)}")
        levels.append((col, lvls))
    spec = EncodingSpec(levels=tuple(levels))
    logger.info(f"[+] Encoding fit on {len(columns)} nominal columns -> {spec.n_features} dummy columns")
    return spec


def _encode_column(values: pd.Series, col: str, levels: Sequence[str]) -> pd.DataFrame:
    as_str = _as_str(values)
    unseen = as_str[~as_str.isin(levels)]
    if len(unseen):
        bad = sorted(unseen.unique())
        raise SchemaMismatch(f"Column {col!r} has levels not seen in training: {bad}", unexpected=bad)
    cat = pd.Categorical(as_str, categories=list(levels))
    # get_dummies keeps every category of the Categorical, present in this batch or not
    dummies = pd.get_dummies(cat, prefix=col, prefix_sep="_", drop_first=True, dtype=float)
    dummies.index = values.index
    return dummies


def transform(rows: pd.DataFrame, spec: EncodingSpec) -> pd.DataFrame:
    missing = [c for c in spec.columns if c not in rows.columns]
    if missing:
        raise SchemaMismatch(f"Batch is missing nominal columns: {missing}", missing=missing)
    blocks = [_encode_column(rows[col], col, lvls) for col, lvls in spec.levels]
    if not blocks:
        return pd.DataFrame(index=rows.index)
    out = pd.concat(blocks, axis=1)
    return out[spec.feature_names]

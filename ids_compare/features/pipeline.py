"""Numeric-PCA block + dummy-PCA block, fit on training rows and replayed on any batch."""
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import pandas as pd

from ids_compare.features import encoding, reduction
from ids_compare.features.columns_nsl_kdd import NOMINAL, NUMERIC
from ids_compare.utils.errors import SchemaMismatch
from ids_compare.utils.logging import get_logger

logger = get_logger(__name__)

NUMERIC_PREFIX = "num_PC"
DUMMY_PREFIX = "dum_PC"


@dataclass(frozen=True)
class FeatureSpec:
    numeric_columns: Tuple[str, ...]
    encoding: encoding.EncodingSpec
    numeric_reduction: reduction.ReductionSpec
    dummy_reduction: reduction.ReductionSpec

    @property
    def feature_names(self) -> List[str]:
        return self.numeric_reduction.component_names + self.dummy_reduction.component_names


def fit_features(
    train_df: pd.DataFrame,
    numeric_components: int,
    dummy_components: int,
    excluded_nominal: Sequence[str] = (),
    numeric_columns: Sequence[str] = NUMERIC,
    nominal_columns: Sequence[str] = NOMINAL,
    drop_constant: bool = True,
) -> FeatureSpec:
    numeric_columns = list(numeric_columns)
    missing = [c for c in numeric_columns if c not in train_df.columns]
    if missing:
        raise SchemaMismatch(f"Training data is missing numeric columns: {missing}", missing=missing)
    in_scope = [c for c in nominal_columns if c not in set(excluded_nominal)]
    if excluded_nominal:
        logger.info(f"[+] Excluding nominal columns from encoding: {list(excluded_nominal)}")

    logger.info("[+] Fitting numeric branch")
    numeric_spec = reduction.fit(
        train_df[numeric_columns], numeric_components, drop_constant=drop_constant, prefix=NUMERIC_PREFIX
    )

    logger.info("[+] Fitting dummy branch")
    enc_spec = encoding.fit(train_df, in_scope)
    dummies = encoding.transform(train_df, enc_spec)
    dummy_spec = reduction.fit(dummies, dummy_components, drop_constant=drop_constant, prefix=DUMMY_PREFIX)

    return FeatureSpec(
        numeric_columns=tuple(numeric_columns),
        encoding=enc_spec,
        numeric_reduction=numeric_spec,
        dummy_reduction=dummy_spec,
    )


def transform_features(df: pd.DataFrame, spec: FeatureSpec) -> pd.DataFrame:
    numeric_block = reduction.transform(df, spec.numeric_reduction)
    dummy_block = reduction.transform(encoding.transform(df, spec.encoding), spec.dummy_reduction)
    out = pd.concat([numeric_block, dummy_block], axis=1)
    logger.debug(f"[+] Feature matrix: {out.shape}")
    return out

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pandas as pd

from ids_compare.features.columns_nsl_kdd import COLUMNS, DIFFICULTY_COL, LABEL_COL, NOMINAL
from ids_compare.features.labels import normalize_labels
from ids_compare.utils.errors import SchemaMismatch
from ids_compare.utils.io import save_frame
from ids_compare.utils.logging import get_logger

logger = get_logger(__name__)

N_ATTRIBUTES = 41

# "duration: continuous." / "protocol_type: symbolic."
_SCHEMA_LINE = re.compile(r"^\s*([A-Za-z0-9_]+)\s*:\s*(continuous|symbolic)\s*\.?\s*$")


@dataclass(frozen=True)
class Schema:
    columns: Tuple[str, ...]
    nominal: Tuple[str, ...]

    @property
    def numeric(self) -> List[str]:
        return [c for c in self.columns if c not in self.nominal]


def load_schema(path: Optional[Union[str, Path]] = None) -> Schema:
    """Read attribute names and types from a kddcup.names style file.

    Lines that are not `name: continuous.` or `name: symbolic.` (the leading
    list of attack names, blank lines) are ignored. With no path the
    built-in NSL-KDD schema is returned.
    """
    if path is None:
        return Schema(columns=tuple(COLUMNS), nominal=tuple(NOMINAL))

    columns, nominal = [], []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            m = _SCHEMA_LINE.match(line)
            if not m:
                continue
            name, kind = m.groups()
            columns.append(name)
            if kind == "symbolic":
                nominal.append(name)
    if len(columns) != N_ATTRIBUTES:
        raise SchemaMismatch(f"{path}: expected {N_ATTRIBUTES} attributes, found {len(columns)}")
    if len(set(columns)) != len(columns):
        raise SchemaMismatch(f"{path}: duplicate attribute names")
    logger.debug(f"[+] Schema {path}: {len(columns) - len(nominal)} numeric, {len(nominal)} nominal")
    return Schema(columns=tuple(columns), nominal=tuple(nominal))


def read_records(path: Union[str, Path], schema: Schema) -> pd.DataFrame:
    """Header-less rows: attributes in schema order, then the label, then an optional difficulty score."""
    df = pd.read_csv(path, header=None, skipinitialspace=True)
    width = len(schema.columns) + 1
    if df.shape[1] == width + 1:
        df.columns = list(schema.columns) + [LABEL_COL, DIFFICULTY_COL]
    elif df.shape[1] == width:
        df.columns = list(schema.columns) + [LABEL_COL]
    else:
        raise SchemaMismatch(f"{path}: expected {width} or {width + 1} columns, found {df.shape[1]}")
    if df.empty:
        raise RuntimeError(f"{path} is empty or malformed.")
    logger.info(f"[+] Read {path}: {df.shape[0]} rows")
    return df


def clean(df: pd.DataFrame, schema: Schema) -> pd.DataFrame:
    """New frame with the difficulty column dropped, nominal columns as str and labels mapped to families."""
    out = df.drop(columns=[DIFFICULTY_COL], errors="ignore").copy()
    for col in schema.nominal:
        out[col] = out[col].astype(str).str.strip()
    out[LABEL_COL] = normalize_labels(out[LABEL_COL].astype(str))
    return out


def load(path: Union[str, Path], schema: Schema) -> pd.DataFrame:
    return clean(read_records(path, schema), schema)


def main(train_path, test_path, schema_path=None, reports_dir: Optional[Path] = None):
    """Read, validate and label both batches; optionally write their label distributions."""
    for p in (train_path, test_path):
        if not Path(p).exists():
            raise SystemExit(f"Input file not found: {p}")
    if schema_path is not None and not Path(schema_path).exists():
        raise SystemExit(f"Schema file not found: {schema_path}")

    schema = load_schema(schema_path)
    tr = load(train_path, schema)
    te = load(test_path, schema)

    dist = pd.DataFrame({
        "train": tr[LABEL_COL].value_counts(),
        "test": te[LABEL_COL].value_counts(),
    }).fillna(0).astype(int)
    logger.info(f"[+] Label distribution:\n{dist}")
    if reports_dir is not None:
        save_frame(dist, Path(reports_dir) / "label_distribution.csv")
    return schema, tr, te

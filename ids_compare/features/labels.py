"""Map raw NSL-KDD attack names onto the five coarse classes."""
import pandas as pd

from ids_compare.features.columns_nsl_kdd import FAMILIES, NORMAL
from ids_compare.utils.errors import UnknownLabel

FAMILY_MAP = {attack: family for family, attacks in FAMILIES.items() for attack in attacks}
FAMILY_MAP[NORMAL] = NORMAL


def normalize(raw_label: str) -> str:
    """Return the coarse class of a raw label.

    Test-set labels carry a trailing "." which training labels do not.
    Raises UnknownLabel for anything outside the vocabulary.
    """
    if not isinstance(raw_label, str):
        raise UnknownLabel(raw_label)
    key = raw_label.strip()
    if key.endswith("."):
        key = key[:-1]
    try:
        return FAMILY_MAP[key.lower()]
    except KeyError:
        raise UnknownLabel(raw_label) from None


def normalize_labels(labels: pd.Series) -> pd.Series:
    # map unique values once; the column has ~40 distinct strings over ~150k rows
    mapping = {raw: normalize(raw) for raw in labels.unique()}
    return labels.map(mapping)

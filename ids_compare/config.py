from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

RAW = Path("data/raw")
MODELS = Path("models")
REPORTS = Path("reports/metrics")

TRAIN_FILE = RAW / "KDDTrain+.txt"
TEST_FILE = RAW / "KDDTest+.txt"
SCHEMA_FILE = RAW / "kddcup.names"

# Retained principal components per branch, read off the explained-variance tables
NUMERIC_COMPONENTS = 20
DUMMY_COMPONENTS = 14

# 'service' has ~66-70 levels, too wide for the dummy block
EXCLUDED_NOMINAL = ("service",)


@dataclass(frozen=True)
class RunConfig:
    train_path: Path = TRAIN_FILE
    test_path: Path = TEST_FILE
    schema_path: Optional[Path] = None
    numeric_components: int = NUMERIC_COMPONENTS
    dummy_components: int = DUMMY_COMPONENTS
    excluded_nominal: Tuple[str, ...] = EXCLUDED_NOMINAL
    drop_constant: bool = True
    models: Tuple[str, ...] = ("lda", "rf")
    n_trees: int = 500
    random_state: int = 42
    select_top: Optional[int] = None
    tune: bool = False
    models_dir: Path = MODELS
    reports_dir: Path = REPORTS
    rf_grid: dict = field(default_factory=lambda: {"max_features": ["sqrt", 0.5], "min_samples_leaf": [1, 5]})

"""Fatal input errors. None of these are retried; they abort the run."""


class UnknownLabel(ValueError):
    """A raw label that does not belong to any of the coarse classes."""

    def __init__(self, label):
        self.label = label
        super().__init__(f"Unknown label: {label!r}")


class SchemaMismatch(ValueError):
    """A batch whose columns (or levels) disagree with what was fit on training data."""

    def __init__(self, message: str, missing=None, unexpected=None):
        self.missing = list(missing or [])
        self.unexpected = list(unexpected or [])
        super().__init__(message)


class DegenerateColumn(ValueError):
    """A numeric column with zero variance, which cannot be scaled."""

    def __init__(self, columns):
        self.columns = list(columns)
        super().__init__(f"Zero-variance columns: {self.columns}")

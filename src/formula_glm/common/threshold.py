"""
Probability-to-prediction stage for binomial pipelines.

Decision rule: a probability rounds half-up to the class index, so
p < 0.5 -> 0 and p >= 0.5 -> 1.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin

from .errors import SchemaMismatchError


def apply_threshold(values: np.ndarray) -> np.ndarray:
    """
    Round values half-up (away from zero on ties).

    Args:
        values: Numeric array, typically predicted probabilities.

    Returns:
        Float array of rounded values.
    """
    values = np.asarray(values, dtype=float)
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


class ProbabilityToPrediction(TransformerMixin, BaseEstimator):
    """Append a column holding ``round(input_col)``.

    Stateless: ``fit`` is a no-op and the stage is always considered fitted.
    """

    def __init__(self, input_col: str = 'probability', output_col: str = 'prediction'):
        self.input_col = input_col
        self.output_col = output_col

    def __sklearn_is_fitted__(self) -> bool:
        return True

    def fit(self, X: pd.DataFrame, y=None) -> ProbabilityToPrediction:  # noqa: ARG002
        return self

    def transform_schema(self, columns: list[str]) -> list[str]:
        """Return the output column names for the given input column names."""
        return [*columns, self.output_col]

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        if self.input_col not in X.columns:
            raise SchemaMismatchError(f'Column not found: {self.input_col}')
        out = X.copy()
        out[self.output_col] = apply_threshold(X[self.input_col].to_numpy(dtype=float))
        return out

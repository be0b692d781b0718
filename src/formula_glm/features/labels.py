"""Map predicted label indices back to the original label values."""

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin

from ..common.errors import SchemaMismatchError


class IndexToLabel(TransformerMixin, BaseEstimator):
    """Append a column holding ``labels[int(input_col)]``."""

    def __init__(
        self,
        input_col: str = 'prediction_index',
        output_col: str = 'prediction',
        labels: tuple[str, ...] = (),
    ):
        self.input_col = input_col
        self.output_col = output_col
        self.labels = labels

    def __sklearn_is_fitted__(self) -> bool:
        return True

    def fit(self, X: pd.DataFrame, y=None) -> IndexToLabel:  # noqa: ARG002
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        if self.input_col not in X.columns:
            raise SchemaMismatchError(f'Column not found: {self.input_col}')
        indices = X[self.input_col].to_numpy(dtype=float)
        valid = (indices >= 0) & (indices < len(self.labels)) & (indices == np.floor(indices))
        if not valid.all():
            bad = sorted(set(indices[~valid].tolist()))
            raise ValueError(f'Label indices out of range for {len(self.labels)} labels: {bad}')
        labels = np.asarray(self.labels, dtype=object)
        out = X.copy()
        out[self.output_col] = labels[indices.astype(int)]
        return out

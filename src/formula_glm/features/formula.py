"""
R-style formula encoding for tabular data.

A formula such as ``y ~ x1 + C(group) + x1:x2`` is bound to a DataFrame
with patsy. The fitted encoder appends two columns:

- ``features_col``: one float vector per row (the design row, intercept excluded)
- ``label_col``: the response as a float, or as an index into ``labels_``
  when the response is categorical or ``force_index_label`` is set

Whether the formula carries an intercept is recorded on the fitted model
and consumed by the GLM stage.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable

import numpy as np
import pandas as pd
from patsy import ModelDesc, PatsyError, build_design_matrices, dmatrix
from sklearn.base import BaseEstimator, TransformerMixin

from ..common.errors import InvalidFormulaError, SchemaMismatchError
from ..utils import get_logger, json_log

log = get_logger(__name__)

INTERCEPT_COLUMN = 'Intercept'

_DOT_RE = re.compile(r'(?<![\w.])\.(?![\w.])')
_IDENT_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_.]*')
_QUOTED_RE = re.compile(r'[\'"]([^\'"]+)[\'"]')


def _quote(column: str) -> str:
    if column.isidentifier():
        return column
    return f'Q({column!r})'


def split_formula(formula: str) -> tuple[str, str]:
    """Split ``formula`` into its response name and right-hand side."""
    if not formula or '~' not in formula:
        raise InvalidFormulaError(f'Formula must have the form "response ~ terms": {formula!r}')
    lhs, rhs = formula.split('~', 1)
    response = lhs.strip()
    if not response:
        raise InvalidFormulaError(f'Formula has no response: {formula!r}')
    if not rhs.strip():
        raise InvalidFormulaError(f'Formula has no terms: {formula!r}')
    return response, rhs.strip()


def expand_dot(rhs: str, columns: Iterable[str], response: str) -> str:
    """Replace the R ``.`` shorthand with every column except the response."""
    if not _DOT_RE.search(rhs):
        return rhs
    others = [_quote(str(c)) for c in columns if c != response]
    if not others:
        raise InvalidFormulaError('Formula uses "." but the dataset has no predictor columns')
    return _DOT_RE.sub('(' + ' + '.join(others) + ')', rhs)


def referenced_columns(rhs: str, columns: Iterable[str]) -> tuple[str, ...]:
    """Return the dataset columns the right-hand side refers to, in dataset order."""
    tokens = set(_IDENT_RE.findall(rhs)) | set(_QUOTED_RE.findall(rhs))
    return tuple(c for c in columns if c in tokens)


def index_labels(values: pd.Series) -> tuple[str, ...]:
    """Order distinct labels by descending frequency, ties alphabetically."""
    counts = values.astype(str).value_counts(sort=False)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(label for label, _ in ordered)


class FormulaEncoder(BaseEstimator):
    """Unfitted formula encoder. ``fit`` returns a :class:`FormulaEncoderModel`."""

    def __init__(
        self,
        formula: str | None = None,
        features_col: str = 'features',
        label_col: str = 'label',
        force_index_label: bool = False,
    ):
        self.formula = formula
        self.features_col = features_col
        self.label_col = label_col
        self.force_index_label = force_index_label

    def fit(self, X: pd.DataFrame, y=None) -> FormulaEncoderModel:  # noqa: ARG002
        response, rhs = split_formula(self.formula or '')
        if response not in X.columns:
            raise InvalidFormulaError(f'Response column not found in dataset: {response}')
        rhs = expand_dot(rhs, X.columns, response)

        model = FormulaEncoderModel(
            formula=self.formula,
            features_col=self.features_col,
            label_col=self.label_col,
        )
        model.response_ = response
        model.rhs_ = rhs
        model.input_columns_ = referenced_columns(rhs, X.columns)
        # patsy DesignInfo does not pickle. The design, including categorical levels
        # and stateful transforms such as center(), is rebuilt from these rows on load.
        model._reference_frame = X.loc[:, list(model.input_columns_)].copy()
        try:
            design = model._build_design()
        except PatsyError as exc:
            raise InvalidFormulaError(f'Cannot bind formula {self.formula!r}: {exc}') from exc

        column_names = list(design.design_info.column_names)
        model.has_intercept_ = INTERCEPT_COLUMN in column_names
        model.feature_names_ = tuple(c for c in column_names if c != INTERCEPT_COLUMN)
        model.design_info_ = design.design_info

        label = X[response]
        if self.force_index_label or not pd.api.types.is_numeric_dtype(label):
            model.labels_ = index_labels(label)
        else:
            model.labels_ = None

        log.info(
            json_log(
                'formula.fit',
                component='features.formula',
                formula=self.formula,
                n_features=len(model.feature_names_),
                has_intercept=model.has_intercept_,
                indexed_label=model.labels_ is not None,
            )
        )
        return model


class FormulaEncoderModel(TransformerMixin, BaseEstimator):
    """Fitted formula encoder.

    ``fit`` is a no-op so the model can sit inside an already-configured
    pipeline. Patsy design metadata is rebuilt from a reference frame on
    unpickling.
    """

    def __init__(
        self,
        formula: str | None = None,
        features_col: str = 'features',
        label_col: str = 'label',
    ):
        self.formula = formula
        self.features_col = features_col
        self.label_col = label_col

    def _build_design(self):
        rhs_desc = ModelDesc.from_formula(self.rhs_)
        return dmatrix(rhs_desc, self._reference_frame, NA_action='raise')

    def __getstate__(self):
        state = dict(super().__getstate__())
        state.pop('design_info_', None)
        return state

    def __setstate__(self, state):
        super().__setstate__(state)
        if '_reference_frame' in state:
            self.design_info_ = self._build_design().design_info

    def fit(self, X: pd.DataFrame, y=None) -> FormulaEncoderModel:  # noqa: ARG002
        return self

    def encode_label(self, values: pd.Series) -> np.ndarray:
        """Return the float label column for the response values."""
        if self.labels_ is None:
            return values.to_numpy(dtype=float)
        index = {label: float(i) for i, label in enumerate(self.labels_)}
        as_str = values.astype(str)
        unseen = sorted(set(as_str) - set(index))
        if unseen:
            raise ValueError(f'Unseen labels in column {self.response_}: {unseen}')
        return as_str.map(index).to_numpy(dtype=float)

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.input_columns_ if c not in X.columns]
        if missing:
            raise SchemaMismatchError(f'Columns required by formula not found: {missing}')

        try:
            (design,) = build_design_matrices(
                [self.design_info_], X, NA_action='raise', return_type='dataframe'
            )
        except PatsyError as exc:
            raise SchemaMismatchError(f'Cannot encode dataset with {self.formula!r}: {exc}') from exc

        matrix = design.drop(columns=[INTERCEPT_COLUMN], errors='ignore').to_numpy(dtype=float)
        out = X.copy()
        out[self.features_col] = pd.Series(list(matrix), index=X.index, dtype=object)
        if self.response_ in X.columns:
            out[self.label_col] = self.encode_label(X[self.response_])
        return out


def check_data_columns(encoder: FormulaEncoder, X: pd.DataFrame) -> FormulaEncoder:
    """Rename encoder output columns that would collide with dataset columns."""
    for param in ('features_col', 'label_col'):
        column = getattr(encoder, param)
        if column in X.columns:
            renamed = f'{column}_{uuid.uuid4().hex[:12]}'
            log.warning(
                json_log(
                    'formula.column_renamed',
                    component='features.formula',
                    column=column,
                    renamed=renamed,
                )
            )
            encoder.set_params(**{param: renamed})
    return encoder

"""Feature encoding stages."""

from .formula import (
    INTERCEPT_COLUMN,
    FormulaEncoder,
    FormulaEncoderModel,
    check_data_columns,
    expand_dot,
    index_labels,
    split_formula,
)
from .labels import IndexToLabel

__all__ = [
    'INTERCEPT_COLUMN',
    'FormulaEncoder',
    'FormulaEncoderModel',
    'IndexToLabel',
    'check_data_columns',
    'expand_dot',
    'index_labels',
    'split_formula',
]

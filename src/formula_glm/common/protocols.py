"""Capability protocols for the collaborators the pipeline assembler consumes."""

from __future__ import annotations

from typing import Any, Protocol

import numpy as np
import pandas as pd


class EncoderModelProtocol(Protocol):
    """A fitted formula encoder."""

    features_col: str
    label_col: str
    feature_names_: tuple[str, ...]
    labels_: tuple[str, ...] | None
    has_intercept_: bool

    def transform(self, X: pd.DataFrame) -> pd.DataFrame: ...


class EncoderProtocol(Protocol):
    """An unfitted formula encoder."""

    formula: str
    features_col: str
    label_col: str
    force_index_label: bool

    def fit(self, X: pd.DataFrame, y: Any = None) -> EncoderModelProtocol: ...


class TrainingSummaryProtocol(Protocol):
    """Statistics a fitted GLM stage must expose."""

    is_normal_solver: bool
    coefficients: np.ndarray
    intercept: float
    coefficient_standard_errors: np.ndarray
    t_values: np.ndarray
    p_values: np.ndarray
    dispersion: float
    null_deviance: float
    deviance: float
    residual_degree_of_freedom_null: int
    residual_degree_of_freedom: int
    aic: float
    num_iterations: int

    def residuals(self, residuals_type: str = 'deviance') -> pd.DataFrame: ...


class GlmStageProtocol(Protocol):
    """A GLM estimator usable as the second pipeline stage."""

    family: str
    link: str | None
    fit_intercept: bool
    features_col: str
    label_col: str
    prediction_col: str

    @property
    def summary(self) -> TrainingSummaryProtocol: ...

    @property
    def has_summary(self) -> bool: ...

    def fit(self, X: pd.DataFrame, y: Any = None) -> GlmStageProtocol: ...

    def transform(self, X: pd.DataFrame) -> pd.DataFrame: ...

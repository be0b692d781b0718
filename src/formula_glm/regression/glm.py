"""
Generalized linear regression stage backed by statsmodels.

The stage reads a vector ``features_col`` and a float ``label_col`` from a
DataFrame and writes the fitted mean to ``prediction_col``. When
``fit_intercept`` is set, the constant column is appended after the
features, so the intercept is the last coefficient in every statistic the
summary reports.

Two solver regimes:
- ``reg_param == 0``: IRLS, with standard errors, t-values and p-values
- ``reg_param > 0``: L2-penalised fit (intercept unpenalised), point
  estimates only
"""

from __future__ import annotations

import warnings

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.base import BaseEstimator, TransformerMixin
from statsmodels.genmod.generalized_linear_model import GLMResults
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from ..common.errors import SchemaMismatchError, SolverFailureError, SummaryUnavailableError
from ..utils import get_logger, json_log
from .summary import GlmTrainingSummary

log = get_logger(__name__)

FAMILIES = {
    'gaussian': sm.families.Gaussian,
    'binomial': sm.families.Binomial,
    'poisson': sm.families.Poisson,
    'gamma': sm.families.Gamma,
}

LINKS = {
    'identity': sm.families.links.Identity,
    'log': sm.families.links.Log,
    'inverse': sm.families.links.InversePower,
    'logit': sm.families.links.Logit,
    'probit': sm.families.links.Probit,
    'cloglog': sm.families.links.CLogLog,
    'sqrt': sm.families.links.Sqrt,
}

# Supported links per family; the first entry is the canonical default.
FAMILY_LINKS = {
    'gaussian': ('identity', 'log', 'inverse'),
    'binomial': ('logit', 'probit', 'cloglog'),
    'poisson': ('log', 'identity', 'sqrt'),
    'gamma': ('inverse', 'identity', 'log'),
}


def resolve_family(family: str, link: str | None = None) -> tuple[sm.families.Family, str]:
    """
    Build a statsmodels family for the given family and link names.

    Args:
        family: One of ``FAMILIES`` (case-insensitive).
        link: One of the links supported by ``family``, or ``None`` for the
            canonical link.

    Returns:
        The family instance and the resolved link name.

    Raises:
        ValueError: If the family or the family/link combination is unsupported.
    """
    family_name = family.strip().lower()
    if family_name not in FAMILIES:
        raise ValueError(f"Unsupported family '{family}'. Choose from: {sorted(FAMILIES)}")
    supported = FAMILY_LINKS[family_name]
    link_name = supported[0] if not link else link.strip().lower()
    if link_name not in supported:
        raise ValueError(
            f"Link '{link}' is not supported for family '{family_name}'. "
            f'Choose from: {list(supported)}'
        )
    return FAMILIES[family_name](link=LINKS[link_name]()), link_name


def _stack_features(X: pd.DataFrame, features_col: str) -> np.ndarray:
    rows = X[features_col].to_numpy()
    if len(rows) == 0:
        raise ValueError('Cannot stack features of an empty dataset')
    return np.vstack([np.asarray(row, dtype=float) for row in rows])


class GeneralizedLinearRegression(TransformerMixin, BaseEstimator):
    """GLM estimator usable as a DataFrame-in, DataFrame-out pipeline stage."""

    def __init__(
        self,
        family: str = 'gaussian',
        link: str | None = None,
        fit_intercept: bool = True,
        tol: float = 1e-6,
        max_iter: int = 25,
        weight_col: str | None = None,
        reg_param: float = 0.0,
        features_col: str = 'features',
        label_col: str = 'label',
        prediction_col: str = 'prediction',
    ):
        self.family = family
        self.link = link
        self.fit_intercept = fit_intercept
        self.tol = tol
        self.max_iter = max_iter
        self.weight_col = weight_col
        self.reg_param = reg_param
        self.features_col = features_col
        self.label_col = label_col
        self.prediction_col = prediction_col

    def __getstate__(self):
        # Scoring needs only the fitted parameters; the statsmodels results are not kept.
        state = dict(super().__getstate__())
        state.pop('summary_', None)
        return state

    @property
    def has_summary(self) -> bool:
        return getattr(self, 'summary_', None) is not None

    @property
    def summary(self) -> GlmTrainingSummary:
        if not self.has_summary:
            raise SummaryUnavailableError(
                'No training summary available; it is not kept when a model is saved.'
            )
        return self.summary_

    def _design(self, X: pd.DataFrame) -> np.ndarray:
        exog = _stack_features(X, self.features_col)
        if self.fit_intercept:
            exog = np.column_stack([exog, np.ones(exog.shape[0])])
        return exog

    def _check_columns(self, X: pd.DataFrame, columns: list[str]) -> None:
        missing = [c for c in columns if c not in X.columns]
        if missing:
            raise SchemaMismatchError(f'Columns not found: {missing}')

    def fit(self, X: pd.DataFrame, y=None) -> GeneralizedLinearRegression:  # noqa: ARG002
        family_obj, link_name = resolve_family(self.family, self.link)
        required = [self.features_col, self.label_col]
        if self.weight_col:
            required.append(self.weight_col)
        self._check_columns(X, required)

        exog = self._design(X)
        endog = X[self.label_col].to_numpy(dtype=float)
        weights = X[self.weight_col].to_numpy(dtype=float) if self.weight_col else None
        if isinstance(family_obj, sm.families.Binomial):
            outside = np.unique(endog[(endog < 0) | (endog > 1)])
            if outside.size:
                raise SolverFailureError(
                    f'Binomial labels must lie in [0, 1], got {outside.tolist()}'
                )

        log.info(
            json_log(
                'glm.fit.start',
                component='regression.glm',
                family=self.family,
                link=link_name,
                n_rows=int(exog.shape[0]),
                n_params=int(exog.shape[1]),
                reg_param=self.reg_param,
            )
        )

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always', ConvergenceWarning)
            try:
                model = sm.GLM(endog, exog, family=family_obj, var_weights=weights)
                if self.reg_param > 0:
                    results, num_iterations = self._fit_penalised(model, exog.shape[1])
                else:
                    results = model.fit(method='IRLS', maxiter=self.max_iter, tol=self.tol)
                    num_iterations = int(results.fit_history['iteration'])
            except (np.linalg.LinAlgError, ValueError, FloatingPointError) as exc:
                raise SolverFailureError(f'GLM fit failed: {exc}') from exc

        for warning in caught:
            if issubclass(warning.category, ConvergenceWarning):
                log.warning(
                    json_log(
                        'glm.convergence_warning',
                        component='regression.glm',
                        message=str(warning.message),
                    )
                )

        params = np.asarray(results.params, dtype=float)
        if not np.all(np.isfinite(params)):
            raise SolverFailureError('GLM fit produced non-finite coefficients')

        self.family_ = family_obj
        self.link_ = link_name
        self.summary_ = GlmTrainingSummary(
            results,
            fit_intercept=self.fit_intercept,
            is_normal_solver=self.reg_param == 0,
            num_iterations=num_iterations,
        )
        self.coef_ = self.summary_.coefficients
        self.intercept_ = self.summary_.intercept

        log.info(
            json_log(
                'glm.fit.completed',
                component='regression.glm',
                num_iterations=num_iterations,
                deviance=self.summary_.deviance,
            )
        )
        return self

    def _fit_penalised(self, model: sm.GLM, n_params: int) -> tuple[GLMResults, int]:
        alpha = np.full(n_params, float(self.reg_param))
        if self.fit_intercept:
            alpha[-1] = 0.0
        regularized = model.fit_regularized(
            method='elastic_net',
            alpha=alpha,
            L1_wt=0.0,
            maxiter=self.max_iter,
            cnvrg_tol=self.tol,
        )
        params = np.asarray(regularized.params, dtype=float)
        scale = model.estimate_scale(model.predict(params))
        # Pass count is not reported by the coordinate-descent solver.
        return GLMResults(model, params, None, scale), 0

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Return the fitted mean for each row."""
        self._check_columns(X, [self.features_col])
        exog = _stack_features(X, self.features_col)
        eta = exog @ self.coef_ + self.intercept_
        return self.family_.link.inverse(eta)

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        out = X.copy()
        out[self.prediction_col] = self.predict(X)
        return out

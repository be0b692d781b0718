"""Training summary extracted from a fitted statsmodels GLM."""

from __future__ import annotations

import numpy as np
import pandas as pd

RESIDUAL_TYPES = {
    'deviance': 'resid_deviance',
    'pearson': 'resid_pearson',
    'working': 'resid_working',
    'response': 'resid_response',
}


class GlmTrainingSummary:
    """
    Fit statistics for a GLM whose intercept, if any, is the last coefficient.

    ``coefficient_standard_errors``, ``t_values`` and ``p_values`` are only
    populated when ``is_normal_solver`` is true; the penalised fit yields
    point estimates alone.
    """

    def __init__(
        self,
        results,
        fit_intercept: bool,
        is_normal_solver: bool,
        num_iterations: int,
    ):
        self._results = results
        self.fit_intercept = fit_intercept
        self.is_normal_solver = is_normal_solver
        self.num_iterations = int(num_iterations)

        params = np.asarray(results.params, dtype=float)
        if fit_intercept:
            self.coefficients = params[:-1]
            self.intercept = float(params[-1])
        else:
            self.coefficients = params
            self.intercept = 0.0

        n = int(results.nobs)
        self.num_instances = n
        self.rank = int(params.shape[0])
        self.dispersion = float(results.scale)
        self.deviance = float(results.deviance)
        self.null_deviance = float(results.null_deviance)
        self.residual_degree_of_freedom_null = n - int(fit_intercept)
        self.residual_degree_of_freedom = n - self.rank
        self.aic = float(results.aic)

        if is_normal_solver:
            self.coefficient_standard_errors = np.asarray(results.bse, dtype=float)
            self.t_values = np.asarray(results.tvalues, dtype=float)
            self.p_values = np.asarray(results.pvalues, dtype=float)
        else:
            empty = np.empty(0, dtype=float)
            self.coefficient_standard_errors = empty
            self.t_values = empty
            self.p_values = empty

    def residuals(self, residuals_type: str = 'deviance') -> pd.DataFrame:
        """Return one residual column, named ``<type>Residuals``."""
        attr = RESIDUAL_TYPES.get(residuals_type)
        if attr is None:
            raise ValueError(
                f"Unknown residuals type '{residuals_type}'. "
                f'Choose from: {sorted(RESIDUAL_TYPES)}'
            )
        values = np.asarray(getattr(self._results, attr), dtype=float)
        return pd.DataFrame({f'{residuals_type}Residuals': values})

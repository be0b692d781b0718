"""Formula-driven GLM wrapper: fitting, scoring, and fit statistics."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from sklearn.base import clone

from ..common.errors import SummaryUnavailableError
from ..common.protocols import EncoderProtocol, GlmStageProtocol
from ..features.formula import FormulaEncoder, check_data_columns
from ..regression.glm import GeneralizedLinearRegression
from ..utils import get_logger, json_log
from .pipeline import GlmPipeline, build_pipeline, pipeline_variant, wrap_pipeline
from .statistics import coefficient_names, extract_statistics

log = get_logger(__name__)


@dataclass(frozen=True)
class GlmWrapper:
    """
    Fitted formula GLM together with the statistics captured at fit time.

    ``coefficients`` holds ``len(coefficient_names)`` estimates, followed by
    as many standard errors, t-values and p-values when the solver produced
    them. The intercept, when fit, leads each block.

    ``is_loaded`` is true for wrappers restored from disk; those carry no
    training summary, so :meth:`residuals` is unavailable on them.
    """

    pipeline: GlmPipeline
    feature_names: tuple[str, ...]
    coefficients: tuple[float, ...]
    dispersion: float
    null_deviance: float
    deviance: float
    residual_degree_of_freedom_null: int
    residual_degree_of_freedom: int
    aic: float
    num_iterations: int
    is_loaded: bool = False

    @property
    def glm(self) -> GlmStageProtocol:
        return self.pipeline.glm

    @property
    def family(self) -> str:
        return self.glm.family

    @property
    def link(self) -> str | None:
        return getattr(self.glm, 'link_', None) or self.glm.link

    @property
    def fit_intercept(self) -> bool:
        return bool(self.glm.fit_intercept)

    @property
    def coefficient_names(self) -> tuple[str, ...]:
        return coefficient_names(self.feature_names, self.fit_intercept)

    @property
    def has_inferential_statistics(self) -> bool:
        return len(self.coefficients) == 4 * len(self.coefficient_names)

    def residuals(self, residuals_type: str = 'deviance') -> pd.DataFrame:
        """Return training residuals of the given type."""
        if self.is_loaded:
            raise SummaryUnavailableError(
                'Residuals are only available on a freshly fitted model, not a loaded one.'
            )
        return self.glm.summary.residuals(residuals_type)

    @property
    def deviance_residuals(self) -> pd.DataFrame:
        return self.residuals('deviance')

    def transform(self, dataset: pd.DataFrame) -> pd.DataFrame:
        """Score ``dataset``, keeping its columns plus the prediction column."""
        return self.pipeline.transform(dataset)

    def summary_table(self) -> pd.DataFrame:
        """Coefficient table indexed by coefficient name."""
        names = list(self.coefficient_names)
        n = len(names)
        table = pd.DataFrame({'Estimate': self.coefficients[:n]}, index=names)
        if self.has_inferential_statistics:
            table['Std. Error'] = self.coefficients[n : 2 * n]
            table['t value'] = self.coefficients[2 * n : 3 * n]
            table['Pr(>|t|)'] = self.coefficients[3 * n :]
        return table

    def save(self, path: str | Path, overwrite: bool = False) -> Path:
        from .persistence import save_wrapper

        return save_wrapper(self, path, overwrite=overwrite)

    @classmethod
    def load(cls, path: str | Path) -> GlmWrapper:
        from .persistence import load_wrapper

        return load_wrapper(path)


def fit(
    formula: str,
    data: pd.DataFrame,
    family: str = 'gaussian',
    link: str | None = None,
    tol: float = 1e-6,
    max_iter: int = 25,
    weight_col: str | None = None,
    reg_param: float = 0.0,
    encoder: EncoderProtocol | None = None,
    glm_factory: Callable[..., GlmStageProtocol] = GeneralizedLinearRegression,
) -> GlmWrapper:
    """
    Fit a GLM described by an R-style formula.

    Args:
        formula: Formula such as ``"y ~ x1 + x2"``.
        data: Training data.
        family: GLM family (``gaussian``, ``binomial``, ``poisson``, ``gamma``).
        link: Link function name, or ``None`` for the canonical link.
        tol: Convergence tolerance.
        max_iter: Maximum solver iterations.
        weight_col: Optional column of prior weights.
        reg_param: L2 regularisation strength; 0 disables it.
        encoder: Unfitted formula encoder; defaults to :class:`FormulaEncoder`.
        glm_factory: Callable building the GLM stage from keyword arguments.

    Returns:
        A GlmWrapper with ``is_loaded=False``.

    Raises:
        InvalidFormulaError: If the formula cannot be bound to ``data``.
        SolverFailureError: If the GLM fails to fit.
        SchemaMismatchError: If ``data`` already holds a column the pipeline
            writes its predictions to.
    """
    family = family.strip().lower()
    pipeline_variant(family).check_output_columns(data.columns)
    encoder = FormulaEncoder(formula=formula) if encoder is None else clone(encoder)
    if family == 'binomial':
        encoder.force_index_label = True
    check_data_columns(encoder, data)
    encoder_model = encoder.fit(data)
    features = tuple(encoder_model.feature_names_)

    glm = glm_factory(
        family=family,
        link=link,
        fit_intercept=encoder_model.has_intercept_,
        tol=tol,
        max_iter=max_iter,
        weight_col=weight_col or None,
        reg_param=reg_param,
        features_col=encoder_model.features_col,
        label_col=encoder_model.label_col,
    )
    pipeline = wrap_pipeline(build_pipeline(encoder_model, glm, family).fit(data))

    fitted_glm = pipeline.glm
    stats = extract_statistics(fitted_glm.summary, bool(fitted_glm.fit_intercept))

    log.info(
        json_log(
            'wrapper.fit.completed',
            component='wrapper',
            formula=formula,
            family=family,
            pipeline=pipeline.kind,
            n_features=len(features),
            n_coefficients=len(stats.coefficients),
        )
    )

    return GlmWrapper(
        pipeline=pipeline,
        feature_names=features,
        coefficients=stats.coefficients,
        dispersion=stats.dispersion,
        null_deviance=stats.null_deviance,
        deviance=stats.deviance,
        residual_degree_of_freedom_null=stats.residual_degree_of_freedom_null,
        residual_degree_of_freedom=stats.residual_degree_of_freedom,
        aic=stats.aic,
        num_iterations=stats.num_iterations,
    )

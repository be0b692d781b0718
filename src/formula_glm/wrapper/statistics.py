"""
Coefficient and fit-statistic extraction.

The solver reports every per-coefficient statistic with the intercept
last. The output layout puts the intercept first in each block, and the
blocks are concatenated as estimates, standard errors, t-values, p-values
(the last three only when the solver produced them).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ..common.protocols import TrainingSummaryProtocol

INTERCEPT_NAME = '(Intercept)'


@dataclass(frozen=True)
class FitStatistics:
    """Scalar and array statistics captured at fit time."""

    coefficients: tuple[float, ...]
    dispersion: float
    null_deviance: float
    deviance: float
    residual_degree_of_freedom_null: int
    residual_degree_of_freedom: int
    aic: float
    num_iterations: int


def rotate_intercept(values: Sequence[float], has_intercept: bool) -> tuple[float, ...]:
    """Move the last element to the front when an intercept was fit."""
    values = tuple(float(v) for v in values)
    if not has_intercept or not values:
        return values
    return (values[-1], *values[:-1])


def coefficient_names(feature_names: Sequence[str], has_intercept: bool) -> tuple[str, ...]:
    """Return coefficient labels in output order."""
    if has_intercept:
        return (INTERCEPT_NAME, *feature_names)
    return tuple(feature_names)


def extract_statistics(
    summary: TrainingSummaryProtocol,
    has_intercept: bool,
) -> FitStatistics:
    """
    Build :class:`FitStatistics` from a GLM training summary.

    Args:
        summary: Summary of the fitted GLM stage.
        has_intercept: Whether the GLM fit an intercept.

    Returns:
        FitStatistics with the flat, intercept-first coefficient layout.
    """
    estimates = list(np.asarray(summary.coefficients, dtype=float))
    if has_intercept:
        estimates.append(float(summary.intercept))

    blocks = [estimates]
    if summary.is_normal_solver:
        blocks.extend(
            [
                summary.coefficient_standard_errors,
                summary.t_values,
                summary.p_values,
            ]
        )

    coefficients: tuple[float, ...] = ()
    for block in blocks:
        coefficients += rotate_intercept(block, has_intercept)

    return FitStatistics(
        coefficients=coefficients,
        dispersion=float(summary.dispersion),
        null_deviance=float(summary.null_deviance),
        deviance=float(summary.deviance),
        residual_degree_of_freedom_null=int(summary.residual_degree_of_freedom_null),
        residual_degree_of_freedom=int(summary.residual_degree_of_freedom),
        aic=float(summary.aic),
        num_iterations=int(summary.num_iterations),
    )

"""Unit tests for pipeline assembly and the GlmWrapper, using a fake solver."""

from __future__ import annotations

from functools import partial
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest
from sklearn.base import BaseEstimator, TransformerMixin

from formula_glm.common.errors import (
    InvalidFormulaError,
    SchemaMismatchError,
    SummaryUnavailableError,
)
from formula_glm.features import FormulaEncoder
from formula_glm.wrapper import (
    PREDICTED_LABEL_INDEX_COL,
    PREDICTED_LABEL_PROB_COL,
    BinomialGlmPipeline,
    PlainGlmPipeline,
    fit,
)


class FakeGlm(TransformerMixin, BaseEstimator):
    """GLM stage returning fixed statistics: features 1..k, intercept 9, last."""

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
        normal: bool = True,
        probability: float = 0.7,
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
        self.normal = normal
        self.probability = probability

    @property
    def has_summary(self) -> bool:
        return True

    @property
    def summary(self) -> SimpleNamespace:
        return self.summary_

    def fit(self, X: pd.DataFrame, y=None) -> FakeGlm:  # noqa: ARG002
        k = len(X[self.features_col].iloc[0])
        extra = [0.9] if self.fit_intercept else []
        self.summary_ = SimpleNamespace(
            is_normal_solver=self.normal,
            coefficients=np.arange(1.0, k + 1.0),
            intercept=9.0 if self.fit_intercept else 0.0,
            coefficient_standard_errors=np.array([0.1 * (i + 1) for i in range(k)] + extra),
            t_values=np.array([1.0 + 0.1 * (i + 1) for i in range(k)] + [1.9][: len(extra)]),
            p_values=np.array([0.01 * (i + 1) for i in range(k)] + [0.09][: len(extra)]),
            dispersion=1.0,
            null_deviance=20.0,
            deviance=5.0,
            residual_degree_of_freedom_null=len(X) - int(self.fit_intercept),
            residual_degree_of_freedom=len(X) - k - int(self.fit_intercept),
            aic=12.5,
            num_iterations=3,
            residuals=lambda kind='deviance': pd.DataFrame({f'{kind}Residuals': np.zeros(len(X))}),
        )
        self.coef_ = self.summary_.coefficients
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        out = X.copy()
        out[self.prediction_col] = self.probability
        return out


@pytest.fixture
def frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            'y': [1.0, 3.0, 2.0, 5.0, 4.0],
            'x1': [0.1, 0.2, 0.3, 0.4, 0.5],
            'x2': [1.0, 0.0, 1.0, 0.0, 1.0],
            'outcome': ['yes', 'no', 'yes', 'yes', 'no'],
        }
    )


class TestCoefficientLayout:
    """Intercept-first layout of the flat coefficient sequence."""

    def test_normal_solver_with_intercept(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', frame, glm_factory=FakeGlm)

        assert wrapper.feature_names == ('x1', 'x2')
        assert len(wrapper.coefficients) == 12
        assert wrapper.coefficients[:3] == (9.0, 1.0, 2.0)
        assert wrapper.coefficients[3:6] == pytest.approx((0.9, 0.1, 0.2))
        assert wrapper.coefficients[9:] == pytest.approx((0.09, 0.01, 0.02))

    def test_iterative_solver_with_intercept(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', frame, glm_factory=partial(FakeGlm, normal=False))
        assert wrapper.coefficients == (9.0, 1.0, 2.0)

    def test_no_intercept_keeps_natural_order(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2 - 1', frame, glm_factory=partial(FakeGlm, normal=False))

        assert wrapper.fit_intercept is False
        assert wrapper.coefficients == (1.0, 2.0)
        assert wrapper.coefficient_names == ('x1', 'x2')

    def test_scalars_are_captured(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', frame, glm_factory=FakeGlm)

        assert wrapper.dispersion == 1.0
        assert wrapper.null_deviance == 20.0
        assert wrapper.deviance == 5.0
        assert wrapper.residual_degree_of_freedom_null == 4
        assert wrapper.residual_degree_of_freedom == 2
        assert wrapper.aic == 12.5
        assert wrapper.num_iterations == 3
        assert wrapper.is_loaded is False


class TestPipelineShape:
    def test_gaussian_has_two_stages(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1', frame, glm_factory=FakeGlm)

        assert isinstance(wrapper.pipeline, PlainGlmPipeline)
        assert wrapper.pipeline.kind == 'plain'
        assert wrapper.pipeline.stage_names == ('formula', 'glm')

    def test_binomial_has_four_stages(self, frame: pd.DataFrame) -> None:
        wrapper = fit('outcome ~ x1', frame, family='binomial', glm_factory=FakeGlm)

        assert isinstance(wrapper.pipeline, BinomialGlmPipeline)
        assert wrapper.pipeline.stage_names == ('formula', 'glm', 'prob_to_pred', 'index_to_label')
        assert wrapper.pipeline.labels == ('yes', 'no')
        assert wrapper.glm.prediction_col == PREDICTED_LABEL_PROB_COL

    def test_binomial_indexes_numeric_label(self, frame: pd.DataFrame) -> None:
        df = frame.assign(flag=[1, 0, 1, 1, 0])
        wrapper = fit('flag ~ x1', df, family='binomial', glm_factory=FakeGlm)
        assert wrapper.pipeline.labels == ('1', '0')


class TestTransform:
    def test_plain_drops_features_only(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', frame, glm_factory=FakeGlm)

        out = wrapper.transform(frame)

        assert 'features' not in out.columns
        assert list(out.columns) == [*frame.columns, 'label', 'prediction']

    def test_binomial_keeps_only_recovered_label(self, frame: pd.DataFrame) -> None:
        wrapper = fit('outcome ~ x1', frame, family='binomial', glm_factory=FakeGlm)

        out = wrapper.transform(frame)

        for dropped in (PREDICTED_LABEL_PROB_COL, PREDICTED_LABEL_INDEX_COL, 'features', 'label'):
            assert dropped not in out.columns
        assert list(out.columns) == [*frame.columns, 'prediction']
        # probability 0.7 rounds to index 1, the second most frequent label
        assert set(out['prediction']) == {'no'}

    def test_transform_without_response(self, frame: pd.DataFrame) -> None:
        wrapper = fit('outcome ~ x1', frame, family='binomial', glm_factory=FakeGlm)
        out = wrapper.transform(frame.drop(columns=['outcome']))
        assert 'prediction' in out.columns

    def test_transform_does_not_mutate_input(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1', frame, glm_factory=FakeGlm)
        before = frame.copy()
        wrapper.transform(frame)
        pd.testing.assert_frame_equal(frame, before)


class TestWrapperSurface:
    def test_summary_table_normal(self, frame: pd.DataFrame) -> None:
        table = fit('y ~ x1 + x2', frame, glm_factory=FakeGlm).summary_table()

        assert list(table.index) == ['(Intercept)', 'x1', 'x2']
        assert list(table.columns) == ['Estimate', 'Std. Error', 't value', 'Pr(>|t|)']
        assert table.loc['(Intercept)', 'Estimate'] == 9.0
        assert table.loc['x2', 'Std. Error'] == pytest.approx(0.2)

    def test_summary_table_iterative(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', frame, glm_factory=partial(FakeGlm, normal=False))
        assert list(wrapper.summary_table().columns) == ['Estimate']

    def test_residuals_on_fitted_wrapper(self, frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1', frame, glm_factory=FakeGlm)
        assert list(wrapper.residuals('pearson').columns) == ['pearsonResiduals']

    def test_residuals_unavailable_when_loaded(self, frame: pd.DataFrame) -> None:
        from dataclasses import replace

        wrapper = replace(fit('y ~ x1', frame, glm_factory=FakeGlm), is_loaded=True)
        with pytest.raises(SummaryUnavailableError):
            wrapper.residuals()

    def test_wrapper_is_immutable(self, frame: pd.DataFrame) -> None:
        from dataclasses import FrozenInstanceError

        wrapper = fit('y ~ x1', frame, glm_factory=FakeGlm)
        with pytest.raises(FrozenInstanceError):
            wrapper.coefficients = ()  # type: ignore[misc]

    def test_invalid_formula_propagates(self, frame: pd.DataFrame) -> None:
        with pytest.raises(InvalidFormulaError):
            fit('y ~ missing', frame, glm_factory=FakeGlm)

    def test_column_collision_is_renamed(self, frame: pd.DataFrame) -> None:
        df = frame.assign(features=0.0)
        wrapper = fit('y ~ x1', df, glm_factory=FakeGlm)

        out = wrapper.transform(df)

        assert wrapper.glm.features_col != 'features'
        assert 'features' in out.columns
        assert wrapper.glm.features_col not in out.columns


class TestOutputColumnGuard:
    def test_plain_fit_refuses_existing_prediction(self, frame: pd.DataFrame) -> None:
        df = frame.assign(prediction=7.0)
        with pytest.raises(SchemaMismatchError, match='prediction'):
            fit('y ~ x1', df, glm_factory=FakeGlm)

    @pytest.mark.parametrize(
        'column', [PREDICTED_LABEL_PROB_COL, PREDICTED_LABEL_INDEX_COL, 'prediction']
    )
    def test_binomial_fit_refuses_existing_output(self, frame: pd.DataFrame, column: str) -> None:
        df = frame.assign(**{column: 123.0})
        with pytest.raises(SchemaMismatchError, match=column):
            fit('outcome ~ x1', df, family='binomial', glm_factory=FakeGlm)

    def test_plain_fit_allows_binomial_intermediates(self, frame: pd.DataFrame) -> None:
        df = frame.assign(**{PREDICTED_LABEL_PROB_COL: 123.0})

        out = fit('y ~ x1', df, glm_factory=FakeGlm).transform(df)

        assert (out[PREDICTED_LABEL_PROB_COL] == 123.0).all()

    def test_transform_refuses_existing_prediction(self, frame: pd.DataFrame) -> None:
        wrapper = fit('outcome ~ x1', frame, family='binomial', glm_factory=FakeGlm)
        scored = frame.assign(prediction='USER_DATA')

        with pytest.raises(SchemaMismatchError, match='prediction'):
            wrapper.transform(scored)


class TestCallerEncoder:
    def test_encoder_is_not_mutated(self, frame: pd.DataFrame) -> None:
        encoder = FormulaEncoder(formula='outcome ~ x1')
        df = frame.assign(features=0.0)

        wrapper = fit('outcome ~ x1', df, family='binomial', encoder=encoder, glm_factory=FakeGlm)

        assert encoder.force_index_label is False
        assert encoder.features_col == 'features'
        assert wrapper.pipeline.formula.features_col != 'features'
        assert wrapper.pipeline.labels == ('yes', 'no')

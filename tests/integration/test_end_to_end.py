"""End-to-end scenarios: real statsmodels fits, save, reload, score."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from formula_glm import SolverFailureError, fit, load_wrapper
from formula_glm.wrapper import PREDICTED_LABEL_INDEX_COL, PREDICTED_LABEL_PROB_COL


@pytest.fixture
def gaussian_frame() -> pd.DataFrame:
    rng = np.random.default_rng(42)
    x1 = rng.normal(size=100)
    x2 = rng.uniform(-1, 1, size=100)
    y = 3.0 + 0.8 * x1 - 1.2 * x2 + rng.normal(scale=0.3, size=100)
    return pd.DataFrame({'y': y, 'x1': x1, 'x2': x2})


@pytest.fixture
def binomial_frame() -> pd.DataFrame:
    rng = np.random.default_rng(5)
    x = rng.normal(size=300)
    z = rng.normal(size=300)
    p = 1.0 / (1.0 + np.exp(-(0.3 + 1.2 * x - 0.5 * z)))
    outcome = np.where(rng.random(300) < p, 'churned', 'stayed')
    return pd.DataFrame({'outcome': outcome, 'x': x, 'z': z})


class TestGaussianScenario:
    """y ~ x1 + x2, gaussian, tol 1e-6, 25 iterations, no weights."""

    def test_layout(self, gaussian_frame: pd.DataFrame) -> None:
        wrapper = fit(
            'y ~ x1 + x2',
            gaussian_frame,
            family='gaussian',
            link='identity',
            tol=1e-6,
            max_iter=25,
            weight_col=None,
            reg_param=0.0,
        )

        assert wrapper.feature_names == ('x1', 'x2')
        assert len(wrapper.coefficients) == 12
        assert wrapper.coefficients[0] == wrapper.glm.intercept_
        assert wrapper.coefficients[1:3] == tuple(wrapper.glm.coef_)
        assert wrapper.coefficients[0] == pytest.approx(3.0, abs=0.2)
        assert wrapper.pipeline.stage_names == ('formula', 'glm')

    def test_matches_statsmodels_formula_api(self, gaussian_frame: pd.DataFrame) -> None:
        import statsmodels.formula.api as smf

        reference = smf.glm('y ~ x1 + x2', data=gaussian_frame).fit()
        wrapper = fit('y ~ x1 + x2', gaussian_frame)
        table = wrapper.summary_table()

        np.testing.assert_allclose(
            table['Estimate'].to_numpy(), reference.params.to_numpy(), rtol=1e-6
        )
        np.testing.assert_allclose(
            table['Std. Error'].to_numpy(), reference.bse.to_numpy(), rtol=1e-6
        )
        assert wrapper.deviance == pytest.approx(reference.deviance, rel=1e-8)
        assert wrapper.null_deviance == pytest.approx(reference.null_deviance, rel=1e-8)
        assert wrapper.dispersion == pytest.approx(reference.scale, rel=1e-8)

    def test_regularized_sizing(self, gaussian_frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', gaussian_frame, reg_param=0.05, max_iter=200)
        assert len(wrapper.coefficients) == 3
        assert wrapper.has_inferential_statistics is False

    def test_residuals_before_save(self, gaussian_frame: pd.DataFrame) -> None:
        wrapper = fit('y ~ x1 + x2', gaussian_frame)
        residuals = wrapper.deviance_residuals
        assert len(residuals) == len(gaussian_frame)
        # gaussian deviance residuals sum of squares equals the deviance
        assert float((residuals['devianceResiduals'] ** 2).sum()) == pytest.approx(
            wrapper.deviance
        )


class TestBinomialScenario:
    """Binomial fit on a two-level string label."""

    def test_reloaded_transform_returns_original_labels(
        self, binomial_frame: pd.DataFrame, tmp_path: Path
    ) -> None:
        wrapper = fit('outcome ~ x + z', binomial_frame, family='binomial')
        wrapper.save(tmp_path / 'model')
        loaded = load_wrapper(tmp_path / 'model')

        out = loaded.transform(binomial_frame)

        assert set(out['prediction']) <= {'churned', 'stayed'}
        for dropped in (PREDICTED_LABEL_PROB_COL, PREDICTED_LABEL_INDEX_COL, 'features', 'label'):
            assert dropped not in out.columns
        assert list(out.columns) == ['outcome', 'x', 'z', 'prediction']
        assert loaded.pipeline.kind == 'binomial'
        assert loaded.family == 'binomial'
        assert loaded.link == 'logit'

    def test_predictions_beat_majority_class(self, binomial_frame: pd.DataFrame) -> None:
        wrapper = fit('outcome ~ x + z', binomial_frame, family='binomial')

        out = wrapper.transform(binomial_frame)

        accuracy = float((out['prediction'] == out['outcome']).mean())
        majority = float(binomial_frame['outcome'].value_counts(normalize=True).max())
        assert accuracy > majority

    def test_three_level_label_is_rejected(self, binomial_frame: pd.DataFrame) -> None:
        df = binomial_frame.copy()
        df.loc[df.index[:10], 'outcome'] = 'maybe'

        with pytest.raises(SolverFailureError):
            fit('outcome ~ x + z', df, family='binomial')

    def test_binomial_statistics(self, binomial_frame: pd.DataFrame) -> None:
        wrapper = fit('outcome ~ x + z', binomial_frame, family='binomial')

        assert wrapper.dispersion == 1.0
        assert len(wrapper.coefficients) == 12
        assert wrapper.residual_degree_of_freedom_null == 299
        assert wrapper.residual_degree_of_freedom == 297
        assert wrapper.num_iterations >= 1
        assert wrapper.deviance < wrapper.null_deviance


def test_poisson_with_categorical_and_weights(tmp_path: Path) -> None:
    rng = np.random.default_rng(9)
    group = rng.choice(['a', 'b', 'c'], size=120)
    x = rng.normal(size=120)
    rate = np.exp(0.2 + 0.5 * x + np.select([group == 'b', group == 'c'], [0.4, -0.3], 0.0))
    df = pd.DataFrame(
        {
            'count': rng.poisson(rate),
            'x': x,
            'group': group,
            'w': rng.uniform(0.5, 2.0, size=120),
        }
    )

    wrapper = fit('count ~ x + C(group)', df, family='poisson', weight_col='w')
    wrapper.save(tmp_path / 'model')
    loaded = load_wrapper(tmp_path / 'model')

    assert len(wrapper.feature_names) == 3
    assert loaded.coefficient_names[0] == '(Intercept)'
    np.testing.assert_allclose(
        loaded.transform(df.head(10))['prediction'],
        wrapper.transform(df.head(10))['prediction'],
    )

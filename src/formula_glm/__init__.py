"""formula_glm — formula-driven generalized linear models on DataFrames.

An R-style formula is encoded with patsy, a statsmodels GLM is fit inside
an sklearn pipeline, and binomial fits gain a relabeling tail that turns
probabilities back into the original labels. The fitted wrapper carries
R-ordered coefficients and fit statistics and saves as metadata plus a
joblib pipeline.

Public API:
    fit
    GlmWrapper
    save_wrapper
    load_wrapper
    FormulaEncoder
    GeneralizedLinearRegression
    ProbabilityToPrediction
    IndexToLabel
"""

from .common import (
    FormulaGlmError,
    InvalidFormulaError,
    PersistenceError,
    SchemaMismatchError,
    SolverFailureError,
    SummaryUnavailableError,
)
from .common.threshold import ProbabilityToPrediction
from .features import FormulaEncoder, FormulaEncoderModel, IndexToLabel
from .regression import GeneralizedLinearRegression, GlmTrainingSummary
from .wrapper import (
    BinomialGlmPipeline,
    GlmWrapper,
    PlainGlmPipeline,
    fit,
    load_wrapper,
    rotate_intercept,
    save_wrapper,
)

__all__ = [
    'fit',
    'GlmWrapper',
    'save_wrapper',
    'load_wrapper',
    'rotate_intercept',
    'BinomialGlmPipeline',
    'PlainGlmPipeline',
    'FormulaEncoder',
    'FormulaEncoderModel',
    'IndexToLabel',
    'GeneralizedLinearRegression',
    'GlmTrainingSummary',
    'ProbabilityToPrediction',
    'FormulaGlmError',
    'InvalidFormulaError',
    'PersistenceError',
    'SchemaMismatchError',
    'SolverFailureError',
    'SummaryUnavailableError',
]

__version__ = '0.1.0'

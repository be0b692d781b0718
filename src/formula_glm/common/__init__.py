"""Common utilities shared across pipeline stages."""

from .errors import (
    FormulaGlmError,
    InvalidFormulaError,
    PersistenceError,
    SchemaMismatchError,
    SolverFailureError,
    SummaryUnavailableError,
)
from .protocols import (
    EncoderModelProtocol,
    EncoderProtocol,
    GlmStageProtocol,
    TrainingSummaryProtocol,
)
from .threshold import ProbabilityToPrediction, apply_threshold

__all__ = [
    # Errors
    'FormulaGlmError',
    'InvalidFormulaError',
    'PersistenceError',
    'SchemaMismatchError',
    'SolverFailureError',
    'SummaryUnavailableError',
    # Protocols
    'EncoderModelProtocol',
    'EncoderProtocol',
    'GlmStageProtocol',
    'TrainingSummaryProtocol',
    # Threshold
    'ProbabilityToPrediction',
    'apply_threshold',
]

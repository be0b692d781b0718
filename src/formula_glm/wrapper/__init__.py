"""Formula GLM wrapper: pipeline assembly, statistics, persistence."""

from .model import GlmWrapper, fit
from .persistence import load_wrapper, save_wrapper, wrapper_metadata
from .pipeline import (
    PREDICTED_LABEL_COL,
    PREDICTED_LABEL_INDEX_COL,
    PREDICTED_LABEL_PROB_COL,
    BinomialGlmPipeline,
    GlmPipeline,
    PlainGlmPipeline,
    build_pipeline,
    pipeline_variant,
    wrap_pipeline,
)
from .statistics import FitStatistics, coefficient_names, extract_statistics, rotate_intercept

__all__ = [
    'GlmWrapper',
    'fit',
    'load_wrapper',
    'save_wrapper',
    'wrapper_metadata',
    'PREDICTED_LABEL_COL',
    'PREDICTED_LABEL_INDEX_COL',
    'PREDICTED_LABEL_PROB_COL',
    'BinomialGlmPipeline',
    'GlmPipeline',
    'PlainGlmPipeline',
    'build_pipeline',
    'pipeline_variant',
    'wrap_pipeline',
    'FitStatistics',
    'coefficient_names',
    'extract_statistics',
    'rotate_intercept',
]

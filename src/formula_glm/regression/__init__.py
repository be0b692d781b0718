"""GLM estimation stage."""

from .glm import FAMILIES, FAMILY_LINKS, LINKS, GeneralizedLinearRegression, resolve_family
from .summary import RESIDUAL_TYPES, GlmTrainingSummary

__all__ = [
    'FAMILIES',
    'FAMILY_LINKS',
    'LINKS',
    'RESIDUAL_TYPES',
    'GeneralizedLinearRegression',
    'GlmTrainingSummary',
    'resolve_family',
]

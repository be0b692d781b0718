"""Configuration utilities for formula_glm."""

from .fit import ArtifactsConfig, DataConfig, FitConfig, GlmConfig, load_fit_config

__all__ = [
    'ArtifactsConfig',
    'DataConfig',
    'FitConfig',
    'GlmConfig',
    'load_fit_config',
]

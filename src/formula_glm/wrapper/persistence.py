"""
Two-part persistence for :class:`GlmWrapper`.

Layout under the target directory::

    metadata/metadata.json   fit statistics, one compact JSON document
    pipeline/pipeline.joblib the fitted sklearn pipeline

The two parts are written independently and are not cross-checked on load.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import joblib
from sklearn.pipeline import Pipeline

from ..common.errors import PersistenceError
from ..utils import get_logger, json_log
from .model import GlmWrapper
from .pipeline import wrap_pipeline

log = get_logger(__name__)

METADATA_DIR = 'metadata'
PIPELINE_DIR = 'pipeline'
METADATA_FILE = 'metadata.json'
PIPELINE_FILE = 'pipeline.joblib'

WRAPPER_CLASS = f'{GlmWrapper.__module__}.{GlmWrapper.__qualname__}'


def wrapper_metadata(wrapper: GlmWrapper) -> dict[str, Any]:
    """Return the metadata record persisted for ``wrapper``."""
    return {
        'class': WRAPPER_CLASS,
        'rFeatures': list(wrapper.feature_names),
        'rCoefficients': list(wrapper.coefficients),
        'rDispersion': wrapper.dispersion,
        'rNullDeviance': wrapper.null_deviance,
        'rDeviance': wrapper.deviance,
        'rResidualDegreeOfFreedomNull': wrapper.residual_degree_of_freedom_null,
        'rResidualDegreeOfFreedom': wrapper.residual_degree_of_freedom,
        'rAic': wrapper.aic,
        'rNumIterations': wrapper.num_iterations,
    }


def save_wrapper(wrapper: GlmWrapper, path: str | Path, overwrite: bool = False) -> Path:
    """
    Persist a wrapper's metadata and fitted pipeline under ``path``.

    Args:
        wrapper: Wrapper to save.
        path: Target directory.
        overwrite: Replace an existing non-empty directory.

    Returns:
        The target directory.

    Raises:
        PersistenceError: If the target exists and ``overwrite`` is false,
            or if writing fails.
    """
    target = Path(path)
    metadata_dir = target / METADATA_DIR
    pipeline_dir = target / PIPELINE_DIR
    try:
        if target.exists() and not target.is_dir():
            raise PersistenceError(f'Path exists and is not a directory: {target}')
        if target.exists() and any(target.iterdir()):
            if not overwrite:
                raise PersistenceError(
                    f'Path already exists: {target}. Use overwrite to replace it.'
                )
            shutil.rmtree(target)
        metadata_dir.mkdir(parents=True, exist_ok=True)
        pipeline_dir.mkdir(parents=True, exist_ok=True)
        (metadata_dir / METADATA_FILE).write_text(
            json.dumps(wrapper_metadata(wrapper), separators=(',', ':')),
            encoding='utf-8',
        )
        joblib.dump(wrapper.pipeline.model, pipeline_dir / PIPELINE_FILE, compress=3)
    except OSError as exc:
        raise PersistenceError(f'Failed to save model to {target}: {exc}') from exc

    log.info(
        json_log(
            'wrapper.saved',
            component='wrapper.persistence',
            path=str(target),
            pipeline=wrapper.pipeline.kind,
        )
    )
    return target


def _read_metadata(metadata_path: Path) -> dict[str, Any]:
    try:
        metadata = json.loads(metadata_path.read_text(encoding='utf-8'))
    except (json.JSONDecodeError, OSError) as exc:
        raise PersistenceError(f'Failed to load metadata: {exc}') from exc
    if not isinstance(metadata, dict):
        raise PersistenceError('Failed to load metadata: expected a JSON object')

    if metadata.get('class') != WRAPPER_CLASS:
        raise PersistenceError(
            f"Metadata class mismatch: expected {WRAPPER_CLASS}, got {metadata.get('class')}"
        )
    return metadata


def load_wrapper(path: str | Path) -> GlmWrapper:
    """
    Load a wrapper saved by :func:`save_wrapper`.

    Args:
        path: Directory containing ``metadata/`` and ``pipeline/``.

    Returns:
        GlmWrapper with ``is_loaded=True``.

    Raises:
        PersistenceError: If either part is missing, malformed, or unreadable.
    """
    target = Path(path)
    if not target.exists():
        raise PersistenceError(f'Model directory not found: {target}')

    metadata_path = target / METADATA_DIR / METADATA_FILE
    pipeline_path = target / PIPELINE_DIR / PIPELINE_FILE
    if not metadata_path.exists():
        raise PersistenceError(f'Metadata file not found: {metadata_path}')
    if not pipeline_path.exists():
        raise PersistenceError(f'Pipeline file not found: {pipeline_path}')

    metadata = _read_metadata(metadata_path)

    try:
        model = joblib.load(pipeline_path)
    except Exception as exc:
        raise PersistenceError(f'Failed to load pipeline: {exc}') from exc
    if not isinstance(model, Pipeline):
        raise PersistenceError(f'Expected a fitted Pipeline, got {type(model).__name__}')

    try:
        wrapper = GlmWrapper(
            pipeline=wrap_pipeline(model),
            feature_names=tuple(str(name) for name in metadata['rFeatures']),
            coefficients=tuple(float(c) for c in metadata['rCoefficients']),
            dispersion=float(metadata['rDispersion']),
            null_deviance=float(metadata['rNullDeviance']),
            deviance=float(metadata['rDeviance']),
            residual_degree_of_freedom_null=int(metadata['rResidualDegreeOfFreedomNull']),
            residual_degree_of_freedom=int(metadata['rResidualDegreeOfFreedom']),
            aic=float(metadata['rAic']),
            num_iterations=int(metadata['rNumIterations']),
            is_loaded=True,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise PersistenceError(f'Failed to load metadata: malformed field {exc}') from exc

    log.info(
        json_log(
            'wrapper.loaded',
            component='wrapper.persistence',
            path=str(target),
            pipeline=wrapper.pipeline.kind,
            family=wrapper.family,
        )
    )
    return wrapper

"""Config models and loaders for fitting."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass(frozen=True)
class DataConfig:
    path: Path
    formula: str


@dataclass(frozen=True)
class GlmConfig:
    family: str = 'gaussian'
    link: str | None = None
    tol: float = 1e-6
    max_iter: int = 25
    weight_col: str | None = None
    reg_param: float = 0.0


@dataclass(frozen=True)
class ArtifactsConfig:
    output_dir: Path = Path('artifacts/models')
    overwrite: bool = False


@dataclass(frozen=True)
class FitConfig:
    data: DataConfig
    glm: GlmConfig = field(default_factory=GlmConfig)
    artifacts: ArtifactsConfig = field(default_factory=ArtifactsConfig)


def load_fit_config(config_path: str | Path) -> FitConfig:
    """Load a fit config YAML file."""
    cfg_path = Path(config_path).expanduser().resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f'Config file not found: {cfg_path}')

    with cfg_path.open('r', encoding='utf-8') as fh:
        data = yaml.safe_load(fh) or {}

    base_dir = cfg_path.parent

    data_section = data.get('data') or {}
    glm_section = data.get('glm') or {}
    artifacts_section = data.get('artifacts') or {}

    data_path = data_section.get('path')
    if not data_path:
        raise ValueError('data.path must be set in fit config')
    formula = data_section.get('formula')
    if not formula:
        raise ValueError('data.formula must be set in fit config')

    data_cfg = DataConfig(
        path=_resolve_path(base_dir, data_path),
        formula=str(formula),
    )

    glm = GlmConfig(
        family=str(glm_section.get('family', 'gaussian')),
        link=glm_section.get('link'),
        tol=float(glm_section.get('tol', 1e-6)),
        max_iter=int(glm_section.get('max_iter', 25)),
        weight_col=glm_section.get('weight_col') or None,
        reg_param=float(glm_section.get('reg_param', 0.0)),
    )

    artifacts = ArtifactsConfig(
        output_dir=_resolve_path(
            base_dir,
            artifacts_section.get('output_dir', 'artifacts/models'),
        ),
        overwrite=bool(artifacts_section.get('overwrite', False)),
    )

    return FitConfig(data=data_cfg, glm=glm, artifacts=artifacts)


def _resolve_path(base: Path, value: str | Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = (base / path).resolve()
    return path

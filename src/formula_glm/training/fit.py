from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..config import FitConfig, load_fit_config
from ..utils.logging import get_logger, json_log
from ..wrapper import fit, save_wrapper

log = get_logger(__name__)


def next_run_id(base_dir: Path, prefix: str = 'model') -> str:
    """Return ``<prefix>.<date>_<seq>`` with the next free sequence number."""
    today = datetime.now(UTC).strftime('%Y-%m-%d')
    existing = (
        sorted(
            p.name
            for p in base_dir.iterdir()
            if p.is_dir() and p.name.startswith(f'{prefix}.{today}_')
        )
        if base_dir.exists()
        else []
    )
    last_idx = int(existing[-1].split('_')[-1]) if existing else 0
    return f'{prefix}.{today}_{last_idx + 1:03d}'


def apply_overrides(
    cfg: FitConfig,
    data_path: Path | None = None,
    formula: str | None = None,
) -> FitConfig:
    overrides: dict[str, Any] = {}
    if data_path is not None:
        overrides['path'] = Path(data_path).expanduser().resolve()
    if formula is not None:
        overrides['formula'] = formula
    if not overrides:
        return cfg
    return replace(cfg, data=replace(cfg.data, **overrides))


def fit_from_config(
    config_path: str | Path,
    data_path: Path | None = None,
    formula: str | None = None,
    output_dir: Path | None = None,
) -> dict[str, Any]:
    """Fit a formula GLM from a YAML config and save it as a new run."""
    cfg = apply_overrides(load_fit_config(config_path), data_path=data_path, formula=formula)
    glm_cfg = cfg.glm

    data = pd.read_csv(cfg.data.path)
    log.info(
        json_log(
            'fit.start',
            component='training',
            config=str(config_path),
            data=str(cfg.data.path),
            formula=cfg.data.formula,
            rows=len(data),
        )
    )
    wrapper = fit(
        cfg.data.formula,
        data,
        family=glm_cfg.family,
        link=glm_cfg.link,
        tol=glm_cfg.tol,
        max_iter=glm_cfg.max_iter,
        weight_col=glm_cfg.weight_col,
        reg_param=glm_cfg.reg_param,
    )

    if output_dir is not None:
        out_dir = Path(output_dir)
    else:
        base_dir = cfg.artifacts.output_dir
        out_dir = base_dir / next_run_id(base_dir)
    save_wrapper(wrapper, out_dir, overwrite=cfg.artifacts.overwrite)

    return {
        'artifact_dir': str(out_dir),
        'family': wrapper.family,
        'n_coefficients': len(wrapper.coefficients),
        'deviance': wrapper.deviance,
        'aic': wrapper.aic,
    }

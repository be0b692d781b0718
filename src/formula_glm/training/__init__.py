"""Config-driven fitting."""

from .fit import apply_overrides, fit_from_config, next_run_id

__all__ = ['apply_overrides', 'fit_from_config', 'next_run_id']

"""Exception types raised by formula_glm.

Each failure names the stage that produced it (encoding, solving,
persistence, transformation) so callers can branch on the type.
"""

from __future__ import annotations


class FormulaGlmError(Exception):
    """Base class for all formula_glm errors."""


class InvalidFormulaError(FormulaGlmError, ValueError):
    """Raised when a formula cannot be parsed or bound to the dataset schema."""


class SolverFailureError(FormulaGlmError, RuntimeError):
    """Raised when the GLM solver fails or produces non-finite estimates."""


class PersistenceError(FormulaGlmError, RuntimeError):
    """Raised when a saved model is missing, malformed, or unreadable."""


class SchemaMismatchError(FormulaGlmError, KeyError):
    """Raised when a dataset lacks columns a fitted stage expects."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ''


class SummaryUnavailableError(FormulaGlmError, RuntimeError):
    """Raised when a training summary is requested from a reloaded model."""

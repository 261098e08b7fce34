"""Local error taxonomy for stellar-dimming.

The pipeline fails fast: interpolation, binning and line extraction raise
instead of returning sentinel data. Exceptions carry a stable ``ErrorType`` so
downstream applications can translate them into their own error formats via
``to_envelope()``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    CONFIGURATION = "CONFIGURATION"
    DATA_SHAPE = "DATA_SHAPE"
    NUMERIC_DEGENERACY = "NUMERIC_DEGENERACY"
    BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ErrorType
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


def make_error(error_type: ErrorType, message: str, **context: Any) -> ErrorEnvelope:
    return ErrorEnvelope(type=error_type, message=message, context=dict(context))


class DimmingError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        context: Offending indices, windows or names, for reporting.
    """

    error_type: ErrorType = ErrorType.INTERNAL_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context)

    def to_envelope(self) -> ErrorEnvelope:
        return make_error(self.error_type, self.message, **self.context)


class ConfigurationError(DimmingError):
    """Input mismatch that no instrument can recover from.

    Raised for candidate lines with no samples on a wavelength grid, empty
    exposure windows, and grids that do not overlap an attenuation curve.
    """

    error_type = ErrorType.CONFIGURATION


class DataShapeError(DimmingError, ValueError):
    """Mismatched axis lengths or malformed arrays at construction time."""

    error_type = ErrorType.DATA_SHAPE


class NumericDegeneracyError(DimmingError):
    """Zero or non-finite baseline where a measurable depth was required."""

    error_type = ErrorType.NUMERIC_DEGENERACY


class CombinationBudgetError(DimmingError):
    """Combination search exceeded its subset count or time budget."""

    error_type = ErrorType.BUDGET_EXCEEDED

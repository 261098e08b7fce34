"""stellar-dimming: detectability of coronal dimming on Sun-like stars.

Scales a solar EUV spectral time series to a distant star, folds it through
instrument effective areas, and measures how significantly each instrument
would detect a coronal-dimming event, alone or with combined emission lines.
"""

from __future__ import annotations

from stellar_dimming.domain import (
    Baseline,
    CombinationResult,
    ComparisonResult,
    DimmingDepthResult,
    EmissionLineSeries,
    ExposureSeries,
    InstrumentResponse,
    InstrumentResult,
    SpectralTimeSeries,
)
from stellar_dimming.errors import (
    CombinationBudgetError,
    ConfigurationError,
    DataShapeError,
    DimmingError,
    NumericDegeneracyError,
)
from stellar_dimming.pipeline import DimmingConfig, DimmingPipeline, compare_instruments

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "SpectralTimeSeries",
    "InstrumentResponse",
    "ExposureSeries",
    "EmissionLineSeries",
    "Baseline",
    "DimmingDepthResult",
    "CombinationResult",
    "InstrumentResult",
    "ComparisonResult",
    "DimmingConfig",
    "DimmingPipeline",
    "compare_instruments",
    "DimmingError",
    "ConfigurationError",
    "DataShapeError",
    "NumericDegeneracyError",
    "CombinationBudgetError",
]

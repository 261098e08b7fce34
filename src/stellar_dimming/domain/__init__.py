"""Domain models for stellar-dimming.

This package is domain-only. Loading data from disk, attenuation physics and
plotting belong to collaborators (see ``stellar_dimming.data_sources``).
"""

from stellar_dimming.domain.dimming import (
    Baseline,
    CombinationResult,
    ComparisonResult,
    DimmingDepthResult,
    InstrumentResult,
)
from stellar_dimming.domain.spectrum import (
    CountRateSeries,
    EmissionLineSeries,
    ExposureSeries,
    InstrumentResponse,
    SpectralTimeSeries,
)

__all__ = [
    "SpectralTimeSeries",
    "InstrumentResponse",
    "CountRateSeries",
    "ExposureSeries",
    "EmissionLineSeries",
    "Baseline",
    "DimmingDepthResult",
    "CombinationResult",
    "InstrumentResult",
    "ComparisonResult",
]

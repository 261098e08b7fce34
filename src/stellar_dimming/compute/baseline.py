"""Robust baseline intensity for emission-line time series.

The baseline is the median over the whole time axis. This assumes quiescent
exposures outnumber dimmed ones; there is no dedicated pre-event window.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from stellar_dimming.domain.dimming import Baseline
from stellar_dimming.errors import DataShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.spectrum import EmissionLineSeries

# One-sigma-equivalent percentiles of a normal distribution.
LOWER_PERCENTILE = 16.0
UPPER_PERCENTILE = 84.0


def baseline_from_intensity(intensity: NDArray[np.float64]) -> Baseline:
    """Median and percentile-width uncertainty of each row of ``intensity``."""
    intensity = np.asarray(intensity, dtype=np.float64)
    if intensity.ndim != 2 or intensity.shape[1] == 0:
        raise DataShapeError(
            f"intensity must be 2-D with at least one exposure, got shape {intensity.shape}"
        )
    p16, p50, p84 = np.percentile(
        intensity, [LOWER_PERCENTILE, 50.0, UPPER_PERCENTILE], axis=1
    )
    uncertainty = ((p50 - p16) + (p84 - p50)) / 2.0
    return Baseline(intensity=np.median(intensity, axis=1), uncertainty=uncertainty)


def estimate_baseline(series: EmissionLineSeries) -> Baseline:
    """Baseline per line (or per combined-line group) of ``series``."""
    return baseline_from_intensity(series.intensity)

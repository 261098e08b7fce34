"""Dimming depth and its propagated uncertainty.

The minimum is taken over a fixed leading window of exposures (the dataset's
known pre-event-to-event span). Its uncertainty is Poisson, sqrt(minimum).
The depth uncertainty combines minimum and baseline uncertainties to first
order, treating them as independent:

    sigma_depth = 100 * sqrt(sigma_min**2 / baseline**2
                             + sigma_base**2 * (minimum / baseline**2)**2)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from stellar_dimming.domain.dimming import DimmingDepthResult
from stellar_dimming.errors import ConfigurationError, DataShapeError, NumericDegeneracyError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.dimming import Baseline
    from stellar_dimming.domain.spectrum import EmissionLineSeries

logger = logging.getLogger(__name__)

DEFAULT_DIMMING_WINDOW_EXPOSURES = 12


def resolve_dimming_window(n_exposures: int, window_exposures: int) -> int:
    """Validate the leading window length, clamping it to the series length."""
    if window_exposures < 1:
        raise ConfigurationError(
            f"dimming window must cover at least one exposure, got {window_exposures}",
            dimming_window_exposures=window_exposures,
        )
    if n_exposures < 1:
        raise DataShapeError("Cannot measure dimming depth on a series with no exposures")
    if window_exposures > n_exposures:
        logger.warning(
            "Dimming window of %d exposures exceeds series length %d; using the full series",
            window_exposures,
            n_exposures,
        )
        return n_exposures
    return window_exposures


def propagate_depth_uncertainty(
    minimum_uncertainty: NDArray[np.float64],
    baseline: NDArray[np.float64],
    baseline_uncertainty: NDArray[np.float64],
    minimum_over_baseline_sq: NDArray[np.float64],
) -> NDArray[np.float64]:
    """First-order uncertainty on the percent depth."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        return 100.0 * np.sqrt(
            minimum_uncertainty**2 * (1.0 / baseline) ** 2
            + baseline_uncertainty**2 * minimum_over_baseline_sq**2
        )


def depth_from_intensity(
    intensity: NDArray[np.float64],
    baseline: Baseline,
    *,
    window_exposures: int = DEFAULT_DIMMING_WINDOW_EXPOSURES,
    strict: bool = False,
) -> DimmingDepthResult:
    """Dimming depth of each row of ``intensity`` against ``baseline``.

    Args:
        intensity: Matrix indexed [row, exposure].
        baseline: Baseline per row.
        window_exposures: Number of leading exposures searched for the minimum.
        strict: Raise instead of flagging rows that cannot be measured.

    Returns:
        DimmingDepthResult with one entry per row.

    Raises:
        NumericDegeneracyError: If ``strict`` and any row is unmeasurable.
    """
    intensity = np.asarray(intensity, dtype=np.float64)
    if intensity.ndim != 2:
        raise DataShapeError(f"intensity must be 2-D, got shape {intensity.shape}")
    if intensity.shape[0] != len(baseline):
        raise DataShapeError(
            f"intensity rows {intensity.shape[0]} != baseline length {len(baseline)}"
        )
    window = resolve_dimming_window(intensity.shape[1], window_exposures)

    base = baseline.intensity
    minimum = intensity[:, :window].min(axis=1)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        depth = (base - minimum) / base * 100.0
        minimum_uncertainty = np.sqrt(minimum)
        ratio = minimum / base**2
    depth_uncertainty = propagate_depth_uncertainty(
        minimum_uncertainty, base, baseline.uncertainty, ratio
    )

    measurable = (
        np.isfinite(base)
        & (base > 0)
        & np.isfinite(minimum)
        & (minimum >= 0)
        & np.isfinite(depth)
        & np.isfinite(depth_uncertainty)
        & (depth_uncertainty > 0)
    )
    if not np.all(measurable):
        bad_rows = np.flatnonzero(~measurable).tolist()
        if strict:
            raise NumericDegeneracyError(
                f"Dimming depth is unmeasurable for rows {bad_rows} "
                "(zero, negative or non-finite baseline, or zero propagated uncertainty)",
                rows=bad_rows,
            )
        logger.warning("Dimming depth unmeasurable for rows %s", bad_rows)
        depth = np.where(measurable, depth, np.nan)
        depth_uncertainty = np.where(measurable, depth_uncertainty, np.nan)

    return DimmingDepthResult(
        minimum=minimum,
        depth_percent=depth,
        minimum_uncertainty=minimum_uncertainty,
        minimum_over_baseline_sq=ratio,
        depth_uncertainty_percent=depth_uncertainty,
        measurable=measurable,
    )


def measure_dimming_depth(
    series: EmissionLineSeries,
    baseline: Baseline,
    *,
    window_exposures: int = DEFAULT_DIMMING_WINDOW_EXPOSURES,
    strict: bool = False,
) -> DimmingDepthResult:
    """Dimming depth per line of ``series`` (see ``depth_from_intensity``)."""
    return depth_from_intensity(
        series.intensity,
        baseline,
        window_exposures=window_exposures,
        strict=strict,
    )

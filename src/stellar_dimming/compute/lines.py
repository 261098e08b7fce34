"""Integrate exposure spectra over dimming-sensitive emission lines."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from stellar_dimming.domain.spectrum import EmissionLineSeries
from stellar_dimming.errors import ConfigurationError, DataShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.spectrum import ExposureSeries

logger = logging.getLogger(__name__)

# Coronal iron lines (Fe IX - Fe XVI) that dim during coronal mass ejections.
DEFAULT_LINE_CENTERS: tuple[float, ...] = (
    171.1,
    177.2,
    180.4,
    195.1,
    202.0,
    211.3,
    264.8,
    274.2,
    284.2,
    335.4,
    360.8,
)

DEFAULT_LINE_HALF_WIDTH = 1.0


def wavelength_spacing(wave: NDArray[np.float64]) -> float:
    """Sample spacing of a wavelength grid (median step)."""
    if len(wave) < 2:
        raise DataShapeError("Need at least two wavelength samples to define a spacing")
    return float(np.median(np.diff(wave)))


def line_window_mask(
    wave: NDArray[np.float64],
    center: float,
    half_width: float = DEFAULT_LINE_HALF_WIDTH,
) -> NDArray[np.bool_]:
    """Samples with ``|wave - center| <= half_width``."""
    return np.abs(wave - center) <= half_width


def extract_emission_lines(
    series: ExposureSeries,
    line_centers: Sequence[float] = DEFAULT_LINE_CENTERS,
    *,
    half_width: float = DEFAULT_LINE_HALF_WIDTH,
    drop_final_exposure: bool = True,
) -> EmissionLineSeries:
    """Integrate counts around each candidate line center.

    Each line's intensity is the sum of counts over samples within
    ``half_width`` of its center, times the wavelength spacing. The final
    exposure of the reference product is invalid, so it is dropped by default.

    Args:
        series: Integrated counts per exposure.
        line_centers: Candidate line centers, in output row order.
        half_width: Half-width of the inclusive integration window.
        drop_final_exposure: Drop the last exposure column and timestamp.

    Returns:
        EmissionLineSeries indexed [line, exposure].

    Raises:
        ConfigurationError: If a line center has no samples in its window.
    """
    if len(line_centers) == 0:
        raise ConfigurationError("At least one emission line center is required")
    if not half_width > 0:
        raise ConfigurationError(f"half_width must be positive, got {half_width}")

    dwave = wavelength_spacing(series.wave)
    intensity = np.empty((len(line_centers), series.n_exposures), dtype=np.float64)
    for i, center in enumerate(line_centers):
        mask = line_window_mask(series.wave, center, half_width)
        if not np.any(mask):
            raise ConfigurationError(
                f"Emission line {i} at {center} has no samples on the {series.name} "
                f"wavelength grid [{series.wave[0]}, {series.wave[-1]}]",
                line_index=i,
                line_center=float(center),
                instrument=series.name,
            )
        intensity[i, :] = series.counts[mask, :].sum(axis=0) * dwave

    jd = series.jd
    time_iso = series.time_iso
    if drop_final_exposure:
        if series.n_exposures < 2:
            raise DataShapeError(
                "Cannot drop the final exposure of a series with fewer than two exposures",
                n_exposures=series.n_exposures,
            )
        intensity = intensity[:, :-1]
        jd = jd[:-1]
        time_iso = time_iso[:-1]

    logger.debug(
        "%s: extracted %d lines over %d exposures", series.name, len(line_centers), len(jd)
    )
    return EmissionLineSeries(
        name=series.name,
        line_centers=tuple(line_centers),
        intensity=intensity,
        jd=jd,
        time_iso=time_iso,
        exposure_time_sec=series.exposure_time_sec,
    )

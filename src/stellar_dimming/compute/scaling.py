"""Rescale a 1-AU solar spectrum to a distant Sun-like star.

This module provides:
- distance_scale_factor: inverse-square dilution from 1 AU to a distance in pc
- scale_distance: apply that dilution to a spectral series
- scale_attenuation: multiply by an interstellar transmittance curve
- scale_coronal_temperature / scale_background_event_ratio: no-op hooks
- scale_spectrum: all of the above in order
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import astropy.units as u
import numpy as np

from stellar_dimming.errors import ConfigurationError

if TYPE_CHECKING:
    from stellar_dimming.data_sources.contracts import Attenuator
    from stellar_dimming.domain.spectrum import SpectralTimeSeries

logger = logging.getLogger(__name__)

AU_CM = float(u.au.to(u.cm))
PC_CM = float(u.pc.to(u.cm))

DOPPLER_SHIFT_KMS = 0.0
DOPPLER_BROADENING_KMS = 10.0


def distance_scale_factor(distance_pc: float) -> float:
    """Return (1 AU / distance)**2 with both lengths in centimeters."""
    if not distance_pc > 0 or not math.isfinite(distance_pc):
        raise ConfigurationError(
            f"distance_pc must be positive and finite, got {distance_pc}",
            distance_pc=distance_pc,
        )
    return (AU_CM / (distance_pc * PC_CM)) ** 2


def scale_distance(series: SpectralTimeSeries, distance_pc: float) -> SpectralTimeSeries:
    """Dilute irradiance observed at 1 AU to a star at ``distance_pc``."""
    factor = distance_scale_factor(distance_pc)
    return series.with_irradiance(series.irradiance * factor)


def scale_attenuation(
    series: SpectralTimeSeries,
    column_density: float,
    attenuator: Attenuator,
) -> SpectralTimeSeries:
    """Apply interstellar absorption for a foreground column density.

    The attenuator is queried with log10(column density) in cm^-2 and fixed
    Doppler parameters. Its curve is interpolated onto the series grid with
    edge values held beyond the curve's domain.

    Raises:
        ConfigurationError: If the series grid and the curve do not overlap.
    """
    if not column_density > 0:
        raise ConfigurationError(
            f"column_density must be positive, got {column_density}",
            column_density=column_density,
        )
    curve_wave, curve_trans = attenuator.transmittance(
        math.log10(column_density),
        doppler_shift_kms=DOPPLER_SHIFT_KMS,
        doppler_broadening_kms=DOPPLER_BROADENING_KMS,
    )
    curve_wave = np.asarray(curve_wave, dtype=np.float64)
    curve_trans = np.asarray(curve_trans, dtype=np.float64)
    if curve_wave.size == 0 or curve_wave.shape != curve_trans.shape:
        raise ConfigurationError(
            "Attenuation curve must be non-empty with matching wave/transmittance lengths",
            curve_wave_length=int(curve_wave.size),
            curve_trans_length=int(curve_trans.size),
        )

    order = np.argsort(curve_wave)
    curve_wave = curve_wave[order]
    curve_trans = curve_trans[order]

    lo, hi = float(curve_wave[0]), float(curve_wave[-1])
    overlap = (series.wave >= lo) & (series.wave <= hi)
    if not np.any(overlap):
        raise ConfigurationError(
            f"Wavelength grid [{series.wave[0]}, {series.wave[-1]}] does not overlap "
            f"attenuation curve domain [{lo}, {hi}]",
            grid=[float(series.wave[0]), float(series.wave[-1])],
            curve=[lo, hi],
        )
    n_outside = int(np.sum(~overlap))
    if n_outside:
        logger.debug(
            "Holding edge transmittance for %d of %d wavelength samples", n_outside, len(overlap)
        )

    transmittance = np.interp(series.wave, curve_wave, curve_trans)
    return series.with_irradiance(series.irradiance * transmittance[:, np.newaxis])


def scale_coronal_temperature(
    series: SpectralTimeSeries,
    coronal_temperature_k: float,
) -> SpectralTimeSeries:
    """Coronal-temperature rescaling hook. Not yet modeled: returns ``series``."""
    logger.debug("Coronal temperature scaling not yet modeled (T=%.3g K)", coronal_temperature_k)
    return series


def scale_background_event_ratio(
    series: SpectralTimeSeries,
    expected_bg_event_ratio: float,
) -> SpectralTimeSeries:
    """Background-to-event ratio rescaling hook. Not yet modeled: returns ``series``."""
    logger.debug(
        "Background/event ratio scaling not yet modeled (ratio=%.3g)", expected_bg_event_ratio
    )
    return series


def scale_spectrum(
    series: SpectralTimeSeries,
    *,
    attenuator: Attenuator,
    distance_pc: float = 6.0,
    column_density: float = 1e18,
    coronal_temperature_k: float = 1e6,
    expected_bg_event_ratio: float = 1.0,
) -> SpectralTimeSeries:
    """Emulate observing ``series`` on a star at a distance behind an absorbing column.

    Args:
        series: Reference irradiance at 1 AU.
        attenuator: Interstellar transmittance model.
        distance_pc: Target distance in parsecs.
        column_density: Foreground column density in cm^-2.
        coronal_temperature_k: Passed to the temperature hook (no-op).
        expected_bg_event_ratio: Passed to the background-ratio hook (no-op).

    Returns:
        New SpectralTimeSeries with the same shape as ``series``.
    """
    scaled = scale_distance(series, distance_pc)
    scaled = scale_attenuation(scaled, column_density, attenuator)
    scaled = scale_coronal_temperature(scaled, coronal_temperature_k)
    scaled = scale_background_event_ratio(scaled, expected_bg_event_ratio)
    logger.info(
        "Scaled spectrum to %.3g pc, N=%.3g cm^-2 (%d wavelengths x %d times)",
        distance_pc,
        column_density,
        scaled.n_wave,
        scaled.n_times,
    )
    return scaled

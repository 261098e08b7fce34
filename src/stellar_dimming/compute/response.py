"""Fold a scaled spectrum through an instrument's effective area."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from scipy.interpolate import interp1d

from stellar_dimming.domain.spectrum import CountRateSeries

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.spectrum import InstrumentResponse, SpectralTimeSeries

logger = logging.getLogger(__name__)


def interpolate_effective_area(
    response: InstrumentResponse,
    wave: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Linearly interpolate an effective-area curve onto ``wave``.

    Beyond the instrument's grid the curve is linearly extrapolated from its
    two edge samples, then clipped at zero since an effective area cannot be
    negative. A single-sample curve is held constant.
    """
    if len(response.wave) == 1:
        return np.full(len(wave), response.aeff[0], dtype=np.float64)

    n_outside = int(np.sum((wave < response.wave[0]) | (wave > response.wave[-1])))
    if n_outside:
        logger.debug(
            "%s: extrapolating effective area for %d of %d samples",
            response.name,
            n_outside,
            len(wave),
        )

    f = interp1d(
        response.wave,
        response.aeff,
        kind="linear",
        bounds_error=False,
        fill_value="extrapolate",
        assume_sorted=True,
    )
    aeff = np.asarray(f(wave), dtype=np.float64)
    return np.clip(aeff, 0.0, None)


def fold_instrument_response(
    series: SpectralTimeSeries,
    response: InstrumentResponse,
) -> CountRateSeries:
    """Convert irradiance into instrument count rate.

    Every time column of ``series.irradiance`` is multiplied elementwise by
    the effective area interpolated onto ``series.wave``.

    Args:
        series: Scaled irradiance.
        response: Instrument effective-area curve.

    Returns:
        CountRateSeries carrying the instrument name, the series grid, the
        interpolated effective area and the original time axis.
    """
    aeff = interpolate_effective_area(response, series.wave)
    count_rate = series.irradiance * aeff[:, np.newaxis]
    return CountRateSeries(
        name=response.name,
        wave=series.wave,
        aeff=aeff,
        count_rate=count_rate,
        jd=series.jd,
        time_iso=series.time_iso,
    )

"""Integrate a count-rate time series into fixed-length exposures.

This module provides:
- elapsed_seconds: Julian dates to seconds since the first sample
- exposure_windows: sample index ranges for each exposure window
- integrate_exposures: sum count rates into integrated counts per exposure
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from stellar_dimming.domain.spectrum import ExposureSeries
from stellar_dimming.errors import ConfigurationError, DataShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.spectrum import CountRateSeries

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

# Time resolution of the reference irradiance product (seconds per sample).
NATIVE_CADENCE_SEC = 10.0


def elapsed_seconds(jd: NDArray[np.float64]) -> NDArray[np.float64]:
    """Seconds elapsed since ``jd[0]``, rounded to the millisecond.

    Rounding keeps samples on exact cadence multiples from drifting across a
    window boundary through Julian-date float error.
    """
    if len(jd) == 0:
        return np.array([], dtype=np.float64)
    return np.round((np.asarray(jd, dtype=np.float64) - jd[0]) * SECONDS_PER_DAY, 3)


def exposure_windows(
    elapsed: NDArray[np.float64],
    exposure_time_sec: float,
) -> list[tuple[int, int]]:
    """Return ``(start, stop)`` sample slices for each exposure window.

    Windows are ``[i * exposure_time_sec, (i + 1) * exposure_time_sec)`` for
    ``i`` in ``range(ceil(max(elapsed) / exposure_time_sec))``.

    Raises:
        DataShapeError: If fewer than two samples span a non-zero interval.
        ConfigurationError: If any window contains no samples.
    """
    if not exposure_time_sec > 0:
        raise ConfigurationError(
            f"exposure_time_sec must be positive, got {exposure_time_sec}",
            exposure_time_sec=exposure_time_sec,
        )
    if len(elapsed) < 2 or not elapsed[-1] > 0:
        raise DataShapeError(
            "Need at least two time samples spanning a non-zero interval to integrate exposures",
            n_samples=len(elapsed),
        )

    n_exposures = math.ceil(float(elapsed[-1]) / exposure_time_sec)
    windows: list[tuple[int, int]] = []
    for i in range(n_exposures):
        t_start = i * exposure_time_sec
        t_stop = t_start + exposure_time_sec
        start = int(np.searchsorted(elapsed, t_start, side="left"))
        stop = int(np.searchsorted(elapsed, t_stop, side="left"))
        if stop <= start:
            raise ConfigurationError(
                f"Exposure window {i} [{t_start:.1f}s, {t_stop:.1f}s) contains no samples; "
                "input cadence has a gap",
                window_index=i,
                window_start_sec=t_start,
                window_stop_sec=t_stop,
            )
        windows.append((start, stop))
    return windows


def integrate_exposures(
    series: CountRateSeries,
    exposure_time_sec: float = 1800.0,
    *,
    native_cadence_sec: float = NATIVE_CADENCE_SEC,
) -> ExposureSeries:
    """Bin count rates into integrated-count exposures.

    Each exposure sums the count rate over the samples in its window and
    multiplies by the native cadence. The exposure is stamped with the
    timestamp of its middle sample (index ``n // 2`` within the window), not
    a true bin center.

    Args:
        series: Count rate per wavelength and native time sample.
        exposure_time_sec: Exposure length in seconds.
        native_cadence_sec: Seconds represented by one native sample.

    Returns:
        ExposureSeries with one column per exposure window.
    """
    if not native_cadence_sec > 0:
        raise ConfigurationError(
            f"native_cadence_sec must be positive, got {native_cadence_sec}",
            native_cadence_sec=native_cadence_sec,
        )
    elapsed = elapsed_seconds(series.jd)
    windows = exposure_windows(elapsed, exposure_time_sec)

    counts = np.empty((len(series.wave), len(windows)), dtype=np.float64)
    mid_idx = np.empty(len(windows), dtype=np.intp)
    samples: list[int] = []
    for i, (start, stop) in enumerate(windows):
        counts[:, i] = series.count_rate[:, start:stop].sum(axis=1) * native_cadence_sec
        mid_idx[i] = start + (stop - start) // 2
        samples.append(stop - start)

    n_dropped = len(series.jd) - windows[-1][1]
    if n_dropped:
        logger.debug("%s: %d trailing samples fall on the final window boundary", series.name, n_dropped)
    logger.info(
        "%s: integrated %d samples into %d exposures of %.0fs",
        series.name,
        len(series.jd),
        len(windows),
        exposure_time_sec,
    )

    return ExposureSeries(
        name=series.name,
        wave=series.wave,
        counts=counts,
        jd=series.jd[mid_idx],
        time_iso=tuple(series.time_iso[j] for j in mid_idx),
        exposure_time_sec=exposure_time_sec,
        samples_per_exposure=tuple(samples),
    )

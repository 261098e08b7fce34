"""Spectral time-series domain models.

This module provides the array-carrying structures passed between pipeline
stages:
- SpectralTimeSeries: irradiance over [wavelength, time]
- InstrumentResponse: effective-area curve for one instrument
- CountRateSeries: irradiance folded through an instrument response
- ExposureSeries: count rates integrated into fixed-length exposures
- EmissionLineSeries: per-line intensity over exposures

Each stage builds a new structure; arrays are made read-only on construction
so a structure can be shared across instruments and worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from stellar_dimming.errors import DataShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray


def _as_float_array(name: str, value: Any, ndim: int) -> NDArray[np.float64]:
    arr = np.array(value, dtype=np.float64)
    if arr.ndim != ndim:
        raise DataShapeError(f"{name} must be {ndim}-D, got shape {arr.shape}", field=name)
    return arr


def _freeze(*arrays: np.ndarray[Any, Any]) -> None:
    for arr in arrays:
        arr.flags.writeable = False


def _check_wave(wave: NDArray[np.float64], name: str = "wave") -> None:
    if wave.size == 0:
        raise DataShapeError(f"{name} must not be empty", field=name)
    if wave.size > 1 and not np.all(np.diff(wave) > 0):
        raise DataShapeError(f"{name} must be strictly ascending and unique", field=name)


def _check_time_axis(
    jd: NDArray[np.float64],
    time_iso: tuple[str, ...],
    n_columns: int,
) -> None:
    if len(jd) != n_columns:
        raise DataShapeError(
            f"jd length {len(jd)} != matrix time dimension {n_columns}",
            jd_length=len(jd),
            n_columns=n_columns,
        )
    if len(time_iso) != len(jd):
        raise DataShapeError(
            f"time_iso length {len(time_iso)} != jd length {len(jd)}",
            time_iso_length=len(time_iso),
            jd_length=len(jd),
        )
    if len(jd) > 1 and not np.all(np.diff(jd) > 0):
        raise DataShapeError("jd must be strictly increasing")


@dataclass(frozen=True)
class SpectralTimeSeries:
    """Irradiance as a function of wavelength and time.

    Attributes:
        wave: Wavelength grid (ascending, unique), in Angstrom-equivalent units.
        irradiance: Matrix indexed [wavelength, time].
        jd: Julian dates, strictly increasing.
        time_iso: Human-readable timestamps parallel to ``jd``.
    """

    wave: NDArray[np.float64]
    irradiance: NDArray[np.float64]
    jd: NDArray[np.float64]
    time_iso: tuple[str, ...]

    def __post_init__(self) -> None:
        wave = _as_float_array("wave", self.wave, 1)
        irradiance = _as_float_array("irradiance", self.irradiance, 2)
        jd = _as_float_array("jd", self.jd, 1)
        time_iso = tuple(str(t) for t in self.time_iso)

        _check_wave(wave)
        if irradiance.shape[0] != len(wave):
            raise DataShapeError(
                f"wave length {len(wave)} != matrix wavelength dimension {irradiance.shape[0]}",
                wave_length=len(wave),
                n_rows=irradiance.shape[0],
            )
        _check_time_axis(jd, time_iso, irradiance.shape[1])

        _freeze(wave, irradiance, jd)
        object.__setattr__(self, "wave", wave)
        object.__setattr__(self, "irradiance", irradiance)
        object.__setattr__(self, "jd", jd)
        object.__setattr__(self, "time_iso", time_iso)

    @property
    def n_wave(self) -> int:
        return len(self.wave)

    @property
    def n_times(self) -> int:
        return len(self.jd)

    def with_irradiance(self, irradiance: NDArray[np.float64]) -> SpectralTimeSeries:
        """Return a new series on the same axes with a different matrix."""
        return SpectralTimeSeries(
            wave=self.wave,
            irradiance=irradiance,
            jd=self.jd,
            time_iso=self.time_iso,
        )

    def restrict_wavelengths(self, low: float, high: float) -> SpectralTimeSeries:
        """Keep only wavelength samples within [low, high]."""
        mask = (self.wave >= low) & (self.wave <= high)
        if not np.any(mask):
            raise DataShapeError(
                f"No wavelength samples within bandpass [{low}, {high}]",
                bandpass=[low, high],
            )
        return SpectralTimeSeries(
            wave=self.wave[mask],
            irradiance=self.irradiance[mask, :],
            jd=self.jd,
            time_iso=self.time_iso,
        )


@dataclass(frozen=True)
class InstrumentResponse:
    """Effective-area curve (area x quantum efficiency) of one instrument."""

    name: str
    wave: NDArray[np.float64]
    aeff: NDArray[np.float64]

    def __post_init__(self) -> None:
        wave = _as_float_array("wave", self.wave, 1)
        aeff = _as_float_array("aeff", self.aeff, 1)
        _check_wave(wave)
        if len(aeff) != len(wave):
            raise DataShapeError(
                f"aeff length {len(aeff)} != wave length {len(wave)} for {self.name}",
                instrument=self.name,
            )
        if np.any(~np.isfinite(aeff)) or np.any(aeff < 0):
            raise DataShapeError(
                f"aeff must be finite and non-negative for {self.name}",
                instrument=self.name,
            )
        _freeze(wave, aeff)
        object.__setattr__(self, "wave", wave)
        object.__setattr__(self, "aeff", aeff)


@dataclass(frozen=True)
class CountRateSeries:
    """Irradiance folded through an instrument's effective area.

    Attributes:
        name: Instrument name.
        wave: Wavelength grid of the source series.
        aeff: Effective area interpolated onto ``wave``.
        count_rate: Counts per second, indexed [wavelength, time].
        jd: Julian dates of the source series.
        time_iso: Timestamps of the source series.
    """

    name: str
    wave: NDArray[np.float64]
    aeff: NDArray[np.float64]
    count_rate: NDArray[np.float64]
    jd: NDArray[np.float64]
    time_iso: tuple[str, ...]

    def __post_init__(self) -> None:
        wave = _as_float_array("wave", self.wave, 1)
        aeff = _as_float_array("aeff", self.aeff, 1)
        count_rate = _as_float_array("count_rate", self.count_rate, 2)
        jd = _as_float_array("jd", self.jd, 1)
        time_iso = tuple(str(t) for t in self.time_iso)

        _check_wave(wave)
        if len(aeff) != len(wave) or count_rate.shape[0] != len(wave):
            raise DataShapeError(
                f"aeff/count_rate wavelength dimension does not match wave length {len(wave)}",
                instrument=self.name,
            )
        _check_time_axis(jd, time_iso, count_rate.shape[1])

        _freeze(wave, aeff, count_rate, jd)
        object.__setattr__(self, "wave", wave)
        object.__setattr__(self, "aeff", aeff)
        object.__setattr__(self, "count_rate", count_rate)
        object.__setattr__(self, "jd", jd)
        object.__setattr__(self, "time_iso", time_iso)


@dataclass(frozen=True)
class ExposureSeries:
    """Integrated counts per fixed-length exposure.

    The final exposure may cover a shorter span than ``exposure_time_sec``.
    ``samples_per_exposure`` records how many native samples each column sums.
    """

    name: str
    wave: NDArray[np.float64]
    counts: NDArray[np.float64]
    jd: NDArray[np.float64]
    time_iso: tuple[str, ...]
    exposure_time_sec: float
    samples_per_exposure: tuple[int, ...]

    def __post_init__(self) -> None:
        wave = _as_float_array("wave", self.wave, 1)
        counts = _as_float_array("counts", self.counts, 2)
        jd = _as_float_array("jd", self.jd, 1)
        time_iso = tuple(str(t) for t in self.time_iso)
        samples = tuple(int(n) for n in self.samples_per_exposure)

        _check_wave(wave)
        if counts.shape[0] != len(wave):
            raise DataShapeError(
                f"wave length {len(wave)} != counts wavelength dimension {counts.shape[0]}",
                instrument=self.name,
            )
        _check_time_axis(jd, time_iso, counts.shape[1])
        if len(samples) != counts.shape[1]:
            raise DataShapeError(
                f"samples_per_exposure length {len(samples)} != n exposures {counts.shape[1]}",
                instrument=self.name,
            )
        if self.exposure_time_sec <= 0:
            raise DataShapeError(f"exposure_time_sec must be positive, got {self.exposure_time_sec}")

        _freeze(wave, counts, jd)
        object.__setattr__(self, "wave", wave)
        object.__setattr__(self, "counts", counts)
        object.__setattr__(self, "jd", jd)
        object.__setattr__(self, "time_iso", time_iso)
        object.__setattr__(self, "samples_per_exposure", samples)
        object.__setattr__(self, "exposure_time_sec", float(self.exposure_time_sec))

    @property
    def n_exposures(self) -> int:
        return len(self.jd)


@dataclass(frozen=True)
class EmissionLineSeries:
    """Intensity of each candidate emission line over exposures.

    Rows follow ``line_centers`` order. A combined-line group is represented
    with the same structure, one row per group.
    """

    name: str
    line_centers: tuple[float, ...]
    intensity: NDArray[np.float64]
    jd: NDArray[np.float64]
    time_iso: tuple[str, ...]
    exposure_time_sec: float

    def __post_init__(self) -> None:
        centers = tuple(float(c) for c in self.line_centers)
        intensity = _as_float_array("intensity", self.intensity, 2)
        jd = _as_float_array("jd", self.jd, 1)
        time_iso = tuple(str(t) for t in self.time_iso)

        if intensity.shape[0] != len(centers):
            raise DataShapeError(
                f"line_centers length {len(centers)} != intensity rows {intensity.shape[0]}",
                instrument=self.name,
            )
        _check_time_axis(jd, time_iso, intensity.shape[1])

        _freeze(intensity, jd)
        object.__setattr__(self, "line_centers", centers)
        object.__setattr__(self, "intensity", intensity)
        object.__setattr__(self, "jd", jd)
        object.__setattr__(self, "time_iso", time_iso)
        object.__setattr__(self, "exposure_time_sec", float(self.exposure_time_sec))

    @property
    def n_lines(self) -> int:
        return len(self.line_centers)

    @property
    def n_exposures(self) -> int:
        return len(self.jd)

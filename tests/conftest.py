"""Shared synthetic spectra and instruments for the dimming tests."""

from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np
import pytest

from stellar_dimming.compute.lines import DEFAULT_LINE_CENTERS
from stellar_dimming.domain.spectrum import InstrumentResponse, SpectralTimeSeries

JD0 = 2455000.5
EPOCH = datetime(2009, 6, 18, 0, 0, 0)


def make_time_axis(n_times: int, cadence_sec: float = 10.0) -> tuple[np.ndarray, tuple[str, ...]]:
    """Julian dates and ISO timestamps for a uniform cadence."""
    elapsed = np.arange(n_times, dtype=np.float64) * cadence_sec
    jd = JD0 + elapsed / 86400.0
    time_iso = tuple((EPOCH + timedelta(seconds=float(s))).isoformat() for s in elapsed)
    return jd, time_iso


def make_dimming_spectrum(
    *,
    hours: float = 6.0,
    cadence_sec: float = 60.0,
    wave_step: float = 0.1,
    wave_range: tuple[float, float] = (150.0, 380.0),
    line_amplitude: float = 1e15,
    continuum: float = 1e13,
    dip_fraction: float = 0.05,
    dip_start_sec: float = 1800.0,
    dip_stop_sec: float = 5400.0,
) -> SpectralTimeSeries:
    """Gaussian emission lines on a flat continuum with a box-shaped dimming.

    Only the line component dims; the continuum stays constant.
    """
    n_times = int(round(hours * 3600.0 / cadence_sec))
    wave = np.round(np.arange(wave_range[0], wave_range[1] + wave_step / 2, wave_step), 6)
    lines = np.zeros_like(wave)
    for center in DEFAULT_LINE_CENTERS:
        lines += line_amplitude * np.exp(-0.5 * ((wave - center) / 0.15) ** 2)

    jd, time_iso = make_time_axis(n_times, cadence_sec)
    elapsed = np.arange(n_times) * cadence_sec
    dimmed = (elapsed >= dip_start_sec) & (elapsed < dip_stop_sec)
    line_scale = np.where(dimmed, 1.0 - dip_fraction, 1.0)

    irradiance = continuum + lines[:, np.newaxis] * line_scale[np.newaxis, :]
    return SpectralTimeSeries(wave=wave, irradiance=irradiance, jd=jd, time_iso=time_iso)


@pytest.fixture
def dimming_spectrum() -> SpectralTimeSeries:
    return make_dimming_spectrum()


@pytest.fixture
def flat_instrument() -> InstrumentResponse:
    wave = np.linspace(70.0, 760.0, 100)
    return InstrumentResponse(name="flat", wave=wave, aeff=np.full_like(wave, 10.0))


@pytest.fixture
def sloped_instrument() -> InstrumentResponse:
    wave = np.linspace(100.0, 400.0, 50)
    return InstrumentResponse(name="sloped", wave=wave, aeff=np.linspace(1.0, 20.0, 50))


@pytest.fixture
def instruments(flat_instrument, sloped_instrument) -> list[InstrumentResponse]:
    return [flat_instrument, sloped_instrument]


@pytest.fixture
def spectrum_factory():
    return make_dimming_spectrum


@pytest.fixture
def time_axis_factory():
    return make_time_axis

"""Tests for spectral time-series domain models."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from stellar_dimming.domain.spectrum import (
    EmissionLineSeries,
    ExposureSeries,
    InstrumentResponse,
    SpectralTimeSeries,
)
from stellar_dimming.errors import DataShapeError


@pytest.fixture
def small_series(time_axis_factory) -> SpectralTimeSeries:
    jd, time_iso = time_axis_factory(4)
    wave = np.array([100.0, 101.0, 102.0])
    irradiance = np.arange(12, dtype=np.float64).reshape(3, 4)
    return SpectralTimeSeries(wave=wave, irradiance=irradiance, jd=jd, time_iso=time_iso)


class TestSpectralTimeSeries:
    def test_shapes(self, small_series: SpectralTimeSeries) -> None:
        assert small_series.n_wave == 3
        assert small_series.n_times == 4
        assert len(small_series.time_iso) == 4

    def test_arrays_are_read_only(self, small_series: SpectralTimeSeries) -> None:
        with pytest.raises(ValueError):
            small_series.irradiance[0, 0] = 1.0
        with pytest.raises(ValueError):
            small_series.wave[0] = 1.0

    def test_does_not_freeze_caller_arrays(self, time_axis_factory) -> None:
        jd, time_iso = time_axis_factory(2)
        irradiance = np.ones((2, 2))
        SpectralTimeSeries(wave=np.array([1.0, 2.0]), irradiance=irradiance, jd=jd, time_iso=time_iso)
        irradiance[0, 0] = 5.0

    def test_wave_length_mismatch(self, time_axis_factory) -> None:
        jd, time_iso = time_axis_factory(4)
        with pytest.raises(DataShapeError, match="wave length"):
            SpectralTimeSeries(
                wave=np.array([1.0, 2.0]), irradiance=np.ones((3, 4)), jd=jd, time_iso=time_iso
            )

    def test_time_length_mismatch(self, time_axis_factory) -> None:
        jd, time_iso = time_axis_factory(3)
        with pytest.raises(DataShapeError, match="jd length"):
            SpectralTimeSeries(
                wave=np.array([1.0, 2.0]), irradiance=np.ones((2, 4)), jd=jd, time_iso=time_iso
            )

    def test_time_iso_mismatch(self, time_axis_factory) -> None:
        jd, time_iso = time_axis_factory(4)
        with pytest.raises(DataShapeError, match="time_iso"):
            SpectralTimeSeries(
                wave=np.array([1.0, 2.0]), irradiance=np.ones((2, 4)), jd=jd, time_iso=time_iso[:3]
            )

    def test_wave_must_ascend(self, time_axis_factory) -> None:
        jd, time_iso = time_axis_factory(2)
        with pytest.raises(DataShapeError, match="ascending"):
            SpectralTimeSeries(
                wave=np.array([2.0, 1.0]), irradiance=np.ones((2, 2)), jd=jd, time_iso=time_iso
            )

    def test_jd_must_increase(self) -> None:
        with pytest.raises(DataShapeError, match="increasing"):
            SpectralTimeSeries(
                wave=np.array([1.0, 2.0]),
                irradiance=np.ones((2, 2)),
                jd=np.array([2.0, 1.0]),
                time_iso=("a", "b"),
            )

    def test_restrict_wavelengths(self, small_series: SpectralTimeSeries) -> None:
        restricted = small_series.restrict_wavelengths(100.5, 102.0)
        assert_array_equal(restricted.wave, [101.0, 102.0])
        assert_array_equal(restricted.irradiance, small_series.irradiance[1:, :])

    def test_restrict_wavelengths_empty(self, small_series: SpectralTimeSeries) -> None:
        with pytest.raises(DataShapeError, match="bandpass"):
            small_series.restrict_wavelengths(500.0, 800.0)

    def test_with_irradiance_builds_new_series(self, small_series: SpectralTimeSeries) -> None:
        doubled = small_series.with_irradiance(small_series.irradiance * 2)
        assert doubled is not small_series
        assert_array_equal(doubled.irradiance, small_series.irradiance * 2)
        assert_array_equal(small_series.irradiance, np.arange(12).reshape(3, 4))


class TestInstrumentResponse:
    def test_valid(self) -> None:
        r = InstrumentResponse(name="a", wave=[1.0, 2.0], aeff=[0.0, 3.0])
        assert r.aeff.dtype == np.float64

    def test_negative_aeff_rejected(self) -> None:
        with pytest.raises(DataShapeError, match="non-negative"):
            InstrumentResponse(name="a", wave=[1.0, 2.0], aeff=[-1.0, 3.0])

    def test_length_mismatch(self) -> None:
        with pytest.raises(DataShapeError):
            InstrumentResponse(name="a", wave=[1.0, 2.0], aeff=[1.0])


class TestExposureAndLineSeries:
    def test_exposure_samples_length_checked(self) -> None:
        with pytest.raises(DataShapeError, match="samples_per_exposure"):
            ExposureSeries(
                name="x",
                wave=[1.0, 2.0],
                counts=np.ones((2, 2)),
                jd=[1.0, 2.0],
                time_iso=("a", "b"),
                exposure_time_sec=60.0,
                samples_per_exposure=(6,),
            )

    def test_line_series_rows_match_centers(self) -> None:
        with pytest.raises(DataShapeError, match="line_centers"):
            EmissionLineSeries(
                name="x",
                line_centers=(171.1,),
                intensity=np.ones((2, 3)),
                jd=[1.0, 2.0, 3.0],
                time_iso=("a", "b", "c"),
                exposure_time_sec=60.0,
            )

    def test_line_series_counts(self) -> None:
        s = EmissionLineSeries(
            name="x",
            line_centers=(171.1, 195.1),
            intensity=np.ones((2, 3)),
            jd=[1.0, 2.0, 3.0],
            time_iso=("a", "b", "c"),
            exposure_time_sec=60.0,
        )
        assert s.n_lines == 2
        assert s.n_exposures == 3

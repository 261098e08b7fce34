from __future__ import annotations

import logging

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from stellar_dimming.data_sources.arrays import (
    ConstantAttenuator,
    InMemoryDataSource,
    TabulatedAttenuator,
)
from stellar_dimming.data_sources.contracts import Attenuator, DataSource
from stellar_dimming.errors import ConfigurationError, DataShapeError


def _transmittance(attenuator, log_n: float):
    return attenuator.transmittance(log_n, doppler_shift_kms=0.0, doppler_broadening_kms=10.0)


class TestInMemoryDataSource:
    def test_protocol_and_bandpass(self, dimming_spectrum, instruments) -> None:
        source = InMemoryDataSource(spectrum=dimming_spectrum, instruments=instruments)
        assert isinstance(source, DataSource)
        spectrum = source.load_spectrum((200.0, 250.0))
        assert spectrum.wave.min() >= 200.0
        assert spectrum.wave.max() <= 250.0
        assert spectrum.n_times == dimming_spectrum.n_times

    def test_instruments_returned_as_list(self, dimming_spectrum, instruments) -> None:
        source = InMemoryDataSource(spectrum=dimming_spectrum, instruments=tuple(instruments))
        assert source.load_instruments() == instruments


class TestConstantAttenuator:
    def test_flat_curve(self) -> None:
        attenuator = ConstantAttenuator(transmittance_value=0.25)
        assert isinstance(attenuator, Attenuator)
        wave, trans = _transmittance(attenuator, 18.0)
        assert_array_equal(wave, [1.0, 2000.0])
        assert_array_equal(trans, [0.25, 0.25])

    @pytest.mark.parametrize("bad", [-0.1, 1.5])
    def test_out_of_range(self, bad: float) -> None:
        with pytest.raises(ConfigurationError):
            ConstantAttenuator(transmittance_value=bad)


class TestTabulatedAttenuator:
    @pytest.fixture
    def attenuator(self) -> TabulatedAttenuator:
        return TabulatedAttenuator(
            wave=np.array([100.0, 200.0]),
            curves={17.0: [0.9, 0.8], 18.0: [0.5, 0.4], 19.0: [0.1, 0.0]},
        )

    def test_exact_key(self, attenuator: TabulatedAttenuator) -> None:
        _, trans = _transmittance(attenuator, 18.0)
        assert_array_equal(trans, [0.5, 0.4])

    def test_nearest_key_warns(
        self, attenuator: TabulatedAttenuator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="stellar_dimming.data_sources.arrays"):
            _, trans = _transmittance(attenuator, 18.4)
        assert_array_equal(trans, [0.5, 0.4])
        assert "No attenuation curve" in caplog.text

    def test_within_tolerance_is_silent(
        self, attenuator: TabulatedAttenuator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="stellar_dimming.data_sources.arrays"):
            _transmittance(attenuator, 18.01)
        assert caplog.text == ""

    def test_curves_read_only(self, attenuator: TabulatedAttenuator) -> None:
        _, trans = _transmittance(attenuator, 17.0)
        with pytest.raises(ValueError):
            trans[0] = 1.0

    def test_shape_mismatch(self) -> None:
        with pytest.raises(DataShapeError):
            TabulatedAttenuator(wave=np.array([1.0, 2.0]), curves={18.0: [0.5]})

    def test_no_curves(self) -> None:
        with pytest.raises(DataShapeError):
            TabulatedAttenuator(wave=np.array([1.0, 2.0]), curves={})

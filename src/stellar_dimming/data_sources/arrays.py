"""In-memory collaborators.

These adapters wrap arrays that are already loaded: a reference spectrum and
calibration curves held by the caller, and precomputed attenuation curves.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from stellar_dimming.errors import ConfigurationError, DataShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.spectrum import InstrumentResponse, SpectralTimeSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InMemoryDataSource:
    """DataSource over a spectrum and instrument curves held in memory."""

    spectrum: SpectralTimeSeries
    instruments: Sequence[InstrumentResponse]

    def load_spectrum(self, bandpass: tuple[float, float]) -> SpectralTimeSeries:
        low, high = bandpass
        return self.spectrum.restrict_wavelengths(low, high)

    def load_instruments(self) -> list[InstrumentResponse]:
        return list(self.instruments)


@dataclass(frozen=True)
class ConstantAttenuator:
    """Wavelength-independent transmittance.

    ``transmittance=1.0`` models a line of sight with no interstellar
    absorption.
    """

    transmittance_value: float = 1.0
    wave_range: tuple[float, float] = (1.0, 2000.0)

    def __post_init__(self) -> None:
        if not 0.0 <= self.transmittance_value <= 1.0:
            raise ConfigurationError(
                f"transmittance must be within [0, 1], got {self.transmittance_value}"
            )

    def transmittance(
        self,
        log_column_density: float,
        *,
        doppler_shift_kms: float,
        doppler_broadening_kms: float,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        wave = np.array(self.wave_range, dtype=np.float64)
        return wave, np.full(2, self.transmittance_value, dtype=np.float64)


@dataclass(frozen=True)
class TabulatedAttenuator:
    """Transmittance curves precomputed for a set of log10 column densities.

    Attributes:
        wave: Shared wavelength grid of the curves.
        curves: Mapping of log10(column density / cm^-2) to a transmittance
            curve on ``wave``.
        tolerance_dex: Largest allowed distance to the nearest tabulated
            column density before a warning is logged.
    """

    wave: NDArray[np.float64]
    curves: Mapping[float, NDArray[np.float64]]
    tolerance_dex: float = 0.05
    _keys: tuple[float, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        wave = np.array(self.wave, dtype=np.float64)
        if wave.ndim != 1 or wave.size == 0:
            raise DataShapeError("attenuation wave grid must be a non-empty 1-D array")
        if not self.curves:
            raise DataShapeError("at least one attenuation curve is required")
        curves: dict[float, NDArray[np.float64]] = {}
        for key, curve in self.curves.items():
            arr = np.array(curve, dtype=np.float64)
            if arr.shape != wave.shape:
                raise DataShapeError(
                    f"attenuation curve for log N={key} has shape {arr.shape}, expected {wave.shape}"
                )
            arr.flags.writeable = False
            curves[float(key)] = arr
        wave.flags.writeable = False
        object.__setattr__(self, "wave", wave)
        object.__setattr__(self, "curves", curves)
        object.__setattr__(self, "_keys", tuple(sorted(curves)))

    def transmittance(
        self,
        log_column_density: float,
        *,
        doppler_shift_kms: float,
        doppler_broadening_kms: float,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        keys = np.array(self._keys)
        nearest = float(keys[np.argmin(np.abs(keys - log_column_density))])
        if abs(nearest - log_column_density) > self.tolerance_dex:
            logger.warning(
                "No attenuation curve within %.2f dex of log N=%.2f; using log N=%.2f",
                self.tolerance_dex,
                log_column_density,
                nearest,
            )
        return self.wave, self.curves[nearest]


__all__ = ["InMemoryDataSource", "ConstantAttenuator", "TabulatedAttenuator"]

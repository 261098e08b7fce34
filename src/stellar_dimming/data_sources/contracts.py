"""Collaborator contracts for the dimming pipeline.

These contracts describe what the pipeline needs from its surroundings without
committing to a backend: where spectra and calibration tables come from, how
interstellar attenuation is modeled, and how results are displayed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.dimming import ComparisonResult
    from stellar_dimming.domain.spectrum import InstrumentResponse, SpectralTimeSeries


@runtime_checkable
class DataSource(Protocol):
    """Supplies the reference spectrum and instrument calibration tables."""

    def load_spectrum(self, bandpass: tuple[float, float]) -> SpectralTimeSeries:
        """Reference irradiance at 1 AU, restricted to ``bandpass``."""
        ...

    def load_instruments(self) -> list[InstrumentResponse]:
        """One effective-area curve per instrument under comparison."""
        ...


@runtime_checkable
class Attenuator(Protocol):
    """Interstellar-medium transmittance model."""

    def transmittance(
        self,
        log_column_density: float,
        *,
        doppler_shift_kms: float,
        doppler_broadening_kms: float,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return ``(wave, transmittance)`` with transmittance in [0, 1]."""
        ...


@runtime_checkable
class Visualizer(Protocol):
    """Consumes the final comparison records."""

    def render(self, comparison: ComparisonResult) -> None: ...


__all__ = ["DataSource", "Attenuator", "Visualizer"]

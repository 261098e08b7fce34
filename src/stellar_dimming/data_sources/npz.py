"""DataSource backed by ``numpy.savez`` archives in an explicit directory.

Layout::

    <data_dir>/spectrum.npz            wave, irradiance, jd, time_iso
    <data_dir>/instrument_<name>.npz   wave, aeff
    <data_dir>/attenuation.npz         wave, log_column_density, transmittance (optional)

``irradiance`` is indexed [wavelength, time]; ``transmittance`` is indexed
[column density, wavelength].
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np

from stellar_dimming.data_sources.arrays import TabulatedAttenuator
from stellar_dimming.domain.spectrum import InstrumentResponse, SpectralTimeSeries
from stellar_dimming.errors import ConfigurationError, DataShapeError

logger = logging.getLogger(__name__)

SPECTRUM_FILE = "spectrum.npz"
INSTRUMENT_PREFIX = "instrument_"
ATTENUATION_FILE = "attenuation.npz"


def _load_npz(path: Path, required: tuple[str, ...]) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigurationError(f"Data file not found: {path}", path=str(path))
    with np.load(path, allow_pickle=False) as archive:
        missing = [key for key in required if key not in archive.files]
        if missing:
            raise DataShapeError(f"{path.name} is missing arrays {missing}", path=str(path))
        return {key: archive[key] for key in required}


class NpzDataSource:
    """Reads the reference spectrum and instrument curves from ``data_dir``.

    Args:
        data_dir: Directory holding the archives.
        instruments: Instrument names to load. Defaults to every
            ``instrument_<name>.npz`` in the directory, sorted by name.
    """

    def __init__(self, data_dir: Path | str, instruments: list[str] | None = None) -> None:
        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            raise ConfigurationError(
                f"Data directory not found: {self.data_dir}", path=str(self.data_dir)
            )
        self._instrument_names = instruments

    def instrument_names(self) -> list[str]:
        if self._instrument_names is not None:
            return list(self._instrument_names)
        return sorted(
            p.stem[len(INSTRUMENT_PREFIX) :]
            for p in self.data_dir.glob(f"{INSTRUMENT_PREFIX}*.npz")
        )

    def load_spectrum(self, bandpass: tuple[float, float]) -> SpectralTimeSeries:
        arrays = _load_npz(
            self.data_dir / SPECTRUM_FILE, ("wave", "irradiance", "jd", "time_iso")
        )
        series = SpectralTimeSeries(
            wave=arrays["wave"],
            irradiance=arrays["irradiance"],
            jd=arrays["jd"],
            time_iso=tuple(str(t) for t in arrays["time_iso"]),
        )
        low, high = bandpass
        logger.info(
            "Loaded spectrum: %d wavelengths x %d times from %s",
            series.n_wave,
            series.n_times,
            self.data_dir,
        )
        return series.restrict_wavelengths(low, high)

    def load_instruments(self) -> list[InstrumentResponse]:
        names = self.instrument_names()
        if not names:
            raise ConfigurationError(
                f"No {INSTRUMENT_PREFIX}*.npz files in {self.data_dir}", path=str(self.data_dir)
            )
        responses = []
        for name in names:
            arrays = _load_npz(self.data_dir / f"{INSTRUMENT_PREFIX}{name}.npz", ("wave", "aeff"))
            responses.append(InstrumentResponse(name=name, wave=arrays["wave"], aeff=arrays["aeff"]))
        return responses


def load_attenuation_table(path: Path | str) -> TabulatedAttenuator:
    """Build a TabulatedAttenuator from an ``attenuation.npz`` archive."""
    path = Path(path)
    arrays = _load_npz(path, ("wave", "log_column_density", "transmittance"))
    log_n = np.atleast_1d(arrays["log_column_density"]).astype(np.float64)
    table = np.atleast_2d(arrays["transmittance"]).astype(np.float64)
    if table.shape[0] != len(log_n):
        raise DataShapeError(
            f"transmittance rows {table.shape[0]} != log_column_density length {len(log_n)}",
            path=str(path),
        )
    return TabulatedAttenuator(
        wave=arrays["wave"],
        curves={float(n): table[i] for i, n in enumerate(log_n)},
    )


def write_npz_dataset(
    data_dir: Path | str,
    spectrum: SpectralTimeSeries,
    instruments: list[InstrumentResponse],
) -> Path:
    """Write a spectrum and instrument curves in the layout NpzDataSource reads."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    np.savez(
        data_dir / SPECTRUM_FILE,
        wave=spectrum.wave,
        irradiance=spectrum.irradiance,
        jd=spectrum.jd,
        time_iso=np.array(spectrum.time_iso, dtype=str),
    )
    for response in instruments:
        np.savez(
            data_dir / f"{INSTRUMENT_PREFIX}{response.name}.npz",
            wave=response.wave,
            aeff=response.aeff,
        )
    return data_dir


__all__ = ["NpzDataSource", "load_attenuation_table", "write_npz_dataset"]

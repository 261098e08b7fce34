"""Run configuration for the dimming pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stellar_dimming.compute.combinations import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_COMBINATIONS
from stellar_dimming.compute.depth import DEFAULT_DIMMING_WINDOW_EXPOSURES
from stellar_dimming.compute.exposure import NATIVE_CADENCE_SEC
from stellar_dimming.compute.lines import DEFAULT_LINE_CENTERS, DEFAULT_LINE_HALF_WIDTH
from stellar_dimming.errors import ConfigurationError


class DimmingConfig(BaseModel):
    """Parameters of one detectability run.

    Attributes:
        distance_pc: Target star distance in parsecs.
        column_density: Foreground absorber column density in cm^-2.
        coronal_temperature_k: Coronal temperature (not yet modeled, no-op).
        expected_bg_event_ratio: Background-to-event ratio (not yet modeled, no-op).
        exposure_time_sec: Exposure length in seconds.
        num_lines_to_combine: Lines per group in the combination search.
        native_cadence_sec: Seconds represented by one reference sample.
        line_centers: Candidate emission-line centers.
        line_half_width: Half-width of each line's integration window.
        drop_final_exposure: Drop the reference product's invalid last exposure.
        dimming_window_exposures: Leading exposures searched for the minimum.
        bandpass: Wavelength range kept from the reference spectrum.
        max_combinations: Refuse combination searches larger than this.
        combination_timeout_seconds: Abort a combination search after this long.
        combination_chunk_size: Subsets evaluated per vectorized batch.
        max_workers: Threads used across instruments and combination chunks.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    distance_pc: float = Field(default=6.0, gt=0)
    column_density: float = Field(default=1e18, gt=0)
    coronal_temperature_k: float = Field(default=1e6, gt=0)
    expected_bg_event_ratio: float = Field(default=1.0, gt=0)
    exposure_time_sec: float = Field(default=1800.0, gt=0)
    num_lines_to_combine: int = Field(default=5, ge=1)
    native_cadence_sec: float = Field(default=NATIVE_CADENCE_SEC, gt=0)
    line_centers: tuple[float, ...] = DEFAULT_LINE_CENTERS
    line_half_width: float = Field(default=DEFAULT_LINE_HALF_WIDTH, gt=0)
    drop_final_exposure: bool = True
    dimming_window_exposures: int = Field(default=DEFAULT_DIMMING_WINDOW_EXPOSURES, ge=1)
    bandpass: tuple[float, float] = (90.0, 800.0)
    max_combinations: int | None = Field(default=DEFAULT_MAX_COMBINATIONS, ge=1)
    combination_timeout_seconds: float | None = Field(default=None, gt=0)
    combination_chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    max_workers: int = Field(default=1, ge=1)

    @field_validator("line_centers")
    @classmethod
    def _unique_line_centers(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) == 0:
            raise ValueError("line_centers must not be empty")
        if len(set(value)) != len(value):
            raise ValueError("line_centers must be unique")
        return value

    @model_validator(mode="after")
    def _check_ranges(self) -> DimmingConfig:
        low, high = self.bandpass
        if not low < high:
            raise ValueError(f"bandpass must be (low, high) with low < high, got {self.bandpass}")
        if self.num_lines_to_combine > len(self.line_centers):
            raise ValueError(
                f"num_lines_to_combine={self.num_lines_to_combine} exceeds "
                f"{len(self.line_centers)} line centers"
            )
        return self

    def to_provenance(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def load_config(path: Path | str, **overrides: Any) -> DimmingConfig:
    """Load a DimmingConfig from a JSON object file.

    ``overrides`` with a value of None are ignored, so CLI options that were
    not given fall back to the file or the defaults.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}", path=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Malformed JSON in config {path}: {exc}", path=str(path)) from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Config {path} must be a JSON object", path=str(path))
    payload.update({k: v for k, v in overrides.items() if v is not None})
    return DimmingConfig.model_validate(payload)

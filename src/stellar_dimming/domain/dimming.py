"""Dimming measurement domain models.

This module provides:
- Baseline: per-row baseline intensity and uncertainty
- DimmingDepthResult: per-row minimum, depth and propagated uncertainty
- CombinationResult: depth of one k-subset of emission lines
- InstrumentResult: per-instrument record handed to a Visualizer
- ComparisonResult: all instruments of one run
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from stellar_dimming.errors import DataShapeError

if TYPE_CHECKING:
    from numpy.typing import NDArray


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


@dataclass(frozen=True)
class Baseline:
    """Robust baseline per line (or per combined-line group).

    Attributes:
        intensity: Median intensity over the full time axis.
        uncertainty: Mean of the 16-50 and 50-84 percentile half-widths.
    """

    intensity: NDArray[np.float64]
    uncertainty: NDArray[np.float64]

    def __post_init__(self) -> None:
        intensity = np.array(self.intensity, dtype=np.float64)
        uncertainty = np.array(self.uncertainty, dtype=np.float64)
        if intensity.shape != uncertainty.shape or intensity.ndim != 1:
            raise DataShapeError(
                f"baseline intensity {intensity.shape} and uncertainty {uncertainty.shape} "
                "must be matching 1-D arrays"
            )
        intensity.flags.writeable = False
        uncertainty.flags.writeable = False
        object.__setattr__(self, "intensity", intensity)
        object.__setattr__(self, "uncertainty", uncertainty)

    def __len__(self) -> int:
        return len(self.intensity)


@dataclass(frozen=True)
class DimmingDepthResult:
    """Dimming depth per row.

    Rows whose baseline is zero, negative or non-finite, or whose minimum is
    negative, cannot be measured. Neither can a row whose propagated
    uncertainty is zero, as when the windowed minimum is zero against an exact
    baseline. Such rows are marked False in ``measurable`` and carry NaN depth
    and uncertainty instead of infinities.

    Attributes:
        minimum: Minimum intensity inside the dimming window.
        depth_percent: (baseline - minimum) / baseline * 100.
        minimum_uncertainty: Poisson uncertainty sqrt(minimum).
        minimum_over_baseline_sq: minimum / baseline**2, used for propagation.
        depth_uncertainty_percent: Propagated uncertainty on the depth.
        measurable: False where the depth could not be measured.
    """

    minimum: NDArray[np.float64]
    depth_percent: NDArray[np.float64]
    minimum_uncertainty: NDArray[np.float64]
    minimum_over_baseline_sq: NDArray[np.float64]
    depth_uncertainty_percent: NDArray[np.float64]
    measurable: NDArray[np.bool_]

    def __post_init__(self) -> None:
        n = len(self.minimum)
        for name in (
            "minimum",
            "depth_percent",
            "minimum_uncertainty",
            "minimum_over_baseline_sq",
            "depth_uncertainty_percent",
        ):
            arr = np.array(getattr(self, name), dtype=np.float64)
            if arr.shape != (n,):
                raise DataShapeError(f"{name} shape {arr.shape} != ({n},)", field=name)
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)
        measurable = np.array(self.measurable, dtype=np.bool_)
        if measurable.shape != (n,):
            raise DataShapeError(f"measurable shape {measurable.shape} != ({n},)")
        measurable.flags.writeable = False
        object.__setattr__(self, "measurable", measurable)

    def __len__(self) -> int:
        return len(self.minimum)

    @property
    def significance(self) -> NDArray[np.float64]:
        """Depth over its uncertainty; NaN where not measurable."""
        sigma = np.full(len(self), np.nan, dtype=np.float64)
        ok = self.measurable & (self.depth_uncertainty_percent > 0)
        sigma[ok] = self.depth_percent[ok] / self.depth_uncertainty_percent[ok]
        return sigma


class CombinationResult(FrozenModel):
    """Depth of one group of emission lines summed together.

    ``indices`` refer to rows of the source EmissionLineSeries. Records are
    emitted in lexicographic subset order, not sorted by depth.
    """

    indices: tuple[int, ...]
    wavelengths: tuple[float, ...]
    depth_percent: float | None = None
    depth_uncertainty_percent: float | None = None
    measurable: bool = True

    @property
    def k(self) -> int:
        return len(self.indices)

    @property
    def significance(self) -> float | None:
        """Depth in units of its uncertainty, None when unmeasurable."""
        if not self.measurable or self.depth_percent is None:
            return None
        if not self.depth_uncertainty_percent or self.depth_uncertainty_percent <= 0:
            return None
        return self.depth_percent / self.depth_uncertainty_percent


InstrumentStatus = Literal["ok", "error"]


class InstrumentResult(BaseModel):
    """Comparable detectability record for one instrument.

    A failed instrument has status "error" and None for every measurement.

    Attributes:
        name: Instrument name.
        status: "ok" or "error".
        time_jd: Exposure timestamps (Julian date).
        time_iso: Exposure timestamps (ISO strings).
        snr: Poisson signal-to-noise proxy per exposure for the best record.
        best_depth_percent: Depth of the most significant single line or group.
        best_depth_uncertainty_percent: Uncertainty on that depth.
        best_wavelengths: Line centers making up the best record.
        slope_percent_per_hour: Linear trend over the dimming window.
        significance_sigma: Best depth divided by its uncertainty.
        single_lines: One record per candidate line (k=1).
        combinations: One record per k-subset, generation order.
        flags: Machine-readable flags (e.g. "UNMEASURABLE_ROWS").
        notes: Human-readable notes.
        provenance: Parameters used for the run.
    """

    name: str
    status: InstrumentStatus
    time_jd: list[float] = Field(default_factory=list)
    time_iso: list[str] = Field(default_factory=list)
    snr: list[float] = Field(default_factory=list)
    best_depth_percent: float | None = None
    best_depth_uncertainty_percent: float | None = None
    best_wavelengths: tuple[float, ...] | None = None
    slope_percent_per_hour: float | None = None
    significance_sigma: float | None = None
    single_lines: list[CombinationResult] = Field(default_factory=list)
    combinations: list[CombinationResult] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    provenance: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    @property
    def has_result(self) -> bool:
        return self.status == "ok" and self.significance_sigma is not None

    def is_detectable(self, threshold_sigma: float = 3.0) -> bool:
        """True when the best depth exceeds ``threshold_sigma``."""
        if not self.has_result:
            return False
        assert self.significance_sigma is not None
        return self.significance_sigma >= threshold_sigma


class ComparisonResult(BaseModel):
    """Aggregated per-instrument results of one run.

    Attributes:
        results: One record per instrument, in input order.
        warnings: Human-readable warning messages.
        provenance: Run-level provenance (config, timing).
    """

    results: list[InstrumentResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    provenance: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    @property
    def n_ok(self) -> int:
        return sum(1 for r in self.results if r.status == "ok")

    @property
    def failed_instruments(self) -> list[str]:
        return [r.name for r in self.results if r.status == "error"]

    def get_result(self, name: str) -> InstrumentResult | None:
        """Get the record for one instrument by name."""
        for r in self.results:
            if r.name == name:
                return r
        return None

    def ranked(self) -> list[InstrumentResult]:
        """Instruments with a result, most significant first."""
        usable = [r for r in self.results if r.has_result]
        return sorted(
            usable,
            key=lambda r: -math.inf if r.significance_sigma is None else r.significance_sigma,
            reverse=True,
        )

"""Per-instrument dimming detectability pipeline.

This module provides the DimmingPipeline class, which scales a reference
spectrum once, then for each instrument folds, integrates, extracts lines,
measures single-line and combined-line depths, and aggregates the results into
a ComparisonResult.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import numpy as np
from scipy import stats

from stellar_dimming.compute.baseline import estimate_baseline
from stellar_dimming.compute.combinations import best_combination, combine_lines
from stellar_dimming.compute.depth import measure_dimming_depth, resolve_dimming_window
from stellar_dimming.compute.exposure import SECONDS_PER_DAY, integrate_exposures
from stellar_dimming.compute.lines import extract_emission_lines
from stellar_dimming.compute.response import fold_instrument_response
from stellar_dimming.compute.scaling import scale_spectrum
from stellar_dimming.domain.dimming import CombinationResult, ComparisonResult, InstrumentResult
from stellar_dimming.errors import ConfigurationError, DimmingError
from stellar_dimming.pipeline.config import DimmingConfig

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.data_sources.contracts import Attenuator, DataSource, Visualizer
    from stellar_dimming.domain.dimming import DimmingDepthResult
    from stellar_dimming.domain.spectrum import (
        EmissionLineSeries,
        InstrumentResponse,
        SpectralTimeSeries,
    )

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0


def single_line_results(
    lines: EmissionLineSeries,
    depth: DimmingDepthResult,
) -> list[CombinationResult]:
    """One k=1 record per candidate line, in line order."""
    records = []
    for i, center in enumerate(lines.line_centers):
        measurable = bool(depth.measurable[i])
        records.append(
            CombinationResult(
                indices=(i,),
                wavelengths=(center,),
                depth_percent=float(depth.depth_percent[i]) if measurable else None,
                depth_uncertainty_percent=(
                    float(depth.depth_uncertainty_percent[i]) if measurable else None
                ),
                measurable=measurable,
            )
        )
    return records


def poisson_snr(intensity: NDArray[np.float64]) -> NDArray[np.float64]:
    """Signal-to-noise proxy of integrated counts, I / sqrt(I) = sqrt(I)."""
    return np.sqrt(np.clip(intensity, 0.0, None))


def dimming_slope(
    jd: NDArray[np.float64],
    intensity: NDArray[np.float64],
    window_exposures: int,
) -> float | None:
    """Least-squares slope of intensity (percent of its median) per hour.

    The fit covers the leading ``window_exposures`` exposures. Returns None
    when the window holds fewer than two exposures or the median is not
    positive.
    """
    window = resolve_dimming_window(len(intensity), window_exposures)
    median = float(np.median(intensity))
    if window < 2 or not median > 0:
        return None
    hours = (jd[:window] - jd[0]) * SECONDS_PER_DAY / SECONDS_PER_HOUR
    percent = intensity[:window] / median * 100.0
    fit = stats.linregress(hours, percent)
    return float(fit.slope)


def run_instrument(
    scaled: SpectralTimeSeries,
    response: InstrumentResponse,
    config: DimmingConfig,
    *,
    combination_workers: int = 1,
) -> InstrumentResult:
    """Run fold, integrate, extract and depth measurement for one instrument.

    Raises:
        ConfigurationError: On input mismatches (fatal for the whole run).
        DimmingError: On any other pipeline failure for this instrument.
    """
    started = time.monotonic()
    counts = fold_instrument_response(scaled, response)
    exposures = integrate_exposures(
        counts,
        config.exposure_time_sec,
        native_cadence_sec=config.native_cadence_sec,
    )
    lines = extract_emission_lines(
        exposures,
        config.line_centers,
        half_width=config.line_half_width,
        drop_final_exposure=config.drop_final_exposure,
    )

    window = resolve_dimming_window(lines.n_exposures, config.dimming_window_exposures)
    baseline = estimate_baseline(lines)
    depth = measure_dimming_depth(lines, baseline, window_exposures=window)
    singles = single_line_results(lines, depth)

    k = config.num_lines_to_combine
    combinations: list[CombinationResult] = []
    if k > 1:
        combinations = combine_lines(
            lines,
            k,
            window_exposures=window,
            max_combinations=config.max_combinations,
            timeout_seconds=config.combination_timeout_seconds,
            chunk_size=config.combination_chunk_size,
            max_workers=combination_workers,
        )

    flags: list[str] = []
    notes: list[str] = []
    n_unmeasurable = sum(1 for r in singles + combinations if not r.measurable)
    if n_unmeasurable:
        flags.append("UNMEASURABLE_ROWS")
        notes.append(f"{n_unmeasurable} lines or groups had no measurable depth")

    provenance = {
        "n_exposures": lines.n_exposures,
        "exposure_time_sec": lines.exposure_time_sec,
        "dimming_window_exposures": window,
        "num_lines_to_combine": k,
        "n_combinations": len(combinations),
        "duration_ms": None,
    }

    best = best_combination(singles + combinations)
    if best is None:
        flags.append("NO_MEASURABLE_DEPTH")
        provenance["duration_ms"] = round((time.monotonic() - started) * 1000, 2)
        return InstrumentResult(
            name=response.name,
            status="ok",
            time_jd=lines.jd.tolist(),
            time_iso=list(lines.time_iso),
            single_lines=singles,
            combinations=combinations,
            flags=flags,
            notes=notes,
            provenance=provenance,
        )

    best_intensity = lines.intensity[list(best.indices)].sum(axis=0)
    provenance["duration_ms"] = round((time.monotonic() - started) * 1000, 2)
    logger.info(
        "%s: best depth %.3f%% +/- %.3f%% (%.2f sigma) from lines %s",
        response.name,
        best.depth_percent,
        best.depth_uncertainty_percent,
        best.significance,
        best.wavelengths,
    )
    return InstrumentResult(
        name=response.name,
        status="ok",
        time_jd=lines.jd.tolist(),
        time_iso=list(lines.time_iso),
        snr=poisson_snr(best_intensity).tolist(),
        best_depth_percent=best.depth_percent,
        best_depth_uncertainty_percent=best.depth_uncertainty_percent,
        best_wavelengths=best.wavelengths,
        slope_percent_per_hour=dimming_slope(lines.jd, best_intensity, window),
        significance_sigma=best.significance,
        single_lines=singles,
        combinations=combinations,
        flags=flags,
        notes=notes,
        provenance=provenance,
    )


def failed_result(name: str, exc: BaseException) -> InstrumentResult:
    """Record with no measurements for an instrument whose pipeline failed."""
    error_type = exc.error_type.value if isinstance(exc, DimmingError) else "INTERNAL_ERROR"
    return InstrumentResult(
        name=name,
        status="error",
        flags=[f"ERROR:{error_type}"],
        notes=[f"{type(exc).__name__}: {exc}"],
    )


class DimmingPipeline:
    """Compare dimming detectability across instruments.

    The pipeline handles:
    - Scaling the reference spectrum once for the configured star
    - Running each instrument independently (optionally on a thread pool)
    - Isolating per-instrument failures as "no result" records
    - Aggregating records into a ComparisonResult

    Configuration errors are not isolated: they abort the whole run.

    Example:
        >>> pipeline = DimmingPipeline(attenuator=ConstantAttenuator())
        >>> comparison = pipeline.run(spectrum, instruments)
        >>> for r in comparison.ranked():
        ...     print(f"{r.name}: {r.significance_sigma:.1f} sigma")
    """

    def __init__(
        self,
        config: DimmingConfig | None = None,
        *,
        attenuator: Attenuator,
    ) -> None:
        self._config = config or DimmingConfig()
        self._attenuator = attenuator

    @property
    def config(self) -> DimmingConfig:
        return self._config

    def scale(self, spectrum: SpectralTimeSeries) -> SpectralTimeSeries:
        """Scale the 1-AU reference spectrum to the configured star."""
        cfg = self._config
        return scale_spectrum(
            spectrum,
            attenuator=self._attenuator,
            distance_pc=cfg.distance_pc,
            column_density=cfg.column_density,
            coronal_temperature_k=cfg.coronal_temperature_k,
            expected_bg_event_ratio=cfg.expected_bg_event_ratio,
        )

    def _run_isolated(
        self,
        scaled: SpectralTimeSeries,
        response: InstrumentResponse,
        combination_workers: int,
    ) -> InstrumentResult:
        try:
            return run_instrument(
                scaled, response, self._config, combination_workers=combination_workers
            )
        except ConfigurationError:
            raise
        except (DimmingError, ValueError, ArithmeticError) as e:
            logger.warning("%s: pipeline failed, reporting no result: %s", response.name, e)
            return failed_result(response.name, e)

    def run(
        self,
        spectrum: SpectralTimeSeries,
        instruments: list[InstrumentResponse],
    ) -> ComparisonResult:
        """Run every instrument against ``spectrum``.

        Args:
            spectrum: Reference irradiance at 1 AU.
            instruments: Effective-area curves to compare.

        Returns:
            ComparisonResult with one record per instrument, in input order.

        Raises:
            ConfigurationError: On input mismatches, for any instrument.
        """
        start_time = time.time()
        if not instruments:
            raise ConfigurationError("At least one instrument is required")
        names = [r.name for r in instruments]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Instrument names must be unique, got {names}")

        scaled = self.scale(spectrum)
        max_workers = self._config.max_workers

        if max_workers <= 1 or len(instruments) == 1:
            results = [
                self._run_isolated(scaled, response, max_workers) for response in instruments
            ]
        else:
            executor = ThreadPoolExecutor(max_workers=min(max_workers, len(instruments)))
            try:
                futures = [
                    executor.submit(self._run_isolated, scaled, response, 1)
                    for response in instruments
                ]
                results = [future.result() for future in futures]
            finally:
                executor.shutdown(wait=False, cancel_futures=True)

        warnings = [
            f"{r.name}: no result ({'; '.join(r.notes)})" for r in results if r.status == "error"
        ]
        duration_ms = (time.time() - start_time) * 1000
        return ComparisonResult(
            results=results,
            warnings=warnings,
            provenance={
                "config": self._config.to_provenance(),
                "instruments": names,
                "duration_ms": round(duration_ms, 2),
            },
        )

    def run_from_source(
        self,
        source: DataSource,
        *,
        visualizer: Visualizer | None = None,
    ) -> ComparisonResult:
        """Load inputs from ``source``, run, and hand the result to ``visualizer``."""
        spectrum = source.load_spectrum(self._config.bandpass)
        instruments = source.load_instruments()
        comparison = self.run(spectrum, instruments)
        if visualizer is not None:
            visualizer.render(comparison)
        return comparison


def compare_instruments(
    source: DataSource,
    attenuator: Attenuator,
    config: DimmingConfig | None = None,
    *,
    visualizer: Visualizer | None = None,
) -> ComparisonResult:
    """Single parameterized entry point: load, run and report one comparison."""
    pipeline = DimmingPipeline(config, attenuator=attenuator)
    return pipeline.run_from_source(source, visualizer=visualizer)

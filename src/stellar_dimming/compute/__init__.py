"""Compute stages of the dimming pipeline.

Pure numpy/scipy operations, no I/O:
- scaling: distance dilution and interstellar attenuation
- response: effective-area folding
- exposure: integration into fixed-length exposures
- lines: emission-line extraction
- baseline / depth: baseline and dimming-depth estimation
- combinations: exhaustive search over line groups
"""

from __future__ import annotations

from stellar_dimming.compute.baseline import baseline_from_intensity, estimate_baseline
from stellar_dimming.compute.combinations import (
    best_combination,
    combine_lines,
    count_line_subsets,
    iter_line_combinations,
    iter_line_subsets,
)
from stellar_dimming.compute.depth import (
    DEFAULT_DIMMING_WINDOW_EXPOSURES,
    depth_from_intensity,
    measure_dimming_depth,
    propagate_depth_uncertainty,
)
from stellar_dimming.compute.exposure import (
    NATIVE_CADENCE_SEC,
    elapsed_seconds,
    exposure_windows,
    integrate_exposures,
)
from stellar_dimming.compute.lines import (
    DEFAULT_LINE_CENTERS,
    DEFAULT_LINE_HALF_WIDTH,
    extract_emission_lines,
    line_window_mask,
)
from stellar_dimming.compute.response import fold_instrument_response, interpolate_effective_area
from stellar_dimming.compute.scaling import (
    distance_scale_factor,
    scale_attenuation,
    scale_background_event_ratio,
    scale_coronal_temperature,
    scale_distance,
    scale_spectrum,
)

__all__ = [
    "distance_scale_factor",
    "scale_distance",
    "scale_attenuation",
    "scale_coronal_temperature",
    "scale_background_event_ratio",
    "scale_spectrum",
    "interpolate_effective_area",
    "fold_instrument_response",
    "NATIVE_CADENCE_SEC",
    "elapsed_seconds",
    "exposure_windows",
    "integrate_exposures",
    "DEFAULT_LINE_CENTERS",
    "DEFAULT_LINE_HALF_WIDTH",
    "line_window_mask",
    "extract_emission_lines",
    "baseline_from_intensity",
    "estimate_baseline",
    "DEFAULT_DIMMING_WINDOW_EXPOSURES",
    "depth_from_intensity",
    "measure_dimming_depth",
    "propagate_depth_uncertainty",
    "count_line_subsets",
    "iter_line_subsets",
    "iter_line_combinations",
    "combine_lines",
    "best_combination",
]

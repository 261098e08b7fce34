"""Exhaustive search over groups of emission lines.

Summing several dimming lines raises the counts in the combined series and
can make a dimming detectable where no single line is. For an integer k,
every k-subset of the candidate lines is summed, baselined and measured.

Subsets are generated in lexicographic order of their sorted line indices:
(0, 1), (0, 2), ..., (0, n-1), (1, 2), ... for k=2. Records come out in that
order. Subsets are evaluated a chunk at a time as stacked index arrays, so the
sums, medians and percentiles of a chunk are single vectorized calls and peak
memory is bounded by the chunk size rather than C(n, k).
"""

from __future__ import annotations

import itertools
import logging
import math
import time
from collections import deque
from collections.abc import Iterator
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

import numpy as np

from stellar_dimming.compute.baseline import baseline_from_intensity
from stellar_dimming.compute.depth import (
    DEFAULT_DIMMING_WINDOW_EXPOSURES,
    depth_from_intensity,
    resolve_dimming_window,
)
from stellar_dimming.domain.dimming import CombinationResult
from stellar_dimming.errors import CombinationBudgetError, ConfigurationError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stellar_dimming.domain.spectrum import EmissionLineSeries

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 256
DEFAULT_MAX_COMBINATIONS = 1_000_000


def count_line_subsets(n_lines: int, k: int) -> int:
    """Number of k-subsets of ``n_lines`` lines, C(n, k)."""
    _check_k(n_lines, k)
    return math.comb(n_lines, k)


def _check_k(n_lines: int, k: int) -> None:
    if k < 1 or k > n_lines:
        raise ConfigurationError(
            f"Cannot combine {k} lines out of {n_lines}; need 1 <= k <= n",
            k=k,
            n_lines=n_lines,
        )


def iter_line_subsets(n_lines: int, k: int) -> Iterator[NDArray[np.intp]]:
    """Iterate over each k-subset of ``range(n_lines)`` as a sorted index array.

    ``k`` is checked when called, not on first iteration.
    """
    _check_k(n_lines, k)
    subsets = itertools.combinations(range(n_lines), k)
    return (np.array(subset, dtype=np.intp) for subset in subsets)


def _iter_subset_chunks(n_lines: int, k: int, chunk_size: int) -> Iterator[NDArray[np.intp]]:
    subsets = itertools.combinations(range(n_lines), k)
    while True:
        chunk = list(itertools.islice(subsets, chunk_size))
        if not chunk:
            return
        yield np.array(chunk, dtype=np.intp).reshape(len(chunk), k)


def _evaluate_chunk(
    intensity: NDArray[np.float64],
    line_centers: tuple[float, ...],
    index_chunk: NDArray[np.intp],
    window_exposures: int,
) -> list[CombinationResult]:
    # (m, k, T) -> (m, T): one synthetic combined line per subset
    combined = intensity[index_chunk].sum(axis=1)
    baseline = baseline_from_intensity(combined)
    depth = depth_from_intensity(combined, baseline, window_exposures=window_exposures)

    records: list[CombinationResult] = []
    for row, indices in enumerate(index_chunk):
        measurable = bool(depth.measurable[row])
        records.append(
            CombinationResult(
                indices=tuple(int(i) for i in indices),
                wavelengths=tuple(line_centers[int(i)] for i in indices),
                depth_percent=float(depth.depth_percent[row]) if measurable else None,
                depth_uncertainty_percent=(
                    float(depth.depth_uncertainty_percent[row]) if measurable else None
                ),
                measurable=measurable,
            )
        )
    return records


def _check_deadline(deadline: float | None, timeout_seconds: float | None, n_done: int) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise CombinationBudgetError(
            f"Combination search exceeded {timeout_seconds}s after {n_done} subsets",
            timeout_seconds=timeout_seconds,
            n_evaluated=n_done,
        )


def _next_records(
    pending: deque[Future[list[CombinationResult]]],
    deadline: float | None,
    timeout_seconds: float | None,
    n_done: int,
) -> list[CombinationResult]:
    _check_deadline(deadline, timeout_seconds, n_done)
    future = pending.popleft()
    if deadline is not None:
        remaining_s = max(0.0, deadline - time.monotonic())
        done, _ = wait([future], timeout=remaining_s)
        if not done:
            raise CombinationBudgetError(
                f"Combination search exceeded {timeout_seconds}s after {n_done} subsets",
                timeout_seconds=timeout_seconds,
                n_evaluated=n_done,
            )
    return future.result()


def iter_line_combinations(
    series: EmissionLineSeries,
    k: int,
    *,
    window_exposures: int = DEFAULT_DIMMING_WINDOW_EXPOSURES,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout_seconds: float | None = None,
    max_workers: int = 1,
) -> Iterator[CombinationResult]:
    """Lazily yield one CombinationResult per k-subset of lines.

    Arguments are validated when called; evaluation and the timeout clock start
    on first iteration.

    Args:
        series: Per-line intensity over exposures.
        k: Number of lines per group.
        window_exposures: Leading exposures searched for the minimum, clamped
            to the series length.
        chunk_size: Subsets evaluated per vectorized batch.
        timeout_seconds: Abort once this much wall time has elapsed.
        max_workers: Evaluate chunks on a thread pool when greater than 1.

    Raises:
        ConfigurationError: If k is outside [1, n_lines], or ``chunk_size`` or
            ``window_exposures`` is below 1.
        CombinationBudgetError: If the timeout elapses. It is checked between
            chunks, and waits on pooled chunks are bounded by the time left.
    """
    _check_k(series.n_lines, k)
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
    window = resolve_dimming_window(series.n_exposures, window_exposures)
    if max_workers <= 1:
        return _iter_sequential(series, k, window, chunk_size, timeout_seconds)
    return _iter_pooled(series, k, window, chunk_size, timeout_seconds, max_workers)


def _iter_sequential(
    series: EmissionLineSeries,
    k: int,
    window: int,
    chunk_size: int,
    timeout_seconds: float | None,
) -> Iterator[CombinationResult]:
    deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds
    n_done = 0
    for index_chunk in _iter_subset_chunks(series.n_lines, k, chunk_size):
        _check_deadline(deadline, timeout_seconds, n_done)
        records = _evaluate_chunk(series.intensity, series.line_centers, index_chunk, window)
        n_done += len(records)
        yield from records


def _iter_pooled(
    series: EmissionLineSeries,
    k: int,
    window: int,
    chunk_size: int,
    timeout_seconds: float | None,
    max_workers: int,
) -> Iterator[CombinationResult]:
    deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds
    n_done = 0
    executor = ThreadPoolExecutor(max_workers=max_workers)
    pending: deque[Future[list[CombinationResult]]] = deque()
    try:
        for index_chunk in _iter_subset_chunks(series.n_lines, k, chunk_size):
            pending.append(
                executor.submit(
                    _evaluate_chunk,
                    series.intensity,
                    series.line_centers,
                    index_chunk,
                    window,
                )
            )
            if len(pending) >= 2 * max_workers:
                records = _next_records(pending, deadline, timeout_seconds, n_done)
                n_done += len(records)
                yield from records
        while pending:
            records = _next_records(pending, deadline, timeout_seconds, n_done)
            n_done += len(records)
            yield from records
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def combine_lines(
    series: EmissionLineSeries,
    k: int,
    *,
    window_exposures: int = DEFAULT_DIMMING_WINDOW_EXPOSURES,
    max_combinations: int | None = DEFAULT_MAX_COMBINATIONS,
    timeout_seconds: float | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_workers: int = 1,
) -> list[CombinationResult]:
    """Evaluate every k-subset of lines and return all records.

    Refuses to start when C(n, k) exceeds ``max_combinations``; use
    ``iter_line_combinations`` to stream very large searches.

    Raises:
        CombinationBudgetError: If the subset count or time budget is exceeded.
    """
    n_subsets = count_line_subsets(series.n_lines, k)
    if max_combinations is not None and n_subsets > max_combinations:
        raise CombinationBudgetError(
            f"C({series.n_lines}, {k}) = {n_subsets} subsets exceeds budget of {max_combinations}",
            n_lines=series.n_lines,
            k=k,
            n_subsets=n_subsets,
            max_combinations=max_combinations,
        )

    started = time.monotonic()
    results = list(
        iter_line_combinations(
            series,
            k,
            window_exposures=window_exposures,
            chunk_size=chunk_size,
            timeout_seconds=timeout_seconds,
            max_workers=max_workers,
        )
    )
    logger.info(
        "%s: evaluated %d combinations of %d lines in %.2fs",
        series.name,
        len(results),
        k,
        time.monotonic() - started,
    )
    return results


def best_combination(results: list[CombinationResult]) -> CombinationResult | None:
    """Most significant measurable record, first in generation order on ties."""
    best: CombinationResult | None = None
    best_sigma = -math.inf
    for record in results:
        sigma = record.significance
        if sigma is not None and sigma > best_sigma:
            best = record
            best_sigma = sigma
    return best

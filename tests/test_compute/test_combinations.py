"""Tests for the exhaustive emission-line combination search."""

from __future__ import annotations

import itertools
import logging
import math
import time

import numpy as np
import pytest

from stellar_dimming.compute import combinations as combinations_module
from stellar_dimming.compute.combinations import (
    best_combination,
    combine_lines,
    count_line_subsets,
    iter_line_combinations,
    iter_line_subsets,
)
from stellar_dimming.domain.dimming import CombinationResult
from stellar_dimming.domain.spectrum import EmissionLineSeries
from stellar_dimming.errors import CombinationBudgetError, ConfigurationError


def _series(n_lines: int = 5, n_exposures: int = 20, seed: int = 0) -> EmissionLineSeries:
    rng = np.random.default_rng(seed)
    intensity = rng.uniform(900.0, 1100.0, size=(n_lines, n_exposures))
    # different dip per line so every subset has a distinct depth
    for i in range(n_lines):
        intensity[i, 4] = 1000.0 * (1.0 - 0.02 * (i + 1))
    return EmissionLineSeries(
        name="inst",
        line_centers=tuple(170.0 + 10.0 * i for i in range(n_lines)),
        intensity=intensity,
        jd=np.arange(n_exposures, dtype=np.float64) + 2455000.5,
        time_iso=tuple(f"t{i}" for i in range(n_exposures)),
        exposure_time_sec=1800.0,
    )


class _SteppingClock:
    """Stand-in for the time module whose clock advances 10 s per read."""

    def __init__(self) -> None:
        self.now = 0.0

    def monotonic(self) -> float:
        self.now += 10.0
        return self.now


class TestSubsetGeneration:
    def test_five_choose_two(self) -> None:
        subsets = [tuple(s) for s in iter_line_subsets(5, 2)]
        assert len(subsets) == 10
        assert len(set(subsets)) == 10
        assert subsets[:4] == [(0, 1), (0, 2), (0, 3), (0, 4)]
        assert subsets == sorted(subsets)
        assert all(a < b for a, b in subsets)

    @pytest.mark.parametrize("n,k", [(11, 1), (11, 5), (11, 11), (6, 3)])
    def test_count_matches_binomial(self, n: int, k: int) -> None:
        assert count_line_subsets(n, k) == math.comb(n, k)
        assert sum(1 for _ in iter_line_subsets(n, k)) == math.comb(n, k)

    @pytest.mark.parametrize("k", [0, -1, 6])
    def test_k_out_of_range(self, k: int) -> None:
        with pytest.raises(ConfigurationError):
            iter_line_subsets(5, k)
        with pytest.raises(ConfigurationError):
            count_line_subsets(5, k)


class TestCombineLines:
    def test_one_record_per_subset_in_order(self) -> None:
        series = _series()
        results = combine_lines(series, 2, chunk_size=3)
        assert len(results) == 10
        assert [r.indices for r in results] == list(itertools.combinations(range(5), 2))
        assert results[0].wavelengths == (170.0, 180.0)
        assert all(r.k == 2 for r in results)

    def test_depth_matches_manual_sum(self) -> None:
        series = _series()
        results = combine_lines(series, 3)
        record = results[5]
        combined = series.intensity[list(record.indices)].sum(axis=0)
        base = np.median(combined)
        expected = (base - combined[:12].min()) / base * 100.0
        assert record.depth_percent == pytest.approx(expected)
        assert record.measurable

    def test_k_equal_one_matches_single_lines(self) -> None:
        series = _series()
        results = combine_lines(series, 1)
        assert [r.indices for r in results] == [(i,) for i in range(5)]

    def test_k_equal_n_is_single_record(self) -> None:
        results = combine_lines(_series(), 5)
        assert len(results) == 1
        assert results[0].indices == (0, 1, 2, 3, 4)

    def test_k_out_of_range(self) -> None:
        with pytest.raises(ConfigurationError):
            combine_lines(_series(), 6)

    def test_chunk_size_does_not_change_result(self) -> None:
        series = _series(n_lines=7)
        a = combine_lines(series, 3, chunk_size=1)
        b = combine_lines(series, 3, chunk_size=1000)
        assert a == b

    def test_thread_pool_matches_sequential(self) -> None:
        series = _series(n_lines=8)
        sequential = combine_lines(series, 4, chunk_size=5)
        threaded = combine_lines(series, 4, chunk_size=5, max_workers=3)
        assert threaded == sequential

    def test_budget_refused_before_work(self) -> None:
        with pytest.raises(CombinationBudgetError) as exc_info:
            combine_lines(_series(n_lines=11), 5, max_combinations=100)
        assert exc_info.value.context["n_subsets"] == 462

    def test_budget_none_is_unbounded(self) -> None:
        assert len(combine_lines(_series(n_lines=6), 3, max_combinations=None)) == 20

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(combinations_module, "time", _SteppingClock())
        with pytest.raises(CombinationBudgetError, match="exceeded"):
            combine_lines(_series(n_lines=8), 4, timeout_seconds=5.0, chunk_size=2)

    def test_invalid_chunk_size(self) -> None:
        with pytest.raises(ConfigurationError):
            combine_lines(_series(), 2, chunk_size=0)

    def test_zero_line_is_flagged_not_raised(self) -> None:
        series = _series(n_lines=3)
        intensity = np.array(series.intensity)
        intensity[:] = 0.0
        zero = EmissionLineSeries(
            name="zero",
            line_centers=series.line_centers,
            intensity=intensity,
            jd=series.jd,
            time_iso=series.time_iso,
            exposure_time_sec=series.exposure_time_sec,
        )
        results = combine_lines(zero, 2)
        assert all(not r.measurable for r in results)
        assert all(r.depth_percent is None for r in results)
        assert best_combination(results) is None


class TestIterLineCombinations:
    def test_streams_same_records_as_combine_lines(self) -> None:
        series = _series(n_lines=6)
        assert list(iter_line_combinations(series, 3, chunk_size=4)) == combine_lines(series, 3)

    @pytest.mark.parametrize(
        "k,kwargs",
        [(6, {}), (0, {}), (2, {"chunk_size": 0}), (2, {"window_exposures": 0})],
    )
    def test_invalid_arguments_raise_on_call(self, k: int, kwargs: dict) -> None:
        with pytest.raises(ConfigurationError):
            iter_line_combinations(_series(), k, **kwargs)

    def test_oversized_window_warns_once(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="stellar_dimming.compute.depth"):
            results = combine_lines(_series(n_exposures=8), 2, window_exposures=50, chunk_size=1)
        assert len(results) == 10
        warnings = [r for r in caplog.records if "exceeds series length" in r.getMessage()]
        assert len(warnings) == 1

    def test_pooled_timeout_does_not_wait_for_slow_chunk(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        evaluate = combinations_module._evaluate_chunk

        def slow_evaluate(*args):
            time.sleep(1.0)
            return evaluate(*args)

        monkeypatch.setattr(combinations_module, "_evaluate_chunk", slow_evaluate)
        started = time.monotonic()
        with pytest.raises(CombinationBudgetError, match="exceeded") as exc_info:
            combine_lines(_series(), 2, chunk_size=2, timeout_seconds=0.1, max_workers=2)
        assert time.monotonic() - started < 0.8
        assert exc_info.value.context["n_evaluated"] == 0


class TestBestCombination:
    def test_highest_significance_wins(self) -> None:
        records = [
            CombinationResult(indices=(0,), wavelengths=(1.0,), depth_percent=4.0, depth_uncertainty_percent=2.0),
            CombinationResult(indices=(1,), wavelengths=(2.0,), depth_percent=3.0, depth_uncertainty_percent=0.5),
            CombinationResult(indices=(2,), wavelengths=(3.0,), depth_percent=9.0, depth_uncertainty_percent=9.0),
        ]
        assert best_combination(records).indices == (1,)

    def test_first_wins_on_tie(self) -> None:
        records = [
            CombinationResult(indices=(0,), wavelengths=(1.0,), depth_percent=2.0, depth_uncertainty_percent=1.0),
            CombinationResult(indices=(1,), wavelengths=(2.0,), depth_percent=4.0, depth_uncertainty_percent=2.0),
        ]
        assert best_combination(records).indices == (0,)

    def test_empty(self) -> None:
        assert best_combination([]) is None

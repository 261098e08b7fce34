"""Tests for dimming result models."""

from __future__ import annotations

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from stellar_dimming.domain.dimming import (
    Baseline,
    CombinationResult,
    ComparisonResult,
    DimmingDepthResult,
    InstrumentResult,
)
from stellar_dimming.errors import DataShapeError


class TestBaseline:
    def test_shape_mismatch(self) -> None:
        with pytest.raises(DataShapeError):
            Baseline(intensity=[1.0, 2.0], uncertainty=[0.1])

    def test_read_only(self) -> None:
        b = Baseline(intensity=[1.0], uncertainty=[0.1])
        assert len(b) == 1
        with pytest.raises(ValueError):
            b.intensity[0] = 2.0


class TestDimmingDepthResult:
    def test_significance_skips_unmeasurable(self) -> None:
        r = DimmingDepthResult(
            minimum=[95.0, 0.0],
            depth_percent=[5.0, np.nan],
            minimum_uncertainty=[math.sqrt(95.0), 0.0],
            minimum_over_baseline_sq=[0.0095, np.nan],
            depth_uncertainty_percent=[2.5, np.nan],
            measurable=[True, False],
        )
        assert_allclose(r.significance[0], 2.0)
        assert np.isnan(r.significance[1])

    def test_length_checked(self) -> None:
        with pytest.raises(DataShapeError):
            DimmingDepthResult(
                minimum=[1.0],
                depth_percent=[1.0, 2.0],
                minimum_uncertainty=[1.0],
                minimum_over_baseline_sq=[1.0],
                depth_uncertainty_percent=[1.0],
                measurable=[True],
            )


class TestCombinationResult:
    def test_significance(self) -> None:
        r = CombinationResult(
            indices=(0, 2),
            wavelengths=(171.1, 180.4),
            depth_percent=6.0,
            depth_uncertainty_percent=2.0,
        )
        assert r.k == 2
        assert r.significance == pytest.approx(3.0)

    def test_unmeasurable_has_no_significance(self) -> None:
        r = CombinationResult(indices=(1,), wavelengths=(177.2,), measurable=False)
        assert r.significance is None

    def test_frozen(self) -> None:
        r = CombinationResult(indices=(1,), wavelengths=(177.2,), depth_percent=1.0)
        with pytest.raises(Exception):
            r.depth_percent = 2.0  # type: ignore[misc]


class TestComparisonResult:
    def _record(self, name: str, sigma: float | None, status: str = "ok") -> InstrumentResult:
        return InstrumentResult(name=name, status=status, significance_sigma=sigma)  # type: ignore[arg-type]

    def test_ranked_and_failed(self) -> None:
        comparison = ComparisonResult(
            results=[
                self._record("a", 1.5),
                self._record("b", None, status="error"),
                self._record("c", 4.0),
            ]
        )
        assert [r.name for r in comparison.ranked()] == ["c", "a"]
        assert comparison.failed_instruments == ["b"]
        assert comparison.n_ok == 2
        assert comparison.get_result("c") is not None
        assert comparison.get_result("missing") is None

    def test_is_detectable(self) -> None:
        assert self._record("a", 3.2).is_detectable(3.0)
        assert not self._record("a", 2.9).is_detectable(3.0)
        assert not self._record("a", None, status="error").is_detectable()

    def test_json_round_trip_of_failed_record(self) -> None:
        record = self._record("b", None, status="error")
        payload = record.model_dump(mode="json")
        assert payload["status"] == "error"
        assert payload["best_depth_percent"] is None

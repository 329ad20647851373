# tests/test_grading_service.py
# Purpose: band table of the quality rule engine.

import pytest

from onion_quality.models.analysis_result import Grade, Status
from onion_quality.services.grading_service import (
    QUALITY_BANDS, classify_quality, find_band, storage_recommendations
)

EXPECTED = {
    Grade.A: (Status.HEALTHY, (120, 180), (90, 95)),
    Grade.B: (Status.HEALTHY, (60, 90), (75, 85)),
    Grade.C: (Status.AT_RISK, (20, 45), (50, 65)),
    Grade.D: (Status.CRITICAL, (7, 15), (25, 40)),
    Grade.F: (Status.CRITICAL, (1, 7), (10, 25)),
}


@pytest.mark.parametrize("idx,grade", [
    (0, Grade.A), (14.9, Grade.A),
    (15, Grade.B), (29.9, Grade.B),
    (30, Grade.C), (49.9, Grade.C),
    (50, Grade.D), (69.9, Grade.D),
    (70, Grade.F), (100, Grade.F),
])
def test_band_boundaries(idx, grade):
    q = classify_quality(idx)
    assert q.grade is grade


def test_every_index_lands_in_grade_range():
    for step in range(0, 1001):
        idx = step / 10.0
        q = classify_quality(idx)
        status, (s_lo, s_hi), (q_lo, q_hi) = EXPECTED[q.grade]
        assert q.status is status
        assert s_lo <= q.shelf_life_days_base <= s_hi, idx
        assert q_lo <= q.quality_score_base <= q_hi, idx


def test_bands_are_contiguous():
    for a, b in zip(QUALITY_BANDS, QUALITY_BANDS[1:]):
        assert a.upper == b.lower
    assert QUALITY_BANDS[0].lower == 0
    assert QUALITY_BANDS[-1].upper == 100


def test_shelf_life_falls_as_index_rises():
    assert classify_quality(0).shelf_life_days_base == 180
    assert classify_quality(7.5).shelf_life_days_base == 150
    assert classify_quality(14.9).shelf_life_days_base == 120


def test_interpolation_mid_band():
    q = classify_quality(80)
    assert q.shelf_life_days_base == 5
    assert q.quality_score_base == 20

    q = classify_quality(40)
    assert q.shelf_life_days_base == 32
    assert q.quality_score_base == 57


def test_out_of_range_index_is_clipped():
    assert classify_quality(-5).grade is Grade.A
    assert classify_quality(250).grade is Grade.F
    assert classify_quality(250).shelf_life_days_base == 1
    assert find_band(1000).grade is Grade.F


def test_risk_factors_only_for_degraded_bands():
    assert classify_quality(5).risk_factors == ()
    assert classify_quality(20).risk_factors == ()
    for idx in (35, 55, 90):
        assert len(classify_quality(idx).risk_factors) >= 3
    for idx in (0, 20, 35, 55, 90):
        assert classify_quality(idx).recommendations


def test_storage_recommendations_by_shelf_life():
    assert "Ensure good air circulation" in storage_recommendations(120)
    assert "Check weekly for sprouting" in storage_recommendations(45)
    assert "Use FIFO (First In, First Out) principle" in storage_recommendations(30)
    assert len(storage_recommendations(5)) == 3

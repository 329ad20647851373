# tests/test_confidence_and_scoring.py
import random

import pytest

from onion_quality.models.analysis_result import ClassificationResult
from onion_quality.services.confidence_service import MAX_DISPLAY_CONFIDENCE, normalize_confidence
from onion_quality.services.deterioration_service import (
    LabelRoles, deterioration_index, top_prediction
)


def _results(*pairs):
    return [ClassificationResult(label=l, probability=p) for l, p in pairs]


# ---- Confidence normalizer ----
def test_confidence_never_reaches_100():
    for step in range(0, 10001):
        assert normalize_confidence(step / 10000.0) < 100.0
    assert normalize_confidence(1.0) == MAX_DISPLAY_CONFIDENCE
    assert normalize_confidence(0.99996) == MAX_DISPLAY_CONFIDENCE


def test_confidence_saturated_with_rng_stays_in_99_band():
    rng = random.Random(7)
    for _ in range(200):
        v = normalize_confidence(1.0, rng=rng)
        assert 99.0 <= v <= 99.99


def test_confidence_keeps_integer_percent():
    assert normalize_confidence(0.92) == 92.0
    assert normalize_confidence(0.29) == 29.0
    assert normalize_confidence(0.87654) == 87.65
    assert normalize_confidence(0.0) == 0.0


def test_confidence_random_decimals_keep_integer_part():
    rng = random.Random(1)
    for p in (0.12, 0.5, 0.873, 0.9899):
        v = normalize_confidence(p, rng=rng)
        assert int(v) == int(p * 100)
        assert round(v, 2) == v


def test_confidence_clips_bad_input():
    assert normalize_confidence(-0.3) == 0.0
    assert normalize_confidence(1.7) == MAX_DISPLAY_CONFIDENCE


# ---- Deterioration scorer ----
def test_deterioration_from_spoiled_probability():
    r = _results(("healthy", 0.92), ("spoiled", 0.08))
    assert deterioration_index(r) == pytest.approx(8.0)


def test_deterioration_label_match_is_case_insensitive_substring():
    r = _results(("Healthy Onion", 0.2), ("SPOILED onion", 0.8))
    assert deterioration_index(r) == pytest.approx(80.0)


def test_deterioration_defaults_to_zero_without_spoiled_label():
    r = _results(("fresh", 0.1), ("rotten", 0.9))
    assert deterioration_index(r) == 0.0


def test_explicit_label_roles():
    roles = LabelRoles.parse("Rotten:spoiled, Fresh:healthy")
    r = _results(("fresh", 0.1), ("rotten", 0.9))
    assert deterioration_index(r, roles) == pytest.approx(90.0)
    assert roles.role_of("FRESH") == "healthy"
    # unmapped labels still use the substring default
    assert roles.role_of("spoiled batch") == "spoiled"


def test_label_roles_rejects_bad_entries():
    with pytest.raises(ValueError):
        LabelRoles.parse("Rotten=spoiled")
    with pytest.raises(ValueError):
        LabelRoles.parse("Rotten:mouldy")
    assert LabelRoles.parse("").role_of("healthy") == "healthy"


def test_top_prediction():
    r = _results(("healthy", 0.3), ("spoiled", 0.7))
    assert top_prediction(r).label == "spoiled"
    tie = _results(("healthy", 0.5), ("spoiled", 0.5))
    assert top_prediction(tie).label == "spoiled"
    with pytest.raises(ValueError):
        top_prediction([])

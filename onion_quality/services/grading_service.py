# onion_quality/services/grading_service.py
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from onion_quality.models.analysis_result import Grade, Status


@dataclass(frozen=True)
class QualityBand:
    lower: float          # inclusive
    upper: float          # exclusive (except the last band)
    grade: Grade
    status: Status
    shelf_life_days: Tuple[int, int]   # (at lower bound, at upper bound)
    quality_score: Tuple[int, int]     # (at lower bound, at upper bound)
    risk_factors: Tuple[str, ...]
    recommendations: Tuple[str, ...]


@dataclass(frozen=True)
class QualityAssessment:
    grade: Grade
    status: Status
    shelf_life_days_base: int
    quality_score_base: int
    risk_factors: Tuple[str, ...]
    recommendations: Tuple[str, ...]


# ==========================
# Band table (deterioration index -> grade)
# Fresh onions keep 2-8 months in good storage; visible deterioration
# usually shows 2-3 weeks before spoilage.
# ==========================
QUALITY_BANDS: Tuple[QualityBand, ...] = (
    QualityBand(
        lower=0.0, upper=15.0,
        grade=Grade.A, status=Status.HEALTHY,
        shelf_life_days=(180, 120),
        quality_score=(95, 90),
        risk_factors=(),
        recommendations=(
            "Excellent quality detected - maintain current conditions",
            "Expected shelf-life: 4-6 months under proper storage",
            "Suitable for long-term storage and premium markets",
            "Monitor for sprouting after 3 months",
        ),
    ),
    QualityBand(
        lower=15.0, upper=30.0,
        grade=Grade.B, status=Status.HEALTHY,
        shelf_life_days=(90, 60),
        quality_score=(85, 75),
        risk_factors=(),
        recommendations=(
            "Good quality with minor signs of aging",
            "Expected shelf-life: 2-3 months",
            "Monitor storage humidity and temperature",
            "Check for soft spots weekly",
        ),
    ),
    QualityBand(
        lower=30.0, upper=50.0,
        grade=Grade.C, status=Status.AT_RISK,
        shelf_life_days=(45, 20),
        quality_score=(65, 50),
        risk_factors=(
            "Moderate deterioration detected",
            "Signs of moisture loss or early sprouting",
            "Quality declining faster than optimal",
        ),
        recommendations=(
            "Use within 1-2 months for best quality",
            "Increase inspection frequency to weekly",
            "Consider processing into value-added products",
            "Separate any soft or sprouting onions",
        ),
    ),
    QualityBand(
        lower=50.0, upper=70.0,
        grade=Grade.D, status=Status.CRITICAL,
        shelf_life_days=(15, 7),
        quality_score=(40, 25),
        risk_factors=(
            "Significant quality deterioration detected",
            "Visible signs of spoilage or sprouting",
            "High risk of rapid quality decline",
            "Potential for mold or bacterial growth",
        ),
        recommendations=(
            "Use immediately or within 1-2 weeks",
            "Sort and remove any visibly damaged onions",
            "Consider immediate processing or sale",
            "Improve storage ventilation and reduce humidity",
        ),
    ),
    QualityBand(
        lower=70.0, upper=100.0,
        grade=Grade.F, status=Status.CRITICAL,
        shelf_life_days=(7, 1),
        quality_score=(25, 10),
        risk_factors=(
            "Severe deterioration or spoilage detected",
            "High probability of bacterial or fungal contamination",
            "Unsuitable for human consumption in current state",
            "Risk of contaminating healthy stock",
        ),
        recommendations=(
            "Immediate action required - inspect thoroughly",
            "Separate from healthy inventory immediately",
            "Consider disposal or composting",
            "Investigate storage conditions for systemic issues",
        ),
    ),
)


def find_band(deterioration_index: float) -> QualityBand:
    """
    Lower bound inclusive, upper exclusive; the last band takes
    everything >= its lower bound.
    """
    idx = float(np.clip(deterioration_index, 0.0, 100.0))
    for band in QUALITY_BANDS[:-1]:
        if band.lower <= idx < band.upper:
            return band
    return QUALITY_BANDS[-1]


def _interpolate(band: QualityBand, idx: float, values: Tuple[int, int]) -> int:
    start, end = values
    t = (idx - band.lower) / (band.upper - band.lower)
    t = float(np.clip(t, 0.0, 1.0))
    v = math.floor(round(start + (end - start) * t, 6))
    lo, hi = min(start, end), max(start, end)
    return int(min(hi, max(lo, v)))


def classify_quality(deterioration_index: float) -> QualityAssessment:
    idx = float(np.clip(deterioration_index, 0.0, 100.0))
    band = find_band(idx)

    return QualityAssessment(
        grade=band.grade,
        status=band.status,
        shelf_life_days_base=_interpolate(band, idx, band.shelf_life_days),
        quality_score_base=_interpolate(band, idx, band.quality_score),
        risk_factors=band.risk_factors,
        recommendations=band.recommendations,
    )


def storage_recommendations(shelf_life_days: int) -> Tuple[str, ...]:
    """Storage conditions matched to the base (unadjusted) shelf life."""
    if shelf_life_days > 60:
        return (
            "Maintain temperature: 0-4°C (32-39°F)",
            "Keep relative humidity: 65-70%",
            "Ensure good air circulation",
        )
    if shelf_life_days > 30:
        return (
            "Store in cool, dry place (10-15°C)",
            "Avoid high humidity areas",
            "Check weekly for sprouting",
        )
    return (
        "Keep in refrigerated storage if possible",
        "Use FIFO (First In, First Out) principle",
        "Daily quality monitoring recommended",
    )

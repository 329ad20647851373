# onion_quality/services/analysis_service.py
import datetime
import logging
import math
from collections import Counter
from typing import Iterable, Iterator, List, Optional

from onion_quality.core.errors import ClassificationFailure
from onion_quality.models.analysis_result import (
    EnvironmentalFactors, Grade, ItemOutcome, OnionAnalysis, Status
)
from onion_quality.services.confidence_service import normalize_confidence
from onion_quality.services.deterioration_service import (
    DEFAULT_ROLES, deterioration_index, top_prediction
)
from onion_quality.services.environment_service import (
    adjust_shelf_life, adjustment_percent, estimate_variety, season_for_month
)
from onion_quality.services.grading_service import classify_quality, storage_recommendations
from onion_quality.utils.image_io import load_image_for_classification

logger = logging.getLogger(__name__)

MIN_QUALITY_SCORE = 10
MAX_QUALITY_SCORE = 100

MANUAL_INSPECTION = "Manual inspection required"

# Batch verdict from the average quality score
OVERALL_HEALTHY_MIN_SCORE = 80
OVERALL_AT_RISK_MIN_SCORE = 60


def analyze_image(context, image, today: Optional[datetime.date] = None) -> OnionAnalysis:
    """
    Full pipeline for one image:
      decode + resize -> classify -> deterioration index -> grade band
      -> variety + seasonal adjustment -> OnionAnalysis

    Raises ModelNotReady, ClassificationFailure, ImageDecodeError.
    """
    classifier = context.classifier  # raises ModelNotReady

    img = load_image_for_classification(image)
    results = classifier.classify(img)
    if not results:
        raise ClassificationFailure("Model returned no predictions")

    return build_analysis(
        results,
        today=today or context.clock(),
        label_roles=context.label_roles,
        rng=context.confidence_rng,
    )


def build_analysis(results, today: datetime.date, label_roles=None, rng=None) -> OnionAnalysis:
    """Classifier output -> OnionAnalysis. No I/O."""
    top = top_prediction(results)
    confidence = normalize_confidence(top.probability, rng=rng)

    idx = deterioration_index(results, label_roles or DEFAULT_ROLES)

    q = classify_quality(idx)
    storage = storage_recommendations(q.shelf_life_days_base)

    recommendations = q.recommendations
    # critical bands already carry disposal-oriented advice
    if q.status is not Status.CRITICAL:
        recommendations = recommendations + storage

    month = today.month
    shelf_life = adjust_shelf_life(q.shelf_life_days_base, idx, month)

    analysis = OnionAnalysis(
        quality_grade=q.grade,
        confidence=confidence,
        shelf_life_days=shelf_life,
        quality_score=max(MIN_QUALITY_SCORE, min(MAX_QUALITY_SCORE, q.quality_score_base)),
        status=q.status,
        risk_factors=q.risk_factors,
        recommendations=recommendations,
        deterioration_index=int(math.floor(idx + 0.5)),
        storage_recommendations=storage,
        variety_estimate=estimate_variety(idx, confidence),
        environmental_factors=EnvironmentalFactors(
            season=season_for_month(month),
            adjustment_applied=adjustment_percent(idx, month),
        ),
    )

    logger.info(
        "Analysis: grade=%s index=%.1f shelf_life=%dd (base %dd) confidence=%.2f",
        analysis.quality_grade.value, idx, shelf_life, q.shelf_life_days_base, confidence,
    )
    return analysis


def failed_analysis(error: BaseException) -> OnionAnalysis:
    """Placeholder record for a batch item that could not be analyzed."""
    return OnionAnalysis(
        quality_grade=Grade.F,
        confidence=0.0,
        shelf_life_days=1,
        quality_score=MIN_QUALITY_SCORE,
        status=Status.CRITICAL,
        risk_factors=(f"Analysis failed: {error}",),
        recommendations=(MANUAL_INSPECTION,),
    )


def analyze_each(context, images: Iterable, today: Optional[datetime.date] = None) -> Iterator[ItemOutcome]:
    """
    One ItemOutcome per image, same order. Per-item errors are captured
    in the outcome, never raised.
    """
    today = today or context.clock()
    for i, image in enumerate(images):
        try:
            yield ItemOutcome(index=i, analysis=analyze_image(context, image, today=today))
        except Exception as e:
            name = getattr(image, "filename", None) or f"#{i}"
            logger.error("Failed to analyze image %s: %s", name, e)
            yield ItemOutcome(index=i, error=e)


def analyze_batch(context, images: Iterable, today: Optional[datetime.date] = None) -> List[OnionAnalysis]:
    """Sequential batch; failed items become grade-F placeholders at the same position."""
    return [
        outcome.analysis if outcome.ok else failed_analysis(outcome.error)
        for outcome in analyze_each(context, images, today=today)
    ]


def overall_status(average_quality_score: float) -> Status:
    if average_quality_score >= OVERALL_HEALTHY_MIN_SCORE:
        return Status.HEALTHY
    if average_quality_score >= OVERALL_AT_RISK_MIN_SCORE:
        return Status.AT_RISK
    return Status.CRITICAL


def summarize_batch(analyses: List[OnionAnalysis]) -> dict:
    """
    Roll-up for dashboards: counts per status/grade, averages and an
    overall verdict (None for an empty batch).
    Average shelf life is whole days, rounded half-up.
    """
    total = len(analyses)
    by_status = Counter(a.status.value for a in analyses)
    by_grade = Counter(a.quality_grade.value for a in analyses)

    avg_shelf = sum(a.shelf_life_days for a in analyses) / total if total else 0.0
    avg_score = sum(a.quality_score for a in analyses) / total if total else 0.0

    return {
        "total": total,
        "failed": sum(1 for a in analyses if a.failed),
        "byStatus": {s.value: by_status.get(s.value, 0) for s in Status},
        "byGrade": {g.value: by_grade.get(g.value, 0) for g in Grade},
        "averageShelfLifeDays": int(math.floor(avg_shelf + 0.5)),
        "averageQualityScore": round(avg_score, 1),
        "overallStatus": overall_status(avg_score).value if total else None,
    }

# onion_quality/models/analysis_result.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class Status(str, Enum):
    HEALTHY = "healthy"
    AT_RISK = "at-risk"
    CRITICAL = "critical"


class Variety(str, Enum):
    STORAGE = "storage"
    SWEET = "sweet"
    RED = "red"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassificationResult:
    """One classifier output: class label + probability in [0, 1]."""
    label: str
    probability: float


@dataclass(frozen=True)
class EnvironmentalFactors:
    season: str
    adjustment_applied: int  # percent, e.g. 38 -> +38%

    def to_dict(self) -> dict:
        return {"season": self.season, "adjustmentApplied": int(self.adjustment_applied)}


@dataclass(frozen=True)
class OnionAnalysis:
    """
    Engine output for one image.

    Diagnostic fields (deterioration_index, variety_estimate,
    environmental_factors) are None on the placeholder record produced
    for a failed batch item.
    """
    quality_grade: Grade
    confidence: float
    shelf_life_days: int
    quality_score: int
    status: Status
    risk_factors: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    deterioration_index: Optional[int] = None
    storage_recommendations: Tuple[str, ...] = ()
    variety_estimate: Optional[Variety] = None
    environmental_factors: Optional[EnvironmentalFactors] = None

    @property
    def failed(self) -> bool:
        return self.deterioration_index is None

    def to_dict(self) -> dict:
        """camelCase keys, same shape the dashboard stores per batch."""
        out = {
            "qualityGrade": self.quality_grade.value,
            "confidence": float(self.confidence),
            "shelfLifeDays": int(self.shelf_life_days),
            "qualityScore": int(self.quality_score),
            "status": self.status.value,
            "riskFactors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
        }
        if self.deterioration_index is not None:
            out["deteriorationIndex"] = int(self.deterioration_index)
        if self.storage_recommendations:
            out["storageRecommendations"] = list(self.storage_recommendations)
        if self.variety_estimate is not None:
            out["varietyEstimate"] = self.variety_estimate.value
        if self.environmental_factors is not None:
            out["environmentalFactors"] = self.environmental_factors.to_dict()
        return out


@dataclass(frozen=True)
class ModelStatus:
    loaded: bool
    loading: bool
    class_count: int = 0

    def to_dict(self) -> dict:
        return {"loaded": self.loaded, "loading": self.loading, "classCount": self.class_count}


@dataclass(frozen=True)
class ItemOutcome:
    """Result of analyzing one batch item: exactly one of analysis / error is set."""
    index: int
    analysis: Optional[OnionAnalysis] = None
    error: Optional[BaseException] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

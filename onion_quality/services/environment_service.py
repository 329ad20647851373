# onion_quality/services/environment_service.py
import math

from onion_quality.models.analysis_result import Variety

MIN_SHELF_LIFE_DAYS = 1
MAX_SHELF_LIFE_DAYS = 180

# ==========================
# Season by calendar month (1..12)
# ==========================
HARVEST_SEASON = "Harvest Season"    # Aug-Oct, freshly harvested
WINTER_STORAGE = "Winter Storage"    # Nov-Feb, cool storage
SPRING_SUMMER = "Spring/Summer"      # Mar-Jul, warm storage

SEASON_MULTIPLIER = {
    HARVEST_SEASON: 1.20,
    WINTER_STORAGE: 1.10,
    SPRING_SUMMER: 0.85,
}

# Deterioration pattern -> likely variety
STORAGE_VARIETY_MAX_INDEX = 20     # index below: yellow/white storage onion
FAST_DECAY_MIN_INDEX = 50          # index above: sweet or red onion
STORAGE_VARIETY_MULTIPLIER = 1.15
FAST_DECAY_MULTIPLIER = 0.80


def season_for_month(month: int) -> str:
    month = int(month)
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    if 8 <= month <= 10:
        return HARVEST_SEASON
    if month >= 11 or month <= 2:
        return WINTER_STORAGE
    return SPRING_SUMMER


def estimate_variety(deterioration_index: float, confidence: float) -> Variety:
    """
    Rough variety hint from deterioration + displayed confidence (percent).
    Display hint only, not a classification.
    """
    if deterioration_index < STORAGE_VARIETY_MAX_INDEX and confidence > 70:
        return Variety.STORAGE
    if deterioration_index > FAST_DECAY_MIN_INDEX:
        return Variety.SWEET if confidence > 60 else Variety.RED
    return Variety.UNKNOWN


def adjustment_multiplier(deterioration_index: float, month: int) -> float:
    m = SEASON_MULTIPLIER[season_for_month(month)]
    if deterioration_index < STORAGE_VARIETY_MAX_INDEX:
        m *= STORAGE_VARIETY_MULTIPLIER
    elif deterioration_index > FAST_DECAY_MIN_INDEX:
        m *= FAST_DECAY_MULTIPLIER
    return m


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def adjust_shelf_life(base_shelf_life: float, deterioration_index: float, month: int) -> int:
    """Seasonal + variety rescaling, rounded to whole days and clamped to [1, 180]."""
    adjusted = float(base_shelf_life) * adjustment_multiplier(deterioration_index, month)
    days = _round_half_up(adjusted)
    return max(MIN_SHELF_LIFE_DAYS, min(MAX_SHELF_LIFE_DAYS, days))


def adjustment_percent(deterioration_index: float, month: int) -> int:
    """
    Applied multiplier as a signed percent (1.38 -> 38, 0.68 -> -32).
    Measured before clamping, so it shows the raw seasonal/variety effect.
    """
    return _round_half_up((adjustment_multiplier(deterioration_index, month) - 1.0) * 100.0)

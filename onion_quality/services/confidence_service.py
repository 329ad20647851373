# onion_quality/services/confidence_service.py
import math
import random
from typing import Optional

import numpy as np

# Displayed confidence never reaches 100.00
MAX_DISPLAY_CONFIDENCE = 99.99


def normalize_confidence(probability: float, rng: Optional[random.Random] = None) -> float:
    """
    Map a classifier probability [0..1] to a display percentage with 2 decimals.

    - a value that would round to 100 is clamped into [99.00, 99.99]
    - otherwise the integer percent is kept as-is; the two decimals are
      the probability's own sub-percent digits (truncated)

    Only the integer part carries meaning. With `rng`, the decimals are
    random instead (old dashboard behaviour); the integer part is the same
    either way.
    """
    p = float(np.clip(float(probability), 0.0, 1.0))
    pct = p * 100.0

    if round(pct, 2) >= 100.0:
        if rng is not None:
            return round(99.0 + rng.random() * 0.99, 2)
        return MAX_DISPLAY_CONFIDENCE

    # round() first so 0.29 * 100 doesn't floor to 28.99
    hundredths = math.floor(round(pct * 100.0, 6))
    base = hundredths // 100

    if rng is not None:
        return round(base + rng.random() * 0.99, 2)

    return round(hundredths / 100.0, 2)

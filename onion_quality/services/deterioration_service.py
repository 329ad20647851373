# onion_quality/services/deterioration_service.py
import logging
from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from onion_quality.models.analysis_result import ClassificationResult

logger = logging.getLogger(__name__)

ROLE_SPOILED = "spoiled"
ROLE_HEALTHY = "healthy"
VALID_ROLES = (ROLE_SPOILED, ROLE_HEALTHY)


class LabelRoles:
    """
    Which classifier label means "spoiled" and which means "healthy".

    Explicit entries (case-insensitive exact label) win; anything else
    falls back to substring match on the role name, which is how the
    Teachable Machine export used by the dashboard names its classes.
    """

    def __init__(self, explicit: Optional[Dict[str, str]] = None):
        self._explicit = {}
        for label, role in (explicit or {}).items():
            role = str(role).strip().lower()
            if role not in VALID_ROLES:
                raise ValueError(f"Unknown label role {role!r} for label {label!r}")
            self._explicit[str(label).strip().lower()] = role

    @classmethod
    def parse(cls, s: str) -> "LabelRoles":
        """
        Expect string "Rotten Onion:spoiled,Good Onion:healthy".
        Empty string -> substring defaults.
        """
        mapping = {}
        for part in str(s or "").split(","):
            part = part.strip()
            if not part:
                continue
            if ":" not in part:
                raise ValueError(f"Invalid label role entry {part!r} (expected label:role)")
            label, role = part.rsplit(":", 1)
            mapping[label.strip()] = role.strip()
        return cls(mapping)

    def role_of(self, label: str) -> Optional[str]:
        key = str(label).strip().lower()
        if key in self._explicit:
            return self._explicit[key]
        # "spoiled" checked first: a label such as "unhealthy_spoiled" is spoilage
        for role in (ROLE_SPOILED, ROLE_HEALTHY):
            if role in key:
                return role
        return None

    def find(self, results: Iterable[ClassificationResult], role: str) -> Optional[ClassificationResult]:
        for r in results:
            if self.role_of(r.label) == role:
                return r
        return None


DEFAULT_ROLES = LabelRoles()


def top_prediction(results: Sequence[ClassificationResult]) -> ClassificationResult:
    """Highest-probability result; on ties the later entry wins."""
    if not results:
        raise ValueError("results is empty")
    best = results[0]
    for r in results[1:]:
        if not best.probability > r.probability:
            best = r
    return best


def deterioration_index(results: Sequence[ClassificationResult], roles: LabelRoles = DEFAULT_ROLES) -> float:
    """
    Spoiled-class probability * 100, in [0, 100].

    No spoiled label in the output -> 0 (treated as healthy).
    """
    spoiled = roles.find(results, ROLE_SPOILED)
    if spoiled is None:
        logger.debug(
            "No spoiled label among %s; deterioration index defaults to 0",
            [r.label for r in results],
        )
        return 0.0
    return float(np.clip(spoiled.probability * 100.0, 0.0, 100.0))

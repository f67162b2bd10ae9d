"""
Domain models for error-weighted recommendations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RecommendationTier(str, Enum):
    CRITICAL = "tier_1_critical"  # due and carrying high-impact errors
    DUE = "tier_2_due"  # due, nothing severe outstanding
    REMEDIATION = "tier_3_remediation"  # not due yet, unresolved errors


@dataclass(frozen=True)
class ProblemRecommendation:
    problem_id: str
    tier: RecommendationTier
    due: datetime
    unresolved_error_count: int
    error_types: list[str]
    priority_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "problem_id": self.problem_id,
            "tier": self.tier.value,
            "due": self.due.isoformat(),
            "unresolved_error_count": self.unresolved_error_count,
            "error_types": list(self.error_types),
            "priority_score": self.priority_score,
        }


@dataclass(frozen=True)
class Recommendations:
    tier_1_critical: list[ProblemRecommendation] = field(default_factory=list)
    tier_2_due: list[ProblemRecommendation] = field(default_factory=list)
    tier_3_remediation: list[ProblemRecommendation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier_1_critical": [r.to_dict() for r in self.tier_1_critical],
            "tier_2_due": [r.to_dict() for r in self.tier_2_due],
            "tier_3_remediation": [r.to_dict() for r in self.tier_3_remediation],
        }

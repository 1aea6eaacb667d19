"""Reliability score schema for charging stations.

A station's reliability is the sum of five independently capped components:

    Total = photo + review + rating + freshness + validation   (each 0-20)

Storing components enables:
- Showing users WHY a station is trusted (breakdown display)
- Comparing live recomputation against the scheduled batch job
"""

import math
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from sharaspot_engine.config.reward_rules import COMPONENT_MAX, TRUST_BADGE_THRESHOLDS


class TrustBadge(str, Enum):
    """Station trust tier, a pure function of the total score.

    EXCELLENT: >= 80 ("Community Trusted")
    GOOD: >= 60 ("Verified")
    FAIR: >= 30 ("Community Reviewed")
    NEEDS_DATA: below 30 ("Needs Reviews")
    """

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    NEEDS_DATA = "NEEDS_DATA"

    @classmethod
    def from_score(cls, score: float) -> "TrustBadge":
        for name in ("EXCELLENT", "GOOD", "FAIR"):
            if score >= TRUST_BADGE_THRESHOLDS[name]:
                return cls(name)
        return cls.NEEDS_DATA


class ScoreLevel(str, Enum):
    """Breakdown level for one component, by percentage of its maximum."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    NONE = "none"

    @classmethod
    def from_score(cls, score: float, max_score: float = COMPONENT_MAX) -> "ScoreLevel":
        percentage = (score / max_score) * 100 if max_score > 0 else 0.0
        if percentage >= 80:
            return cls.EXCELLENT
        if percentage >= 60:
            return cls.GOOD
        if percentage >= 40:
            return cls.FAIR
        if percentage > 0:
            return cls.POOR
        return cls.NONE


class ReliabilityScore(BaseModel):
    """Per-station reliability with component breakdown.

    Usage:
        score = ReliabilityScore(charger_id="chg-42", photo_score=20.0, total_score=20.0)
        score.trust_badge  # TrustBadge.NEEDS_DATA
    """

    charger_id: str
    total_score: float = Field(0.0, ge=0.0, le=100.0)
    photo_score: float = Field(0.0, ge=0.0, le=COMPONENT_MAX)
    review_score: float = Field(0.0, ge=0.0, le=COMPONENT_MAX)
    rating_score: float = Field(0.0, ge=0.0, le=COMPONENT_MAX)
    freshness_score: float = Field(0.0, ge=0.0, le=COMPONENT_MAX)
    validation_score: float = Field(0.0, ge=0.0, le=COMPONENT_MAX)
    contribution_count: int = 0
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def star_rating(self) -> int:
        """Whole stars 0-5: total / 20 rounded half up."""
        stars = math.floor(self.total_score / 20.0 + 0.5)
        return max(0, min(5, stars))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def trust_badge(self) -> TrustBadge:
        return TrustBadge.from_score(self.total_score)

    def component_levels(self) -> dict[str, ScoreLevel]:
        return {
            "photo": ScoreLevel.from_score(self.photo_score),
            "review": ScoreLevel.from_score(self.review_score),
            "rating": ScoreLevel.from_score(self.rating_score),
            "freshness": ScoreLevel.from_score(self.freshness_score),
            "validation": ScoreLevel.from_score(self.validation_score),
        }

    def to_display_string(self) -> str:
        return f"{self.total_score:.1f}/100"

    def same_scores(self, other: "ReliabilityScore") -> bool:
        """Compare components and total, ignoring last_updated."""
        exclude = {"last_updated"}
        return self.model_dump(exclude=exclude) == other.model_dump(exclude=exclude)

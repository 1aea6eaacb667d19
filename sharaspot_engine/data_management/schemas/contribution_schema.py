"""Contribution schemas for crowdsourced charging-station reports.

A Contribution is one report about one charger. Its payload never changes after
creation; only the validation state (who endorsed, who disputed, the derived
confidence score) is mutated, and only by vote casting.

ContributionSummary, WaitTimeInfo and PlugStatusInfo are views rebuilt from a
charger's full contribution set. They are never a source of truth.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from sharaspot_engine.config.reward_rules import (
    CONTRIBUTION_DISPLAY_NAMES,
    CONTRIBUTION_REWARDS,
    HIGH_CONFIDENCE_THRESHOLD,
    MEDIUM_CONFIDENCE_THRESHOLD,
)


class ContributionType(str, Enum):
    """Kinds of report a user can file against a charger."""

    PHOTO = "PHOTO"
    REVIEW = "REVIEW"
    WAIT_TIME = "WAIT_TIME"
    PLUG_CHECK = "PLUG_CHECK"
    STATUS_UPDATE = "STATUS_UPDATE"

    @property
    def ev_coins_reward(self) -> int:
        """Base coins awarded for a contribution of this type."""
        return CONTRIBUTION_REWARDS[self.value]

    @property
    def display_name(self) -> str:
        return CONTRIBUTION_DISPLAY_NAMES[self.value]


class ChargerStatus(str, Enum):
    """Reported operational state of a charger."""

    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"
    NOT_WORKING = "NOT_WORKING"
    MAINTENANCE = "MAINTENANCE"
    UNKNOWN = "UNKNOWN"


class PlugType(str, Enum):
    """Connector standards seen at chargers."""

    CCS = "CCS"
    CHADEMO = "CHAdeMO"
    TYPE_2 = "Type 2"
    BHARAT_DC = "Bharat DC"
    TYPE_1 = "Type 1"

    @classmethod
    def from_string(cls, value: str) -> Optional["PlugType"]:
        """Look up by member name or display value ("TYPE_2" or "Type 2")."""
        for plug in cls:
            if value in (plug.name, plug.value):
                return plug
        return None


class PhotoCategory(str, Enum):
    CHARGER = "CHARGER"
    PLUG = "PLUG"
    PARKING = "PARKING"
    LOCATION = "LOCATION"
    OTHER = "OTHER"


class WaitTimeOption(int, Enum):
    """Quick-pick wait time buckets."""

    ZERO = 0
    FIVE = 5
    TEN = 10
    FIFTEEN = 15
    THIRTY_PLUS = 30

    @classmethod
    def from_minutes(cls, minutes: int) -> "WaitTimeOption":
        if minutes <= 0:
            return cls.ZERO
        if minutes <= 5:
            return cls.FIVE
        if minutes <= 10:
            return cls.TEN
        if minutes <= 15:
            return cls.FIFTEEN
        return cls.THIRTY_PLUS


class ConfidenceLevel(str, Enum):
    """Display tier for a contribution's confidence score.

    HIGH: >= 0.7 ("Verified")
    MEDIUM: >= 0.4 ("Normal")
    LOW: below 0.4 ("Needs verification")
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, score: float) -> "ConfidenceLevel":
        if score >= HIGH_CONFIDENCE_THRESHOLD:
            return cls.HIGH
        if score >= MEDIUM_CONFIDENCE_THRESHOLD:
            return cls.MEDIUM
        return cls.LOW


class ContributionPayload(BaseModel):
    """Type-specific report fields shared by requests and stored contributions."""

    photo_url: Optional[str] = Field(None, description="Opaque URL of an uploaded photo")
    photo_category: Optional[PhotoCategory] = None
    rating: Optional[float] = Field(None, ge=0.0, le=5.0, description="Review rating 0-5")
    comment: Optional[str] = None
    wait_time_minutes: Optional[int] = Field(None, ge=0)
    queue_length: Optional[int] = Field(None, ge=0, description="Vehicles waiting")
    plug_type: Optional[str] = Field(None, description="Connector, e.g. CCS or Type 2")
    plug_working: Optional[bool] = None
    power_output: Optional[str] = Field(None, description="e.g. 7kW, 50kW")
    vehicle_tested: Optional[str] = None
    charger_status: Optional[ChargerStatus] = None


# Payload fields a contribution of each type must carry
REQUIRED_PAYLOAD_FIELDS: dict[ContributionType, tuple[str, ...]] = {
    ContributionType.PHOTO: ("photo_url",),
    ContributionType.REVIEW: ("rating",),
    ContributionType.WAIT_TIME: ("wait_time_minutes",),
    ContributionType.PLUG_CHECK: ("plug_type", "plug_working"),
    ContributionType.STATUS_UPDATE: ("charger_status",),
}


class CreateContributionRequest(ContributionPayload):
    """Incoming report from a user action.

    Usage:
        request = CreateContributionRequest(
            charger_id="chg-42",
            type=ContributionType.REVIEW,
            rating=4.5,
            comment="Fast and clean",
        )
    """

    charger_id: str = Field(..., min_length=1)
    type: ContributionType
    charger_name: Optional[str] = Field(None, description="Used in transaction reasons")
    city_name: Optional[str] = Field(None, description="Counts toward the explorer badge")

    @model_validator(mode="after")
    def _check_required_payload(self) -> "CreateContributionRequest":
        missing = [
            name
            for name in REQUIRED_PAYLOAD_FIELDS[self.type]
            if getattr(self, name) is None
        ]
        if missing:
            raise ValueError(
                f"{self.type.value} contribution requires: {', '.join(missing)}"
            )
        return self


class Contribution(ContributionPayload):
    """One crowdsourced report with its peer-validation state.

    Invariant: a user id appears in at most one of validated_by / invalidated_by.
    confidence_score is recomputed on every vote (see ConfidenceEngine).
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    charger_id: str
    user_id: str
    user_name: str = "Anonymous User"
    type: ContributionType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ev_coins_earned: int = 0

    validated_by: set[str] = Field(default_factory=set, description="Endorsing user ids")
    invalidated_by: set[str] = Field(default_factory=set, description="Disputing user ids")
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    last_validated_at: Optional[datetime] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def validation_count(self) -> int:
        """Net endorsements (validated minus invalidated)."""
        return len(self.validated_by) - len(self.invalidated_by)

    @model_validator(mode="after")
    def _check_disjoint_votes(self) -> "Contribution":
        overlap = self.validated_by & self.invalidated_by
        if overlap:
            raise ValueError(
                f"Users cannot both validate and invalidate: {sorted(overlap)}"
            )
        return self

    @classmethod
    def from_request(
        cls,
        request: CreateContributionRequest,
        user_id: str,
        user_name: str,
        timestamp: datetime,
    ) -> "Contribution":
        payload = request.model_dump(
            include=set(ContributionPayload.model_fields.keys())
        )
        return cls(
            charger_id=request.charger_id,
            user_id=user_id,
            user_name=user_name,
            type=request.type,
            timestamp=timestamp,
            ev_coins_earned=request.type.ev_coins_reward,
            **payload,
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "c-001",
                    "charger_id": "chg-42",
                    "user_id": "u-7",
                    "user_name": "Priya",
                    "type": "PLUG_CHECK",
                    "timestamp": "2026-03-01T09:30:00Z",
                    "plug_type": "CCS",
                    "plug_working": True,
                    "power_output": "50kW",
                    "validated_by": ["u-2", "u-9"],
                    "invalidated_by": [],
                    "confidence_score": 0.46,
                }
            ]
        }
    }


class ValidationRecord(BaseModel):
    """One rewarded vote, kept for daily stats and the validator leaderboard."""

    user_id: str
    contribution_id: str
    charger_id: str
    is_validation: bool
    timestamp: datetime


class WaitTimeInfo(BaseModel):
    """Latest reported wait time at a charger."""

    minutes: int
    queue_length: Optional[int] = None
    timestamp: datetime
    is_stale: bool = Field(..., description="True if older than the wait-time stale window")


class PlugStatusInfo(BaseModel):
    """Most recent verified state of one connector type."""

    plug_type: str
    is_working: bool
    power_output: Optional[str] = None
    last_verified: datetime
    verification_count: int


class ContributionSummary(BaseModel):
    """Per-charger view over all of its contributions."""

    charger_id: str
    total_contributions: int = 0
    total_photos: int = 0
    average_rating: Optional[float] = None
    latest_wait_time: Optional[WaitTimeInfo] = None
    current_status: Optional[ChargerStatus] = None
    plug_status_list: list[PlugStatusInfo] = Field(default_factory=list)
    recent_contributions: list[Contribution] = Field(
        default_factory=list, description="Most recent first, bounded window"
    )

"""Rewards ledger schemas: ranks, badges, user reward state and coin transactions.

Design principles:
- The transaction log is the source of truth for balance; CoinTransaction is frozen
- rank is derived from total_coins, never set on its own
- badges and contributed sets only ever grow
- BadgeRequirement is a tagged union; evaluation dispatches on the variant type
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from sharaspot_engine.config.reward_rules import MAX_VALIDATIONS_PER_DAY, RANK_THRESHOLDS


class RewardRank(str, Enum):
    """Coin-threshold tiers, in ascending order."""

    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    @property
    def min_coins(self) -> int:
        return RANK_THRESHOLDS[self.value]

    @classmethod
    def from_coins(cls, coins: int) -> "RewardRank":
        """Highest rank whose threshold the balance meets."""
        current = cls.BRONZE
        for rank in cls:
            if coins >= rank.min_coins:
                current = rank
        return current

    def next_rank(self) -> Optional["RewardRank"]:
        ranks = list(type(self))
        index = ranks.index(self)
        return ranks[index + 1] if index + 1 < len(ranks) else None


# ── Badge requirements (tagged union) ─────────────────────────────────────


class FirstContribution(BaseModel):
    kind: Literal["first_contribution"] = "first_contribution"


class FirstToNewCharger(BaseModel):
    kind: Literal["first_to_new_charger"] = "first_to_new_charger"


class PhotoCount(BaseModel):
    kind: Literal["photo_count"] = "photo_count"
    count: int


class ReviewCount(BaseModel):
    kind: Literal["review_count"] = "review_count"
    count: int


class ValidationCount(BaseModel):
    kind: Literal["validation_count"] = "validation_count"
    count: int


class TotalCoins(BaseModel):
    kind: Literal["total_coins"] = "total_coins"
    coins: int


class CitiesCount(BaseModel):
    kind: Literal["cities_count"] = "cities_count"
    cities: int


BadgeRequirement = Annotated[
    Union[
        FirstContribution,
        FirstToNewCharger,
        PhotoCount,
        ReviewCount,
        ValidationCount,
        TotalCoins,
        CitiesCount,
    ],
    Field(discriminator="kind"),
]


class BadgeDefinition(BaseModel):
    """Display metadata and unlock requirement for one badge."""

    display_name: str
    description: str
    requirement: BadgeRequirement


class RewardBadge(str, Enum):
    """Achievement badges; the value is the stored badge id."""

    FIRST_TIMER = "first_timer"
    PHOTOGRAPHER = "photographer"
    REVIEWER_PRO = "reviewer_pro"
    DATA_GUARDIAN = "data_guardian"
    EARLY_BIRD = "early_bird"
    COMMUNITY_HERO = "community_hero"
    TAMIL_NADU_EXPLORER = "tamil_nadu_explorer"

    @property
    def definition(self) -> BadgeDefinition:
        return BADGE_CATALOG[self]

    @property
    def requirement(self) -> BadgeRequirement:
        return BADGE_CATALOG[self].requirement

    @classmethod
    def from_id(cls, badge_id: str) -> Optional["RewardBadge"]:
        try:
            return cls(badge_id)
        except ValueError:
            return None


BADGE_CATALOG: dict[RewardBadge, BadgeDefinition] = {
    RewardBadge.FIRST_TIMER: BadgeDefinition(
        display_name="First Timer",
        description="Make your first contribution",
        requirement=FirstContribution(),
    ),
    RewardBadge.PHOTOGRAPHER: BadgeDefinition(
        display_name="Photographer",
        description="Upload 50 photos",
        requirement=PhotoCount(count=50),
    ),
    RewardBadge.REVIEWER_PRO: BadgeDefinition(
        display_name="Reviewer Pro",
        description="Write 25 reviews",
        requirement=ReviewCount(count=25),
    ),
    RewardBadge.DATA_GUARDIAN: BadgeDefinition(
        display_name="Data Guardian",
        description="Validate 100 contributions",
        requirement=ValidationCount(count=100),
    ),
    RewardBadge.EARLY_BIRD: BadgeDefinition(
        display_name="Early Bird",
        description="Be the first to add a new charger",
        requirement=FirstToNewCharger(),
    ),
    RewardBadge.COMMUNITY_HERO: BadgeDefinition(
        display_name="Community Hero",
        description="Earn 1000 EVCoins",
        requirement=TotalCoins(coins=1000),
    ),
    RewardBadge.TAMIL_NADU_EXPLORER: BadgeDefinition(
        display_name="Tamil Nadu Explorer",
        description="Contribute to 10 different cities",
        requirement=CitiesCount(cities=10),
    ),
}


# ── Ledger state ──────────────────────────────────────────────────────────


class UserRewards(BaseModel):
    """Materialized ledger state for one user.

    Invariant: rank == RewardRank.from_coins(total_coins). Constructing or
    copying through the ledger always re-derives it.
    """

    user_id: str
    total_coins: int = 0
    coins_this_month: int = 0
    rank: RewardRank = RewardRank.BRONZE
    badges: list[str] = Field(default_factory=list, description="Badge ids, earn order")

    contribution_count: int = 0
    validation_count: int = 0
    photo_count: int = 0
    review_count: int = 0
    first_to_charger_count: int = 0

    daily_validation_count: int = 0
    last_validation_date: Optional[date] = None
    last_check_in_date: Optional[date] = None

    cities_contributed: set[str] = Field(default_factory=set)
    chargers_contributed: set[str] = Field(default_factory=set)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _derive_rank(self) -> "UserRewards":
        self.rank = RewardRank.from_coins(self.total_coins)
        return self

    @property
    def progress_to_next_rank(self) -> float:
        """Fraction 0.0-1.0 of the way from the current to the next threshold."""
        next_rank = self.rank.next_rank()
        if next_rank is None:
            return 1.0
        span = next_rank.min_coins - self.rank.min_coins
        progress = (self.total_coins - self.rank.min_coins) / span
        return max(0.0, min(1.0, progress))

    @property
    def coins_to_next_rank(self) -> int:
        next_rank = self.rank.next_rank()
        if next_rank is None:
            return 0
        return max(0, next_rank.min_coins - self.total_coins)

    def has_badge(self, badge: RewardBadge) -> bool:
        return badge.value in self.badges

    def can_check_in(self, today: date) -> bool:
        return self.last_check_in_date != today

    def validations_today(self, today: date) -> int:
        return self.daily_validation_count if self.last_validation_date == today else 0

    def can_validate(self, today: date, limit: int = MAX_VALIDATIONS_PER_DAY) -> bool:
        return self.validations_today(today) < limit


class TransactionType(str, Enum):
    """Ledger entry kinds. SPENT is the only debit."""

    EARNED = "EARNED"
    SPENT = "SPENT"
    BONUS = "BONUS"
    REFUND = "REFUND"
    ADJUSTMENT = "ADJUSTMENT"


class CoinTransaction(BaseModel):
    """Immutable ledger entry."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    amount: int = Field(..., description="Positive for credits, negative for SPENT")
    type: TransactionType
    reason: str
    charger_id: Optional[str] = None
    charger_name: Optional[str] = None
    contribution_id: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "tx-001",
                    "user_id": "u-7",
                    "amount": 80,
                    "type": "BONUS",
                    "reason": "Write Review for Shell Recharge, Chennai (First contribution! +50 bonus)",
                    "charger_id": "chg-42",
                    "charger_name": "Shell Recharge, Chennai",
                    "contribution_id": "c-001",
                    "metadata": {"contributionType": "REVIEW", "baseCoins": "30", "bonusCoins": "50"},
                    "timestamp": "2026-03-01T09:30:00Z",
                }
            ]
        },
    }


class AwardCoinsRequest(BaseModel):
    """Request to append one transaction to a user's ledger."""

    user_id: str
    amount: int
    type: TransactionType
    reason: str
    charger_id: Optional[str] = None
    charger_name: Optional[str] = None
    contribution_id: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)


class AwardCoinsResult(BaseModel):
    """Outcome of a successful award."""

    transaction: CoinTransaction
    new_total_coins: int
    badges_earned: list[RewardBadge] = Field(default_factory=list)
    rank_changed: bool = False
    new_rank: Optional[RewardRank] = None
    rewards: UserRewards


class TransactionPeriod(str, Enum):
    THIS_WEEK = "THIS_WEEK"
    THIS_MONTH = "THIS_MONTH"
    ALL_TIME = "ALL_TIME"

    @property
    def days(self) -> Optional[int]:
        """Lookback window in days, None for all time."""
        return {"THIS_WEEK": 7, "THIS_MONTH": 30}.get(self.value)


class TransactionSummary(BaseModel):
    total_earned: int = 0
    total_spent: int = 0
    total_bonus: int = 0
    net_change: int = 0
    transaction_count: int = 0
    period: TransactionPeriod


class LeaderboardPeriod(str, Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"
    ALL_TIME = "ALL_TIME"


class ValidatorLeaderboardEntry(BaseModel):
    user_id: str
    validation_count: int
    position: int = Field(..., ge=1)
    ev_coins_earned: int


class ValidationStats(BaseModel):
    user_id: str
    total_validations: int = 0
    validations_this_month: int = 0
    validations_this_week: int = 0
    validations_today: int = 0
    ev_coins_earned: int = 0
    has_guardian_badge: bool = False

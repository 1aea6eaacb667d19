"""Schema package for contributions, reliability scores and the rewards ledger.

Pydantic models shared by the scoring components, the stores and the service:
- Contributions are immutable reports with mutable validation state
- Reliability scores and contribution summaries are views, never sources of truth
- Coin transactions are frozen; user reward state is derived from them

Usage:
    from sharaspot_engine.data_management.schemas import Contribution, ContributionType
    contribution = Contribution(charger_id="chg-1", user_id="u-1", type=ContributionType.PHOTO)

    from sharaspot_engine.data_management.schemas import UserRewards, RewardRank
    RewardRank.from_coins(1500)  # RewardRank.GOLD
"""

from sharaspot_engine.data_management.schemas.contribution_schema import (
    ChargerStatus,
    ConfidenceLevel,
    Contribution,
    ContributionPayload,
    ContributionSummary,
    ContributionType,
    CreateContributionRequest,
    PhotoCategory,
    PlugStatusInfo,
    PlugType,
    ValidationRecord,
    WaitTimeInfo,
    WaitTimeOption,
)

from sharaspot_engine.data_management.schemas.reliability_schema import (
    ReliabilityScore,
    ScoreLevel,
    TrustBadge,
)

from sharaspot_engine.data_management.schemas.rewards_schema import (
    BADGE_CATALOG,
    AwardCoinsRequest,
    AwardCoinsResult,
    BadgeDefinition,
    BadgeRequirement,
    CitiesCount,
    CoinTransaction,
    FirstContribution,
    FirstToNewCharger,
    LeaderboardPeriod,
    PhotoCount,
    ReviewCount,
    RewardBadge,
    RewardRank,
    TotalCoins,
    TransactionPeriod,
    TransactionSummary,
    TransactionType,
    UserRewards,
    ValidationCount,
    ValidationStats,
    ValidatorLeaderboardEntry,
)

__all__ = [
    # Contribution
    "ChargerStatus",
    "ConfidenceLevel",
    "Contribution",
    "ContributionPayload",
    "ContributionSummary",
    "ContributionType",
    "CreateContributionRequest",
    "PhotoCategory",
    "PlugStatusInfo",
    "PlugType",
    "ValidationRecord",
    "WaitTimeInfo",
    "WaitTimeOption",
    # Reliability
    "ReliabilityScore",
    "ScoreLevel",
    "TrustBadge",
    # Rewards
    "BADGE_CATALOG",
    "AwardCoinsRequest",
    "AwardCoinsResult",
    "BadgeDefinition",
    "BadgeRequirement",
    "CitiesCount",
    "CoinTransaction",
    "FirstContribution",
    "FirstToNewCharger",
    "LeaderboardPeriod",
    "PhotoCount",
    "ReviewCount",
    "RewardBadge",
    "RewardRank",
    "TotalCoins",
    "TransactionPeriod",
    "TransactionSummary",
    "TransactionType",
    "UserRewards",
    "ValidationCount",
    "ValidationStats",
    "ValidatorLeaderboardEntry",
]

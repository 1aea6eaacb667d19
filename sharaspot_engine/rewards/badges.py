"""Badge unlock evaluation.

Each RewardBadge carries one BadgeRequirement variant; evaluation dispatches
on the variant type against a UserRewards snapshot. Badges are never revoked,
so held badges are skipped.
"""

from sharaspot_engine.data_management.schemas import (
    BadgeRequirement,
    CitiesCount,
    FirstContribution,
    FirstToNewCharger,
    PhotoCount,
    ReviewCount,
    RewardBadge,
    TotalCoins,
    UserRewards,
    ValidationCount,
)


def requirement_met(requirement: BadgeRequirement, rewards: UserRewards) -> bool:
    if isinstance(requirement, FirstContribution):
        return rewards.contribution_count >= 1
    if isinstance(requirement, FirstToNewCharger):
        return rewards.first_to_charger_count >= 1
    if isinstance(requirement, PhotoCount):
        return rewards.photo_count >= requirement.count
    if isinstance(requirement, ReviewCount):
        return rewards.review_count >= requirement.count
    if isinstance(requirement, ValidationCount):
        return rewards.validation_count >= requirement.count
    if isinstance(requirement, TotalCoins):
        return rewards.total_coins >= requirement.coins
    if isinstance(requirement, CitiesCount):
        return len(rewards.cities_contributed) >= requirement.cities
    raise TypeError(f"Unknown badge requirement: {type(requirement).__name__}")


def evaluate_badges(rewards: UserRewards) -> list[RewardBadge]:
    """Badges the snapshot qualifies for but does not yet hold, in catalog order."""
    return [
        badge
        for badge in RewardBadge
        if not rewards.has_badge(badge) and requirement_met(badge.requirement, rewards)
    ]

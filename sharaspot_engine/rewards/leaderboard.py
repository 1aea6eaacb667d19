"""Read-only user rankings.

Coin leaderboards sort by balance descending with user_id ascending as the
tie-breaker, so repeated calls over unchanged data return the same order.
The validator leaderboard counts rewarded votes from the contribution store's
validation history.
"""

from datetime import timedelta
from typing import Optional

import structlog

from sharaspot_engine.clock import Clock, SystemClock
from sharaspot_engine.config.reward_rules import VALIDATION_REWARD
from sharaspot_engine.data_management.contribution_store import ContributionStore
from sharaspot_engine.data_management.rewards_store import RewardsStore
from sharaspot_engine.data_management.schemas import (
    LeaderboardPeriod,
    UserRewards,
    ValidatorLeaderboardEntry,
)


class Leaderboard:
    def __init__(
        self,
        rewards_store: RewardsStore,
        contribution_store: Optional[ContributionStore] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.rewards_store = rewards_store
        self.contribution_store = contribution_store
        self.clock = clock or SystemClock()
        self._logger = structlog.get_logger().bind(component="Leaderboard")

    async def _ranked_by_total(self) -> list[UserRewards]:
        return sorted(
            await self.rewards_store.all_rewards(),
            key=lambda r: (-r.total_coins, r.user_id),
        )

    async def top(self, limit: int = 50) -> list[UserRewards]:
        """Users by total_coins, highest first."""
        return (await self._ranked_by_total())[:limit]

    async def top_monthly(self, limit: int = 50) -> list[UserRewards]:
        """Users by coins earned this month, highest first."""
        ranked = sorted(
            await self.rewards_store.all_rewards(),
            key=lambda r: (-r.coins_this_month, r.user_id),
        )
        return ranked[:limit]

    async def rank_of(self, user_id: str) -> Optional[int]:
        """1-based position on the all-time board, or None for unknown users."""
        ranked = await self._ranked_by_total()
        for position, rewards in enumerate(ranked, start=1):
            if rewards.user_id == user_id:
                return position
        return None

    async def top_validators(
        self,
        limit: int = 10,
        period: LeaderboardPeriod = LeaderboardPeriod.WEEK,
    ) -> list[ValidatorLeaderboardEntry]:
        """Most active validators in the period.

        WEEK is the trailing 7 days, MONTH starts at the first of the current
        calendar month in the engine timezone.
        """
        if self.contribution_store is None:
            raise RuntimeError("Validator leaderboard needs a contribution store")

        since = None
        if period == LeaderboardPeriod.WEEK:
            since = self.clock.now() - timedelta(days=7)
        elif period == LeaderboardPeriod.MONTH:
            since = self.clock.start_of_month()

        counts: dict[str, int] = {}
        for record in await self.contribution_store.validation_history(since=since):
            counts[record.user_id] = counts.get(record.user_id, 0) + 1

        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]

        self._logger.debug(
            "validator_leaderboard_built",
            period=period.value,
            validators=len(counts),
        )
        return [
            ValidatorLeaderboardEntry(
                user_id=user_id,
                validation_count=count,
                position=position,
                ev_coins_earned=count * VALIDATION_REWARD,
            )
            for position, (user_id, count) in enumerate(ranked, start=1)
        ]

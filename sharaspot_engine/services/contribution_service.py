"""Contribution event entry point: create reports and cast votes.

Wires the stores, the confidence engine, the rewards ledger and the
reliability recomputation together. Each event is one unit of work:

create_contribution:
    user lock -> charger lock -> store contribution (detects first-to-charger)
    -> award coins -> recompute station reliability

validate_contribution:
    user lock -> charger lock -> apply vote -> daily cap check (first votes
    only) -> commit vote and history record -> award validation coins
    -> recompute station reliability

Locks are always taken user first, charger second. Everything between the
first check and the last commit is synchronous, so a caller that gives up
mid-request either changed nothing or completed the whole event. If the
rewards write fails after the contribution write, the charger is restored
from a snapshot taken under the same lock before the error propagates.

Usage:
    service = ContributionService(clock=SystemClock())
    outcome = await service.create_contribution(request, user_id="u-1", user_name="Priya")
    outcome.award.new_total_coins  # 80 for a first review at a new charger
"""

from datetime import timedelta
from typing import Optional

import structlog
from pydantic import BaseModel

from sharaspot_engine.clock import Clock, SystemClock
from sharaspot_engine.config.reward_rules import VALIDATION_REWARD
from sharaspot_engine.data_management.contribution_store import ContributionStore
from sharaspot_engine.data_management.reliability_store import ReliabilityStore
from sharaspot_engine.data_management.rewards_store import RewardsStore
from sharaspot_engine.data_management.schemas import (
    AwardCoinsResult,
    Contribution,
    ContributionSummary,
    CreateContributionRequest,
    ReliabilityScore,
    RewardBadge,
    ValidationRecord,
    ValidationStats,
)
from sharaspot_engine.pipelines.reliability_batch import ReliabilityBatchJob
from sharaspot_engine.rewards.leaderboard import Leaderboard
from sharaspot_engine.rewards.ledger import RewardsLedger
from sharaspot_engine.scoring.confidence import ConfidenceEngine
from sharaspot_engine.scoring.reliability import ReliabilityAggregator
from sharaspot_engine.utils.logging import request_context


class ContributionOutcome(BaseModel):
    """Result of a new contribution."""

    contribution: Contribution
    award: AwardCoinsResult
    is_first_to_charger: bool
    reliability: ReliabilityScore


class VoteOutcome(BaseModel):
    """Result of a validate/invalidate vote.

    award is None when the vote only flipped an earlier vote by the same user.
    """

    contribution: Contribution
    award: Optional[AwardCoinsResult] = None
    reliability: ReliabilityScore


class ContributionService:
    """Handles contribution events for one engine instance."""

    def __init__(
        self,
        contribution_store: Optional[ContributionStore] = None,
        rewards_store: Optional[RewardsStore] = None,
        reliability_store: Optional[ReliabilityStore] = None,
        clock: Optional[Clock] = None,
        confidence_engine: Optional[ConfidenceEngine] = None,
        aggregator: Optional[ReliabilityAggregator] = None,
    ) -> None:
        """Initialize ContributionService.

        Args:
            contribution_store: Shared contribution store. Memory-only if None.
            rewards_store: Shared rewards store. Memory-only if None.
            reliability_store: Shared reliability store. Memory-only if None.
            clock: Source of "now" for every component. System clock if None.
            confidence_engine: Vote scoring. Default tuning if None.
            aggregator: Station scoring. Built on confidence_engine if None.
        """
        self.clock = clock or SystemClock()
        self.contribution_store = contribution_store or ContributionStore()
        self.rewards_store = rewards_store or RewardsStore()
        self.reliability_store = reliability_store or ReliabilityStore()
        self.confidence_engine = confidence_engine or ConfidenceEngine()
        self.aggregator = aggregator or ReliabilityAggregator(self.confidence_engine)

        self.ledger = RewardsLedger(self.rewards_store, clock=self.clock)
        self.leaderboard = Leaderboard(
            self.rewards_store, self.contribution_store, clock=self.clock
        )
        self.batch_job = ReliabilityBatchJob(
            self.contribution_store,
            self.reliability_store,
            aggregator=self.aggregator,
            clock=self.clock,
        )
        self._logger = structlog.get_logger().bind(component="ContributionService")

    async def create_contribution(
        self,
        request: CreateContributionRequest,
        user_id: str,
        user_name: str = "Anonymous User",
    ) -> ContributionOutcome:
        """Store a new report, reward its author and refresh station reliability."""
        with request_context(user_id):
            contribution = Contribution.from_request(
                request, user_id=user_id, user_name=user_name, timestamp=self.clock.now()
            )

            async with self.ledger.user_lock(user_id):
                async with self.contribution_store.charger_lock(request.charger_id):
                    snapshot = self.contribution_store.snapshot_locked(request.charger_id)
                    is_first = self.contribution_store.add_locked(contribution)
                    try:
                        award = self.ledger.award_for_contribution_locked(
                            user_id,
                            request.type,
                            request.charger_id,
                            charger_name=request.charger_name,
                            contribution_id=contribution.id,
                            is_first_to_charger=is_first,
                            city_name=request.city_name,
                        )
                    except Exception:
                        self.contribution_store.restore_locked(request.charger_id, snapshot)
                        raise
                    reliability = await self.batch_job.recompute_locked(request.charger_id)

            self._logger.info(
                "contribution_created",
                contribution_id=contribution.id,
                charger_id=contribution.charger_id,
                type=contribution.type.value,
                is_first_to_charger=is_first,
                coins=award.transaction.amount,
            )
            return ContributionOutcome(
                contribution=contribution,
                award=award,
                is_first_to_charger=is_first,
                reliability=reliability,
            )

    async def validate_contribution(
        self,
        contribution_id: str,
        user_id: str,
        is_validation: bool,
    ) -> VoteOutcome:
        """Cast or flip a vote on someone else's contribution.

        Only a user's first vote on a contribution earns coins and counts
        toward the daily cap.

        Raises:
            ContributionNotFoundError: Unknown contribution_id.
            SelfValidationError: Voting on one's own contribution.
            DuplicateVoteError: Repeating the vote already held.
            DailyValidationLimitError: First vote while the daily cap is reached.
        """
        with request_context(user_id):
            charger_id = (await self.contribution_store.get(contribution_id)).charger_id

            award = None
            async with self.ledger.user_lock(user_id):
                async with self.contribution_store.charger_lock(charger_id):
                    current = self.contribution_store.get_locked(contribution_id)
                    is_first_vote = (
                        user_id not in current.validated_by
                        and user_id not in current.invalidated_by
                    )
                    now = self.clock.now()
                    updated = self.confidence_engine.apply_vote(
                        current, user_id, is_validation, now
                    )

                    record = None
                    if is_first_vote:
                        self.ledger.check_can_validate_locked(user_id)
                        record = ValidationRecord(
                            user_id=user_id,
                            contribution_id=contribution_id,
                            charger_id=charger_id,
                            is_validation=is_validation,
                            timestamp=now,
                        )

                    snapshot = self.contribution_store.snapshot_locked(charger_id)
                    self.contribution_store.commit_vote_locked(updated, record)
                    if is_first_vote:
                        try:
                            award = self.ledger.award_validation_coins_locked(
                                user_id, contribution_id, charger_id=charger_id
                            )
                        except Exception:
                            self.contribution_store.restore_locked(charger_id, snapshot)
                            raise
                    reliability = await self.batch_job.recompute_locked(charger_id)

            self._logger.info(
                "vote_recorded",
                contribution_id=contribution_id,
                charger_id=charger_id,
                is_validation=is_validation,
                rewarded=award is not None,
                confidence=updated.confidence_score,
            )
            return VoteOutcome(contribution=updated, award=award, reliability=reliability)

    async def check_in(self, user_id: str) -> AwardCoinsResult:
        return await self.ledger.award_daily_check_in(user_id)

    async def get_contribution(self, contribution_id: str) -> Contribution:
        return await self.contribution_store.get(contribution_id)

    async def get_contributions(self, charger_id: str) -> list[Contribution]:
        return await self.contribution_store.list_for_charger(charger_id)

    async def get_summary(self, charger_id: str) -> ContributionSummary:
        contributions = await self.contribution_store.list_for_charger(charger_id)
        return self.aggregator.summarize(charger_id, contributions, self.clock.now())

    async def get_reliability(self, charger_id: str) -> ReliabilityScore:
        """Stored score, or a fresh one for chargers not yet scored."""
        stored = await self.reliability_store.get_score(charger_id)
        if stored is not None:
            return stored
        contributions = await self.contribution_store.list_for_charger(charger_id)
        return self.aggregator.aggregate(charger_id, contributions, self.clock.now())

    async def get_validation_queue(
        self,
        charger_id: str,
        user_id: str,
    ) -> list[tuple[Contribution, str]]:
        """Contributions the user could vote on, each with its prompt."""
        now = self.clock.now()
        queue = []
        for contribution in await self.contribution_store.list_for_charger(charger_id):
            if contribution.user_id == user_id:
                continue
            if user_id in contribution.validated_by or user_id in contribution.invalidated_by:
                continue
            if not self.confidence_engine.needs_validation(contribution, now):
                continue
            prompt = self.confidence_engine.validation_prompt(contribution, now)
            queue.append((contribution, prompt or "Is this information correct?"))
        return queue

    async def get_validation_stats(self, user_id: str) -> ValidationStats:
        """Counts of rewarded votes by the user over several windows."""
        history = await self.contribution_store.validation_history(user_id=user_id)
        week_start = self.clock.now() - timedelta(days=7)
        month_start = self.clock.start_of_month()
        day_start = self.clock.start_of_day()

        total = len(history)
        return ValidationStats(
            user_id=user_id,
            total_validations=total,
            validations_this_month=sum(1 for r in history if r.timestamp >= month_start),
            validations_this_week=sum(1 for r in history if r.timestamp >= week_start),
            validations_today=sum(1 for r in history if r.timestamp >= day_start),
            ev_coins_earned=total * VALIDATION_REWARD,
            has_guardian_badge=total >= RewardBadge.DATA_GUARDIAN.requirement.count,
        )

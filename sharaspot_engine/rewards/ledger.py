"""Coin ledger: append-only transactions with derived balance, rank and badges.

Every award follows the same unit of work under the user's lock:
1. Read the current snapshot (or start a fresh profile)
2. Check caps and the sign rule; raise before anything is written
3. Build the new snapshot: balance, monthly coins, rank, counters, badges
4. Persist snapshot and transaction together, then swap them into memory

Steps 3 and 4 contain no await, so a cancelled caller either leaves the user
untouched or sees the whole award land.

Sign rule:
- SPENT amounts are negative and may not overdraw the balance
- EARNED, BONUS, REFUND and ADJUSTMENT amounts are positive
- Zero is never a valid amount

Usage:
    ledger = RewardsLedger(RewardsStore(), clock=SystemClock())
    result = await ledger.award_daily_check_in("u-1")
    result.new_total_coins  # 5
"""

from datetime import timedelta
from typing import Any, AsyncContextManager, Callable, Optional

import structlog

from sharaspot_engine.clock import Clock, SystemClock
from sharaspot_engine.config.reward_rules import (
    CHECK_IN_REWARD,
    FIRST_TO_CHARGER_BONUS,
    MAX_VALIDATIONS_PER_DAY,
    VALIDATION_REWARD,
)
from sharaspot_engine.data_management.rewards_store import RewardsStore
from sharaspot_engine.data_management.schemas import (
    AwardCoinsRequest,
    AwardCoinsResult,
    CoinTransaction,
    ContributionType,
    RewardBadge,
    RewardRank,
    TransactionPeriod,
    TransactionSummary,
    TransactionType,
    UserRewards,
)
from sharaspot_engine.errors import (
    AlreadyCheckedInError,
    DailyValidationLimitError,
    InsufficientCoinsError,
    InvalidTransactionError,
    UserNotFoundError,
)
from sharaspot_engine.rewards.badges import evaluate_badges


class RewardsLedger:
    """Awards, spends and reports EV coins for users."""

    def __init__(
        self,
        store: RewardsStore,
        clock: Optional[Clock] = None,
        max_validations_per_day: int = MAX_VALIDATIONS_PER_DAY,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.max_validations_per_day = max_validations_per_day
        self._logger = structlog.get_logger().bind(component="RewardsLedger")

    def user_lock(self, user_id: str) -> AsyncContextManager[None]:
        return self.store.user_lock(user_id)

    # ── Awards ────────────────────────────────────────────────────────────

    async def award_coins(self, request: AwardCoinsRequest) -> AwardCoinsResult:
        """Append one transaction and update the user's snapshot.

        Raises:
            InvalidTransactionError: Amount violates the sign rule for its type.
            InsufficientCoinsError: A SPENT amount exceeds the balance.
        """
        async with self.user_lock(request.user_id):
            return self._award_locked(request)

    async def award_for_contribution(
        self,
        user_id: str,
        contribution_type: ContributionType,
        charger_id: str,
        charger_name: Optional[str] = None,
        contribution_id: Optional[str] = None,
        is_first_to_charger: bool = False,
        city_name: Optional[str] = None,
    ) -> AwardCoinsResult:
        """Reward a new contribution, with the first-to-charger bonus if applicable.

        Counters (contributions, per-type, first-to-charger) and the contributed
        charger/city sets are updated in the same unit as the coins, so badge
        evaluation sees them.
        """
        async with self.user_lock(user_id):
            return self.award_for_contribution_locked(
                user_id,
                contribution_type,
                charger_id,
                charger_name=charger_name,
                contribution_id=contribution_id,
                is_first_to_charger=is_first_to_charger,
                city_name=city_name,
            )

    def award_for_contribution_locked(
        self,
        user_id: str,
        contribution_type: ContributionType,
        charger_id: str,
        charger_name: Optional[str] = None,
        contribution_id: Optional[str] = None,
        is_first_to_charger: bool = False,
        city_name: Optional[str] = None,
    ) -> AwardCoinsResult:
        """Same as award_for_contribution. Caller holds user_lock."""
        base_coins = contribution_type.ev_coins_reward
        bonus_coins = FIRST_TO_CHARGER_BONUS if is_first_to_charger else 0

        reason = f"{contribution_type.display_name} for {charger_name or charger_id}"
        if is_first_to_charger:
            reason += f" (First contribution! +{bonus_coins} bonus)"

        metadata = {
            "contributionType": contribution_type.value,
            "baseCoins": str(base_coins),
        }
        if bonus_coins:
            metadata["bonusCoins"] = str(bonus_coins)
        if city_name:
            metadata["cityName"] = city_name

        request = AwardCoinsRequest(
            user_id=user_id,
            amount=base_coins + bonus_coins,
            type=TransactionType.BONUS if is_first_to_charger else TransactionType.EARNED,
            reason=reason,
            charger_id=charger_id,
            charger_name=charger_name,
            contribution_id=contribution_id,
            metadata=metadata,
        )

        def counters(current: UserRewards) -> dict[str, Any]:
            changes: dict[str, Any] = {
                "contribution_count": current.contribution_count + 1,
                "chargers_contributed": current.chargers_contributed | {charger_id},
            }
            if contribution_type == ContributionType.PHOTO:
                changes["photo_count"] = current.photo_count + 1
            elif contribution_type == ContributionType.REVIEW:
                changes["review_count"] = current.review_count + 1
            if is_first_to_charger:
                changes["first_to_charger_count"] = current.first_to_charger_count + 1
            if city_name:
                changes["cities_contributed"] = current.cities_contributed | {city_name}
            return changes

        return self._award_locked(request, counters)

    async def award_daily_check_in(self, user_id: str) -> AwardCoinsResult:
        """
        Award the once-per-day check-in reward.

        Raises:
            AlreadyCheckedInError: If the user already checked in today
        """
        today = self.clock.today()
        request = AwardCoinsRequest(
            user_id=user_id,
            amount=CHECK_IN_REWARD,
            type=TransactionType.EARNED,
            reason="Daily check-in",
            metadata={"action": "daily_checkin"},
        )

        async with self.user_lock(user_id):
            current = self._current_locked(user_id)
            if not current.can_check_in(today):
                raise AlreadyCheckedInError(user_id)
            return self._award_locked(
                request, lambda _: {"last_check_in_date": today}
            )

    async def award_validation_coins(
        self,
        user_id: str,
        contribution_id: str,
        charger_id: Optional[str] = None,
        charger_name: Optional[str] = None,
    ) -> AwardCoinsResult:
        """
        Award coins for validating someone else's contribution.

        Raises:
            DailyValidationLimitError: If today's cap is already reached
        """
        async with self.user_lock(user_id):
            self.check_can_validate_locked(user_id)
            return self.award_validation_coins_locked(
                user_id, contribution_id, charger_id, charger_name
            )

    def check_can_validate_locked(self, user_id: str) -> None:
        """Raise DailyValidationLimitError if the cap is reached. Caller holds user_lock."""
        current = self._current_locked(user_id)
        if not current.can_validate(self.clock.today(), self.max_validations_per_day):
            self._logger.info(
                "validation_limit_reached",
                user_id=user_id,
                limit=self.max_validations_per_day,
            )
            raise DailyValidationLimitError(user_id, self.max_validations_per_day)

    def award_validation_coins_locked(
        self,
        user_id: str,
        contribution_id: str,
        charger_id: Optional[str] = None,
        charger_name: Optional[str] = None,
    ) -> AwardCoinsResult:
        """Award validation coins. Caller holds user_lock and has checked the cap."""
        today = self.clock.today()
        request = AwardCoinsRequest(
            user_id=user_id,
            amount=VALIDATION_REWARD,
            type=TransactionType.EARNED,
            reason="Validated contribution" + (f" at {charger_name}" if charger_name else ""),
            charger_id=charger_id,
            charger_name=charger_name,
            contribution_id=contribution_id,
            metadata={"action": "validation"},
        )

        def counters(current: UserRewards) -> dict[str, Any]:
            return {
                "validation_count": current.validation_count + 1,
                "daily_validation_count": current.validations_today(today) + 1,
                "last_validation_date": today,
            }

        return self._award_locked(request, counters)

    async def spend_coins(
        self,
        user_id: str,
        amount: int,
        reason: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> AwardCoinsResult:
        """Debit a positive amount as a SPENT transaction."""
        if amount <= 0:
            raise InvalidTransactionError(f"Spend amount must be positive, got {amount}")
        request = AwardCoinsRequest(
            user_id=user_id,
            amount=-amount,
            type=TransactionType.SPENT,
            reason=reason,
            metadata=metadata or {},
        )
        return await self.award_coins(request)

    async def check_and_award_badges(self, user_id: str) -> list[RewardBadge]:
        """Re-evaluate badges without a coin award. Unknown users earn nothing."""
        async with self.user_lock(user_id):
            current = self.store.get_locked(user_id)
            if current is None:
                return []
            earned = evaluate_badges(current)
            if earned:
                updated = current.model_copy(
                    update={
                        "badges": current.badges + [badge.value for badge in earned],
                        "last_updated": self.clock.now(),
                    }
                )
                self.store.commit_locked(updated)
                self._logger.info(
                    "badges_awarded",
                    user_id=user_id,
                    badges=[badge.value for badge in earned],
                )
            return earned

    async def reset_monthly_coins(self) -> int:
        """Zero coins_this_month for every user. Returns how many were reset."""
        reset = 0
        for user_id in await self.store.user_ids():
            async with self.user_lock(user_id):
                current = self.store.get_locked(user_id)
                if current is None or current.coins_this_month == 0:
                    continue
                self.store.commit_locked(
                    current.model_copy(
                        update={"coins_this_month": 0, "last_updated": self.clock.now()}
                    )
                )
                reset += 1

        self._logger.info("monthly_coins_reset", users_reset=reset)
        return reset

    # ── Queries ───────────────────────────────────────────────────────────

    async def get_user_rewards(self, user_id: str) -> UserRewards:
        rewards = await self.store.get(user_id)
        if rewards is None:
            raise UserNotFoundError(user_id)
        return rewards

    async def get_transactions(
        self,
        user_id: str,
        period: TransactionPeriod = TransactionPeriod.ALL_TIME,
        limit: Optional[int] = 50,
    ) -> list[CoinTransaction]:
        """Transactions in the period, newest first."""
        transactions = list(reversed(await self.store.transactions(user_id)))
        if period.days is not None:
            cutoff = self.clock.now() - timedelta(days=period.days)
            transactions = [tx for tx in transactions if tx.timestamp >= cutoff]
        return transactions if limit is None else transactions[:limit]

    async def get_transaction_summary(
        self,
        user_id: str,
        period: TransactionPeriod = TransactionPeriod.ALL_TIME,
    ) -> TransactionSummary:
        transactions = await self.get_transactions(user_id, period, limit=None)
        return TransactionSummary(
            total_earned=sum(
                tx.amount for tx in transactions if tx.type == TransactionType.EARNED
            ),
            total_spent=sum(
                -tx.amount for tx in transactions if tx.type == TransactionType.SPENT
            ),
            total_bonus=sum(
                tx.amount for tx in transactions if tx.type == TransactionType.BONUS
            ),
            net_change=sum(tx.amount for tx in transactions),
            transaction_count=len(transactions),
            period=period,
        )

    # ── Internals ─────────────────────────────────────────────────────────

    def _current_locked(self, user_id: str) -> UserRewards:
        current = self.store.get_locked(user_id)
        if current is None:
            current = UserRewards(user_id=user_id, last_updated=self.clock.now())
        return current

    @staticmethod
    def _check_sign(request: AwardCoinsRequest) -> None:
        if request.amount == 0:
            raise InvalidTransactionError("Transaction amount cannot be zero")
        if request.type == TransactionType.SPENT and request.amount > 0:
            raise InvalidTransactionError("SPENT transactions must have a negative amount")
        if request.type != TransactionType.SPENT and request.amount < 0:
            raise InvalidTransactionError(
                f"{request.type.value} transactions must have a positive amount"
            )

    def _award_locked(
        self,
        request: AwardCoinsRequest,
        counters: Optional[Callable[[UserRewards], dict[str, Any]]] = None,
    ) -> AwardCoinsResult:
        """Build, persist and swap in one award. Caller holds user_lock."""
        self._check_sign(request)
        current = self._current_locked(request.user_id)

        if current.total_coins + request.amount < 0:
            raise InsufficientCoinsError(request.user_id, current.total_coins, -request.amount)

        now = self.clock.now()
        new_total = current.total_coins + request.amount
        changes = dict(counters(current)) if counters else {}
        changes.update(
            {
                "total_coins": new_total,
                "coins_this_month": current.coins_this_month + request.amount,
                "rank": RewardRank.from_coins(new_total),
                "last_updated": now,
            }
        )
        updated = current.model_copy(update=changes)

        earned = evaluate_badges(updated)
        if earned:
            updated = updated.model_copy(
                update={"badges": updated.badges + [badge.value for badge in earned]}
            )

        transaction = CoinTransaction(
            user_id=request.user_id,
            amount=request.amount,
            type=request.type,
            reason=request.reason,
            charger_id=request.charger_id,
            charger_name=request.charger_name,
            contribution_id=request.contribution_id,
            metadata=request.metadata,
            timestamp=now,
        )
        self.store.commit_locked(updated, transaction)

        rank_changed = updated.rank != current.rank
        self._logger.info(
            "coins_awarded",
            user_id=request.user_id,
            amount=request.amount,
            type=request.type.value,
            new_total=new_total,
            rank=updated.rank.value,
            badges_earned=[badge.value for badge in earned],
        )

        return AwardCoinsResult(
            transaction=transaction,
            new_total_coins=new_total,
            badges_earned=earned,
            rank_changed=rank_changed,
            new_rank=updated.rank if rank_changed else None,
            rewards=updated,
        )

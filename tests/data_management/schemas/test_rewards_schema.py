"""Tests for rewards schemas: ranks, badge catalog, UserRewards helpers."""

from datetime import date

import pytest
from pydantic import ValidationError

from sharaspot_engine.data_management.schemas import (
    BADGE_CATALOG,
    BadgeDefinition,
    CoinTransaction,
    PhotoCount,
    RewardBadge,
    RewardRank,
    TransactionPeriod,
    TransactionType,
    UserRewards,
)


class TestRewardRank:
    @pytest.mark.parametrize(
        "coins,expected",
        [
            (0, RewardRank.BRONZE),
            (499, RewardRank.BRONZE),
            (500, RewardRank.SILVER),
            (1499, RewardRank.SILVER),
            (1500, RewardRank.GOLD),
            (3000, RewardRank.PLATINUM),
            (100000, RewardRank.PLATINUM),
        ],
    )
    def test_from_coins(self, coins: int, expected: RewardRank) -> None:
        assert RewardRank.from_coins(coins) == expected

    def test_next_rank(self) -> None:
        assert RewardRank.BRONZE.next_rank() == RewardRank.SILVER
        assert RewardRank.PLATINUM.next_rank() is None


class TestBadgeCatalog:
    def test_every_badge_has_definition(self) -> None:
        assert set(BADGE_CATALOG) == set(RewardBadge)

    def test_requirement_discriminator(self) -> None:
        definition = BadgeDefinition.model_validate(
            {
                "display_name": "Photographer",
                "description": "Upload 50 photos",
                "requirement": {"kind": "photo_count", "count": 50},
            }
        )
        assert isinstance(definition.requirement, PhotoCount)
        assert definition.requirement.count == 50

    def test_from_id(self) -> None:
        assert RewardBadge.from_id("data_guardian") == RewardBadge.DATA_GUARDIAN
        assert RewardBadge.from_id("unknown") is None


class TestUserRewards:
    def test_rank_derived_from_coins(self) -> None:
        rewards = UserRewards(user_id="u-1", total_coins=1600, rank=RewardRank.BRONZE)
        assert rewards.rank == RewardRank.GOLD

    def test_progress_to_next_rank(self) -> None:
        rewards = UserRewards(user_id="u-1", total_coins=250)
        assert rewards.progress_to_next_rank == pytest.approx(0.5)
        assert rewards.coins_to_next_rank == 250

    def test_platinum_has_full_progress(self) -> None:
        rewards = UserRewards(user_id="u-1", total_coins=5000)
        assert rewards.progress_to_next_rank == 1.0
        assert rewards.coins_to_next_rank == 0

    def test_check_in_once_per_day(self) -> None:
        today = date(2026, 3, 1)
        rewards = UserRewards(user_id="u-1", last_check_in_date=today)
        assert not rewards.can_check_in(today)
        assert rewards.can_check_in(date(2026, 3, 2))

    def test_daily_validation_counter_resets_on_new_day(self) -> None:
        rewards = UserRewards(
            user_id="u-1",
            daily_validation_count=10,
            last_validation_date=date(2026, 3, 1),
        )
        assert not rewards.can_validate(date(2026, 3, 1))
        assert rewards.validations_today(date(2026, 3, 2)) == 0
        assert rewards.can_validate(date(2026, 3, 2))


class TestCoinTransaction:
    def test_transaction_is_frozen(self) -> None:
        tx = CoinTransaction(
            user_id="u-1", amount=5, type=TransactionType.EARNED, reason="Daily check-in"
        )
        with pytest.raises(ValidationError):
            tx.amount = 50

    def test_period_days(self) -> None:
        assert TransactionPeriod.THIS_WEEK.days == 7
        assert TransactionPeriod.THIS_MONTH.days == 30
        assert TransactionPeriod.ALL_TIME.days is None

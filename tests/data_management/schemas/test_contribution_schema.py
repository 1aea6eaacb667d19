"""Tests for contribution schemas.

Tests cover:
- Contribution type rewards and display names
- Request payload requirements per contribution type
- Vote-set disjointness and derived validation_count
- Enum helpers (PlugType, WaitTimeOption, ConfidenceLevel)
- JSON round trip of persisted fields
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from sharaspot_engine.data_management.schemas import (
    ChargerStatus,
    ConfidenceLevel,
    Contribution,
    ContributionType,
    CreateContributionRequest,
    PlugType,
    WaitTimeOption,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestContributionType:
    def test_rewards_per_type(self) -> None:
        assert ContributionType.PHOTO.ev_coins_reward == 20
        assert ContributionType.REVIEW.ev_coins_reward == 30
        assert ContributionType.WAIT_TIME.ev_coins_reward == 10
        assert ContributionType.PLUG_CHECK.ev_coins_reward == 25
        assert ContributionType.STATUS_UPDATE.ev_coins_reward == 15

    def test_display_names(self) -> None:
        assert ContributionType.REVIEW.display_name == "Write Review"
        assert ContributionType.PLUG_CHECK.display_name == "Verify Plug"


class TestCreateContributionRequest:
    def test_review_requires_rating(self) -> None:
        with pytest.raises(ValidationError, match="rating"):
            CreateContributionRequest(charger_id="chg-1", type=ContributionType.REVIEW)

    def test_plug_check_requires_plug_fields(self) -> None:
        with pytest.raises(ValidationError, match="plug_working"):
            CreateContributionRequest(
                charger_id="chg-1", type=ContributionType.PLUG_CHECK, plug_type="CCS"
            )

    def test_negative_wait_time_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateContributionRequest(
                charger_id="chg-1", type=ContributionType.WAIT_TIME, wait_time_minutes=-5
            )

    def test_rating_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateContributionRequest(
                charger_id="chg-1", type=ContributionType.REVIEW, rating=5.5
            )

    def test_empty_charger_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateContributionRequest(
                charger_id="", type=ContributionType.PHOTO, photo_url="https://x/p.jpg"
            )

    def test_valid_status_update(self) -> None:
        request = CreateContributionRequest(
            charger_id="chg-1",
            type=ContributionType.STATUS_UPDATE,
            charger_status=ChargerStatus.BUSY,
        )
        assert request.charger_status == ChargerStatus.BUSY


class TestContribution:
    def test_from_request_copies_payload(self) -> None:
        request = CreateContributionRequest(
            charger_id="chg-1",
            type=ContributionType.REVIEW,
            rating=4.5,
            comment="Fast",
            charger_name="Shell Recharge",
        )
        contribution = Contribution.from_request(request, "u-1", "Priya", NOW)

        assert contribution.charger_id == "chg-1"
        assert contribution.user_id == "u-1"
        assert contribution.rating == 4.5
        assert contribution.comment == "Fast"
        assert contribution.ev_coins_earned == 30
        assert contribution.timestamp == NOW
        assert contribution.validated_by == set()
        assert contribution.confidence_score == 0.0
        assert contribution.last_validated_at is None

    def test_validation_count_is_net(self) -> None:
        contribution = Contribution(
            charger_id="chg-1",
            user_id="u-1",
            type=ContributionType.PHOTO,
            photo_url="https://x/p.jpg",
            validated_by={"u-2", "u-3", "u-4"},
            invalidated_by={"u-5"},
        )
        assert contribution.validation_count == 2

    def test_user_in_both_vote_sets_rejected(self) -> None:
        with pytest.raises(ValidationError, match="both validate and invalidate"):
            Contribution(
                charger_id="chg-1",
                user_id="u-1",
                type=ContributionType.PHOTO,
                validated_by={"u-2"},
                invalidated_by={"u-2"},
            )

    def test_confidence_bounds_enforced(self) -> None:
        with pytest.raises(ValidationError):
            Contribution(
                charger_id="chg-1",
                user_id="u-1",
                type=ContributionType.PHOTO,
                confidence_score=1.2,
            )

    def test_json_round_trip_keeps_vote_sets(self) -> None:
        original = Contribution(
            charger_id="chg-1",
            user_id="u-1",
            type=ContributionType.WAIT_TIME,
            wait_time_minutes=10,
            timestamp=NOW,
            validated_by={"u-2"},
            confidence_score=0.35,
        )
        restored = Contribution.model_validate(original.model_dump(mode="json"))

        assert restored.validated_by == {"u-2"}
        assert restored.timestamp == NOW
        assert restored.confidence_score == 0.35


class TestEnumHelpers:
    def test_plug_type_lookup_by_name_or_value(self) -> None:
        assert PlugType.from_string("TYPE_2") == PlugType.TYPE_2
        assert PlugType.from_string("Type 2") == PlugType.TYPE_2
        assert PlugType.from_string("CHAdeMO") == PlugType.CHADEMO
        assert PlugType.from_string("Tesla") is None

    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (0, WaitTimeOption.ZERO),
            (3, WaitTimeOption.FIVE),
            (10, WaitTimeOption.TEN),
            (12, WaitTimeOption.FIFTEEN),
            (45, WaitTimeOption.THIRTY_PLUS),
        ],
    )
    def test_wait_time_buckets(self, minutes: int, expected: WaitTimeOption) -> None:
        assert WaitTimeOption.from_minutes(minutes) == expected

    def test_confidence_levels(self) -> None:
        assert ConfidenceLevel.from_score(0.7) == ConfidenceLevel.HIGH
        assert ConfidenceLevel.from_score(0.69) == ConfidenceLevel.MEDIUM
        assert ConfidenceLevel.from_score(0.4) == ConfidenceLevel.MEDIUM
        assert ConfidenceLevel.from_score(0.39) == ConfidenceLevel.LOW

"""Tests for ConfidenceEngine.

Tests cover:
- Score formula (vote balance, time decay, volume bonus)
- Bounds and monotonic decay
- Vote application (flip, duplicate, self-vote, immutability)
- Staleness thresholds per contribution type
- Re-validation prompts
"""

from datetime import datetime, timedelta, timezone

import pytest

from sharaspot_engine.data_management.schemas import (
    ConfidenceLevel,
    Contribution,
    ContributionType,
)
from sharaspot_engine.errors import (
    DuplicateVoteError,
    SelfValidationError,
    ValidationConflictError,
)
from sharaspot_engine.scoring.confidence import ConfidenceEngine

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def engine() -> ConfidenceEngine:
    return ConfidenceEngine()


def make_contribution(
    contribution_type: ContributionType = ContributionType.PLUG_CHECK,
    hours_ago: float = 0,
    validated_by: set[str] | None = None,
    invalidated_by: set[str] | None = None,
    confidence: float = 0.0,
) -> Contribution:
    return Contribution(
        id="c-1",
        charger_id="chg-1",
        user_id="author",
        type=contribution_type,
        timestamp=NOW - timedelta(hours=hours_ago),
        validated_by=validated_by or set(),
        invalidated_by=invalidated_by or set(),
        confidence_score=confidence,
    )


# ── Score formula ─────────────────────────────────────────────────────────


class TestScore:
    def test_no_votes_scores_zero(self, engine: ConfidenceEngine) -> None:
        assert engine.score(make_contribution(), NOW) == 0.0

    def test_fresh_endorsements(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(validated_by={"a", "b", "c"})
        # balance 3/4, no decay, volume 3/100
        expected = 0.75 * 0.7 + 0.03 * 0.3
        assert engine.score(contribution, NOW) == pytest.approx(expected)

    def test_decay_halfway(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(hours_ago=360, validated_by={"a"})
        expected = 0.5 * 0.5 * 0.7 + 0.01 * 0.3
        assert engine.score(contribution, NOW) == pytest.approx(expected)

    def test_fully_decayed_keeps_volume_bonus(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(hours_ago=1000, validated_by={"a", "b"})
        assert engine.score(contribution, NOW) == pytest.approx(0.02 * 0.3)

    def test_net_disputes_clamp_to_zero(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(invalidated_by={"a", "b", "c"})
        assert engine.score(contribution, NOW) == 0.0

    def test_saturated_volume(self, engine: ConfidenceEngine) -> None:
        voters = {f"u-{i}" for i in range(150)}
        score = engine.score(make_contribution(validated_by=voters), NOW)
        assert score == pytest.approx(150 / 151 * 0.7 + 0.3)
        assert score <= 1.0

    def test_monotonic_decay(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(validated_by={"a", "b"}, invalidated_by={"c"})
        scores = [
            engine.score(contribution, NOW + timedelta(hours=h))
            for h in (0, 1, 24, 200, 719, 720, 2000)
        ]
        assert all(earlier >= later for earlier, later in zip(scores, scores[1:]))
        assert all(0.0 <= s <= 1.0 for s in scores)


# ── Votes ─────────────────────────────────────────────────────────────────


class TestApplyVote:
    def test_validation_adds_voter(self, engine: ConfidenceEngine) -> None:
        original = make_contribution()
        updated = engine.apply_vote(original, "u-2", True, NOW)

        assert updated.validated_by == {"u-2"}
        assert updated.last_validated_at == NOW
        assert updated.confidence_score == pytest.approx(0.5 * 0.7 + 0.01 * 0.3)
        assert original.validated_by == set()
        assert original.last_validated_at is None

    def test_flip_moves_voter(self, engine: ConfidenceEngine) -> None:
        validated = engine.apply_vote(make_contribution(), "u-2", True, NOW)
        flipped = engine.apply_vote(validated, "u-2", False, NOW)

        assert flipped.validated_by == set()
        assert flipped.invalidated_by == {"u-2"}
        assert flipped.validation_count == -1
        assert flipped.confidence_score == 0.0

    def test_duplicate_vote_rejected(self, engine: ConfidenceEngine) -> None:
        validated = engine.apply_vote(make_contribution(), "u-2", True, NOW)
        with pytest.raises(DuplicateVoteError):
            engine.apply_vote(validated, "u-2", True, NOW)

    def test_self_vote_rejected(self, engine: ConfidenceEngine) -> None:
        with pytest.raises(SelfValidationError):
            engine.apply_vote(make_contribution(), "author", True, NOW)

    def test_conflicts_share_base_class(self, engine: ConfidenceEngine) -> None:
        with pytest.raises(ValidationConflictError):
            engine.apply_vote(make_contribution(), "author", False, NOW)

    def test_vote_sequence_stays_bounded(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(hours_ago=10)
        for i, is_validation in enumerate([True, True, False, True, False, True]):
            contribution = engine.apply_vote(contribution, f"u-{i}", is_validation, NOW)
            assert 0.0 <= contribution.confidence_score <= 1.0
        contribution = engine.apply_vote(contribution, "u-2", True, NOW)
        assert not (contribution.validated_by & contribution.invalidated_by)


# ── Staleness and prompts ─────────────────────────────────────────────────


class TestStaleness:
    @pytest.mark.parametrize(
        "contribution_type,fresh_hours,stale_hours",
        [
            (ContributionType.WAIT_TIME, 2, 2.5),
            (ContributionType.STATUS_UPDATE, 1.9, 3),
            (ContributionType.PLUG_CHECK, 168, 169),
            (ContributionType.PHOTO, 720, 721),
            (ContributionType.REVIEW, 100, 800),
        ],
    )
    def test_thresholds(
        self,
        engine: ConfidenceEngine,
        contribution_type: ContributionType,
        fresh_hours: float,
        stale_hours: float,
    ) -> None:
        assert not engine.is_data_stale(
            contribution_type, NOW - timedelta(hours=fresh_hours), NOW
        )
        assert engine.is_data_stale(
            contribution_type, NOW - timedelta(hours=stale_hours), NOW
        )


class TestValidationHelpers:
    def test_confidence_level(self, engine: ConfidenceEngine) -> None:
        assert engine.confidence_level(make_contribution(confidence=0.8)) == ConfidenceLevel.HIGH
        assert engine.confidence_level(make_contribution(confidence=0.1)) == ConfidenceLevel.LOW

    def test_needs_validation_few_endorsers(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(validated_by={"a", "b"}, confidence=0.9)
        assert engine.needs_validation(contribution, NOW)

    def test_well_endorsed_fresh_needs_nothing(self, engine: ConfidenceEngine) -> None:
        contribution = make_contribution(validated_by={"a", "b", "c"}, confidence=0.8)
        assert not engine.needs_validation(contribution, NOW)
        assert engine.validation_prompt(contribution, NOW) is None

    def test_stale_prompts(self, engine: ConfidenceEngine) -> None:
        wait = make_contribution(ContributionType.WAIT_TIME, hours_ago=3, confidence=0.9)
        plug = make_contribution(ContributionType.PLUG_CHECK, hours_ago=200, confidence=0.9)
        status = make_contribution(ContributionType.STATUS_UPDATE, hours_ago=3, confidence=0.9)

        assert engine.validation_prompt(wait, NOW) == "Is the wait time still accurate?"
        assert engine.validation_prompt(plug, NOW) == "Are these plugs still working?"
        assert engine.validation_prompt(status, NOW) == "Is the status still current?"

    def test_photo_prompt(self, engine: ConfidenceEngine) -> None:
        photo = make_contribution(ContributionType.PHOTO, validated_by={"a"}, confidence=0.9)
        assert engine.validation_prompt(photo, NOW) == "Is this photo accurate?"

    def test_low_confidence_prompt(self, engine: ConfidenceEngine) -> None:
        review = make_contribution(ContributionType.REVIEW, confidence=0.2)
        assert engine.validation_prompt(review, NOW) == "Help verify this information"

"""Per-contribution confidence scoring with time decay and peer votes.

Score formula:
    vote_balance = (validated - invalidated) / (total_votes + 1)   (0 without votes)
    time_decay   = max(0, 1 - hours_since / 720)
    volume_bonus = min(validated / 100, 1)
    confidence   = clamp(vote_balance * time_decay * 0.7 + volume_bonus * 0.3, 0, 1)

A contribution with no votes scores 0 and stays LOW until peers endorse it.
Staleness is a separate, type-dependent signal used only to prompt
re-validation; it never feeds back into the score.

Usage:
    engine = ConfidenceEngine()
    updated = engine.apply_vote(contribution, "u-2", is_validation=True, now=clock.now())
    engine.confidence_level(updated)  # ConfidenceLevel.MEDIUM
"""

from datetime import datetime
from typing import Optional

import structlog

from sharaspot_engine.clock import hours_between
from sharaspot_engine.config.reward_rules import (
    DECAY_PERIOD_HOURS,
    DEFAULT_STALE_THRESHOLD_HOURS,
    MEDIUM_CONFIDENCE_THRESHOLD,
    MIN_ENDORSEMENTS,
    STALE_THRESHOLD_HOURS,
    VOLUME_SATURATION,
    VOLUME_WEIGHT,
    VOTE_WEIGHT,
)
from sharaspot_engine.data_management.schemas import (
    ConfidenceLevel,
    Contribution,
    ContributionType,
)
from sharaspot_engine.errors import DuplicateVoteError, SelfValidationError

# Re-validation prompts for stale data, by contribution type
_STALE_PROMPTS: dict[ContributionType, str] = {
    ContributionType.WAIT_TIME: "Is the wait time still accurate?",
    ContributionType.PLUG_CHECK: "Are these plugs still working?",
    ContributionType.STATUS_UPDATE: "Is the status still current?",
}
_PHOTO_PROMPT = "Is this photo accurate?"
_LOW_CONFIDENCE_PROMPT = "Help verify this information"


class ConfidenceEngine:
    """Computes and updates contribution confidence.

    Stateless apart from its tuning parameters; safe to share between the
    service and the batch job.
    """

    def __init__(
        self,
        decay_period_hours: float = DECAY_PERIOD_HOURS,
        vote_weight: float = VOTE_WEIGHT,
        volume_weight: float = VOLUME_WEIGHT,
        volume_saturation: int = VOLUME_SATURATION,
    ) -> None:
        self.decay_period_hours = decay_period_hours
        self.vote_weight = vote_weight
        self.volume_weight = volume_weight
        self.volume_saturation = volume_saturation
        self._logger = structlog.get_logger().bind(component="ConfidenceEngine")

    def calculate(
        self,
        validated: int,
        invalidated: int,
        timestamp: datetime,
        now: datetime,
    ) -> float:
        """Confidence from raw vote counts and the contribution's age."""
        total_votes = validated + invalidated
        vote_balance = (validated - invalidated) / (total_votes + 1) if total_votes > 0 else 0.0

        hours_since = hours_between(timestamp, now)
        time_decay = max(0.0, 1.0 - hours_since / self.decay_period_hours)
        volume_bonus = min(max(validated / self.volume_saturation, 0.0), 1.0)

        final = vote_balance * time_decay * self.vote_weight + volume_bonus * self.volume_weight
        return min(max(final, 0.0), 1.0)

    def score(self, contribution: Contribution, now: datetime) -> float:
        return self.calculate(
            len(contribution.validated_by),
            len(contribution.invalidated_by),
            contribution.timestamp,
            now,
        )

    def apply_vote(
        self,
        contribution: Contribution,
        user_id: str,
        is_validation: bool,
        now: datetime,
    ) -> Contribution:
        """Record a vote and return the updated contribution.

        A user who flips their vote is moved to the other set. The input
        contribution is left untouched.

        Raises:
            SelfValidationError: If user_id authored the contribution.
            DuplicateVoteError: If user_id already holds this exact vote.
        """
        if user_id == contribution.user_id:
            raise SelfValidationError(user_id, contribution.id)

        target = contribution.validated_by if is_validation else contribution.invalidated_by
        if user_id in target:
            raise DuplicateVoteError(user_id, contribution.id, is_validation)

        validated_by = contribution.validated_by - {user_id}
        invalidated_by = contribution.invalidated_by - {user_id}
        if is_validation:
            validated_by = validated_by | {user_id}
        else:
            invalidated_by = invalidated_by | {user_id}

        confidence = self.calculate(
            len(validated_by), len(invalidated_by), contribution.timestamp, now
        )

        self._logger.debug(
            "vote_applied",
            contribution_id=contribution.id,
            user_id=user_id,
            is_validation=is_validation,
            confidence_before=contribution.confidence_score,
            confidence_after=confidence,
        )

        return contribution.model_copy(
            update={
                "validated_by": validated_by,
                "invalidated_by": invalidated_by,
                "confidence_score": confidence,
                "last_validated_at": now,
            }
        )

    def is_data_stale(
        self,
        contribution_type: ContributionType,
        timestamp: datetime,
        now: datetime,
    ) -> bool:
        threshold = STALE_THRESHOLD_HOURS.get(
            contribution_type.value, DEFAULT_STALE_THRESHOLD_HOURS
        )
        return hours_between(timestamp, now) > threshold

    def confidence_level(self, contribution: Contribution) -> ConfidenceLevel:
        return ConfidenceLevel.from_score(contribution.confidence_score)

    def needs_validation(self, contribution: Contribution, now: datetime) -> bool:
        """True when the contribution is weakly trusted, stale, or under-endorsed."""
        return (
            contribution.confidence_score < MEDIUM_CONFIDENCE_THRESHOLD
            or self.is_data_stale(contribution.type, contribution.timestamp, now)
            or len(contribution.validated_by) < MIN_ENDORSEMENTS
        )

    def validation_prompt(self, contribution: Contribution, now: datetime) -> Optional[str]:
        """Question to show peers when asking them to re-check a contribution."""
        stale_prompt = _STALE_PROMPTS.get(contribution.type)
        if stale_prompt and self.is_data_stale(contribution.type, contribution.timestamp, now):
            return stale_prompt
        if (
            contribution.type == ContributionType.PHOTO
            and len(contribution.validated_by) < MIN_ENDORSEMENTS
        ):
            return _PHOTO_PROMPT
        if contribution.confidence_score < MEDIUM_CONFIDENCE_THRESHOLD:
            return _LOW_CONFIDENCE_PROMPT
        return None

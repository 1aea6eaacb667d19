"""Per-station reliability aggregation over all contributions for a charger.

Five components, each capped at 20:
1. Photo:      photos / 5 * 20
2. Review:     reviews / 10 * 20
3. Rating:     average REVIEW rating * 4
4. Freshness:  contributions in the last 7 days / 5 * 20
5. Validation: mean stored confidence of contributions from the last 30 days * 20

The total is the plain sum (0-100). Aggregation is a pure function of the
contribution set and the supplied instant, so the nightly batch job and live
recomputation after a contribution event agree exactly.

Usage:
    aggregator = ReliabilityAggregator()
    score = aggregator.aggregate("chg-42", contributions, now=clock.now())
    summary = aggregator.summarize("chg-42", contributions, now=clock.now())
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

import structlog

from sharaspot_engine.config.reward_rules import (
    COMPONENT_MAX,
    CONFIDENCE_WINDOW_DAYS,
    FRESHNESS_TARGET,
    FRESHNESS_WINDOW_DAYS,
    PHOTO_TARGET,
    RATING_MULTIPLIER,
    RECENT_CONTRIBUTIONS_LIMIT,
    REVIEW_TARGET,
)
from sharaspot_engine.data_management.schemas import (
    Contribution,
    ContributionSummary,
    ContributionType,
    PlugStatusInfo,
    ReliabilityScore,
    WaitTimeInfo,
)
from sharaspot_engine.scoring.confidence import ConfidenceEngine


def _capped(count: float, target: float) -> float:
    """Scale count against target onto 0-COMPONENT_MAX."""
    return min(max(count / target * COMPONENT_MAX, 0.0), COMPONENT_MAX)


def _clamp_component(value: float) -> float:
    return min(max(value, 0.0), COMPONENT_MAX)


class ReliabilityAggregator:
    """Derives ReliabilityScore and ContributionSummary views for a charger."""

    def __init__(self, confidence_engine: Optional[ConfidenceEngine] = None) -> None:
        self.confidence_engine = confidence_engine or ConfidenceEngine()
        self._logger = structlog.get_logger().bind(component="ReliabilityAggregator")

    def aggregate(
        self,
        charger_id: str,
        contributions: Sequence[Contribution],
        now: datetime,
    ) -> ReliabilityScore:
        """Compute the full five-component score.

        Args:
            charger_id: Station the contributions belong to.
            contributions: Every contribution for the station, any order.
            now: Reference instant for freshness and the confidence window.

        Returns:
            ReliabilityScore with last_updated set to now. An empty set yields
            all-zero components and a NEEDS_DATA badge.
        """
        photos = sum(1 for c in contributions if c.type == ContributionType.PHOTO)
        ratings = [
            c.rating
            for c in contributions
            if c.type == ContributionType.REVIEW and c.rating is not None
        ]
        reviews = sum(1 for c in contributions if c.type == ContributionType.REVIEW)

        freshness_cutoff = now - timedelta(days=FRESHNESS_WINDOW_DAYS)
        recent = sum(1 for c in contributions if c.timestamp >= freshness_cutoff)

        confidence_cutoff = now - timedelta(days=CONFIDENCE_WINDOW_DAYS)
        windowed = [
            c.confidence_score for c in contributions if c.timestamp >= confidence_cutoff
        ]
        avg_confidence = sum(windowed) / len(windowed) if windowed else 0.0

        photo_score = _capped(photos, PHOTO_TARGET)
        review_score = _capped(reviews, REVIEW_TARGET)
        rating_score = _clamp_component(self._average(ratings) * RATING_MULTIPLIER)
        freshness_score = _capped(recent, FRESHNESS_TARGET)
        validation_score = _clamp_component(avg_confidence * COMPONENT_MAX)

        total = photo_score + review_score + rating_score + freshness_score + validation_score

        score = ReliabilityScore(
            charger_id=charger_id,
            total_score=min(total, 5 * COMPONENT_MAX),
            photo_score=photo_score,
            review_score=review_score,
            rating_score=rating_score,
            freshness_score=freshness_score,
            validation_score=validation_score,
            contribution_count=len(contributions),
            last_updated=now,
        )

        self._logger.debug(
            "reliability_aggregated",
            charger_id=charger_id,
            contributions=len(contributions),
            total_score=score.total_score,
            trust_badge=score.trust_badge.value,
        )
        return score

    def basic_score(
        self,
        charger_id: str,
        photo_count: int,
        review_count: int,
        avg_rating: float,
        now: datetime,
    ) -> ReliabilityScore:
        """Score from headline counts only, without freshness or validation."""
        photo_score = _capped(photo_count, PHOTO_TARGET)
        review_score = _capped(review_count, REVIEW_TARGET)
        rating_score = _clamp_component(avg_rating * RATING_MULTIPLIER)
        return ReliabilityScore(
            charger_id=charger_id,
            total_score=photo_score + review_score + rating_score,
            photo_score=photo_score,
            review_score=review_score,
            rating_score=rating_score,
            last_updated=now,
        )

    def summarize(
        self,
        charger_id: str,
        contributions: Sequence[Contribution],
        now: datetime,
    ) -> ContributionSummary:
        """Build the per-charger summary view."""
        ordered = sorted(contributions, key=lambda c: c.timestamp, reverse=True)

        ratings = [
            c.rating
            for c in ordered
            if c.type == ContributionType.REVIEW and c.rating is not None
        ]

        latest_wait = next(
            (
                c for c in ordered
                if c.type == ContributionType.WAIT_TIME and c.wait_time_minutes is not None
            ),
            None,
        )
        latest_wait_time = None
        if latest_wait is not None:
            latest_wait_time = WaitTimeInfo(
                minutes=latest_wait.wait_time_minutes,
                queue_length=latest_wait.queue_length,
                timestamp=latest_wait.timestamp,
                is_stale=self.confidence_engine.is_data_stale(
                    ContributionType.WAIT_TIME, latest_wait.timestamp, now
                ),
            )

        latest_status = next(
            (
                c for c in ordered
                if c.type == ContributionType.STATUS_UPDATE and c.charger_status is not None
            ),
            None,
        )

        return ContributionSummary(
            charger_id=charger_id,
            total_contributions=len(ordered),
            total_photos=sum(1 for c in ordered if c.type == ContributionType.PHOTO),
            average_rating=self._average(ratings) if ratings else None,
            latest_wait_time=latest_wait_time,
            current_status=latest_status.charger_status if latest_status else None,
            plug_status_list=self._plug_statuses(ordered),
            recent_contributions=ordered[:RECENT_CONTRIBUTIONS_LIMIT],
        )

    @staticmethod
    def _plug_statuses(ordered: Sequence[Contribution]) -> list[PlugStatusInfo]:
        """Latest check per plug type, with the number of checks seen.

        Expects contributions newest first.
        """
        latest: dict[str, Contribution] = {}
        counts: dict[str, int] = {}
        for c in ordered:
            if c.type != ContributionType.PLUG_CHECK or c.plug_type is None:
                continue
            latest.setdefault(c.plug_type, c)
            counts[c.plug_type] = counts.get(c.plug_type, 0) + 1

        return [
            PlugStatusInfo(
                plug_type=plug_type,
                is_working=bool(check.plug_working),
                power_output=check.power_output,
                last_verified=check.timestamp,
                verification_count=counts[plug_type],
            )
            for plug_type, check in latest.items()
        ]

    @staticmethod
    def _average(values: Sequence[float]) -> float:
        return sum(values) / len(values) if values else 0.0

"""Scheduled reliability recomputation for every charger.

Invoked by an external scheduler (nightly in production). Chargers are
processed in batches; each batch runs concurrently with asyncio.gather and
each charger is recomputed under its charger lock, so a concurrent vote can
never be overwritten by an older snapshot.

Live recomputation after a contribution event goes through recompute_locked()
as well, so for the same clock both paths store identical scores.

Usage:
    job = ReliabilityBatchJob(contribution_store, reliability_store)
    stats = await job.run()
"""

import asyncio
from typing import Any, Optional

import structlog

from sharaspot_engine.clock import Clock, SystemClock
from sharaspot_engine.config.settings import settings
from sharaspot_engine.data_management.contribution_store import ContributionStore
from sharaspot_engine.data_management.reliability_store import ReliabilityStore
from sharaspot_engine.data_management.schemas import ReliabilityScore
from sharaspot_engine.scoring.reliability import ReliabilityAggregator


class ReliabilityBatchJob:
    """Recomputes and stores ReliabilityScore for chargers."""

    def __init__(
        self,
        contribution_store: ContributionStore,
        reliability_store: ReliabilityStore,
        aggregator: Optional[ReliabilityAggregator] = None,
        clock: Optional[Clock] = None,
        batch_size: Optional[int] = None,
    ) -> None:
        """Initialize ReliabilityBatchJob.

        Args:
            contribution_store: Source of contributions per charger.
            reliability_store: Destination for computed scores.
            aggregator: Shared aggregator. Created if not provided.
            clock: Source of "now". System clock if not provided.
            batch_size: Chargers per concurrent batch. Defaults to settings.batch_size.
        """
        self.contribution_store = contribution_store
        self.reliability_store = reliability_store
        self.aggregator = aggregator or ReliabilityAggregator()
        self.clock = clock or SystemClock()
        self.batch_size = batch_size or settings.batch_size
        self._logger = structlog.get_logger().bind(component="ReliabilityBatchJob")

    async def recompute(self, charger_id: str) -> ReliabilityScore:
        """Recompute one charger, taking its lock."""
        async with self.contribution_store.charger_lock(charger_id):
            return await self.recompute_locked(charger_id)

    async def recompute_locked(self, charger_id: str) -> ReliabilityScore:
        """Recompute one charger. Caller holds the charger lock."""
        contributions = await self.contribution_store.list_for_charger(charger_id)
        score = self.aggregator.aggregate(charger_id, contributions, self.clock.now())
        await self.reliability_store.save_score(score)
        return score

    async def run(self) -> dict[str, Any]:
        """Recompute every charger with contributions.

        Returns:
            Stats dict: chargers processed, batches run, changed scores and
            the trust badge distribution.
        """
        charger_ids = await self.contribution_store.charger_ids()
        self._logger.info(
            "batch_started",
            chargers=len(charger_ids),
            batch_size=self.batch_size,
        )

        changed = 0
        badges: dict[str, int] = {}
        batches = 0
        for start in range(0, len(charger_ids), self.batch_size):
            batch = charger_ids[start:start + self.batch_size]
            previous = {
                cid: await self.reliability_store.get_score(cid) for cid in batch
            }
            scores = await asyncio.gather(*(self.recompute(cid) for cid in batch))
            batches += 1

            for score in scores:
                old = previous[score.charger_id]
                if old is None or not old.same_scores(score):
                    changed += 1
                badges[score.trust_badge.value] = badges.get(score.trust_badge.value, 0) + 1

            self._logger.debug(
                "batch_completed",
                batch=batches,
                chargers=len(batch),
            )

        stats = {
            "chargers_processed": len(charger_ids),
            "batches": batches,
            "scores_changed": changed,
            "trust_badges": badges,
        }
        self._logger.info("batch_finished", **stats)
        return stats

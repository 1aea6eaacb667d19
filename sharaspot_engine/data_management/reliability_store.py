"""Latest computed reliability score per charger.

Written by live recomputation after each contribution event and by the
scheduled batch job; both go through the same aggregator, so the stored value
does not depend on which path wrote it last.
"""

from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from sharaspot_engine.data_management.json_persistence import read_json, write_json_atomic
from sharaspot_engine.data_management.schemas import ReliabilityScore


class ReliabilityStore:
    """Storage for ReliabilityScore records keyed by charger_id."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """
        Initialize reliability store.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._scores: Dict[str, ReliabilityScore] = {}
        self.persistence_path = Path(persistence_path) if persistence_path else None
        self.logger = logger.bind(component="ReliabilityStore")

        if self.persistence_path and self.persistence_path.exists():
            data = read_json(self.persistence_path)
            self._scores = {
                cid: ReliabilityScore.model_validate(raw) for cid, raw in data.items()
            }
            self.logger.info(f"Loaded from {self.persistence_path}", chargers=len(self._scores))

    async def save_score(self, score: ReliabilityScore) -> None:
        """Replace the stored score for score.charger_id."""
        if self.persistence_path:
            pending = {**self._scores, score.charger_id: score}
            write_json_atomic(
                self.persistence_path,
                {cid: s.model_dump(mode="json") for cid, s in pending.items()},
            )
        self._scores[score.charger_id] = score

        self.logger.debug(
            f"Saved score: {score.charger_id}",
            total_score=score.total_score,
            trust_badge=score.trust_badge.value
        )

    async def get_score(self, charger_id: str) -> Optional[ReliabilityScore]:
        return self._scores.get(charger_id)

    async def all_scores(self) -> List[ReliabilityScore]:
        return list(self._scores.values())

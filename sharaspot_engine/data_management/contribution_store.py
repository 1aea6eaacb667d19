"""Contribution storage keyed by charger, with per-charger locking.

Features:
- In-memory storage with optional JSON persistence
- Charger-based organization (charger_id as primary key)
- O(1) lookup by contribution_id, per-user index for profile queries
- Validation history for daily stats and the validator leaderboard
- One asyncio lock per charger: votes on the same charger are serialized,
  votes on different chargers proceed independently

Data structure:
{
    "contributions": {
        charger_id: {contribution_id: Contribution, ...},
        ...
    },
    "validations": [ValidationRecord, ...]
}

Writers hold the charger lock (charger_lock) and persist the pending state
before swapping it into memory, so a failed write leaves the store unchanged.
snapshot_locked and restore_locked let a caller undo a committed write while
it still holds the lock.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, AsyncContextManager, Dict, List, Optional, Tuple

from loguru import logger

from sharaspot_engine.data_management.json_persistence import read_json, write_json_atomic
from sharaspot_engine.data_management.keyed_lock import KeyedLock
from sharaspot_engine.data_management.schemas import Contribution, ValidationRecord
from sharaspot_engine.errors import ContributionNotFoundError


class ContributionStore:
    """
    Storage adapter for contributions with charger-scoped access.

    Indexes:
    - _charger_index: contribution_id -> charger_id for O(1) lookup
    - _user_index: user_id -> list[contribution_id] for profile queries
    """

    def __init__(self, persistence_path: Optional[str] = None):
        """
        Initialize contribution store.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._by_charger: Dict[str, Dict[str, Contribution]] = {}
        self._charger_index: Dict[str, str] = {}
        self._user_index: Dict[str, List[str]] = {}
        self._validations: List[ValidationRecord] = []

        self._locks = KeyedLock()
        self.persistence_path = Path(persistence_path) if persistence_path else None
        self.logger = logger.bind(component="ContributionStore")

        if self.persistence_path and self.persistence_path.exists():
            self._load_from_file()

        self.logger.info(
            "ContributionStore initialized",
            persistence_enabled=self.persistence_path is not None
        )

    def charger_lock(self, charger_id: str) -> AsyncContextManager[None]:
        """Exclusive access to one charger's contribution set."""
        return self._locks.acquire(charger_id)

    async def add(self, contribution: Contribution) -> Contribution:
        """
        Store a new contribution.

        Raises:
            ValueError: If a contribution with the same id already exists
        """
        async with self.charger_lock(contribution.charger_id):
            self.add_locked(contribution)
            return contribution

    def add_locked(self, contribution: Contribution) -> bool:
        """
        Store a new contribution. Caller must hold charger_lock.

        Returns:
            True if this is the first contribution recorded for its charger
        """
        if contribution.id in self._charger_index:
            raise ValueError(f"Contribution {contribution.id} already exists")

        previous = self._by_charger.get(contribution.charger_id, {})
        bucket = dict(previous)
        bucket[contribution.id] = contribution
        self._persist({contribution.charger_id: bucket})

        self._by_charger[contribution.charger_id] = bucket
        self._charger_index[contribution.id] = contribution.charger_id
        self._user_index.setdefault(contribution.user_id, []).append(contribution.id)

        self.logger.debug(
            f"Saved contribution: {contribution.id}",
            charger_id=contribution.charger_id,
            type=contribution.type.value
        )
        return not previous

    def commit_vote_locked(
        self,
        contribution: Contribution,
        record: Optional[ValidationRecord] = None,
    ) -> None:
        """
        Replace a contribution after a vote. Caller must hold charger_lock.

        Args:
            contribution: Updated contribution (same id and charger)
            record: Validation history entry to append, if the vote is rewarded
        """
        current_charger = self._charger_index.get(contribution.id)
        if current_charger is None:
            raise ContributionNotFoundError(contribution.id)
        if current_charger != contribution.charger_id:
            raise ValueError(
                f"Contribution {contribution.id} belongs to charger {current_charger}"
            )

        bucket = dict(self._by_charger[contribution.charger_id])
        bucket[contribution.id] = contribution
        validations = self._validations + [record] if record else self._validations
        self._persist({contribution.charger_id: bucket}, validations)

        self._by_charger[contribution.charger_id] = bucket
        self._validations = validations

    def snapshot_locked(
        self, charger_id: str
    ) -> Tuple[Dict[str, Contribution], List[ValidationRecord]]:
        """Copy of a charger's bucket and the validation history. Caller must hold charger_lock."""
        return dict(self._by_charger.get(charger_id, {})), list(self._validations)

    def restore_locked(
        self,
        charger_id: str,
        snapshot: Tuple[Dict[str, Contribution], List[ValidationRecord]],
    ) -> None:
        """
        Put a charger back to a state taken by snapshot_locked.

        Caller must hold charger_lock and must not have released it since the
        snapshot was taken.
        """
        bucket, validations = snapshot
        buckets = {k: v for k, v in self._by_charger.items() if k != charger_id}
        if bucket:
            buckets[charger_id] = bucket
        self._write(buckets, validations)

        self._by_charger = buckets
        self._validations = validations
        self._rebuild_indexes()

        self.logger.warning(f"Restored charger: {charger_id}", contributions=len(bucket))

    async def get(self, contribution_id: str) -> Contribution:
        """
        Get a contribution by id.

        Raises:
            ContributionNotFoundError: If the id is unknown
        """
        return self.get_locked(contribution_id)

    def get_locked(self, contribution_id: str) -> Contribution:
        """Synchronous read for callers already holding the charger lock."""
        charger_id = self._charger_index.get(contribution_id)
        if charger_id is None:
            raise ContributionNotFoundError(contribution_id)
        return self._by_charger[charger_id][contribution_id]

    async def exists(self, contribution_id: str) -> bool:
        return contribution_id in self._charger_index

    async def list_for_charger(self, charger_id: str) -> List[Contribution]:
        """All contributions for a charger, newest first. Unknown chargers yield []."""
        contributions = list(self._by_charger.get(charger_id, {}).values())
        return sorted(contributions, key=lambda c: c.timestamp, reverse=True)

    async def list_for_user(self, user_id: str) -> List[Contribution]:
        contributions = [
            self._by_charger[self._charger_index[cid]][cid]
            for cid in self._user_index.get(user_id, [])
        ]
        return sorted(contributions, key=lambda c: c.timestamp, reverse=True)

    async def has_contributions(self, charger_id: str) -> bool:
        return bool(self._by_charger.get(charger_id))

    async def charger_ids(self) -> List[str]:
        return sorted(self._by_charger.keys())

    async def validation_history(
        self,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[ValidationRecord]:
        """Rewarded votes, optionally filtered by user and start instant."""
        return [
            record
            for record in self._validations
            if (user_id is None or record.user_id == user_id)
            and (since is None or record.timestamp >= since)
        ]

    async def get_storage_stats(self) -> Dict[str, Any]:
        return {
            "total_chargers": len(self._by_charger),
            "total_contributions": len(self._charger_index),
            "total_contributors": len(self._user_index),
            "total_validations": len(self._validations),
            "persistence_enabled": self.persistence_path is not None,
            "persistence_path": str(self.persistence_path) if self.persistence_path else None,
        }

    def _persist(
        self,
        pending_buckets: Dict[str, Dict[str, Contribution]],
        pending_validations: Optional[List[ValidationRecord]] = None,
    ) -> None:
        """Write current state with pending changes applied (synchronous)."""
        buckets = {**self._by_charger, **pending_buckets}
        validations = self._validations if pending_validations is None else pending_validations
        self._write(buckets, validations)

    def _write(
        self,
        buckets: Dict[str, Dict[str, Contribution]],
        validations: List[ValidationRecord],
    ) -> None:
        if not self.persistence_path:
            return

        data = {
            "contributions": {
                charger_id: {
                    cid: contribution.model_dump(mode="json")
                    for cid, contribution in bucket.items()
                }
                for charger_id, bucket in buckets.items()
            },
            "validations": [record.model_dump(mode="json") for record in validations],
        }
        write_json_atomic(self.persistence_path, data)
        self.logger.debug(f"Persisted to {self.persistence_path}")

    def _load_from_file(self) -> None:
        """Load storage from JSON file and rebuild indexes (synchronous)."""
        data = read_json(self.persistence_path)

        self._by_charger = {
            charger_id: {
                cid: Contribution.model_validate(raw)
                for cid, raw in bucket.items()
            }
            for charger_id, bucket in data.get("contributions", {}).items()
        }
        self._validations = [
            ValidationRecord.model_validate(raw) for raw in data.get("validations", [])
        ]
        self._rebuild_indexes()

        self.logger.info(
            f"Loaded from {self.persistence_path}",
            chargers=len(self._by_charger),
            contributions=len(self._charger_index)
        )

    def _rebuild_indexes(self) -> None:
        self._charger_index = {}
        self._user_index = {}
        for charger_id, bucket in self._by_charger.items():
            for cid, contribution in bucket.items():
                self._charger_index[cid] = charger_id
                self._user_index.setdefault(contribution.user_id, []).append(cid)

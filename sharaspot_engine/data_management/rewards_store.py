"""User rewards and coin transaction storage with per-user locking.

Follows the same patterns as ContributionStore:
- Primary key is the user id
- Optional JSON persistence, written before in-memory state changes
- One asyncio lock per user: awards for the same user never interleave,
  awards for different users never wait on each other

The transaction log per user is append-only. Entries are frozen models and
are never rewritten or removed.

Usage:
    store = RewardsStore()
    async with store.user_lock("u-1"):
        current = await store.get("u-1")
        store.commit_locked(updated_rewards, transaction)
"""

from pathlib import Path
from typing import Any, AsyncContextManager, Dict, List, Optional

from loguru import logger

from sharaspot_engine.data_management.json_persistence import read_json, write_json_atomic
from sharaspot_engine.data_management.keyed_lock import KeyedLock
from sharaspot_engine.data_management.schemas import CoinTransaction, UserRewards


class RewardsStore:
    """Storage for UserRewards snapshots and their transaction logs.

    Data structure:
    {
        "rewards": {user_id: UserRewards, ...},
        "transactions": {user_id: [CoinTransaction, ...], ...}   # oldest first
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize RewardsStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._rewards: Dict[str, UserRewards] = {}
        self._transactions: Dict[str, List[CoinTransaction]] = {}
        self._locks = KeyedLock()
        self.persistence_path = Path(persistence_path) if persistence_path else None
        self.logger = logger.bind(component="RewardsStore")

        if self.persistence_path and self.persistence_path.exists():
            self._load_from_file()

    def user_lock(self, user_id: str) -> AsyncContextManager[None]:
        """Exclusive access to one user's rewards state."""
        return self._locks.acquire(user_id)

    async def get(self, user_id: str) -> Optional[UserRewards]:
        return self._rewards.get(user_id)

    def get_locked(self, user_id: str) -> Optional[UserRewards]:
        """Synchronous read for callers already holding user_lock(user_id)."""
        return self._rewards.get(user_id)

    async def user_ids(self) -> List[str]:
        return sorted(self._rewards.keys())

    async def all_rewards(self) -> List[UserRewards]:
        return list(self._rewards.values())

    async def transactions(self, user_id: str) -> List[CoinTransaction]:
        """Transaction log for a user, oldest first."""
        return list(self._transactions.get(user_id, []))

    def commit_locked(
        self,
        rewards: UserRewards,
        transaction: Optional[CoinTransaction] = None,
    ) -> None:
        """
        Write a user's new snapshot and optional transaction as one unit.

        Caller must hold user_lock(rewards.user_id). Nothing here awaits, so a
        cancelled caller either never reaches this point or completes it.
        """
        if transaction is not None and transaction.user_id != rewards.user_id:
            raise ValueError("Transaction user does not match rewards user")

        log = self._transactions.get(rewards.user_id, [])
        new_log = log + [transaction] if transaction is not None else log
        self._persist(rewards, new_log)

        self._rewards[rewards.user_id] = rewards
        self._transactions[rewards.user_id] = new_log

        self.logger.debug(
            f"Committed rewards for {rewards.user_id}",
            total_coins=rewards.total_coins,
            transaction_id=transaction.id if transaction else None
        )

    async def get_storage_stats(self) -> Dict[str, Any]:
        return {
            "total_users": len(self._rewards),
            "total_transactions": sum(len(log) for log in self._transactions.values()),
            "total_coins_issued": sum(r.total_coins for r in self._rewards.values()),
            "persistence_enabled": self.persistence_path is not None,
        }

    def _persist(self, rewards: UserRewards, log: List[CoinTransaction]) -> None:
        """Save state with one user's pending update applied (synchronous)."""
        if not self.persistence_path:
            return

        all_rewards = {**self._rewards, rewards.user_id: rewards}
        all_logs = {**self._transactions, rewards.user_id: log}
        data = {
            "rewards": {
                uid: r.model_dump(mode="json") for uid, r in all_rewards.items()
            },
            "transactions": {
                uid: [tx.model_dump(mode="json") for tx in txs]
                for uid, txs in all_logs.items()
            },
        }
        write_json_atomic(self.persistence_path, data)

    def _load_from_file(self) -> None:
        data = read_json(self.persistence_path)
        self._rewards = {
            uid: UserRewards.model_validate(raw)
            for uid, raw in data.get("rewards", {}).items()
        }
        self._transactions = {
            uid: [CoinTransaction.model_validate(raw) for raw in txs]
            for uid, txs in data.get("transactions", {}).items()
        }
        self.logger.info(
            f"Loaded from {self.persistence_path}",
            users=len(self._rewards)
        )

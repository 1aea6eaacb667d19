"""Data management package for the contribution engine.

Provides storage adapters and schemas for:
- Contributions (Contribution) - reports with mutable validation state
- User rewards (UserRewards, CoinTransaction) - per-user ledger state
- Reliability scores (ReliabilityScore) - latest computed score per charger

Storage adapters:
- ContributionStore: Charger-scoped contribution persistence
- RewardsStore: User-scoped rewards and transaction persistence
- ReliabilityStore: Charger-scoped reliability score persistence
"""

from sharaspot_engine.data_management.contribution_store import ContributionStore
from sharaspot_engine.data_management.reliability_store import ReliabilityStore
from sharaspot_engine.data_management.rewards_store import RewardsStore

__all__ = [
    "ContributionStore",
    "ReliabilityStore",
    "RewardsStore",
]

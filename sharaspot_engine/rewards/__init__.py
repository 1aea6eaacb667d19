"""Coin ledger, badge evaluation and leaderboards."""

from sharaspot_engine.rewards.badges import evaluate_badges, requirement_met
from sharaspot_engine.rewards.leaderboard import Leaderboard
from sharaspot_engine.rewards.ledger import RewardsLedger

__all__ = ["Leaderboard", "RewardsLedger", "evaluate_badges", "requirement_met"]

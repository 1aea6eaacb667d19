"""Confidence and reliability scoring."""

from sharaspot_engine.scoring.confidence import ConfidenceEngine
from sharaspot_engine.scoring.reliability import ReliabilityAggregator

__all__ = ["ConfidenceEngine", "ReliabilityAggregator"]

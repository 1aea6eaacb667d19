"""Pipeline modules for scheduled, whole-dataset processing.

Pipelines handle:
- Component initialization and wiring
- Batch processing with bounded concurrency
- Progress tracking and statistics
"""

from sharaspot_engine.pipelines.reliability_batch import ReliabilityBatchJob

__all__ = ["ReliabilityBatchJob"]

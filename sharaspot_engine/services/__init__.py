from sharaspot_engine.services.contribution_service import (
    ContributionOutcome,
    ContributionService,
    VoteOutcome,
)

__all__ = ["ContributionOutcome", "ContributionService", "VoteOutcome"]

from fundbot.funding.funding_scheduler import (
    FundingDecision,
    FundingPreconditionError,
    FundingScheduler,
)

__all__ = ["FundingDecision", "FundingPreconditionError", "FundingScheduler"]

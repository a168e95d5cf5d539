"""
fundbot/funding/funding_scheduler.py
------------------------------------

How many dollars should go into the market today?

The scheduler spreads the gap between the target invested amount
(equity × target ratio) and what is already invested evenly over the days
left until the checkpoint's finish date. A cycle that runs after a gap of
several days funds all of the missed days at once; the very first cycle
funds exactly one day.

State lives in the Checkpoint passed in by the caller:

    no checkpoint            → caller must build one first
    last_funding_date=None   → never funded
    last_funding_date=T      → funded at T; mark_funded() moves it forward

Precondition violations raise FundingPreconditionError. They point at a
misconfigured finish date / target or an account that cannot cover the
daily rate, so the process is expected to stop and tell the operator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fundbot.state.checkpoint import Checkpoint
from fundbot.utils.time_utils import ensure_utc, utcnow, whole_days_between

logger = logging.getLogger(__name__)


class FundingPreconditionError(RuntimeError):
    """Fatal: the funding cycle cannot run with the current configuration or account state."""


@dataclass(frozen=True)
class FundingDecision:
    total_invested: float
    days_remaining: int
    additional_needed: float
    daily_funding: float
    days_elapsed: int
    funding_today: float

    @property
    def should_fund(self) -> bool:
        return self.funding_today > 0


class FundingScheduler:
    def __init__(self, min_gap: timedelta = timedelta(days=1)) -> None:
        self.min_gap = min_gap
        self.log = logging.getLogger("FundingScheduler")

    # ------------------------------------------------------------------
    def compute(
        self,
        checkpoint: Checkpoint,
        *,
        account_equity: float,
        account_cash: float,
        buying_power: float,
        now: datetime,
    ) -> FundingDecision:
        now = ensure_utc(now)

        total_invested = account_equity - account_cash
        days_remaining = whole_days_between(now, checkpoint.finish_date)
        if days_remaining <= 0:
            raise FundingPreconditionError(
                f"finish date {checkpoint.finish_date.isoformat()} is not in the future "
                f"(days_remaining={days_remaining})"
            )

        additional_needed = (
            account_equity * checkpoint.target_investment_equity_ratio - total_invested
        )
        daily_funding = max(0.0, additional_needed / days_remaining)

        self.log.info(
            "Daily funding = %.2f (invested=%.2f, needed=%.2f, days_remaining=%d)",
            daily_funding,
            total_invested,
            additional_needed,
            days_remaining,
        )

        if daily_funding < 0:
            raise FundingPreconditionError(f"negative daily funding {daily_funding}")
        if buying_power < daily_funding:
            raise FundingPreconditionError(
                f"buying power {buying_power:.2f} cannot cover daily funding {daily_funding:.2f}"
            )

        if checkpoint.never_funded:
            days_elapsed = 1
        else:
            days_elapsed = whole_days_between(checkpoint.last_funding_date, now)

        funding_today = daily_funding * days_elapsed
        self.log.info("Funding today = %.2f (days_elapsed=%d)", funding_today, days_elapsed)

        return FundingDecision(
            total_invested=total_invested,
            days_remaining=days_remaining,
            additional_needed=additional_needed,
            daily_funding=daily_funding,
            days_elapsed=days_elapsed,
            funding_today=funding_today,
        )

    # ------------------------------------------------------------------
    def earliest_next_funding(self, checkpoint: Checkpoint, now: datetime) -> datetime:
        now = ensure_utc(now)
        if checkpoint.never_funded:
            return now
        return max(now, ensure_utc(checkpoint.last_funding_date) + self.min_gap)

    # ------------------------------------------------------------------
    def mark_funded(self, checkpoint: Checkpoint, when: Optional[datetime] = None) -> Checkpoint:
        """
        Only call once every planned order has been submitted: the new date
        is what tells the next cycle these dollars are already spent.
        """
        checkpoint.last_funding_date = ensure_utc(when) if when is not None else utcnow()
        return checkpoint

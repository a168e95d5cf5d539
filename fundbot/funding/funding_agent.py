"""
fundbot/funding/funding_agent.py
--------------------------------

Funding Agent: one account, one checkpoint, a cycle per trading day.

This wires together:

- Checkpoint load / first-run sampling of the live portfolio
- MarketClock (wait for session open + offset)
- FundingScheduler (today's dollar budget + preconditions)
- AllocationPlanner (greedy purchase plan)
- PlanExecutor (fail-fast limit buys)

The checkpoint is advanced and saved only after every planned order was
accepted. Anything that goes wrong before that (snapshot failure, rejected
order, precondition) propagates to the caller with the checkpoint untouched.
A cycle whose budget buys nothing still advances the checkpoint, so unspent
budget is not carried into the next day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from fundbot.allocation.allocation_planner import PurchasePlan, generate_plan
from fundbot.execution.brokers.base import Broker, PositionSnapshot
from fundbot.execution.order_schema import OrderResult, discounted_limit
from fundbot.execution.plan_executor import AssetState, PlanExecutor
from fundbot.funding.funding_scheduler import FundingDecision, FundingScheduler
from fundbot.journal.order_ledger import OrderLedger
from fundbot.market.market_clock import MarketClock
from fundbot.state.checkpoint import (
    Checkpoint,
    build_default_checkpoint,
    load_checkpoint,
    save_checkpoint,
)
from fundbot.utils.config import AgentConfig
from fundbot.utils.time_utils import ensure_utc, utcnow

log = logging.getLogger("FundingAgent")


@dataclass
class CycleReport:
    decision: FundingDecision
    started_at: datetime
    plan: Optional[PurchasePlan] = None
    assets: List[AssetState] = field(default_factory=list)
    results: List[OrderResult] = field(default_factory=list)
    funded_at: Optional[datetime] = None

    @property
    def funded(self) -> bool:
        return self.funded_at is not None

    def summary(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "funding_today": round(self.decision.funding_today, 2),
            "daily_funding": round(self.decision.daily_funding, 2),
            "days_elapsed": self.decision.days_elapsed,
            "days_remaining": self.decision.days_remaining,
            "planned": round(self.plan.total, 2) if self.plan is not None else 0.0,
            "orders": len(self.results),
            "funded": self.funded,
        }


class FundingAgent:
    def __init__(
        self,
        broker: Broker,
        config: Optional[AgentConfig] = None,
        *,
        scheduler: Optional[FundingScheduler] = None,
        clock: Optional[MarketClock] = None,
        ledger: Optional[OrderLedger] = None,
        now_fn: Callable[[], datetime] = utcnow,
    ) -> None:
        self.broker = broker
        self.cfg = config or AgentConfig()
        self.scheduler = scheduler or FundingScheduler()
        self.now_fn = now_fn
        self.clock = clock or MarketClock(
            exchange_tz=self.cfg.exchange_timezone,
            open_offset=timedelta(minutes=self.cfg.open_offset_minutes),
            lookahead_days=self.cfg.calendar_lookahead_days,
            poll_seconds=self.cfg.poll_seconds,
            now_fn=now_fn,
        )
        self.ledger = ledger or OrderLedger(self.cfg.ledger_path)
        self.executor = PlanExecutor(
            broker,
            limit_discount=self.cfg.limit_discount,
            time_in_force=self.cfg.time_in_force,
            ledger=self.ledger,
        )
        # set after a cycle that did not advance the checkpoint
        self._not_before: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Checkpoint
    # ------------------------------------------------------------------
    def load_or_init_checkpoint(self) -> Checkpoint:
        checkpoint = load_checkpoint(self.cfg.state_path)
        if checkpoint is not None:
            return checkpoint

        log.info("🆕 No usable checkpoint; sampling live portfolio as the ideal allocation.")
        checkpoint = build_default_checkpoint(
            self.broker.list_positions(),
            now=self.now_fn(),
            target_ratio=self.cfg.target_investment_equity_ratio,
            horizon_days=self.cfg.horizon_days,
        )
        save_checkpoint(self.cfg.state_path, checkpoint)
        log.info(
            "Ideal allocation: %s | finish_date=%s",
            {k: round(v, 4) for k, v in checkpoint.ideal_allocations.items()},
            checkpoint.finish_date.isoformat(),
        )
        return checkpoint

    # ------------------------------------------------------------------
    # Snapshot → planning inputs
    # ------------------------------------------------------------------
    def build_assets(
        self, positions: Sequence[PositionSnapshot], checkpoint: Checkpoint
    ) -> List[AssetState]:
        assets: List[AssetState] = []
        for pos in positions:
            if pos.market_value is None or pos.current_price is None:
                log.warning("⚠️ %s: incomplete position data; skipped this cycle.", pos.symbol)
                continue
            price = float(pos.current_price)
            market_value = float(pos.market_value)
            # a limit that rounds to 0.00 cannot be submitted
            limit = discounted_limit(price, self.cfg.limit_discount) if price > 0 else 0
            if limit <= 0 or market_value < 0:
                log.warning(
                    "⚠️ %s: price=%.4f market_value=%.2f not plannable; skipped.",
                    pos.symbol,
                    price,
                    market_value,
                )
                continue

            if self.cfg.equity_basis == "reference_delta":
                equity = max(0.0, market_value - checkpoint.reference_equity(pos.symbol))
            else:
                equity = market_value
            assets.append(AssetState(symbol=pos.symbol, equity=equity, price=price))

        held = {a.symbol for a in assets}
        missing = sorted(s for s in checkpoint.ideal_allocations if s not in held)
        if missing:
            log.warning("Ideal symbols without a usable position (not funded): %s", missing)
        return assets

    # ------------------------------------------------------------------
    # One funding cycle
    # ------------------------------------------------------------------
    def run_cycle(self, checkpoint: Checkpoint, now: Optional[datetime] = None) -> CycleReport:
        now = ensure_utc(now) if now is not None else self.now_fn()

        account = self.broker.get_account()
        decision = self.scheduler.compute(
            checkpoint,
            account_equity=float(account.equity),
            account_cash=float(account.cash),
            buying_power=float(account.buying_power),
            now=now,
        )
        report = CycleReport(decision=decision, started_at=now)

        if not decision.should_fund:
            log.info("Nothing to fund today (funding_today=%.2f).", decision.funding_today)
            return report

        report.assets = self.build_assets(self.broker.list_positions(), checkpoint)
        report.plan = generate_plan(
            [a.equity for a in report.assets],
            [a.price for a in report.assets],
            [checkpoint.ideal_fraction(a.symbol) for a in report.assets],
            decision.funding_today,
        )

        if len(report.plan) == 0:
            log.info("No affordable purchase for $%.2f today.", decision.funding_today)

        report.results = self.executor.execute(report.plan, report.assets)

        self.scheduler.mark_funded(checkpoint, self.now_fn())
        save_checkpoint(self.cfg.state_path, checkpoint)
        report.funded_at = checkpoint.last_funding_date

        self.ledger.cycle_complete(report.summary())
        log.info(
            "✅ Funded $%.2f across %d orders (budget $%.2f).",
            report.plan.total,
            len(report.results),
            decision.funding_today,
        )
        return report

    # ------------------------------------------------------------------
    # Driving loop
    # ------------------------------------------------------------------
    def next_funding_time(self, checkpoint: Checkpoint) -> datetime:
        earliest = self.scheduler.earliest_next_funding(checkpoint, self.now_fn())
        if self._not_before is not None:
            earliest = max(earliest, self._not_before)
        return self.clock.next_funding_time_from_broker(self.broker, earliest)

    def run_forever(self, max_cycles: Optional[int] = None) -> int:
        """Runs until max_cycles (None = forever). Errors propagate to the caller."""
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            checkpoint = self.load_or_init_checkpoint()

            self.clock.wait_until(self.next_funding_time(checkpoint))

            report = self.run_cycle(checkpoint)
            if report.funded:
                self._not_before = None
            else:
                self._not_before = report.started_at + self.scheduler.min_gap
            cycles += 1
        return cycles

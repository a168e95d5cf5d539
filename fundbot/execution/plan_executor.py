"""
fundbot/execution/plan_executor.py
----------------------------------

Submits a PurchasePlan to the broker, one limit buy per planned increment,
in plan order.

Fail-fast: the first rejected order raises OrderSubmissionError and the
rest of the plan is not sent. Orders already accepted stay in the market;
the next cycle sees them in the refreshed equities.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fundbot.allocation.allocation_planner import PurchasePlan
from fundbot.execution.brokers.base import Broker
from fundbot.execution.order_schema import Order, OrderResult, build_limit_buy
from fundbot.journal.order_ledger import OrderLedger
from tools.telegram_alerts import send_order_alert

log = logging.getLogger("PlanExecutor")


class OrderSubmissionError(RuntimeError):
    def __init__(self, message: str, order: Order, submitted: Sequence[OrderResult] = ()):
        super().__init__(message)
        self.order = order
        self.submitted = list(submitted)


@dataclass(frozen=True)
class AssetState:
    symbol: str
    equity: float
    price: float


class PlanExecutor:
    def __init__(
        self,
        broker: Broker,
        *,
        limit_discount: float = 0.001,
        time_in_force: str = "day",
        ledger: Optional[OrderLedger] = None,
    ) -> None:
        self.broker = broker
        self.limit_discount = limit_discount
        self.time_in_force = time_in_force
        self.ledger = ledger

    def execute(self, plan: PurchasePlan, assets: Sequence[AssetState]) -> List[OrderResult]:
        results: List[OrderResult] = []
        log.info("Orders: %s", [(p.asset_index, round(p.amount, 2)) for p in plan])

        for purchase in plan:
            asset = assets[purchase.asset_index]
            order = build_limit_buy(
                asset.symbol,
                asset.price,
                purchase.amount,
                discount=self.limit_discount,
                time_in_force=self.time_in_force,
            )

            result = self.broker.place_order(order)
            if not result.ok:
                if self.ledger is not None:
                    self.ledger.order_error(order.to_dict(), result.error)
                raise OrderSubmissionError(
                    f"order for {order.symbol} (${purchase.amount:.2f}) rejected: {result.error}",
                    order=order,
                    submitted=results,
                )

            results.append(result)
            if self.ledger is not None:
                self.ledger.order_submitted(order.to_dict(), result.order_id, result.status)
            send_order_alert(
                f"🟢 BUY {order.symbol} x {order.qty} @ {order.limit_price} (${purchase.amount:.2f})",
                meta={"order_id": result.order_id, "broker": result.broker},
            )

        return results

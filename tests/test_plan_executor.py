"""
Tests for PlanExecutor and DryRunBroker
"""

import json
import tempfile
import unittest
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from typing import List

from fundbot.allocation.allocation_planner import PlannedPurchase, PurchasePlan
from fundbot.execution.brokers.base import (
    AccountSnapshot,
    Broker,
    PositionSnapshot,
    TradingSession,
)
from fundbot.execution.brokers.dry import DryRunBroker
from fundbot.execution.order_schema import Order, OrderResult
from fundbot.execution.plan_executor import AssetState, OrderSubmissionError, PlanExecutor
from fundbot.journal.order_ledger import OrderLedger


class RecordingBroker(Broker):
    def __init__(self, reject_at: int = -1):
        super().__init__("recording")
        self.reject_at = reject_at
        self.orders: List[Order] = []

    def preflight(self):
        return True, "ok"

    def get_account(self):
        return AccountSnapshot(Decimal("1000"), Decimal("100"), Decimal("100"))

    def list_positions(self):
        return [PositionSnapshot("VTI", Decimal("900"), Decimal("100"))]

    def get_calendar(self, start, end):
        return [TradingSession(date(2025, 3, 4), time(9, 30), time(16, 0))]

    def place_order(self, order: Order) -> OrderResult:
        if len(self.orders) == self.reject_at:
            return OrderResult(ok=False, broker=self.name, order_id=None, status="rejected",
                               error="insufficient buying power")
        self.orders.append(order)
        return OrderResult(ok=True, broker=self.name, order_id=f"o{len(self.orders)}", status="accepted")


ASSETS = [AssetState("VTI", 900.0, 100.0), AssetState("BND", 100.0, 50.0)]
PLAN = PurchasePlan(
    purchases=(
        PlannedPurchase(1, 50.0),
        PlannedPurchase(1, 50.0),
        PlannedPurchase(0, 100.0),
    ),
    equities=(1000.0, 200.0),
    remaining_budget=0.0,
)


class TestPlanExecutor(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.ledger_path = Path(self.tmp.name) / "orders.jsonl"
        self.ledger = OrderLedger(str(self.ledger_path))

    def tearDown(self):
        self.tmp.cleanup()

    def ledger_events(self):
        return [json.loads(line) for line in self.ledger_path.read_text().splitlines()]

    def test_submits_every_purchase_in_plan_order(self):
        broker = RecordingBroker()
        results = PlanExecutor(broker, ledger=self.ledger).execute(PLAN, ASSETS)

        self.assertEqual(len(results), 3)
        self.assertEqual([o.symbol for o in broker.orders], ["BND", "BND", "VTI"])
        self.assertEqual([o.qty for o in broker.orders], [1, 1, 1])
        self.assertEqual(broker.orders[0].limit_price, Decimal("49.95"))
        self.assertEqual(broker.orders[2].limit_price, Decimal("99.90"))
        self.assertTrue(all(o.time_in_force == "day" for o in broker.orders))

        events = self.ledger_events()
        self.assertEqual([e["type"] for e in events], ["submitted"] * 3)
        self.assertEqual(events[0]["order_id"], "o1")

    def test_rejection_stops_the_rest_of_the_plan(self):
        broker = RecordingBroker(reject_at=1)
        with self.assertRaises(OrderSubmissionError) as ctx:
            PlanExecutor(broker, ledger=self.ledger).execute(PLAN, ASSETS)

        self.assertEqual(len(broker.orders), 1)
        self.assertEqual(len(ctx.exception.submitted), 1)
        self.assertEqual(ctx.exception.order.symbol, "BND")
        self.assertIn("insufficient buying power", str(ctx.exception))
        self.assertEqual([e["type"] for e in self.ledger_events()], ["submitted", "error"])

    def test_empty_plan_submits_nothing(self):
        broker = RecordingBroker()
        self.assertEqual(PlanExecutor(broker).execute(PurchasePlan(), ASSETS), [])
        self.assertEqual(broker.orders, [])


class TestDryRunBroker(unittest.TestCase):

    def test_reads_delegate_and_records_orders(self):
        with tempfile.TemporaryDirectory() as tmp:
            cache = Path(tmp) / "dry.json"
            delegate = RecordingBroker()
            dry = DryRunBroker(delegate, cache_path=str(cache))

            self.assertEqual(dry.get_account().equity, Decimal("1000"))
            self.assertEqual(dry.list_positions()[0].symbol, "VTI")
            self.assertEqual(len(dry.get_calendar(date(2025, 3, 4), date(2025, 3, 11))), 1)

            PlanExecutor(dry).execute(PLAN, ASSETS)

            self.assertEqual(delegate.orders, [])
            self.assertEqual(len(dry.orders), 3)
            stored = json.loads(cache.read_text())
            self.assertEqual([o["symbol"] for o in stored], ["BND", "BND", "VTI"])

            # a new instance picks up the cache
            self.assertEqual(len(DryRunBroker(delegate, cache_path=str(cache)).orders), 3)


if __name__ == "__main__":
    unittest.main()

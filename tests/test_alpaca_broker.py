"""
Tests for AlpacaBroker against a stubbed REST client
"""

import unittest
from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace

from alpaca_trade_api.rest import APIError

from fundbot.execution.brokers.alpaca import AlpacaBroker
from fundbot.execution.order_schema import build_limit_buy


class FakeREST:
    def __init__(self, reject=False, status="ACTIVE", trading_blocked=False):
        self.reject = reject
        self.status = status
        self.trading_blocked = trading_blocked
        self.submitted = []
        self.calendar_args = None

    def get_account(self):
        return SimpleNamespace(
            equity="10250.55",
            cash="1200.10",
            buying_power="2400.20",
            status=self.status,
            trading_blocked=self.trading_blocked,
        )

    def list_positions(self):
        return [
            SimpleNamespace(symbol="VTI", market_value="6123.40", current_price="251.12"),
            SimpleNamespace(symbol="BND", market_value=None, current_price="72.18"),
        ]

    def get_calendar(self, start, end):
        self.calendar_args = (start, end)
        return [
            SimpleNamespace(_raw={"date": "2025-03-04", "open": "09:30", "close": "16:00"}),
            SimpleNamespace(_raw={"date": "2025-11-28", "open": "09:30", "close": "13:00"}),
        ]

    def submit_order(self, **params):
        if self.reject:
            raise APIError({"code": 40310000, "message": "insufficient buying power"})
        self.submitted.append(params)
        return SimpleNamespace(id="abc-123", status="accepted", _raw={"id": "abc-123"})


class TestAlpacaBroker(unittest.TestCase):

    def test_account_snapshot_is_decimal(self):
        acct = AlpacaBroker(api=FakeREST()).get_account()
        self.assertEqual(acct.equity, Decimal("10250.55"))
        self.assertEqual(acct.cash, Decimal("1200.10"))
        self.assertEqual(acct.buying_power, Decimal("2400.20"))

    def test_positions_keep_missing_fields_as_none(self):
        positions = AlpacaBroker(api=FakeREST()).list_positions()
        self.assertEqual([p.symbol for p in positions], ["VTI", "BND"])
        self.assertEqual(positions[0].current_price, Decimal("251.12"))
        self.assertIsNone(positions[1].market_value)

    def test_calendar_parses_raw_rows(self):
        api = FakeREST()
        sessions = AlpacaBroker(api=api).get_calendar(date(2025, 3, 4), date(2025, 3, 11))
        self.assertEqual(api.calendar_args, ("2025-03-04", "2025-03-11"))
        self.assertEqual(sessions[0].date, date(2025, 3, 4))
        self.assertEqual(sessions[0].open, time(9, 30))
        self.assertEqual(sessions[1].close, time(13, 0))

    def test_limit_buy_parameters(self):
        api = FakeREST()
        result = AlpacaBroker(api=api).place_order(build_limit_buy("VTI", 100, 250))

        self.assertTrue(result.ok)
        self.assertEqual(result.order_id, "abc-123")
        self.assertEqual(
            api.submitted,
            [
                {
                    "symbol": "VTI",
                    "qty": 2,
                    "side": "buy",
                    "type": "limit",
                    "time_in_force": "day",
                    "limit_price": "99.90",
                }
            ],
        )

    def test_rejection_becomes_failed_result(self):
        result = AlpacaBroker(api=FakeREST(reject=True)).place_order(build_limit_buy("VTI", 100, 250))
        self.assertFalse(result.ok)
        self.assertEqual(result.status, "rejected")
        self.assertIn("insufficient buying power", result.error)

    def test_preflight(self):
        self.assertEqual(AlpacaBroker(api=FakeREST()).preflight(), (True, "ok"))
        ok, reason = AlpacaBroker(api=FakeREST(trading_blocked=True)).preflight()
        self.assertFalse(ok)
        self.assertIn("blocked", reason)
        ok, _ = AlpacaBroker(api=FakeREST(status="ACCOUNT_CLOSED")).preflight()
        self.assertFalse(ok)


if __name__ == "__main__":
    unittest.main()

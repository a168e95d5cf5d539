"""
fundbot/execution/brokers/alpaca.py
-----------------------------------
Alpaca REST broker (paper + live) for the funding agent.

Provides:
    - get_account()       equity / cash / buying power
    - list_positions()    symbol / market value / current price
    - get_calendar()      trading sessions with open times
    - place_order()       limit buy, day time-in-force

Snapshot and calendar failures are NOT swallowed: a cycle that cannot see
the account must not guess. Order rejections (APIError) come back as
OrderResult(ok=False) so the executor can stop the plan and report.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import alpaca_trade_api as tradeapi
from alpaca_trade_api.rest import APIError

from fundbot.execution.brokers.base import (
    AccountSnapshot,
    Broker,
    PositionSnapshot,
    TradingSession,
)
from fundbot.execution.order_schema import Order, OrderResult
from tools.env_loader import validate_api_keys

log = logging.getLogger("AlpacaBroker")


def _opt_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date()
    return date.fromisoformat(str(value)[:10])


def _parse_time(value: Any) -> Optional[time]:
    if value is None:
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    return time.fromisoformat(str(value))


class AlpacaBroker(Broker):
    def __init__(
        self,
        name: str = "alpaca",
        params: Dict[str, Any] | None = None,
        api: Any = None,
    ):
        super().__init__(name, params)
        self.mode = str(self.params.get("mode") or os.getenv("MODE", "PAPER")).upper()

        if api is not None:
            self.api = api
            self.base_url = self.params.get("base_url", "")
            return

        # Fail fast on missing keys
        validation = validate_api_keys(mode=self.mode, fail_fast=True)
        self.base_url = self.params.get("base_url") or validation["base_url"]
        self.api = tradeapi.REST(
            key_id=os.getenv("APCA_API_KEY_ID"),
            secret_key=os.getenv("APCA_API_SECRET_KEY"),
            base_url=self.base_url,
            api_version="v2",
        )
        env_label = "paper" if "paper" in self.base_url else "live"
        log.info("🔗 AlpacaBroker initialized (%s, mode=%s)", env_label, self.mode)

    # ---------------------------------------------------------
    def preflight(self) -> tuple[bool, str]:
        try:
            acct = self.api.get_account()
        except APIError as e:
            return False, f"account check failed: {getattr(e, 'message', str(e))}"
        status = str(getattr(acct, "status", "ACTIVE")).upper()
        if status != "ACTIVE":
            return False, f"account status {status}"
        if getattr(acct, "trading_blocked", False):
            return False, "trading blocked on account"
        return True, "ok"

    # ---------------------------------------------------------
    # ACCOUNT
    # ---------------------------------------------------------
    def get_account(self) -> AccountSnapshot:
        acct = self.api.get_account()
        snap = AccountSnapshot(
            equity=Decimal(str(acct.equity)),
            cash=Decimal(str(acct.cash)),
            buying_power=Decimal(str(acct.buying_power)),
        )
        log.info(
            "Account equity = %s | cash = %s | buying power = %s",
            snap.equity,
            snap.cash,
            snap.buying_power,
        )
        return snap

    # ---------------------------------------------------------
    # POSITIONS
    # ---------------------------------------------------------
    def list_positions(self) -> List[PositionSnapshot]:
        return [
            PositionSnapshot(
                symbol=p.symbol,
                market_value=_opt_decimal(getattr(p, "market_value", None)),
                current_price=_opt_decimal(getattr(p, "current_price", None)),
            )
            for p in self.api.list_positions()
        ]

    # ---------------------------------------------------------
    # CALENDAR
    # ---------------------------------------------------------
    def get_calendar(self, start: date, end: date) -> List[TradingSession]:
        rows = self.api.get_calendar(start=start.isoformat(), end=end.isoformat())
        sessions: List[TradingSession] = []
        for row in rows:
            raw = getattr(row, "_raw", None) or {}
            sessions.append(
                TradingSession(
                    date=_parse_date(raw.get("date", getattr(row, "date", None))),
                    open=_parse_time(raw.get("open", getattr(row, "open", None))),
                    close=_parse_time(raw.get("close", getattr(row, "close", None))),
                )
            )
        return sessions

    # ---------------------------------------------------------
    # ORDERS
    # ---------------------------------------------------------
    def place_order(self, order: Order) -> OrderResult:
        params = {
            "symbol": order.symbol,
            "qty": order.qty,
            "side": order.side.lower(),
            "type": order.order_type.lower(),
            "time_in_force": order.time_in_force.lower(),
        }
        if order.order_type.lower() == "limit":
            params["limit_price"] = str(order.limit_price)
        if order.extra.get("client_order_id"):
            params["client_order_id"] = order.extra["client_order_id"]

        log.info(
            "📤 Alpaca submit_order: %s %s x %s type=%s limit=%s",
            order.side.upper(),
            order.symbol,
            order.qty,
            order.order_type.upper(),
            order.limit_price,
        )
        try:
            resp = self.api.submit_order(**params)
        except APIError as e:
            msg = f"APIError: {getattr(e, 'message', str(e))}"
            log.error("Order failed: %s", msg)
            return OrderResult(
                ok=False, broker=self.name, order_id=None, status="rejected", error=msg
            )

        raw = getattr(resp, "_raw", None) or {}
        return OrderResult(
            ok=True,
            broker=self.name,
            order_id=getattr(resp, "id", None),
            status=str(getattr(resp, "status", "accepted")),
            raw=raw,
        )

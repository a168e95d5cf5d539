from __future__ import annotations
import json
from datetime import date
from pathlib import Path
from typing import Dict, Any, List
from time import time
from fundbot.execution.order_schema import Order, OrderResult
from fundbot.execution.brokers.base import (
    AccountSnapshot,
    Broker,
    PositionSnapshot,
    TradingSession,
)


class DryRunBroker(Broker):
    """
    Reads account, positions and calendar from a delegate broker but never
    sends orders. Simulated orders are accumulated in a JSON cache.
    """

    def __init__(
        self,
        delegate: Broker,
        name: str = "dry",
        params: Dict[str, Any] | None = None,
        cache_path: str | None = None,
    ):
        super().__init__(name, params)
        self.delegate = delegate
        self.cache_path = cache_path or "data/runtime/dry_orders.json"
        Path(self.cache_path).parent.mkdir(parents=True, exist_ok=True)
        self._orders: List[Dict[str, Any]] = self._load_orders()

    def _load_orders(self) -> List[Dict[str, Any]]:
        p = Path(self.cache_path)
        if p.exists():
            try:
                return list(json.loads(p.read_text()))
            except (ValueError, TypeError):
                return []
        return []

    def _save_orders(self) -> None:
        Path(self.cache_path).write_text(json.dumps(self._orders, indent=2))

    @property
    def orders(self) -> List[Dict[str, Any]]:
        return list(self._orders)

    def preflight(self) -> tuple[bool, str]:
        ok, msg = self.delegate.preflight()
        return ok, f"dry ({msg})"

    def get_account(self) -> AccountSnapshot:
        return self.delegate.get_account()

    def list_positions(self) -> List[PositionSnapshot]:
        return self.delegate.list_positions()

    def get_calendar(self, start: date, end: date) -> List[TradingSession]:
        return self.delegate.get_calendar(start, end)

    def place_order(self, order: Order) -> OrderResult:
        oid = f"DRY_{int(time()*1000)}_{len(self._orders)}"
        record = dict(order.to_dict(), order_id=oid)
        self._orders.append(record)
        self._save_orders()

        return OrderResult(
            ok=True,
            broker=self.name,
            order_id=oid,
            status="simulated",
            raw={"simulated": True, "order": record},
        )

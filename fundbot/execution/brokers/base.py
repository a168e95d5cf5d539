from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Dict, Any, List, Optional
from fundbot.execution.order_schema import Order, OrderResult


@dataclass(frozen=True)
class AccountSnapshot:
    equity: Decimal
    cash: Decimal
    buying_power: Decimal


@dataclass(frozen=True)
class PositionSnapshot:
    symbol: str
    market_value: Optional[Decimal]
    current_price: Optional[Decimal]


@dataclass(frozen=True)
class TradingSession:
    date: date
    open: time
    close: Optional[time] = None


class Broker(ABC):
    name: str

    def __init__(self, name: str, params: Dict[str, Any] | None = None):
        self.name = name
        self.params = params or {}

    @abstractmethod
    def preflight(self) -> tuple[bool, str]:
        ...

    @abstractmethod
    def get_account(self) -> AccountSnapshot:
        ...

    @abstractmethod
    def list_positions(self) -> List[PositionSnapshot]:
        """Open positions, in the broker's order. That order indexes one planning cycle."""
        ...

    @abstractmethod
    def get_calendar(self, start: date, end: date) -> List[TradingSession]:
        ...

    @abstractmethod
    def place_order(self, order: Order) -> OrderResult:
        ...

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Optional, Dict, Any
from time import time

CENT = Decimal("0.01")


@dataclass
class Order:
    symbol: str
    side: str                # "BUY" | "SELL"
    qty: int                 # whole shares (positive)
    order_type: str = "LIMIT"
    limit_price: Optional[Decimal] = None
    time_in_force: str = "day"
    reference_price: Optional[Decimal] = None
    funds: Optional[Decimal] = None
    tag: str = "funding"
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side,
            "qty": self.qty,
            "order_type": self.order_type,
            "limit_price": str(self.limit_price) if self.limit_price is not None else None,
            "time_in_force": self.time_in_force,
            "reference_price": str(self.reference_price) if self.reference_price is not None else None,
            "funds": str(self.funds) if self.funds is not None else None,
            "tag": self.tag,
        }


@dataclass
class OrderResult:
    ok: bool
    broker: str
    order_id: Optional[str]
    status: str
    raw: Dict[str, Any] = field(default_factory=dict)
    ts: float = field(default_factory=time)
    error: Optional[str] = None


def to_decimal(value: Any) -> Decimal:
    # str() first so floats do not drag their binary expansion along
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def discounted_limit(reference_price: Any, discount: Any = "0.001") -> Decimal:
    """reference_price * (1 - discount), rounded half-up to cents."""
    price = to_decimal(reference_price)
    return (price * (Decimal(1) - to_decimal(discount))).quantize(CENT, rounding=ROUND_HALF_UP)


def build_limit_buy(
    symbol: str,
    reference_price: Any,
    funds: Any,
    discount: Any = "0.001",
    time_in_force: str = "day",
) -> Order:
    """
    Limit buy slightly under the reference price, sized by whole shares.

        limit = round(reference_price * (1 - discount), cents)
        qty   = floor(funds / limit)
    """
    price = to_decimal(reference_price)
    amount = to_decimal(funds)
    if amount <= 0:
        raise ValueError(f"build_limit_buy: funds must be positive, got {amount}")
    if price <= 0:
        raise ValueError(f"build_limit_buy: reference price must be positive, got {price}")

    limit_price = discounted_limit(price, discount)
    if limit_price <= 0:
        raise ValueError(f"build_limit_buy: limit price rounds to {limit_price} for {symbol}")
    qty = int((amount / limit_price).to_integral_value(rounding=ROUND_DOWN))

    return Order(
        symbol=symbol,
        side="BUY",
        qty=qty,
        order_type="LIMIT",
        limit_price=limit_price,
        time_in_force=time_in_force,
        reference_price=price,
        funds=amount,
    )

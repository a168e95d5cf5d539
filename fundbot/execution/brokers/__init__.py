from fundbot.execution.brokers.base import (
    AccountSnapshot,
    Broker,
    PositionSnapshot,
    TradingSession,
)

__all__ = ["AccountSnapshot", "Broker", "PositionSnapshot", "TradingSession"]

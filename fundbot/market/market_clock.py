"""
Market Clock - Funding Window
-----------------------------
Finds the next moment the agent is allowed to fund, from the broker's
trading calendar, and waits for it.

The funding moment is a fixed offset (one hour by default) after the
session open, expressed in the exchange timezone and converted to UTC.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo

from fundbot.execution.brokers.base import Broker, TradingSession
from fundbot.utils.time_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class MarketClock:
    EXCHANGE_TZ = ZoneInfo("America/New_York")

    def __init__(
        self,
        exchange_tz: Optional[str] = None,
        open_offset: timedelta = timedelta(hours=1),
        lookahead_days: int = 7,
        poll_seconds: float = 10.0,
        now_fn: Callable[[], datetime] = utcnow,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self.tz = ZoneInfo(exchange_tz) if exchange_tz else self.EXCHANGE_TZ
        self.open_offset = open_offset
        self.lookahead_days = lookahead_days
        self.poll_seconds = poll_seconds
        self.now_fn = now_fn
        self.sleep_fn = sleep_fn
        self.logger = logging.getLogger("MarketClock")

    # ------------------------------------------------------------------
    def exchange_date(self, ts: datetime) -> date:
        return ensure_utc(ts).astimezone(self.tz).date()

    def session_funding_time(self, session: TradingSession) -> datetime:
        local = datetime.combine(session.date, session.open, tzinfo=self.tz) + self.open_offset
        return local.astimezone(timezone.utc)

    def next_funding_time(
        self, sessions: Sequence[TradingSession], earliest: datetime
    ) -> datetime:
        """
        First session on or after the exchange-local date of `earliest`,
        at open + offset. Never earlier than `earliest` itself.
        """
        earliest = ensure_utc(earliest)
        start = self.exchange_date(earliest)

        candidates = sorted(
            (s for s in sessions if s.date >= start and s.open is not None),
            key=lambda s: s.date,
        )
        if not candidates:
            raise RuntimeError(
                f"no trading session on or after {start.isoformat()} in the calendar window"
            )

        return max(self.session_funding_time(candidates[0]), earliest)

    def next_funding_time_from_broker(self, broker: Broker, earliest: datetime) -> datetime:
        start = self.exchange_date(earliest)
        sessions = broker.get_calendar(start, start + timedelta(days=self.lookahead_days))
        return self.next_funding_time(sessions, earliest)

    # ------------------------------------------------------------------
    def wait_until(self, when: datetime) -> None:
        when = ensure_utc(when)
        self.logger.info("Waiting until next trading time %s", when.isoformat())
        while self.now_fn() < when:
            self.sleep_fn(self.poll_seconds)

"""
fundbot/state/checkpoint.py
---------------------------

Persisted funding state.

The checkpoint carries the ideal allocation (sampled once from the live
portfolio), the funding target and horizon, and the timestamp of the last
completed funding cycle. It is the only state that survives a restart.

On disk it is a flat JSON document:

    {
      "last_funding_date": "2025-03-04T15:30:12.412000Z" | null,
      "reference_equities": {"VTI": 5230.11, ...},
      "ideal_allocations": {"VTI": 0.61, ...},
      "target_investment_equity_ratio": 1.0,
      "finish_date": "2026-03-04T15:30:12.412000Z"
    }

A missing or unreadable file means "not initialized yet".
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from fundbot.utils.time_utils import ensure_utc

logger = logging.getLogger(__name__)


@dataclass
class Checkpoint:
    finish_date: datetime
    target_investment_equity_ratio: float = 1.0
    ideal_allocations: Dict[str, float] = field(default_factory=dict)
    reference_equities: Dict[str, float] = field(default_factory=dict)
    last_funding_date: Optional[datetime] = None

    @property
    def never_funded(self) -> bool:
        return self.last_funding_date is None

    def ideal_fraction(self, symbol: str) -> float:
        return float(self.ideal_allocations.get(symbol, 0.0))

    def reference_equity(self, symbol: str) -> float:
        return float(self.reference_equities.get(symbol, 0.0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_funding_date": _format_ts(self.last_funding_date),
            "reference_equities": {k: float(v) for k, v in self.reference_equities.items()},
            "ideal_allocations": {k: float(v) for k, v in self.ideal_allocations.items()},
            "target_investment_equity_ratio": float(self.target_investment_equity_ratio),
            "finish_date": _format_ts(self.finish_date),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Checkpoint":
        finish = _parse_ts(raw["finish_date"])
        if finish is None:
            raise ValueError("checkpoint finish_date is null")
        return cls(
            finish_date=finish,
            target_investment_equity_ratio=float(raw["target_investment_equity_ratio"]),
            ideal_allocations={k: float(v) for k, v in (raw.get("ideal_allocations") or {}).items()},
            reference_equities={k: float(v) for k, v in (raw.get("reference_equities") or {}).items()},
            last_funding_date=_parse_ts(raw.get("last_funding_date")),
        )


# ---------------------------------------------------------------------
# Timestamp encoding (RFC 3339, UTC, trailing "Z")
# ---------------------------------------------------------------------
def _format_ts(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    return ensure_utc(ts).isoformat().replace("+00:00", "Z")


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    # pandas copes with nanosecond fractions and the "Z" suffix
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ensure_utc(ts.to_pydatetime())


# ---------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------
def load_checkpoint(path: str | Path) -> Optional[Checkpoint]:
    """Returns the stored checkpoint, or None if there is nothing loadable."""
    p = Path(path)
    if not p.exists():
        logger.info("No checkpoint at %s", p)
        return None

    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
        return Checkpoint.from_dict(raw)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("⚠️ Checkpoint at %s is unreadable (%s); treating as absent.", p, e)
        return None


def save_checkpoint(path: str | Path, checkpoint: Checkpoint) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(json.dumps(checkpoint.to_dict(), indent=2), encoding="utf-8")
    os.replace(tmp, p)
    logger.info(
        "💾 Checkpoint saved → %s (last_funding_date=%s)",
        p,
        _format_ts(checkpoint.last_funding_date),
    )


def build_default_checkpoint(
    positions: Sequence[Any],
    now: datetime,
    target_ratio: float = 1.0,
    horizon_days: int = 365,
) -> Checkpoint:
    """
    Samples the live portfolio: whatever is held today, in today's
    proportions, becomes the ideal allocation.

    `positions` are PositionSnapshot-like objects exposing `symbol` and
    `market_value`.
    """
    equities: Dict[str, float] = {}
    for pos in positions:
        if pos.market_value is None:
            logger.warning("Position %s has no market value; left out of the checkpoint.", pos.symbol)
            continue
        equities[pos.symbol] = float(pos.market_value)

    total = sum(equities.values())
    if total > 0:
        ideal = {sym: eq / total for sym, eq in equities.items()}
    else:
        logger.warning("Total invested is %.2f; ideal allocation left empty.", total)
        ideal = {}

    return Checkpoint(
        finish_date=ensure_utc(now) + timedelta(days=horizon_days),
        target_investment_equity_ratio=float(target_ratio),
        ideal_allocations=ideal,
        reference_equities=equities,
        last_funding_date=None,
    )

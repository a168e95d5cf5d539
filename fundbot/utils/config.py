from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = "configs/funding_agent.yaml"


@dataclass
class AppConfig:
    data: dict

    @classmethod
    def load(cls, path: str) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(data=data)

    def y(self, key: str, default: Any = None) -> Any:
        cur = self.data
        for part in key.split('.'):
            if isinstance(cur, dict) and part in cur:
                cur = cur[part]
            else:
                return default
        return cur


@dataclass
class AgentConfig:
    """Typed view of configs/funding_agent.yaml. Every field has a working default."""

    mode: str = "PAPER"
    state_path: str = "data/runtime/funding_state.json"
    ledger_path: str = "data/runtime/funding_orders.jsonl"
    dry_run_cache_path: str = "data/runtime/dry_orders.json"
    log_file: Optional[str] = "data/logs/funding_agent.log"

    # first-run checkpoint
    target_investment_equity_ratio: float = 1.0
    horizon_days: int = 365

    # trading-day wait
    exchange_timezone: str = "America/New_York"
    open_offset_minutes: int = 60
    calendar_lookahead_days: int = 7
    poll_seconds: float = 10.0

    # orders
    limit_discount: float = 0.001
    time_in_force: str = "day"

    # planning
    equity_basis: str = "market"

    @classmethod
    def from_app_config(cls, cfg: AppConfig, mode: Optional[str] = None) -> "AgentConfig":
        d = cls()
        return cls(
            mode=(mode or os.getenv("MODE") or d.mode).upper(),
            state_path=str(cfg.y("state_path", d.state_path)),
            ledger_path=str(cfg.y("ledger_path", d.ledger_path)),
            dry_run_cache_path=str(cfg.y("dry_run_cache_path", d.dry_run_cache_path)),
            log_file=cfg.y("log_file", d.log_file),
            target_investment_equity_ratio=float(
                cfg.y("defaults.target_investment_equity_ratio", d.target_investment_equity_ratio)
            ),
            horizon_days=int(cfg.y("defaults.horizon_days", d.horizon_days)),
            exchange_timezone=str(cfg.y("schedule.exchange_timezone", d.exchange_timezone)),
            open_offset_minutes=int(cfg.y("schedule.open_offset_minutes", d.open_offset_minutes)),
            calendar_lookahead_days=int(
                cfg.y("schedule.calendar_lookahead_days", d.calendar_lookahead_days)
            ),
            poll_seconds=float(cfg.y("schedule.poll_seconds", d.poll_seconds)),
            limit_discount=float(cfg.y("orders.limit_discount", d.limit_discount)),
            time_in_force=str(cfg.y("orders.time_in_force", d.time_in_force)),
            equity_basis=str(cfg.y("planning.equity_basis", d.equity_basis)),
        )

    @classmethod
    def load(cls, path: Optional[str] = None, mode: Optional[str] = None) -> "AgentConfig":
        """Reads the YAML file if present; a missing file means all defaults."""
        path = path or os.getenv("FUNDBOT_CONFIG") or DEFAULT_CONFIG_PATH
        if not Path(path).exists():
            return cls.from_app_config(AppConfig(data={}), mode=mode)
        return cls.from_app_config(AppConfig.load(path), mode=mode)

    def as_flat_dict(self) -> Dict[str, Any]:
        return asdict(self)

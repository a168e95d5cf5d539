"""
Configuration Validator
-----------------------
Validates environment variables and funding-agent settings on startup.
"""

from __future__ import annotations

import os
import logging
from typing import Dict, Any, Optional, List, Tuple, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

VALID_MODES = ("PAPER", "LIVE", "DRY")
VALID_EQUITY_BASES = ("market", "reference_delta")


class ConfigurationError(RuntimeError):
    """Invalid configuration or missing credentials; raised before any trading call."""


@dataclass
class ConfigRule:
    key: str
    required: bool = True
    check: Optional[Callable[[Any], bool]] = None
    message: Optional[str] = None

    def problem(self, value: Any) -> Optional[str]:
        if value is None or value == "":
            if self.required:
                return self.message or f"'{self.key}' is missing"
            return None
        if self.check is None:
            return None
        try:
            ok = self.check(value)
        except (TypeError, ValueError, AttributeError):
            ok = False
        return None if ok else (self.message or f"'{self.key}' has invalid value {value!r}")


class ConfigValidator:
    """
    Collects rules, then checks a mapping (the process environment by default)
    against all of them. Every problem is reported, not just the first one.
    """

    def __init__(self):
        self.rules: List[ConfigRule] = []
        self.logger = logging.getLogger("ConfigValidator")

    def add_rule(
        self,
        key: str,
        required: bool = True,
        validator: Optional[Callable[[Any], bool]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        self.rules.append(ConfigRule(key, required, validator, error_message))

    def validate(self, config: Optional[Dict[str, Any]] = None) -> Tuple[bool, List[str]]:
        source = os.environ if config is None else config
        errors = [p for p in (r.problem(source.get(r.key)) for r in self.rules) if p]

        for e in errors:
            self.logger.error("❌ %s", e)
        if errors:
            self.logger.error("❌ %d configuration problem(s)", len(errors))
        else:
            self.logger.debug("Configuration OK (%d rules)", len(self.rules))
        return not errors, errors

    def validate_trading_config(self, env: Optional[Dict[str, Any]] = None) -> Tuple[bool, List[str]]:
        """Environment rules for talking to Alpaca."""
        self.add_rule(
            "MODE",
            required=False,
            validator=lambda x: x.upper() in VALID_MODES,
            error_message="MODE must be PAPER, LIVE, or DRY",
        )
        self.add_rule(
            "APCA_API_KEY_ID",
            required=True,
            error_message="APCA_API_KEY_ID is required for trading",
        )
        self.add_rule(
            "APCA_API_SECRET_KEY",
            required=True,
            error_message="APCA_API_SECRET_KEY is required for trading",
        )
        self.add_rule(
            "APCA_API_BASE_URL",
            required=False,
            validator=lambda x: x.startswith("http"),
            error_message="APCA_API_BASE_URL must be a valid URL",
        )
        return self.validate(env)

    def validate_agent_settings(self, settings: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Rules for the flattened funding-agent settings (see AgentConfig.as_flat_dict)."""
        self.add_rule(
            "target_investment_equity_ratio",
            validator=lambda x: 0.0 <= float(x) <= 1.0,
            error_message="defaults.target_investment_equity_ratio must be within [0, 1]",
        )
        self.add_rule(
            "horizon_days",
            validator=lambda x: int(x) > 0,
            error_message="defaults.horizon_days must be positive",
        )
        self.add_rule(
            "open_offset_minutes",
            validator=lambda x: int(x) >= 0,
            error_message="schedule.open_offset_minutes must be >= 0",
        )
        self.add_rule(
            "calendar_lookahead_days",
            validator=lambda x: int(x) >= 1,
            error_message="schedule.calendar_lookahead_days must be >= 1",
        )
        self.add_rule(
            "poll_seconds",
            validator=lambda x: float(x) > 0,
            error_message="schedule.poll_seconds must be positive",
        )
        self.add_rule(
            "limit_discount",
            validator=lambda x: 0.0 <= float(x) < 1.0,
            error_message="orders.limit_discount must be within [0, 1)",
        )
        self.add_rule(
            "equity_basis",
            validator=lambda x: x in VALID_EQUITY_BASES,
            error_message=f"planning.equity_basis must be one of {VALID_EQUITY_BASES}",
        )
        return self.validate(settings)


def validate_startup_config(settings: Optional[Dict[str, Any]] = None, *, require_keys: bool = True) -> bool:
    """
    Validate configuration on startup.

    Returns:
        True if valid, raises ConfigurationError if invalid
    """
    errors: List[str] = []

    if require_keys:
        _, env_errors = ConfigValidator().validate_trading_config()
        errors.extend(env_errors)

    if settings is not None:
        _, cfg_errors = ConfigValidator().validate_agent_settings(dict(settings))
        errors.extend(cfg_errors)

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise ConfigurationError(error_msg)

    return True

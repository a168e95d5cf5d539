"""
runner/funding_agent_live.py
----------------------------

Daily funding loop for one Alpaca account.

    python runner/funding_agent_live.py                 # loop forever
    python runner/funding_agent_live.py --max-cycles 1  # one trading day
    python runner/funding_agent_live.py --skip-wait     # fund right now, once

MODE (env or --mode): PAPER | LIVE | DRY. DRY reads the real account but
only records orders to dry_run_cache_path.

Exit codes: 0 ok / interrupted, 1 broker or order failure,
2 funding precondition failure, 3 configuration error.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Add project root to Python path
runner_dir = Path(__file__).parent
project_root = runner_dir.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tools.env_loader import ensure_env_loaded
from tools.telegram_alerts import send_fatal_alert
from fundbot.execution.brokers.base import Broker
from fundbot.execution.plan_executor import OrderSubmissionError
from fundbot.funding.funding_agent import FundingAgent
from fundbot.funding.funding_scheduler import FundingPreconditionError
from fundbot.utils.config import AgentConfig
from fundbot.utils.config_validator import ConfigurationError, validate_startup_config
from fundbot.utils.log_utils import setup_root_logging

log = logging.getLogger("FundingAgentRunner")


def build_broker(cfg: AgentConfig) -> Broker:
    from fundbot.execution.brokers.alpaca import AlpacaBroker
    from fundbot.execution.brokers.dry import DryRunBroker

    if cfg.mode == "DRY":
        # DRY still reads the paper account unless APCA_API_BASE_URL says otherwise
        alpaca = AlpacaBroker(params={"mode": "PAPER"})
        return DryRunBroker(alpaca, cache_path=cfg.dry_run_cache_path)
    return AlpacaBroker(params={"mode": cfg.mode})


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Funds-limited daily rebalancing agent")
    ap.add_argument("--config", default=None, help="YAML config (default: $FUNDBOT_CONFIG or configs/funding_agent.yaml)")
    ap.add_argument("--mode", default=None, choices=["PAPER", "LIVE", "DRY"], help="overrides $MODE")
    ap.add_argument("--state", default=None, help="checkpoint path override")
    ap.add_argument("--max-cycles", type=int, default=None, help="stop after N cycles")
    ap.add_argument("--skip-wait", action="store_true", help="run a single cycle now, without waiting for the session")
    ap.add_argument("--env-file", default=".env")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    ensure_env_loaded(args.env_file)

    try:
        cfg = AgentConfig.load(args.config, mode=args.mode)
        if args.state:
            cfg.state_path = args.state
        setup_root_logging(cfg.log_file)
        validate_startup_config(cfg.as_flat_dict(), require_keys=True)

        broker = build_broker(cfg)
        ok, msg = broker.preflight()
        if not ok:
            raise ConfigurationError(f"broker preflight failed: {msg}")
    except ConfigurationError as e:
        log.critical("❌ %s", e)
        send_fatal_alert(f"🛑 Funding agent not started: {e}")
        return 3

    log.info(
        "🚀 Funding agent starting (mode=%s, state=%s, pid=%d)",
        cfg.mode,
        cfg.state_path,
        os.getpid(),
    )
    agent = FundingAgent(broker, cfg)

    try:
        if args.skip_wait:
            agent.run_cycle(agent.load_or_init_checkpoint())
        else:
            agent.run_forever(max_cycles=args.max_cycles)
    except KeyboardInterrupt:
        log.warning("KeyboardInterrupt: shutting down.")
        return 0
    except FundingPreconditionError as e:
        log.critical("🛑 Funding precondition failed: %s", e)
        send_fatal_alert(f"🛑 Funding agent stopped: {e}")
        return 2
    except OrderSubmissionError as e:
        log.error("❌ %s (%d orders of this plan were already accepted)", e, len(e.submitted))
        send_fatal_alert(f"❌ Funding plan aborted: {e}", meta={"accepted_orders": len(e.submitted)})
        return 1
    except Exception as e:
        log.error("FATAL funding cycle failure: %s", e, exc_info=True)
        send_fatal_alert(f"❌ Funding agent crashed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    logging.captureWarnings(True)
    sys.exit(main())

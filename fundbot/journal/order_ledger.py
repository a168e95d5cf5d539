import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_PATH = "data/runtime/funding_orders.jsonl"


class OrderLedger:
    """
    Append-only JSONL record of funding orders (submitted / rejected / cycle
    summaries). Audit trail only: a failed write is logged, not raised.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or DEFAULT_LEDGER_PATH)

    def log(self, event: Dict[str, Any]) -> None:
        """Append event to JSONL ledger."""
        event = dict(event, _ts=datetime.now(timezone.utc).isoformat())
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event, default=str) + "\n")
        except OSError as e:
            logger.error("Ledger write failed: %s", e)

    def order_submitted(self, order: Dict[str, Any], order_id: Optional[str], status: str) -> None:
        self.log({
            "type": "submitted",
            "order_id": order_id,
            "status": status,
            "order": order,
        })

    def order_error(self, order: Dict[str, Any], error: Optional[str]) -> None:
        self.log({
            "type": "error",
            "order": order,
            "error": error,
        })

    def cycle_complete(self, summary: Dict[str, Any]) -> None:
        self.log({
            "type": "cycle",
            "summary": summary,
        })

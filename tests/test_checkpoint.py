"""
Tests for Checkpoint persistence
"""

import json
import tempfile
import unittest
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional

from fundbot.state.checkpoint import (
    Checkpoint,
    build_default_checkpoint,
    load_checkpoint,
    save_checkpoint,
)

NOW = datetime(2025, 3, 3, 15, 30, 12, 412000, tzinfo=timezone.utc)


@dataclass
class Pos:
    symbol: str
    market_value: Optional[Decimal]
    current_price: Optional[Decimal] = None


class TestCheckpointPersistence(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "state" / "funding_state.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_file_loads_as_none(self):
        self.assertIsNone(load_checkpoint(self.path))

    def test_corrupt_file_loads_as_none(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        self.assertIsNone(load_checkpoint(self.path))

        self.path.write_text(json.dumps({"ideal_allocations": {}}), encoding="utf-8")
        self.assertIsNone(load_checkpoint(self.path))

    def test_round_trip_never_funded(self):
        cp = Checkpoint(
            finish_date=NOW + timedelta(days=365),
            target_investment_equity_ratio=0.8,
            ideal_allocations={"VTI": 0.6, "BND": 0.4},
            reference_equities={"VTI": 6000.0, "BND": 4000.0},
        )
        save_checkpoint(self.path, cp)

        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertIsNone(raw["last_funding_date"])
        self.assertTrue(raw["finish_date"].endswith("Z"))
        self.assertEqual(
            set(raw),
            {
                "last_funding_date",
                "reference_equities",
                "ideal_allocations",
                "target_investment_equity_ratio",
                "finish_date",
            },
        )

        loaded = load_checkpoint(self.path)
        self.assertEqual(loaded, cp)
        self.assertIsNone(loaded.last_funding_date)
        self.assertEqual(loaded.finish_date.tzinfo, timezone.utc)

    def test_round_trip_funded(self):
        cp = Checkpoint(finish_date=NOW + timedelta(days=30), last_funding_date=NOW)
        save_checkpoint(self.path, cp)
        self.assertEqual(load_checkpoint(self.path).last_funding_date, NOW)

    def test_reads_nanosecond_timestamps(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            json.dumps(
                {
                    "last_funding_date": "2025-03-03T15:30:12.412345678Z",
                    "reference_equities": {"VTI": 100.0},
                    "ideal_allocations": {"VTI": 1.0},
                    "target_investment_equity_ratio": 1.0,
                    "finish_date": "2026-03-03T15:30:12Z",
                }
            ),
            encoding="utf-8",
        )
        cp = load_checkpoint(self.path)
        self.assertEqual(cp.last_funding_date.replace(microsecond=0), NOW.replace(microsecond=0))
        self.assertEqual(cp.finish_date, datetime(2026, 3, 3, 15, 30, 12, tzinfo=timezone.utc))
        self.assertEqual(cp.ideal_fraction("VTI"), 1.0)
        self.assertEqual(cp.ideal_fraction("QQQ"), 0.0)

    def test_save_leaves_no_temp_file(self):
        save_checkpoint(self.path, Checkpoint(finish_date=NOW))
        self.assertEqual([p.name for p in self.path.parent.iterdir()], [self.path.name])


class TestDefaultCheckpoint(unittest.TestCase):

    def test_ideal_allocation_is_current_holdings(self):
        positions = [
            Pos("VTI", Decimal("7500.00")),
            Pos("BND", Decimal("2500.00")),
        ]
        cp = build_default_checkpoint(positions, NOW, target_ratio=0.9, horizon_days=200)

        self.assertAlmostEqual(cp.ideal_allocations["VTI"], 0.75)
        self.assertAlmostEqual(cp.ideal_allocations["BND"], 0.25)
        self.assertEqual(cp.reference_equities, {"VTI": 7500.0, "BND": 2500.0})
        self.assertEqual(cp.target_investment_equity_ratio, 0.9)
        self.assertEqual(cp.finish_date, NOW + timedelta(days=200))
        self.assertIsNone(cp.last_funding_date)

    def test_defaults(self):
        cp = build_default_checkpoint([Pos("VTI", Decimal("10"))], NOW)
        self.assertEqual(cp.target_investment_equity_ratio, 1.0)
        self.assertEqual(cp.finish_date, NOW + timedelta(days=365))

    def test_missing_market_value_is_left_out(self):
        cp = build_default_checkpoint([Pos("VTI", Decimal("10")), Pos("XYZ", None)], NOW)
        self.assertEqual(cp.ideal_allocations, {"VTI": 1.0})

    def test_empty_portfolio_gives_empty_allocation(self):
        cp = build_default_checkpoint([], NOW)
        self.assertEqual(cp.ideal_allocations, {})
        self.assertEqual(cp.reference_equities, {})


if __name__ == "__main__":
    unittest.main()

"""
fundbot/allocation/allocation_planner.py
----------------------------------------

Turns one funding pool into an ordered list of purchases.

The planner repeatedly asks the AssetSelector for the best next increment,
books it against a projected equity vector and spends it from the remaining
budget. It stops as soon as nothing is affordable or the selector declines.
Pure function of its inputs: no broker access, no clock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from fundbot.allocation.asset_selector import best_asset_to_fund

log = logging.getLogger("AllocationPlanner")


@dataclass(frozen=True)
class PlannedPurchase:
    asset_index: int
    amount: float


@dataclass(frozen=True)
class PurchasePlan:
    purchases: Tuple[PlannedPurchase, ...] = ()
    equities: Tuple[float, ...] = ()
    remaining_budget: float = 0.0

    @property
    def total(self) -> float:
        return float(sum(p.amount for p in self.purchases))

    def __len__(self) -> int:
        return len(self.purchases)

    def __iter__(self):
        return iter(self.purchases)


@dataclass(frozen=True)
class _PlanState:
    plan: Tuple[PlannedPurchase, ...] = field(default_factory=tuple)
    equities: Tuple[float, ...] = field(default_factory=tuple)
    remaining_budget: float = 0.0


def generate_plan(
    initial_equities: Sequence[float],
    prices: Sequence[float],
    ideal_fractions: Sequence[float],
    total_budget: float,
) -> PurchasePlan:
    """
    Greedy plan construction.

    Each step either books one increment (budget strictly decreases by a
    positive price) or stops, so the loop runs at most
    ceil(total_budget / min(prices)) times.
    """
    if len(initial_equities) != len(prices):
        raise ValueError(
            f"generate_plan: {len(initial_equities)} equities vs {len(prices)} prices"
        )
    bad = [p for p in prices if not p > 0]
    if bad:
        raise ValueError(f"generate_plan: prices must be positive, got {bad}")

    state = _PlanState(
        plan=(),
        equities=tuple(float(e) for e in initial_equities),
        remaining_budget=float(total_budget),
    )

    while any(p <= state.remaining_budget for p in prices):
        selection = best_asset_to_fund(
            state.equities, prices, ideal_fractions, state.remaining_budget
        )
        if selection is None:
            break

        idx, amount = selection
        equities: List[float] = list(state.equities)
        equities[idx] += amount
        state = _PlanState(
            plan=state.plan + (PlannedPurchase(asset_index=idx, amount=amount),),
            equities=tuple(equities),
            remaining_budget=state.remaining_budget - amount,
        )

    log.debug(
        "plan built: %d purchases, spent=%.2f of %.2f",
        len(state.plan),
        float(total_budget) - state.remaining_budget,
        float(total_budget),
    )
    return PurchasePlan(
        purchases=state.plan,
        equities=state.equities,
        remaining_budget=state.remaining_budget,
    )

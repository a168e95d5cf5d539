"""
fundbot/allocation/asset_selector.py
------------------------------------

Greedy step of the planner: which single asset should receive the next
funding increment?

Every affordable asset is tried with a "buy one unit at the current price"
increment. The candidate whose post-purchase fractions sit closest to the
ideal allocation wins. The increment is the asset's own price, not a fixed
dollar quantum.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from fundbot.allocation.error_metric import allocation_error

log = logging.getLogger("AssetSelector")


def best_asset_to_fund(
    current_equities: Sequence[float],
    prices: Sequence[float],
    ideal_fractions: Sequence[float],
    budget: float,
) -> Optional[Tuple[int, float]]:
    """
    Returns (selected_index, price_spent), or None when nothing is
    affordable or no candidate yields a defined error.

    Ties keep the first index encountered.
    """
    total_equity = float(sum(current_equities))

    best: Optional[Tuple[int, float]] = None
    best_err = float("inf")

    for i, price in enumerate(prices):
        if price > budget:
            continue

        new_total = total_equity + price
        fractions: List[float] = [
            (eq + price if j == i else eq) / new_total
            for j, eq in enumerate(current_equities)
        ]
        err = allocation_error(fractions, ideal_fractions)
        if err is None:
            continue

        if err < best_err:
            best_err = err
            best = (i, float(price))

    if best is not None:
        log.debug("selected index=%d price=%.4f err=%.8f", best[0], best[1], best_err)
    return best

from fundbot.allocation.error_metric import allocation_error
from fundbot.allocation.asset_selector import best_asset_to_fund
from fundbot.allocation.allocation_planner import (
    PlannedPurchase,
    PurchasePlan,
    generate_plan,
)

__all__ = [
    "allocation_error",
    "best_asset_to_fund",
    "PlannedPurchase",
    "PurchasePlan",
    "generate_plan",
]

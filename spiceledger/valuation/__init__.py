from spiceledger.valuation.day import compute_day_details
from spiceledger.valuation.engine import (
    QUANTITY_EPSILON,
    ReplayResult,
    compute_snapshot,
    group_history,
    order_events,
    value_inventory,
)

__all__ = [
    "QUANTITY_EPSILON",
    "ReplayResult",
    "compute_day_details",
    "compute_snapshot",
    "group_history",
    "order_events",
    "value_inventory",
]

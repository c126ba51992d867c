"""Foundational purchase records and history indexing."""

from .purchases import (
    PurchaseEvent,
    index_purchase_history,
    load_purchase_events,
    require_consistent_timezones,
    require_positive_window,
    require_purchases,
)

__all__ = [
    "PurchaseEvent",
    "index_purchase_history",
    "load_purchase_events",
    "require_consistent_timezones",
    "require_positive_window",
    "require_purchases",
]

"""Sliding-window feature extraction from a customer's purchase history.

Each purchase in a customer's chronological history becomes one training
example. The example describes the customer *as of* that purchase (time since
the previous purchase, spend so far) and is labeled with what happened in the
following ``window_months`` calendar months (spend and purchase count).

Example
-------
>>> from datetime import datetime
>>> from decimal import Decimal
>>> from customer_patronage.foundation import PurchaseEvent
>>> events = [
...     PurchaseEvent("1", "Alice", datetime(2024, 1, 1), Decimal("9")),
...     PurchaseEvent("1", "Alice", datetime(2024, 2, 1), Decimal("9")),
...     PurchaseEvent("1", "Alice", datetime(2024, 3, 1), Decimal("9")),
... ]
>>> [r.cumulative_spend for r in WindowFeatureExtractor(events, window_months=3)]
[9.0, 18.0]

Notes
-----
The last purchase of a history never produces a record, and neither does any
purchase with no later purchase inside its window. For customers who bought
recently this drops their newest purchases from training.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Mapping, Optional, Sequence

import pandas as pd

from customer_patronage.foundation.purchases import (
    PurchaseEvent,
    require_positive_window,
)

SECONDS_PER_DAY = 86400.0

#: Columns the regressors consume, in order.
FEATURE_COLUMNS = (
    "days_since_last_purchase",
    "days_between_purchases",
    "cumulative_spend",
)
#: Regression targets, in the order predictions are returned.
TARGET_COLUMNS = ("expected_spend", "purchase_frequency")


@dataclass(frozen=True)
class FeatureRecord:
    """Engineered example derived from one purchase and its forward window.

    Attributes
    ----------
    customer_id:
        Customer the source purchase belongs to
    customer_name:
        Name on the source purchase
    days_since_last_purchase:
        Days between this purchase and the previous one (0 for the first)
    days_between_purchases:
        Same value as ``days_since_last_purchase``. Both columns are kept
        because trained models expect both.
    cumulative_spend:
        Total spend up to and including this purchase
    purchase_frequency:
        Purchases inside the forward window divided by ``window_months``
    expected_spend:
        Total spend inside the forward window (the label). ``None`` for
        records built for serving only.
    """

    customer_id: str
    customer_name: str
    days_since_last_purchase: float
    days_between_purchases: float
    cumulative_spend: float
    purchase_frequency: float
    expected_spend: Optional[float] = None

    def as_dict(self) -> dict[str, object]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> FeatureRecord:
        expected = payload.get("expected_spend")
        return cls(
            customer_id=str(payload["customer_id"]),
            customer_name=str(payload.get("customer_name") or ""),
            days_since_last_purchase=float(payload["days_since_last_purchase"]),
            days_between_purchases=float(payload["days_between_purchases"]),
            cumulative_spend=float(payload["cumulative_spend"]),
            purchase_frequency=float(payload["purchase_frequency"]),
            expected_spend=None if expected is None else float(expected),
        )


def window_end(purchase_date: datetime, window_months: int) -> datetime:
    """Return the inclusive end of the window opened by ``purchase_date``.

    Calendar months are added with ``pd.DateOffset`` so Jan 31 + 1 month
    lands on the last day of February.
    """
    return (pd.Timestamp(purchase_date) + pd.DateOffset(months=window_months)).to_pydatetime()


class WindowFeatureExtractor:
    """Lazy, restartable sequence of feature records for one customer.

    Parameters
    ----------
    events:
        One customer's purchases, already sorted by ``purchase_date``
        (see :func:`customer_patronage.foundation.index_purchase_history`).
    window_months:
        Forward-looking window used both to select labeled purchases and
        to normalise their count into a frequency.

    Iterating recomputes records from the first purchase every time; nothing
    is cached on the instance.
    """

    def __init__(self, events: Sequence[PurchaseEvent], window_months: int) -> None:
        self.events = events
        self.window_months = require_positive_window(window_months)

    def __iter__(self) -> Iterator[FeatureRecord]:
        events = self.events
        n = len(events)
        cumulative = Decimal("0")

        for i in range(n - 1):
            current = events[i]
            cumulative += current.spend

            horizon = window_end(current.purchase_date, self.window_months)
            future_spend = Decimal("0")
            future_count = 0
            # Events are sorted, so the first one past the horizon ends the window
            for later in events[i + 1 :]:
                if later.purchase_date > horizon:
                    break
                future_spend += later.spend
                future_count += 1

            if future_count == 0:
                continue

            if i == 0:
                days_since = 0.0
            else:
                gap = current.purchase_date - events[i - 1].purchase_date
                days_since = gap.total_seconds() / SECONDS_PER_DAY

            yield FeatureRecord(
                customer_id=current.customer_id,
                customer_name=current.customer_name,
                days_since_last_purchase=days_since,
                days_between_purchases=days_since,
                cumulative_spend=float(cumulative),
                purchase_frequency=future_count / self.window_months,
                expected_spend=float(future_spend),
            )

    def records(self) -> list[FeatureRecord]:
        """Materialise all records into a list."""
        return list(self)


def extract_latest_record(
    events: Sequence[PurchaseEvent], window_months: int
) -> Optional[FeatureRecord]:
    """Return the most recent feature record for a history, or None."""
    latest = None
    for record in WindowFeatureExtractor(events, window_months):
        latest = record
    return latest


def records_to_frame(records: Sequence[FeatureRecord]) -> pd.DataFrame:
    """Convert feature records into a DataFrame with a stable column order."""
    columns = [
        "customer_id",
        "customer_name",
        *FEATURE_COLUMNS,
        "purchase_frequency",
        "expected_spend",
    ]
    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([record.as_dict() for record in records], columns=columns)

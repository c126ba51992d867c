"""Purchase events and per-customer history indexing.

Every downstream step works on a customer's purchases in chronological order.
This module defines the canonical :class:`PurchaseEvent` record, parses raw
transaction dictionaries into it, and groups events into per-customer sorted
histories.

Notes
-----
**Timezone Assumptions**: all ``purchase_date`` values fed into one pipeline
run must share a timezone (or all be timezone-naive). Comparing naive and
aware datetimes is rejected with ``InvalidInputError`` before any sorting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence

from customer_patronage.errors import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseEvent:
    """A single purchase made by a customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier. Histories are keyed on this value only.
    customer_name:
        Display name carried through to feature records and predictions.
    purchase_date:
        Timestamp of the purchase.
    spend:
        Amount spent, never negative.
    """

    customer_id: str
    customer_name: str
    purchase_date: datetime
    spend: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.purchase_date, datetime):
            raise InvalidInputError(
                f"purchase_date must be a datetime, got {type(self.purchase_date).__name__} "
                f"(customer_id={self.customer_id})"
            )
        if self.spend < 0:
            raise InvalidInputError(
                f"Spend cannot be negative: {self.spend} (customer_id={self.customer_id})"
            )

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any], index: int = 0) -> PurchaseEvent:
        """Build an event from a raw transaction dictionary.

        ``purchase_date`` may be a datetime or an ISO-8601 string (a trailing
        ``Z`` is read as UTC). ``spend`` is parsed through ``str`` so float
        inputs do not leak binary rounding into the Decimal.
        """
        try:
            customer_id = str(record["customer_id"])
            raw_date = record["purchase_date"]
            raw_spend = record["spend"]
        except KeyError as exc:
            raise InvalidInputError(
                f"Purchase at index {index} missing key {exc.args[0]}"
            ) from exc

        if isinstance(raw_date, str):
            try:
                purchase_date = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
            except ValueError as exc:
                raise InvalidInputError(
                    f"Purchase at index {index} has unparseable purchase_date {raw_date!r}"
                ) from exc
        else:
            purchase_date = raw_date

        try:
            spend = Decimal(str(raw_spend))
        except InvalidOperation as exc:
            raise InvalidInputError(
                f"Purchase at index {index} has non-numeric spend {raw_spend!r}"
            ) from exc

        return cls(
            customer_id=customer_id,
            customer_name=str(record.get("customer_name") or ""),
            purchase_date=purchase_date,
            spend=spend,
        )

    def as_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation of the event."""
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "purchase_date": self.purchase_date.isoformat(),
            "spend": str(self.spend),
        }


def load_purchase_events(records: Iterable[Mapping[str, Any]]) -> list[PurchaseEvent]:
    """Parse raw transaction dictionaries into purchase events.

    A single malformed record aborts the whole load with
    :class:`InvalidInputError` naming the record index.
    """
    return [
        PurchaseEvent.from_mapping(record, index=idx)
        for idx, record in enumerate(records)
    ]


def require_positive_window(window_months: int) -> int:
    """Validate a prediction window expressed in whole months."""
    if isinstance(window_months, bool) or not isinstance(window_months, int):
        raise InvalidInputError(
            f"window_months must be an integer, got {window_months!r}"
        )
    if window_months <= 0:
        raise InvalidInputError(f"window_months must be positive, got {window_months}")
    return window_months


def require_purchases(events: Sequence[PurchaseEvent] | None) -> Sequence[PurchaseEvent]:
    """Reject a missing or empty purchase sequence."""
    if events is None:
        raise InvalidInputError("Purchase data cannot be None")
    if len(events) == 0:
        raise InvalidInputError("Purchase data cannot be empty")
    require_consistent_timezones(events)
    return events


def require_consistent_timezones(events: Sequence[PurchaseEvent]) -> None:
    """Reject a mix of timezone-naive and timezone-aware purchase dates.

    Raises
    ------
    InvalidInputError:
        Naming the first purchase whose awareness differs from the first
        purchase in ``events``.
    """
    if not events:
        return
    aware = events[0].purchase_date.tzinfo is not None
    for idx, event in enumerate(events):
        if (event.purchase_date.tzinfo is not None) != aware:
            raise InvalidInputError(
                f"Purchase at index {idx} (customer_id={event.customer_id}) mixes "
                f"timezone-naive and timezone-aware purchase dates"
            )


def index_purchase_history(
    events: Sequence[PurchaseEvent] | None, window_months: int
) -> dict[str, list[PurchaseEvent]]:
    """Group purchases by customer and sort each group chronologically.

    Parameters
    ----------
    events:
        Unordered purchase events for any number of customers.
    window_months:
        Prediction window the histories will be used with. Validated here so
        indexing fails fast before any feature extraction starts.

    Returns
    -------
    dict[str, list[PurchaseEvent]]
        Customer id to purchases in ascending ``purchase_date`` order, with
        customers in first-seen order. Purchases sharing a timestamp keep
        their input order.

    Raises
    ------
    InvalidInputError:
        If ``events`` is None or empty, mixes naive and aware purchase
        dates, or ``window_months`` is not positive.
    """
    require_purchases(events)
    require_positive_window(window_months)

    grouped: dict[str, list[PurchaseEvent]] = {}
    for event in events:
        grouped.setdefault(event.customer_id, []).append(event)

    # list.sort is stable, so ties keep their input order
    for purchases in grouped.values():
        purchases.sort(key=lambda event: event.purchase_date)

    logger.debug(f"Indexed {len(events)} purchases into {len(grouped)} customer histories")
    return grouped

"""Tests for purchase events and history indexing."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from customer_patronage.errors import InvalidInputError
from customer_patronage.foundation import (
    PurchaseEvent,
    index_purchase_history,
    load_purchase_events,
)


def _event(customer_id, day, spend="10", name="", month=1):
    return PurchaseEvent(customer_id, name, datetime(2024, month, day), Decimal(spend))


class TestPurchaseEvent:
    """Test PurchaseEvent validation and parsing."""

    def test_negative_spend_raises_error(self):
        """Negative spend should be rejected."""
        with pytest.raises(InvalidInputError, match="Spend cannot be negative"):
            _event("C1", 1, spend="-1")

    def test_zero_spend_is_valid(self):
        assert _event("C1", 1, spend="0").spend == Decimal("0")

    def test_non_datetime_purchase_date_raises_error(self):
        with pytest.raises(InvalidInputError, match="purchase_date must be a datetime"):
            PurchaseEvent("C1", "", "2024-01-01", Decimal("1"))

    def test_from_mapping_parses_iso_strings_and_float_spend(self):
        """ISO timestamps with Z and float spend should parse cleanly."""
        event = PurchaseEvent.from_mapping(
            {
                "customer_id": 7,
                "customer_name": "Alice",
                "purchase_date": "2024-03-01T10:00:00Z",
                "spend": 12.1,
            }
        )
        assert event.customer_id == "7"
        assert event.customer_name == "Alice"
        assert event.purchase_date == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
        assert event.spend == Decimal("12.1")

    def test_from_mapping_missing_key_reports_index(self):
        with pytest.raises(InvalidInputError, match="index 3 missing key spend"):
            PurchaseEvent.from_mapping(
                {"customer_id": "C1", "purchase_date": "2024-01-01"}, index=3
            )

    def test_from_mapping_rejects_bad_spend(self):
        with pytest.raises(InvalidInputError, match="non-numeric spend"):
            PurchaseEvent.from_mapping(
                {"customer_id": "C1", "purchase_date": "2024-01-01", "spend": "abc"}
            )

    def test_load_purchase_events_aborts_on_first_bad_record(self):
        records = [
            {"customer_id": "C1", "purchase_date": "2024-01-01", "spend": 5},
            {"customer_id": "C1", "purchase_date": "not a date", "spend": 5},
        ]
        with pytest.raises(InvalidInputError, match="index 1"):
            load_purchase_events(records)


class TestIndexPurchaseHistory:
    """Test grouping and chronological sorting of purchases."""

    def test_empty_input_raises_error(self):
        with pytest.raises(InvalidInputError):
            index_purchase_history([], window_months=3)

    def test_none_input_raises_error(self):
        with pytest.raises(InvalidInputError):
            index_purchase_history(None, window_months=3)

    @pytest.mark.parametrize("window", [0, -1, 1.5])
    def test_invalid_window_raises_error(self, window):
        with pytest.raises(InvalidInputError):
            index_purchase_history([_event("C1", 1)], window_months=window)

    def test_groups_by_customer_and_sorts_ascending(self):
        events = [
            _event("C2", 5),
            _event("C1", 20),
            _event("C1", 3),
            _event("C2", 1),
            _event("C1", 10),
        ]
        history = index_purchase_history(events, window_months=3)

        assert list(history) == ["C2", "C1"]
        assert [e.purchase_date.day for e in history["C1"]] == [3, 10, 20]
        assert [e.purchase_date.day for e in history["C2"]] == [1, 5]

    def test_groups_by_id_not_name(self):
        """Two names under one id are the same customer."""
        events = [_event("C1", 1, name="Alice"), _event("C1", 2, name="Alicia")]
        history = index_purchase_history(events, window_months=1)
        assert len(history) == 1
        assert len(history["C1"]) == 2

    def test_identical_timestamps_keep_input_order(self):
        events = [
            _event("C1", 5, spend="1"),
            _event("C1", 5, spend="2"),
            _event("C1", 1, spend="0"),
            _event("C1", 5, spend="3"),
        ]
        history = index_purchase_history(events, window_months=1)
        assert [e.spend for e in history["C1"]] == [
            Decimal("0"),
            Decimal("1"),
            Decimal("2"),
            Decimal("3"),
        ]

    def test_scenario_three_purchases_sorted(self):
        """Three purchases given out of order come back chronologically."""
        events = [
            _event("1", 1, spend="9", name="Alice", month=2),
            _event("1", 1, spend="9", name="Alice", month=3),
            _event("1", 1, spend="9", name="Alice", month=1),
        ]
        history = index_purchase_history(events, window_months=3)
        assert [e.purchase_date.month for e in history["1"]] == [1, 2, 3]

    def test_mixed_timezone_awareness_raises_error(self):
        """Naive and aware dates cannot be ordered together."""
        events = [
            PurchaseEvent("C1", "", datetime(2024, 1, 1), Decimal("5")),
            PurchaseEvent("C2", "", datetime(2024, 1, 3), Decimal("5")),
            PurchaseEvent("C2", "", datetime(2024, 2, 1, tzinfo=timezone.utc), Decimal("5")),
        ]
        with pytest.raises(InvalidInputError, match=r"index 2 \(customer_id=C2\)"):
            index_purchase_history(events, window_months=3)

    def test_all_aware_dates_are_accepted(self):
        events = [
            PurchaseEvent("C1", "", datetime(2024, 2, 1, tzinfo=timezone.utc), Decimal("5")),
            PurchaseEvent("C1", "", datetime(2024, 1, 1, tzinfo=timezone.utc), Decimal("5")),
        ]
        history = index_purchase_history(events, window_months=3)
        assert [e.purchase_date.month for e in history["C1"]] == [1, 2]

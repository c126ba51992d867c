"""Tests for baseline metadata computation and serialisation."""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from customer_patronage.errors import EmptyDatasetError, InvalidInputError
from customer_patronage.features import ModelMetadata, calculate_baseline
from customer_patronage.foundation import PurchaseEvent


def _event(customer_id, day, spend):
    return PurchaseEvent(customer_id, "", datetime(2024, 1, day), Decimal(spend))


class TestCalculateBaseline:
    """Test calculate_baseline averages."""

    def test_two_customer_example(self):
        """A: 10 and 30, B: 20 with a 2 month window."""
        events = [_event("A", 1, "10"), _event("A", 2, "30"), _event("B", 3, "20")]
        metadata = calculate_baseline(events, window_months=2)

        assert metadata.average_spend == Decimal("20")
        assert metadata.average_frequency == pytest.approx(0.75)

    def test_spend_is_mean_over_purchases_not_customers(self):
        events = [
            _event("A", 1, "100"),
            _event("B", 1, "1"),
            _event("B", 2, "1"),
            _event("B", 3, "1"),
        ]
        metadata = calculate_baseline(events, window_months=1)
        assert metadata.average_spend == Decimal("103") / Decimal("4")

    def test_single_purchase(self):
        metadata = calculate_baseline([_event("A", 1, "12.50")], window_months=4)
        assert metadata.average_spend == Decimal("12.50")
        assert metadata.average_frequency == pytest.approx(0.25)

    def test_order_independent_and_idempotent(self):
        events = [_event("A", 1, "10"), _event("B", 3, "20"), _event("A", 2, "30")]
        first = calculate_baseline(events, window_months=3)
        second = calculate_baseline(list(reversed(events)), window_months=3)
        assert first == second
        assert calculate_baseline(events, window_months=3) == first

    def test_empty_input_raises_error(self):
        with pytest.raises(EmptyDatasetError):
            calculate_baseline([], window_months=3)

    def test_invalid_window_raises_error(self):
        with pytest.raises(InvalidInputError):
            calculate_baseline([_event("A", 1, "1")], window_months=0)


class TestModelMetadataSerialisation:
    def test_json_round_trip_is_exact(self):
        metadata = ModelMetadata(
            average_spend=Decimal("33.333333333333333333"),
            average_frequency=2 / 3,
        )
        restored = ModelMetadata.from_json(metadata.to_json())
        assert restored == metadata
        assert restored.average_frequency == metadata.average_frequency

    def test_spend_written_as_string(self):
        payload = json.loads(ModelMetadata(Decimal("20.10"), 0.5).to_json())
        assert payload == {"average_spend": "20.10", "average_frequency": 0.5}

    def test_missing_field_raises_error(self):
        with pytest.raises(InvalidInputError, match="average_frequency"):
            ModelMetadata.from_dict({"average_spend": "1"})

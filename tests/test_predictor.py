"""Tests for the prediction entrypoint."""

import time
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from customer_patronage.errors import ArtifactKind, ArtifactNotFoundError, InvalidInputError
from customer_patronage.foundation import PurchaseEvent
from customer_patronage.models import RegressionConfig
from customer_patronage.persistence import ModelStore
from customer_patronage.prediction import PredictionRequest, Predictor
from customer_patronage.training import Trainer


def _purchases():
    events = []
    for customer_id, name, spends in [
        ("A", "Ann", ["10", "20", "30", "40"]),
        ("B", "Ben", ["50", "60", "70"]),
        ("C", "Cy", ["5", "5"]),
    ]:
        for month, spend in enumerate(spends, start=1):
            events.append(
                PurchaseEvent(customer_id, name, datetime(2024, month, 3), Decimal(spend))
            )
    return events


@pytest.fixture
def trained_store(tmp_path):
    store = ModelStore(tmp_path)
    Trainer(store, RegressionConfig(method="linear")).train(_purchases(), "retail", 2)
    return store


class TestPredictor:
    """Test Predictor.predict_customers."""

    def test_unknown_customer_gets_exact_baseline(self, trained_store):
        metadata = trained_store.load("retail", 2).metadata
        output = Predictor(trained_store).predict_customer("nobody", "retail", 2)

        assert output.is_baseline is True
        assert output.customer_id == "nobody"
        assert output.expected_spend == float(metadata.average_spend)
        assert output.purchase_frequency == metadata.average_frequency

    def test_known_customer_uses_stored_name(self, trained_store):
        with patch(
            "customer_patronage.prediction.predictor.predict_record",
            return_value=(12.0, 0.8),
        ):
            output = Predictor(trained_store).predict_customer("B", "retail", 2)
        assert output.is_baseline is False
        assert output.customer_name == "Ben"
        assert (output.expected_spend, output.purchase_frequency) == (12.0, 0.8)

    def test_model_called_with_latest_history_record(self, trained_store):
        history = trained_store.load("retail", 2).history
        with patch(
            "customer_patronage.prediction.predictor.predict_record",
            return_value=(1.0, 1.0),
        ) as mock_predict:
            Predictor(trained_store).predict_customer("A", "retail", 2)
        record = mock_predict.call_args.args[1]
        assert record == history["A"][-1]

    def test_near_zero_model_output_falls_back(self, trained_store):
        with patch(
            "customer_patronage.prediction.predictor.predict_record",
            return_value=(0.0, 0.0),
        ):
            output = Predictor(trained_store).predict_customer("A", "retail", 2)
        assert output.is_baseline is True
        assert output.customer_name == "Ann"

    def test_threshold_is_configurable(self, trained_store):
        with patch(
            "customer_patronage.prediction.predictor.predict_record",
            return_value=(0.5, 0.5),
        ):
            output = Predictor(trained_store, threshold=1.0).predict_customer(
                "A", "retail", 2
            )
        assert output.is_baseline is True

    def test_request_objects_and_strings_mix(self, trained_store):
        outputs = Predictor(trained_store).predict_customers(
            [PredictionRequest("A", "Annie"), "nobody"], "retail", 2
        )
        assert [o.customer_id for o in outputs] == ["A", "nobody"]
        assert outputs[0].customer_name == "Annie"

    @pytest.mark.parametrize("requests", [None, []])
    def test_empty_batch_raises_before_loading(self, requests):
        store = MagicMock(spec=ModelStore)
        with pytest.raises(InvalidInputError):
            Predictor(store).predict_customers(requests, "retail", 2)
        store.load.assert_not_called()

    @pytest.mark.parametrize("bad_id", [None, "", "   "])
    def test_blank_customer_id_raises_before_loading(self, bad_id):
        """A single blank id rejects the whole batch."""
        store = MagicMock(spec=ModelStore)
        with pytest.raises(InvalidInputError, match="customer_id cannot be None or empty"):
            Predictor(store).predict_customers(["1", bad_id], "retail", 2)
        store.load.assert_not_called()

    def test_missing_artifacts_raise(self, tmp_path):
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            Predictor(ModelStore(tmp_path)).predict_customers(["A"], "retail", 2)
        assert exc_info.value.artifact is ArtifactKind.MODEL

    def test_missing_history_artifact_is_named(self, trained_store):
        trained_store.locate("retail", 2).paths[ArtifactKind.HISTORY].unlink()
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            Predictor(trained_store).predict_customers(["A"], "retail", 2)
        assert exc_info.value.artifact is ArtifactKind.HISTORY

    def test_artifacts_loaded_once_per_batch(self, trained_store):
        predictor = Predictor(trained_store)
        with patch.object(trained_store, "load", wraps=trained_store.load) as load:
            predictor.predict_customers(["A", "B", "C", "x"], "retail", 2)
        load.assert_called_once_with("retail", 2)

    def test_concurrent_prediction_preserves_order(self, trained_store):
        ids = ["A", "B", "C"] * 4

        def slow_predict(handle, record):
            # later customers finish first
            time.sleep(0.01 * (3 - ord(record.customer_id) + ord("A")))
            return float(ord(record.customer_id)), 1.0

        with patch(
            "customer_patronage.prediction.predictor.predict_record",
            side_effect=slow_predict,
        ):
            outputs = Predictor(trained_store).predict_customers(
                ids, "retail", 2, max_workers=4
            )

        assert [o.customer_id for o in outputs] == ids
        assert [o.expected_spend for o in outputs] == [float(ord(i)) for i in ids]

    def test_concurrent_matches_sequential(self, trained_store):
        ids = ["A", "B", "C", "nobody", "B"]
        predictor = Predictor(trained_store)
        sequential = predictor.predict_customers(ids, "retail", 2)
        concurrent = predictor.predict_customers(ids, "retail", 2, max_workers=3)
        assert sequential == concurrent

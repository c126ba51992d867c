"""Decide between a model prediction and the baseline for one customer.

A regression model can legitimately return (near) zero spend and frequency
for cold or degenerate inputs. Reporting that to a customer-facing caller is
worse than reporting the population average, so the arbiter substitutes the
baseline whenever:

1. the customer has no stored feature history (the model is not called), or
2. the model's spend **and** frequency are both below the threshold.

Otherwise the model output is returned unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

from customer_patronage.errors import InvalidInputError
from customer_patronage.features.baseline import ModelMetadata
from customer_patronage.features.window import FeatureRecord

logger = logging.getLogger(__name__)

COLD_START_THRESHOLD = 0.01

#: ``record -> (expected_spend, purchase_frequency)``
PredictFn = Callable[[FeatureRecord], tuple[float, float]]


@dataclass(frozen=True)
class PredictionRequest:
    """A customer to predict for. ``customer_name`` is optional."""

    customer_id: str
    customer_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.customer_id is None or not str(self.customer_id).strip():
            raise InvalidInputError(
                f"customer_id cannot be None or empty, got {self.customer_id!r}"
            )

    @classmethod
    def coerce(cls, value: Union[str, "PredictionRequest"]) -> PredictionRequest:
        if isinstance(value, PredictionRequest):
            return value
        if value is None:
            raise InvalidInputError("customer_id cannot be None or empty, got None")
        return cls(customer_id=str(value))


@dataclass(frozen=True)
class PredictionOutput:
    """Final prediction returned to callers.

    Attributes
    ----------
    customer_id:
        Customer the prediction is for
    customer_name:
        Name from the request, else from the latest feature record
    expected_spend:
        Expected spend over the prediction window
    purchase_frequency:
        Expected purchases per month over the prediction window
    is_baseline:
        True when the values are the stored baseline averages rather
        than model output
    """

    customer_id: str
    customer_name: str
    expected_spend: float
    purchase_frequency: float
    is_baseline: bool

    def as_dict(self) -> dict[str, object]:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "expected_spend": self.expected_spend,
            "purchase_frequency": self.purchase_frequency,
            "is_baseline": self.is_baseline,
        }


class PredictionArbiter:
    """Apply the no-history / cold-start / normal policy to one customer.

    Parameters
    ----------
    metadata:
        Baseline averages returned on fallback
    predict_fn:
        Model prediction for a single feature record
    threshold:
        Both raw outputs must be strictly below this value for the output
        to be replaced by the baseline
    """

    def __init__(
        self,
        metadata: ModelMetadata,
        predict_fn: PredictFn,
        threshold: float = COLD_START_THRESHOLD,
    ) -> None:
        self.metadata = metadata
        self.predict_fn = predict_fn
        self.threshold = threshold

    def baseline(self, customer_id: str, customer_name: str) -> PredictionOutput:
        return PredictionOutput(
            customer_id=customer_id,
            customer_name=customer_name,
            expected_spend=float(self.metadata.average_spend),
            purchase_frequency=float(self.metadata.average_frequency),
            is_baseline=True,
        )

    def arbitrate(
        self,
        request: Union[str, PredictionRequest],
        history: Optional[Sequence[FeatureRecord]],
    ) -> PredictionOutput:
        """Return the prediction for ``request`` given its stored history."""
        request = PredictionRequest.coerce(request)

        if not history:
            logger.debug(f"No history for customer {request.customer_id}; using baseline")
            return self.baseline(request.customer_id, request.customer_name or "")

        latest = history[-1]
        customer_name = (
            request.customer_name
            if request.customer_name is not None
            else latest.customer_name
        )
        raw_spend, raw_frequency = self.predict_fn(latest)

        if raw_spend < self.threshold and raw_frequency < self.threshold:
            logger.warning(
                f"Model output for customer {request.customer_id} below threshold "
                f"(spend={raw_spend:.4f}, frequency={raw_frequency:.4f}); using baseline"
            )
            return self.baseline(request.customer_id, customer_name)

        return PredictionOutput(
            customer_id=request.customer_id,
            customer_name=customer_name,
            expected_spend=float(raw_spend),
            purchase_frequency=float(raw_frequency),
            is_baseline=False,
        )

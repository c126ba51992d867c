"""Compare predictions with the purchases that actually happened.

After a prediction window has elapsed, the purchases made during it are the
ground truth for the predictions issued at its start. This module lines the
two up per customer and summarises the errors.

Target use: monitoring a deployed model, and comparing baseline fallbacks with
model predictions (``baseline_share``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

import numpy as np

from customer_patronage.errors import InvalidInputError
from customer_patronage.foundation.purchases import (
    PurchaseEvent,
    require_positive_window,
)
from customer_patronage.prediction.arbiter import PredictionOutput

CURRENCY = Decimal("0.01")


@dataclass(frozen=True)
class DiscrepancyResult:
    """Actual vs predicted spend and frequency for one customer.

    Discrepancies are ``actual - predicted``; positive values mean the
    customer bought more than predicted.
    """

    customer_id: str
    customer_name: str
    actual_spend: Decimal
    predicted_spend: Decimal
    discrepancy_spend: Decimal
    actual_frequency: float
    predicted_frequency: float
    discrepancy_frequency: float
    is_baseline: bool


@dataclass(frozen=True)
class DiscrepancySummary:
    """Aggregate error metrics over a set of discrepancies.

    Attributes
    ----------
    spend_mae, spend_rmse:
        Mean absolute / root mean squared spend error
    frequency_mae, frequency_rmse:
        Same for purchase frequency
    baseline_share:
        Fraction of predictions that were baseline fallbacks
    sample_size:
        Number of customers compared
    """

    spend_mae: Decimal
    spend_rmse: Decimal
    frequency_mae: float
    frequency_rmse: float
    baseline_share: float
    sample_size: int


def compute_discrepancies(
    predictions: Sequence[PredictionOutput],
    actual_events: Sequence[PurchaseEvent],
    window_months: int,
) -> list[DiscrepancyResult]:
    """Pair each prediction with the customer's realised purchases.

    Parameters
    ----------
    predictions:
        Outputs issued at the start of the window.
    actual_events:
        Purchases made during the window. Customers without purchases count
        as zero spend and zero frequency.
    window_months:
        Length of the window, used to turn purchase counts into frequency.
    """
    require_positive_window(window_months)

    spend: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for event in actual_events:
        spend[event.customer_id] = spend.get(event.customer_id, Decimal("0")) + event.spend
        counts[event.customer_id] = counts.get(event.customer_id, 0) + 1

    results: list[DiscrepancyResult] = []
    for prediction in predictions:
        actual_spend = spend.get(prediction.customer_id, Decimal("0"))
        actual_frequency = counts.get(prediction.customer_id, 0) / window_months
        predicted_spend = Decimal(str(prediction.expected_spend)).quantize(CURRENCY)
        results.append(
            DiscrepancyResult(
                customer_id=prediction.customer_id,
                customer_name=prediction.customer_name,
                actual_spend=actual_spend,
                predicted_spend=predicted_spend,
                discrepancy_spend=actual_spend - predicted_spend,
                actual_frequency=actual_frequency,
                predicted_frequency=prediction.purchase_frequency,
                discrepancy_frequency=actual_frequency - prediction.purchase_frequency,
                is_baseline=prediction.is_baseline,
            )
        )
    return results


def summarise_discrepancies(results: Sequence[DiscrepancyResult]) -> DiscrepancySummary:
    """Compute MAE/RMSE for spend and frequency.

    Raises
    ------
    InvalidInputError:
        If ``results`` is empty.
    """
    if not results:
        raise InvalidInputError("Cannot summarise an empty set of discrepancies")

    spend_errors = np.array([float(r.discrepancy_spend) for r in results])
    frequency_errors = np.array([r.discrepancy_frequency for r in results])

    return DiscrepancySummary(
        spend_mae=Decimal(str(np.mean(np.abs(spend_errors)))).quantize(CURRENCY),
        spend_rmse=Decimal(str(np.sqrt(np.mean(spend_errors**2)))).quantize(CURRENCY),
        frequency_mae=float(np.mean(np.abs(frequency_errors))),
        frequency_rmse=float(np.sqrt(np.mean(frequency_errors**2))),
        baseline_share=sum(1 for r in results if r.is_baseline) / len(results),
        sample_size=len(results),
    )

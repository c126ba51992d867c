"""Assemble labeled training data, baseline metadata and history snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import pandas as pd

from customer_patronage.features.baseline import ModelMetadata, calculate_baseline
from customer_patronage.features.window import (
    FeatureRecord,
    WindowFeatureExtractor,
    records_to_frame,
)
from customer_patronage.foundation.purchases import (
    PurchaseEvent,
    index_purchase_history,
    require_positive_window,
    require_purchases,
)

logger = logging.getLogger(__name__)

#: Pure predicate deciding whether a purchase takes part in training.
RowFilter = Callable[[PurchaseEvent], bool]


@dataclass
class TrainingSet:
    """Everything one training run derives from raw purchases.

    Attributes
    ----------
    window_months:
        Prediction window the records were labeled with
    records:
        All feature records, customers in first-seen order and each
        customer's records in purchase order
    metadata:
        Baseline averages over the filtered purchases
    history:
        Customer id to that customer's records. Customers whose purchases
        produced no record are absent.
    purchase_count:
        Purchases left after filtering
    """

    window_months: int
    records: list[FeatureRecord]
    metadata: ModelMetadata
    history: dict[str, list[FeatureRecord]] = field(default_factory=dict)
    purchase_count: int = 0

    def to_frame(self) -> pd.DataFrame:
        """Return the labeled dataset as a DataFrame for model fitting."""
        return records_to_frame(self.records)


class TrainingSetBuilder:
    """Turn raw purchases into a labeled training set.

    The steps run in a fixed order: input validation, optional row
    filtering, baseline statistics, history indexing, then per-customer
    window feature extraction.
    """

    def __init__(self, window_months: int) -> None:
        self.window_months = require_positive_window(window_months)

    def build(
        self,
        events: Sequence[PurchaseEvent] | None,
        row_filter: Optional[RowFilter] = None,
    ) -> TrainingSet:
        """Build the training set.

        Raises
        ------
        InvalidInputError:
            If ``events`` is None or empty.
        EmptyDatasetError:
            If ``row_filter`` rejects every purchase.
        """
        require_purchases(events)

        if row_filter is not None:
            filtered = [event for event in events if row_filter(event)]
            logger.info(
                f"Row filter kept {len(filtered)} of {len(events)} purchases"
            )
        else:
            filtered = list(events)

        metadata = calculate_baseline(filtered, self.window_months)
        histories = index_purchase_history(filtered, self.window_months)

        records: list[FeatureRecord] = []
        snapshot: dict[str, list[FeatureRecord]] = {}
        for customer_id, purchases in histories.items():
            customer_records = WindowFeatureExtractor(purchases, self.window_months).records()
            if customer_records:
                snapshot[customer_id] = customer_records
                records.extend(customer_records)
            logger.debug(
                f"Customer {customer_id}: {len(purchases)} purchases -> "
                f"{len(customer_records)} feature records"
            )

        skipped = len(histories) - len(snapshot)
        if skipped:
            logger.warning(
                f"{skipped} customers had no purchase followed by another within "
                f"{self.window_months} months and are left out of the history snapshot"
            )
        dropped = len(filtered) - len(records)
        logger.info(
            f"Built {len(records)} feature records for {len(snapshot)} of "
            f"{len(histories)} customers (window_months={self.window_months}); "
            f"{dropped} purchases had no later purchase inside the window"
        )
        return TrainingSet(
            window_months=self.window_months,
            records=records,
            metadata=metadata,
            history=snapshot,
            purchase_count=len(filtered),
        )

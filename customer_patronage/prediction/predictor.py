"""Prediction entrypoint: customer ids in, arbitrated predictions out."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Optional, Sequence, Union

from customer_patronage.errors import InvalidInputError
from customer_patronage.models.regression import predict_record
from customer_patronage.persistence.store import LoadedArtifacts, ModelStore
from customer_patronage.prediction.arbiter import (
    COLD_START_THRESHOLD,
    PredictionArbiter,
    PredictionOutput,
    PredictionRequest,
)

logger = logging.getLogger(__name__)

RequestLike = Union[str, PredictionRequest]


class Predictor:
    """Load a model namespace once per batch and predict for each customer.

    Examples
    --------
    >>> store = ModelStore("customer-patronage")
    >>> predictor = Predictor(store)
    >>> outputs = predictor.predict_customers(["C1", "C2"], "retail", 3)
    >>> [output.is_baseline for output in outputs]
    [False, True]
    """

    def __init__(self, store: ModelStore, threshold: float = COLD_START_THRESHOLD) -> None:
        self.store = store
        self.threshold = threshold

    def _arbiter(self, artifacts: LoadedArtifacts) -> PredictionArbiter:
        return PredictionArbiter(
            metadata=artifacts.metadata,
            predict_fn=partial(predict_record, artifacts.model),
            threshold=self.threshold,
        )

    def predict_customers(
        self,
        requests: Sequence[RequestLike] | None,
        model_name: str,
        window_months: int,
        max_workers: Optional[int] = None,
    ) -> list[PredictionOutput]:
        """Predict for every request, in request order.

        Parameters
        ----------
        requests:
            Customer ids or :class:`PredictionRequest` objects.
        model_name, window_months:
            Key of the model namespace to load.
        max_workers:
            With more than one worker, customers are predicted concurrently
            on a thread pool. Output order still follows ``requests``.

        Raises
        ------
        InvalidInputError:
            If ``requests`` is None or empty. Raised before loading anything.
        ArtifactNotFoundError:
            If the model, metadata or history artifact is missing.
        """
        if not requests:
            raise InvalidInputError("Customer id batch cannot be None or empty")
        coerced = [PredictionRequest.coerce(request) for request in requests]

        artifacts = self.store.load(model_name, window_months)
        arbiter = self._arbiter(artifacts)

        def predict_one(request: PredictionRequest) -> PredictionOutput:
            return arbiter.arbitrate(request, artifacts.history.get(request.customer_id))

        if max_workers is not None and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outputs = list(pool.map(predict_one, coerced))
        else:
            outputs = [predict_one(request) for request in coerced]

        baseline_count = sum(1 for output in outputs if output.is_baseline)
        logger.info(
            f"Predicted {len(outputs)} customers with model '{model_name}' "
            f"(window_months={window_months}); {baseline_count} used the baseline"
        )
        return outputs

    def predict_customer(
        self, request: RequestLike, model_name: str, window_months: int
    ) -> PredictionOutput:
        """Predict for a single customer."""
        return self.predict_customers([request], model_name, window_months)[0]

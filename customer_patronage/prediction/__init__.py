"""Prediction arbitration and the prediction entrypoint."""

from customer_patronage.prediction.arbiter import (
    COLD_START_THRESHOLD,
    PredictionArbiter,
    PredictionOutput,
    PredictionRequest,
)
from customer_patronage.prediction.predictor import Predictor

__all__ = [
    "COLD_START_THRESHOLD",
    "PredictionArbiter",
    "PredictionOutput",
    "PredictionRequest",
    "Predictor",
]

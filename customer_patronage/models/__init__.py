"""Regression models consumed by the training and prediction pipelines."""

from customer_patronage.models.regression import (
    ModelHandle,
    RegressionConfig,
    fit_model,
    predict_frame,
    predict_record,
)

__all__ = [
    "ModelHandle",
    "RegressionConfig",
    "fit_model",
    "predict_frame",
    "predict_record",
]

"""Spend and frequency regressors backed by scikit-learn.

The pipeline treats the fitting algorithm as an external capability: the
training set goes in, an opaque :class:`ModelHandle` comes out, and the handle
turns a single :class:`FeatureRecord` into ``(expected_spend,
purchase_frequency)``. Two independent regressors are fitted, one per target,
on the same feature columns.

No fitting state is shared between calls. Everything that influences a fit
lives in the :class:`RegressionConfig` passed to :func:`fit_model`, and the
handle keeps a copy of that config so prediction needs nothing else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import pandas as pd
from sklearn.base import RegressorMixin
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.linear_model import LinearRegression, SGDRegressor
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

from customer_patronage.features.window import (
    FEATURE_COLUMNS,
    TARGET_COLUMNS,
    FeatureRecord,
)

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("sgd", "linear", "gradient_boosting")


@dataclass(frozen=True)
class RegressionConfig:
    """Configuration for fitting the spend and frequency regressors.

    Attributes
    ----------
    method:
        'sgd' for a scaled stochastic-gradient linear model, 'linear' for
        ordinary least squares, 'gradient_boosting' for boosted trees.
    max_iter:
        Iteration cap for 'sgd', boosting rounds for 'gradient_boosting'
    random_seed:
        Random seed for reproducibility (ignored by 'linear')
    """

    method: str = "sgd"
    max_iter: int = 100
    random_seed: int = 42

    def __post_init__(self) -> None:
        if self.method not in SUPPORTED_METHODS:
            raise ValueError(
                f"Invalid fitting method: {self.method}. "
                f"Must be one of {', '.join(SUPPORTED_METHODS)}."
            )
        if self.max_iter <= 0:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}")


@dataclass(frozen=True)
class ModelHandle:
    """Fitted regressors plus what is needed to use them."""

    spend_model: RegressorMixin
    frequency_model: RegressorMixin
    config: RegressionConfig
    feature_columns: tuple[str, ...]
    trained_at: str
    training_rows: int


def _build_estimator(config: RegressionConfig) -> RegressorMixin:
    if config.method == "sgd":
        return make_pipeline(
            StandardScaler(),
            SGDRegressor(max_iter=config.max_iter, random_state=config.random_seed),
        )
    if config.method == "linear":
        return LinearRegression()
    return GradientBoostingRegressor(
        n_estimators=config.max_iter, random_state=config.random_seed
    )


def _validate_training_frame(frame: pd.DataFrame) -> None:
    required_cols = set(FEATURE_COLUMNS) | set(TARGET_COLUMNS)
    if not required_cols.issubset(frame.columns):
        missing = required_cols - set(frame.columns)
        raise ValueError(
            f"Training data missing required columns: {missing}. "
            f"Expected columns: {required_cols}"
        )
    if frame.empty:
        raise ValueError(
            "Cannot fit regressors on an empty training set. "
            "No customer had a purchase followed by another inside the window."
        )
    for col in (*FEATURE_COLUMNS, *TARGET_COLUMNS):
        if frame[col].isna().any():
            raise ValueError(f"{col} contains missing values")


def fit_model(frame: pd.DataFrame, config: RegressionConfig) -> ModelHandle:
    """Fit spend and frequency regressors on labeled feature records.

    Parameters
    ----------
    frame:
        Output of :meth:`TrainingSet.to_frame`, one row per feature record.
    config:
        Fitting configuration.

    Raises
    ------
    ValueError:
        If columns are missing, labels are missing, or the frame is empty.
    """
    _validate_training_frame(frame)

    features = frame[list(FEATURE_COLUMNS)].astype(float)
    spend_model = _build_estimator(config)
    spend_model.fit(features, frame["expected_spend"].astype(float))
    frequency_model = _build_estimator(config)
    frequency_model.fit(features, frame["purchase_frequency"].astype(float))

    logger.info(f"Fitted '{config.method}' regressors on {len(frame)} feature records")
    return ModelHandle(
        spend_model=spend_model,
        frequency_model=frequency_model,
        config=config,
        feature_columns=FEATURE_COLUMNS,
        trained_at=datetime.now(timezone.utc).isoformat(),
        training_rows=len(frame),
    )


def predict_frame(handle: ModelHandle, frame: pd.DataFrame) -> pd.DataFrame:
    """Predict both targets for every row of ``frame``.

    Returns a DataFrame with ``customer_id`` (when present), ``expected_spend``
    and ``purchase_frequency``. Raw outputs are returned as-is; negative or
    near-zero values are handled by the prediction arbiter.
    """
    missing = set(handle.feature_columns) - set(frame.columns)
    if missing:
        raise ValueError(f"Prediction data missing required columns: {missing}")

    if frame.empty:
        return pd.DataFrame(columns=["customer_id", *TARGET_COLUMNS])

    features = frame[list(handle.feature_columns)].astype(float)
    result = pd.DataFrame(
        {
            "expected_spend": handle.spend_model.predict(features),
            "purchase_frequency": handle.frequency_model.predict(features),
        },
        index=frame.index,
    )
    if "customer_id" in frame.columns:
        result.insert(0, "customer_id", frame["customer_id"].values)
    return result


def predict_record(handle: ModelHandle, record: FeatureRecord) -> tuple[float, float]:
    """Predict ``(expected_spend, purchase_frequency)`` for one record."""
    row = pd.DataFrame(
        [[getattr(record, col) for col in handle.feature_columns]],
        columns=list(handle.feature_columns),
    )
    prediction = predict_frame(handle, row).iloc[0]
    return float(prediction["expected_spend"]), float(prediction["purchase_frequency"])

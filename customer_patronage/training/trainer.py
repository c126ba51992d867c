"""Training entrypoint: purchases in, persisted model namespace out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from customer_patronage.errors import PersistenceFailedError, TrainingFailedError
from customer_patronage.features.baseline import ModelMetadata
from customer_patronage.foundation.purchases import (
    PurchaseEvent,
    require_positive_window,
    require_purchases,
)
from customer_patronage.models.regression import ModelHandle, RegressionConfig, fit_model
from customer_patronage.persistence.store import ArtifactLookup, ModelStore
from customer_patronage.training.builder import RowFilter, TrainingSetBuilder

logger = logging.getLogger(__name__)


class TrainingObserver(Protocol):
    """Receives progress notifications from :meth:`Trainer.train`.

    Stages are reported in order: ``"building"``, ``"fitting"``,
    ``"saving"``, ``"completed"``. Observers must not raise.
    """

    def on_stage(self, stage: str, details: dict[str, Any]) -> None: ...


class NullObserver:
    def on_stage(self, stage: str, details: dict[str, Any]) -> None:
        return None


class LoggingObserver:
    """Forward training progress to a logger."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.log = log or logger
        self.level = level

    def on_stage(self, stage: str, details: dict[str, Any]) -> None:
        summary = ", ".join(f"{key}={value}" for key, value in details.items())
        self.log.log(self.level, f"Training stage '{stage}' {summary}".rstrip())


@dataclass(frozen=True)
class TrainingResult:
    """Outcome of a successful training run."""

    model_name: str
    window_months: int
    model: ModelHandle
    metadata: ModelMetadata
    customer_count: int
    record_count: int
    artifacts: ArtifactLookup


class Trainer:
    """Build features, fit regressors and persist the three artifacts.

    A run either writes a complete namespace or fails; there is no partial
    training and nothing is retried.
    """

    def __init__(self, store: ModelStore, config: RegressionConfig | None = None) -> None:
        self.store = store
        self.config = config or RegressionConfig()

    def train(
        self,
        events: Sequence[PurchaseEvent] | None,
        model_name: str,
        window_months: int,
        row_filter: Optional[RowFilter] = None,
        observer: Optional[TrainingObserver] = None,
    ) -> TrainingResult:
        """Train and persist a model for ``(model_name, window_months)``.

        Raises
        ------
        InvalidInputError:
            If purchases are missing or empty, or the key is invalid. Raised
            before any file is touched.
        EmptyDatasetError:
            If ``row_filter`` removes every purchase.
        TrainingFailedError:
            If fitting the regressors fails.
        PersistenceFailedError:
            If writing the artifacts fails.
        """
        observer = observer or NullObserver()
        require_purchases(events)
        require_positive_window(window_months)
        self.store.namespace(model_name, window_months)

        observer.on_stage("building", {"purchases": len(events)})
        training_set = TrainingSetBuilder(window_months).build(events, row_filter=row_filter)

        observer.on_stage(
            "fitting",
            {"records": len(training_set.records), "method": self.config.method},
        )
        try:
            model = fit_model(training_set.to_frame(), self.config)
        except Exception as exc:
            logger.error(f"Fitting model '{model_name}' failed: {exc}")
            raise TrainingFailedError(
                f"Fitting model '{model_name}' (window_months={window_months}) failed",
                exc,
            ) from exc

        observer.on_stage("saving", {"customers": len(training_set.history)})
        try:
            artifacts = self.store.save(
                model_name,
                window_months,
                model=model,
                metadata=training_set.metadata,
                history=training_set.history,
            )
        except Exception as exc:
            logger.error(f"Saving model '{model_name}' failed: {exc}")
            raise PersistenceFailedError(
                f"Saving model '{model_name}' (window_months={window_months}) failed",
                exc,
            ) from exc

        result = TrainingResult(
            model_name=model_name,
            window_months=window_months,
            model=model,
            metadata=training_set.metadata,
            customer_count=len(training_set.history),
            record_count=len(training_set.records),
            artifacts=artifacts,
        )
        observer.on_stage(
            "completed",
            {"customers": result.customer_count, "records": result.record_count},
        )
        return result

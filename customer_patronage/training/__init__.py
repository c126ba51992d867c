"""Training set assembly and the training entrypoint."""

from customer_patronage.training.builder import RowFilter, TrainingSet, TrainingSetBuilder
from customer_patronage.training.trainer import (
    LoggingObserver,
    NullObserver,
    Trainer,
    TrainingObserver,
    TrainingResult,
)

__all__ = [
    "LoggingObserver",
    "NullObserver",
    "RowFilter",
    "Trainer",
    "TrainingObserver",
    "TrainingResult",
    "TrainingSet",
    "TrainingSetBuilder",
]

"""Customer patronage: purchase-window features and cold-start aware predictions.

Raw purchase events are turned into sliding-window feature records labeled with
the spend realised over the following months. Regressors fitted on those
records predict spend and purchase frequency, and the prediction arbiter falls
back to dataset-wide baselines for customers without history or with
near-zero model output.
"""

from customer_patronage.errors import (
    ArtifactKind,
    ArtifactNotFoundError,
    CustomerPatronageError,
    EmptyDatasetError,
    InvalidInputError,
    PersistenceFailedError,
    TrainingFailedError,
)
from customer_patronage.features import (
    FeatureRecord,
    ModelMetadata,
    WindowFeatureExtractor,
    calculate_baseline,
)
from customer_patronage.foundation import PurchaseEvent, index_purchase_history
from customer_patronage.persistence import ModelStore
from customer_patronage.prediction import (
    PredictionArbiter,
    PredictionOutput,
    PredictionRequest,
    Predictor,
)
from customer_patronage.training import Trainer, TrainingSet, TrainingSetBuilder

__all__ = [
    "ArtifactKind",
    "ArtifactNotFoundError",
    "CustomerPatronageError",
    "EmptyDatasetError",
    "FeatureRecord",
    "InvalidInputError",
    "ModelMetadata",
    "ModelStore",
    "PersistenceFailedError",
    "PredictionArbiter",
    "PredictionOutput",
    "PredictionRequest",
    "Predictor",
    "PurchaseEvent",
    "Trainer",
    "TrainingFailedError",
    "TrainingSet",
    "TrainingSetBuilder",
    "WindowFeatureExtractor",
    "calculate_baseline",
    "index_purchase_history",
]

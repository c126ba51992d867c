"""Feature engineering: sliding-window records and baseline statistics."""

from customer_patronage.features.baseline import ModelMetadata, calculate_baseline
from customer_patronage.features.window import (
    FEATURE_COLUMNS,
    TARGET_COLUMNS,
    FeatureRecord,
    WindowFeatureExtractor,
    extract_latest_record,
    records_to_frame,
    window_end,
)

__all__ = [
    "FEATURE_COLUMNS",
    "TARGET_COLUMNS",
    "FeatureRecord",
    "ModelMetadata",
    "WindowFeatureExtractor",
    "calculate_baseline",
    "extract_latest_record",
    "records_to_frame",
    "window_end",
]

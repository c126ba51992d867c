"""Prediction quality checks against realised purchases."""

from customer_patronage.evaluation.discrepancy import (
    DiscrepancyResult,
    DiscrepancySummary,
    compute_discrepancies,
    summarise_discrepancies,
)

__all__ = [
    "DiscrepancyResult",
    "DiscrepancySummary",
    "compute_discrepancies",
    "summarise_discrepancies",
]

"""Synthetic purchase histories for demos and tests.

Produces realistic-but-fake purchase events so the training and prediction
pipelines can be exercised without production data.
"""

from .generator import PurchaseScenario, generate_purchase_events

__all__ = [
    "PurchaseScenario",
    "generate_purchase_events",
]

"""Dataset-wide fallback statistics used for cold-start predictions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Sequence

from customer_patronage.errors import EmptyDatasetError, InvalidInputError
from customer_patronage.foundation.purchases import (
    PurchaseEvent,
    require_positive_window,
)


@dataclass(frozen=True)
class ModelMetadata:
    """Baseline averages stored next to a trained model.

    Attributes
    ----------
    average_spend:
        Mean spend per purchase over the training purchases
    average_frequency:
        Mean over customers of ``purchase count / window_months``
    """

    average_spend: Decimal
    average_frequency: float

    def as_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable dict.

        ``average_spend`` is written as a string so the Decimal survives the
        round trip exactly; ``average_frequency`` uses the JSON float repr,
        which Python reads back bit-for-bit.
        """
        return {
            "average_spend": str(self.average_spend),
            "average_frequency": self.average_frequency,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> ModelMetadata:
        try:
            return cls(
                average_spend=Decimal(str(payload["average_spend"])),
                average_frequency=float(payload["average_frequency"]),
            )
        except KeyError as exc:
            raise InvalidInputError(
                f"Model metadata missing field {exc.args[0]}"
            ) from exc

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> ModelMetadata:
        return cls.from_dict(json.loads(text))


def calculate_baseline(
    events: Sequence[PurchaseEvent], window_months: int
) -> ModelMetadata:
    """Compute fallback averages over a (possibly filtered) purchase set.

    Parameters
    ----------
    events:
        All purchases used for training, in any order.
    window_months:
        Window used to normalise each customer's purchase count.

    Returns
    -------
    ModelMetadata
        ``average_spend`` is the plain mean over purchases, so it does not
        depend on how purchases are spread across customers.

    Raises
    ------
    EmptyDatasetError:
        If ``events`` is empty.
    """
    require_positive_window(window_months)
    if not events:
        raise EmptyDatasetError(
            "Cannot compute baseline averages over an empty purchase set"
        )

    total_spend = sum((event.spend for event in events), Decimal("0"))
    average_spend = total_spend / Decimal(len(events))

    counts: dict[str, int] = {}
    for event in events:
        counts[event.customer_id] = counts.get(event.customer_id, 0) + 1
    frequencies = [count / window_months for count in counts.values()]
    average_frequency = sum(frequencies) / len(frequencies)

    return ModelMetadata(
        average_spend=average_spend,
        average_frequency=average_frequency,
    )

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
import math
import random
from typing import List, Optional

from customer_patronage.foundation.purchases import PurchaseEvent

_FIRST_NAMES = (
    "Alice", "Bruno", "Chen", "Dana", "Emeka", "Farah", "Goran", "Hana",
    "Ivan", "Jia", "Kofi", "Lena", "Mateo", "Nadia", "Omar", "Priya",
)


@dataclass(frozen=True)
class PurchaseScenario:
    """Knobs for synthetic purchase histories.

    Attributes
    ----------
    orders_per_month: Average purchases per active customer per month.
    churn_hazard: Monthly probability that an active customer stops buying.
    mean_spend: Average spend per purchase.
    spend_variability: Coefficient in (0, 1] controlling spend variance.
    seed: Optional RNG seed for reproducibility.
    """

    orders_per_month: float = 1.0
    churn_hazard: float = 0.05
    mean_spend: float = 40.0
    spend_variability: float = 0.4
    seed: Optional[int] = None


def _month_range(start: date, end: date) -> List[date]:
    cur = date(start.year, start.month, 1)
    last = date(end.year, end.month, 1)
    out: List[date] = []
    while cur <= last:
        out.append(cur)
        if cur.month == 12:
            cur = date(cur.year + 1, 1, 1)
        else:
            cur = date(cur.year, cur.month + 1, 1)
    return out


def _poisson(rng: random.Random, lam: float) -> int:
    # Knuth's algorithm; fine for the small rates used here
    if lam <= 0:
        return 0
    L = math.exp(-lam)
    k = 0
    p = 1.0
    while p > L:
        k += 1
        p *= rng.random()
    return k - 1


def _sample_spend(rng: random.Random, mean: float, variability: float) -> Decimal:
    sigma = min(max(variability, 0.01), 1.0)
    mu = math.log(max(mean, 0.01)) - 0.5 * sigma * sigma
    amount = max(math.exp(rng.normalvariate(mu, sigma)), 0.01)
    return Decimal(str(round(amount, 2)))


def generate_purchase_events(
    n_customers: int,
    start: date,
    end: date,
    *,
    scenario: Optional[PurchaseScenario] = None,
) -> List[PurchaseEvent]:
    """Generate purchases for ``n_customers`` between ``start`` and ``end``.

    Customers are acquired uniformly over the range, buy a Poisson number of
    times each month while active, and churn with a constant monthly hazard.
    Output is sorted by customer id then purchase date.
    """

    if n_customers <= 0:
        return []
    if start > end:
        raise ValueError("start date must be <= end date")
    scenario = scenario or PurchaseScenario()
    rng = random.Random(scenario.seed)

    total_days = (end - start).days + 1
    acquisition = {
        f"C-{i + 1}": start + timedelta(days=rng.randrange(total_days))
        for i in range(n_customers)
    }
    names = {
        customer_id: f"{_FIRST_NAMES[i % len(_FIRST_NAMES)]} {i + 1}"
        for i, customer_id in enumerate(acquisition)
    }
    active = set(acquisition)

    events: List[PurchaseEvent] = []
    for month_start in _month_range(start, end):
        for customer_id in sorted(active):
            acquired = acquisition[customer_id]
            if (acquired.year, acquired.month) > (month_start.year, month_start.month):
                continue
            if rng.random() < scenario.churn_hazard:
                active.discard(customer_id)
                continue
            for _ in range(_poisson(rng, scenario.orders_per_month)):
                day = 1 + rng.randrange(28)
                purchase_date = datetime(
                    month_start.year, month_start.month, day, 9 + rng.randrange(10)
                )
                if purchase_date.date() < acquired or purchase_date.date() > end:
                    continue
                events.append(
                    PurchaseEvent(
                        customer_id=customer_id,
                        customer_name=names[customer_id],
                        purchase_date=purchase_date,
                        spend=_sample_spend(
                            rng, scenario.mean_spend, scenario.spend_variability
                        ),
                    )
                )

    events.sort(key=lambda event: (event.customer_id, event.purchase_date))
    return events

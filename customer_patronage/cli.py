"""Command line entry points for training and scoring purchase models."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from customer_patronage.config import PatronageSettings
from customer_patronage.errors import CustomerPatronageError, InvalidInputError
from customer_patronage.foundation.purchases import PurchaseEvent, load_purchase_events
from customer_patronage.models.regression import SUPPORTED_METHODS, RegressionConfig
from customer_patronage.persistence.store import ModelStore
from customer_patronage.prediction.predictor import Predictor
from customer_patronage.training.trainer import LoggingObserver, Trainer

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


@dataclass(frozen=True)
class PurchaseFilter:
    """Row filter built from command line options.

    A purchase is kept when its spend is at least ``min_spend`` and it was
    made on or after ``since``. Unset bounds are ignored.
    """

    min_spend: Optional[Decimal] = None
    since: Optional[datetime] = None

    def __call__(self, event: PurchaseEvent) -> bool:
        if self.min_spend is not None and event.spend < self.min_spend:
            return False
        if self.since is not None:
            if (self.since.tzinfo is None) != (event.purchase_date.tzinfo is None):
                raise InvalidInputError(
                    f"--since {self.since.isoformat()} and purchase dates of customer "
                    f"{event.customer_id} must both be timezone-naive or both be aware"
                )
            if event.purchase_date < self.since:
                return False
        return True

    @property
    def is_active(self) -> bool:
        return self.min_spend is not None or self.since is not None


def _decimal_arg(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise argparse.ArgumentTypeError(f"amount must be a non-negative number: {value!r}")
    return amount


def _date_arg(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date: {value!r} (expected ISO format: YYYY-MM-DD)"
        )


def _load_purchases(path: Path) -> list[PurchaseEvent]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError("Expected a list of purchases in the input file")
    return load_purchase_events(payload)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--model-name", required=True, help="Name of the model namespace")
    parser.add_argument(
        "--window-months",
        type=int,
        required=True,
        help="Prediction window in whole months",
    )
    parser.add_argument(
        "--store",
        type=Path,
        help="Model store directory (defaults to $CUSTOMER_PATRONAGE_HOME or ./customer-patronage)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the root log level",
    )


def _apply_log_level(args: argparse.Namespace) -> None:
    if args.log_level:
        logging.getLogger().setLevel(args.log_level)


def _store(args: argparse.Namespace, settings: PatronageSettings) -> ModelStore:
    return ModelStore(args.store if args.store else settings.store_root)


def train_cli(argv: list[str] | None = None) -> int:
    """Train a model from a JSON file of purchases.

    Each purchase needs ``customer_id``, ``purchase_date`` (ISO-8601) and
    ``spend``; ``customer_name`` is optional.
    """
    parser = argparse.ArgumentParser(description="Train a purchase prediction model")
    parser.add_argument("input", type=Path, help="Path to JSON file with purchases")
    _add_common_arguments(parser)
    parser.add_argument(
        "--method",
        choices=SUPPORTED_METHODS,
        default="sgd",
        help="Regression method (default: sgd)",
    )
    parser.add_argument(
        "--min-spend",
        type=_decimal_arg,
        help="Ignore purchases below this amount",
    )
    parser.add_argument(
        "--since",
        type=_date_arg,
        help="Ignore purchases before this date (ISO format: YYYY-MM-DD)",
    )

    args = parser.parse_args(argv)
    _apply_log_level(args)
    settings = PatronageSettings.from_env()

    logger.info(f"Loading purchases from {args.input}")
    events = _load_purchases(args.input)
    if not events:
        logger.error("No purchases found in input file")
        return 1

    row_filter = PurchaseFilter(
        min_spend=args.min_spend,
        since=args.since,
    )

    trainer = Trainer(_store(args, settings), RegressionConfig(method=args.method))
    result = trainer.train(
        events,
        model_name=args.model_name,
        window_months=args.window_months,
        row_filter=row_filter if row_filter.is_active else None,
        observer=LoggingObserver(),
    )

    logger.info(
        f"Trained '{result.model_name}' on {result.record_count} records from "
        f"{result.customer_count} customers. Baseline: "
        f"spend={result.metadata.average_spend:.2f}, "
        f"frequency={result.metadata.average_frequency:.3f}"
    )
    return 0


def predict_cli(argv: list[str] | None = None) -> int:
    """Predict spend and frequency for customers and export them as CSV."""
    parser = argparse.ArgumentParser(description="Predict customer spend and frequency")
    _add_common_arguments(parser)
    parser.add_argument(
        "--customer-id",
        dest="customer_ids",
        action="append",
        required=True,
        help="Customer to predict for; repeat for several customers",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for the predictions CSV (defaults to stdout)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        help="Threads used for prediction (default: $CUSTOMER_PATRONAGE_MAX_WORKERS or 1)",
    )

    args = parser.parse_args(argv)
    _apply_log_level(args)
    settings = PatronageSettings.from_env()

    predictor = Predictor(_store(args, settings), threshold=settings.cold_start_threshold)
    outputs = predictor.predict_customers(
        args.customer_ids,
        model_name=args.model_name,
        window_months=args.window_months,
        max_workers=args.max_workers or settings.max_workers,
    )

    frame = pd.DataFrame([output.as_dict() for output in outputs])
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(args.output, index=False)
        logger.info(f"Predictions exported to {args.output}")
    else:  # stdout fallback enables piping in shell usage.
        frame.to_csv(sys.stdout, index=False)

    return 0


COMMANDS: dict[str, Any] = {
    "train": train_cli,
    "predict": predict_cli,
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in COMMANDS:
        print(
            f"usage: customer-patronage {{{','.join(sorted(COMMANDS))}}} [options]",
            file=sys.stderr,
        )
        return 2

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[argv[0]](argv[1:])
    except CustomerPatronageError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

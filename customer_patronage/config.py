"""Runtime settings with environment variable overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from customer_patronage.errors import InvalidInputError
from customer_patronage.prediction.arbiter import COLD_START_THRESHOLD

ENV_HOME = "CUSTOMER_PATRONAGE_HOME"
ENV_THRESHOLD = "CUSTOMER_PATRONAGE_COLD_START_THRESHOLD"
ENV_MAX_WORKERS = "CUSTOMER_PATRONAGE_MAX_WORKERS"

DEFAULT_STORE_DIRNAME = "customer-patronage"


@dataclass(frozen=True)
class PatronageSettings:
    """Settings shared by the CLI and library callers.

    Attributes
    ----------
    store_root:
        Directory holding one namespace per (model name, window)
    cold_start_threshold:
        Model outputs below this value (spend and frequency) fall back
        to the baseline
    max_workers:
        Threads used for batch prediction; 1 predicts sequentially
    """

    store_root: Path = Path(DEFAULT_STORE_DIRNAME)
    cold_start_threshold: float = COLD_START_THRESHOLD
    max_workers: int = 1

    def __post_init__(self) -> None:
        if self.cold_start_threshold < 0:
            raise InvalidInputError(
                f"cold_start_threshold cannot be negative, got {self.cold_start_threshold}"
            )
        if self.max_workers < 1:
            raise InvalidInputError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> PatronageSettings:
        env = os.environ if environ is None else environ
        try:
            return cls(
                store_root=Path(env.get(ENV_HOME) or DEFAULT_STORE_DIRNAME),
                cold_start_threshold=float(env.get(ENV_THRESHOLD, COLD_START_THRESHOLD)),
                max_workers=int(env.get(ENV_MAX_WORKERS, 1)),
            )
        except ValueError as exc:
            if isinstance(exc, InvalidInputError):
                raise
            raise InvalidInputError(f"Invalid environment setting: {exc}") from exc

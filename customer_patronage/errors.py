"""Exception hierarchy shared by the training and prediction pipelines."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ArtifactKind(str, Enum):
    """Artifacts persisted for every (model name, window) namespace."""

    MODEL = "model"
    METADATA = "metadata"
    HISTORY = "history"


class CustomerPatronageError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(CustomerPatronageError, ValueError):
    """Raised when purchase data or request arguments are missing or malformed."""


class EmptyDatasetError(CustomerPatronageError, ValueError):
    """Raised when baseline statistics are requested over zero purchases."""


class ArtifactNotFoundError(CustomerPatronageError):
    """Raised when the store has no artifact of the requested kind for a key."""

    def __init__(
        self,
        model_name: str,
        window_months: int,
        artifact: ArtifactKind,
        path: Path | None = None,
    ) -> None:
        self.model_name = model_name
        self.window_months = window_months
        self.artifact = artifact
        self.path = path
        location = f" at {path}" if path is not None else ""
        super().__init__(
            f"No {artifact.value} artifact for model '{model_name}' "
            f"(window_months={window_months}){location}"
        )


class _WrappedFailure(CustomerPatronageError):
    def __init__(self, message: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class TrainingFailedError(_WrappedFailure):
    """Raised when the external model fit fails; ``cause`` holds the original error."""


class PersistenceFailedError(_WrappedFailure):
    """Raised when writing artifacts fails; ``cause`` holds the original error."""

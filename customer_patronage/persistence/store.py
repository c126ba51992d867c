"""File-system store for trained models, baseline metadata and history snapshots.

Every trained model lives in its own namespace directory keyed by model name
and prediction window::

    <root>/<model_name>-months-window-<window_months>/
        model.joblib     fitted ModelHandle
        metadata.json    ModelMetadata (baseline averages)
        history.json     customer id -> chronological feature records

A save always replaces the whole namespace; artifacts from an earlier run are
never merged with new ones.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

import joblib

from customer_patronage.errors import (
    ArtifactKind,
    ArtifactNotFoundError,
    InvalidInputError,
)
from customer_patronage.features.baseline import ModelMetadata
from customer_patronage.features.window import FeatureRecord
from customer_patronage.foundation.purchases import require_positive_window
from customer_patronage.models.regression import ModelHandle

logger = logging.getLogger(__name__)

ARTIFACT_FILENAMES = {
    ArtifactKind.MODEL: "model.joblib",
    ArtifactKind.METADATA: "metadata.json",
    ArtifactKind.HISTORY: "history.json",
}

CustomerHistorySnapshot = dict[str, list[FeatureRecord]]


@dataclass(frozen=True)
class ArtifactLookup:
    """Where a namespace's artifacts live and which of them are absent."""

    model_name: str
    window_months: int
    paths: dict[ArtifactKind, Path]
    missing: tuple[ArtifactKind, ...]

    @property
    def complete(self) -> bool:
        return not self.missing

    def raise_for_missing(self) -> None:
        """Raise :class:`ArtifactNotFoundError` for the first absent artifact."""
        if self.missing:
            kind = self.missing[0]
            raise ArtifactNotFoundError(
                self.model_name, self.window_months, kind, self.paths[kind]
            )


@dataclass(frozen=True)
class LoadedArtifacts:
    """The three artifacts of one namespace, loaded and read-only."""

    model: ModelHandle
    metadata: ModelMetadata
    history: CustomerHistorySnapshot


def serialise_history(history: CustomerHistorySnapshot) -> dict[str, list[dict[str, object]]]:
    return {
        customer_id: [record.as_dict() for record in records]
        for customer_id, records in history.items()
    }


def deserialise_history(payload: dict[str, list[dict[str, object]]]) -> CustomerHistorySnapshot:
    return {
        str(customer_id): [FeatureRecord.from_dict(item) for item in records]
        for customer_id, records in payload.items()
    }


class ModelStore:
    """Save and load model namespaces under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def namespace(self, model_name: str, window_months: int) -> Path:
        if not model_name or not model_name.strip():
            raise InvalidInputError("model_name cannot be empty")
        if Path(model_name).name != model_name or model_name in {".", ".."}:
            raise InvalidInputError(
                f"model_name must be a plain name without path separators, got {model_name!r}"
            )
        require_positive_window(window_months)
        return self.root / f"{model_name}-months-window-{window_months}"

    def locate(self, model_name: str, window_months: int) -> ArtifactLookup:
        """Resolve artifact paths and report which ones do not exist."""
        directory = self.namespace(model_name, window_months)
        paths = {kind: directory / filename for kind, filename in ARTIFACT_FILENAMES.items()}
        missing = tuple(kind for kind, path in paths.items() if not path.is_file())
        return ArtifactLookup(
            model_name=model_name,
            window_months=window_months,
            paths=paths,
            missing=missing,
        )

    def save(
        self,
        model_name: str,
        window_months: int,
        model: ModelHandle,
        metadata: ModelMetadata,
        history: CustomerHistorySnapshot,
    ) -> ArtifactLookup:
        """Replace the namespace with freshly trained artifacts.

        Artifacts are written to a staging directory next to the namespace
        and swapped in only once all three are on disk. A failed save leaves
        the previous namespace untouched.
        """
        directory = self.namespace(model_name, window_months)
        staging = directory.with_name(f".{directory.name}.staging")
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)

        try:
            joblib.dump(model, staging / ARTIFACT_FILENAMES[ArtifactKind.MODEL])
            with open(
                staging / ARTIFACT_FILENAMES[ArtifactKind.METADATA], "w", encoding="utf-8"
            ) as fh:
                json.dump(metadata.as_dict(), fh, indent=2)
            with open(
                staging / ARTIFACT_FILENAMES[ArtifactKind.HISTORY], "w", encoding="utf-8"
            ) as fh:
                json.dump(serialise_history(history), fh)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        if directory.exists():
            logger.info(f"Removing previous artifacts in {directory}")
            shutil.rmtree(directory)
        staging.rename(directory)

        logger.info(
            f"Saved model '{model_name}' (window_months={window_months}) "
            f"with history for {len(history)} customers to {directory}"
        )
        return self.locate(model_name, window_months)

    def load(self, model_name: str, window_months: int) -> LoadedArtifacts:
        """Load all three artifacts of a namespace.

        Raises
        ------
        ArtifactNotFoundError:
            If any artifact is absent; the error names which one.
        """
        lookup = self.locate(model_name, window_months)
        lookup.raise_for_missing()

        model = joblib.load(lookup.paths[ArtifactKind.MODEL])
        with open(lookup.paths[ArtifactKind.METADATA], encoding="utf-8") as fh:
            metadata = ModelMetadata.from_dict(json.load(fh))
        with open(lookup.paths[ArtifactKind.HISTORY], encoding="utf-8") as fh:
            history = deserialise_history(json.load(fh))

        logger.debug(
            f"Loaded model '{model_name}' (window_months={window_months}) "
            f"with history for {len(history)} customers"
        )
        return LoadedArtifacts(model=model, metadata=metadata, history=history)

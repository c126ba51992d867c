"""Persistence of trained model namespaces."""

from customer_patronage.persistence.store import (
    ARTIFACT_FILENAMES,
    ArtifactLookup,
    CustomerHistorySnapshot,
    LoadedArtifacts,
    ModelStore,
)

__all__ = [
    "ARTIFACT_FILENAMES",
    "ArtifactLookup",
    "CustomerHistorySnapshot",
    "LoadedArtifacts",
    "ModelStore",
]

"""
Custom speaker names per transcript.

- backend: durable storage (in-memory or managed REST table).
- mutation: optimistic apply / write / rollback.
- store: local mapping used for display names and copy formatting.
"""
from __future__ import annotations

from speakerkit.labels.backend import (
    InMemoryLabelBackend,
    LabelBackend,
    LabelBackendError,
    SupabaseLabelBackend,
    create_label_backend,
)
from speakerkit.labels.mutation import MutationStatus, OptimisticMutation
from speakerkit.labels.store import SpeakerLabelStore

__all__ = [
    "InMemoryLabelBackend",
    "LabelBackend",
    "LabelBackendError",
    "MutationStatus",
    "OptimisticMutation",
    "SpeakerLabelStore",
    "SupabaseLabelBackend",
    "create_label_backend",
]

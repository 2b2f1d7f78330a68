"""
Session-scoped key-value store for editor state.

Holds what must survive a reload within one session: the locally edited transcript text,
the edit/view toggles, and whether the utterance fetch was already attempted. Keys are
namespaced per transcript id (or "draft" before the transcript is saved), so two open
transcripts never see each other's state.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from speakerkit.config import get_settings

DRAFT_KEY = "draft"


def editor_key(kind: str, transcription_id: str | None, prefix: str | None = None) -> str:
    """Namespaced key, e.g. transcription-speaker-abc or transcription-editor-mode-draft."""
    if prefix is None:
        prefix = get_settings().SESSION_KEY_PREFIX
    return f"{prefix}-{kind}-{transcription_id or DRAFT_KEY}"


class SessionStore(ABC):
    """Keyed get/set/remove capability; values must be JSON-compatible."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Remove key. Return True if it existed."""
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        ...


class InMemorySessionStore(SessionStore):
    """Process-wide dict store. Used by tests and single-process deployments."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data if data is not None else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> bool:
        if key in self._data:
            del self._data[key]
            return True
        return False

    def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]


# key -> JSON-compatible value, shared by every default-store user in this process
_session_data: dict[str, Any] = {}
_default_store = InMemorySessionStore(_session_data)


def get_session_store() -> SessionStore:
    """Return the process-wide default store."""
    return _default_store

"""Editor state types: view mode, reconciliation phase, and the snapshot handed to views."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from speakerkit.schemas.transcript import Utterance


class ViewMode(str, Enum):
    INTERACTIVE = "interactive"  # timestamped segments, custom names; needs real timestamps
    EDIT = "edit"  # plain text area


class EditorPhase(str, Enum):
    NO_DATA = "no_data"
    HAS_FLAT_TEXT = "has_flat_text"
    HAS_STRUCTURED_TEXT = "has_structured_text"


class EditorState(BaseModel):
    """Read-only snapshot of one transcript's editor."""

    transcription_id: str | None = None
    phase: EditorPhase = EditorPhase.NO_DATA
    local_text: str = ""
    utterances: list[Utterance] = []
    is_editing: bool = False
    view_mode: ViewMode | None = None
    has_timestamp_data: bool = False
    version: int = 0

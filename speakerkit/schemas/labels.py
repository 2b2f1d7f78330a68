"""Schema for one custom speaker name, unique per (transcription_id, original_speaker)."""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SpeakerLabel(BaseModel):
    """User-chosen display name for a raw speaker id within one transcript."""

    transcription_id: str
    original_speaker: str
    custom_name: str
    updated_at: datetime = Field(default_factory=_utc_now)

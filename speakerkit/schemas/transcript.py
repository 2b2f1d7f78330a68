"""
Transcript shapes exchanged with the transcription service.

An utterance is one continuous speech turn. `speaker` is the raw id exactly as the
upstream source produced it ("1", "SPEAKER_1", "speaker_1", "A"); it is never
normalized here. Times are milliseconds. Utterances are immutable: edits replace the
whole list.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Utterance(BaseModel):
    """One speaker-tagged speech turn (start/end in ms)."""

    model_config = ConfigDict(frozen=True)

    text: str
    start: float = Field(0.0, description="Start time in ms")
    end: float = Field(0.0, description="End time in ms")
    speaker: str = Field(..., description="Raw speaker id from the upstream source")
    confidence: float | None = Field(None, ge=0.0, le=1.0)

    @field_validator("speaker", mode="before")
    @classmethod
    def _speaker_as_str(cls, value: object) -> object:
        # Some sources deliver numeric speaker ids
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value


class TranscriptionResult(BaseModel):
    """Result delivered by the transcription source: flat text plus optional utterances."""

    text: str = ""
    utterances: list[Utterance] | None = None

    @property
    def has_utterances(self) -> bool:
        return bool(self.utterances)

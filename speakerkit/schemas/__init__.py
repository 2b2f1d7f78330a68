"""Pydantic schemas for transcripts and speaker labels."""
from speakerkit.schemas.labels import SpeakerLabel
from speakerkit.schemas.transcript import TranscriptionResult, Utterance

__all__ = [
    "SpeakerLabel",
    "TranscriptionResult",
    "Utterance",
]

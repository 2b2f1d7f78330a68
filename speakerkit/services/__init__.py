"""Remote services (transcription source on the managed backend)."""
from speakerkit.services.transcription_source import (
    SupabaseTranscriptionSource,
    TranscriptionSource,
    TranscriptionSourceError,
    create_transcription_source,
)

__all__ = [
    "SupabaseTranscriptionSource",
    "TranscriptionSource",
    "TranscriptionSourceError",
    "create_transcription_source",
]

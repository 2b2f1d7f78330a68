"""Transcript text handling: text <-> utterance codec, display formatting, interactive view helpers."""
from .codec import decode, encode, format_plain_text_as_speaker, has_speaker_prefix, speaker_number
from .formatter import format_with_speaker_names

__all__ = [
    "decode",
    "encode",
    "format_plain_text_as_speaker",
    "format_with_speaker_names",
    "has_speaker_prefix",
    "speaker_number",
]

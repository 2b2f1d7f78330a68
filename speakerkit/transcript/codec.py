"""
Text <-> utterance codec.

The editable transcript is flat text where every paragraph starts with "SPEAKER <id>:".
TV content labelled upstream by an LLM carries the speaker's name inside the utterance
text ("Juan: Buenas tardes"); for those the name is also kept as a parenthetical
annotation, "SPEAKER 1 (Juan): Juan: Buenas tardes", because consumers read either form.

Timestamps cannot be recovered from text: decoded utterances get placeholder start/end
values spaced PLACEHOLDER_SEGMENT_MS apart. They order the blocks, nothing more.

Everything here is pure and linear in the text length; the editor calls it on every
keystroke.
"""
from __future__ import annotations

import re
from typing import Iterable

from speakerkit.schemas.transcript import Utterance

PLACEHOLDER_SEGMENT_MS = 5000
UNKNOWN_SPEAKER = "0"
DEFAULT_SPEAKER = "1"

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_SPEAKER_PREFIX = re.compile(r"^SPEAKER (\d+|[A-Z])(?:\s*\(([^)]+)\))?:\s*")
_HAS_SPEAKER_LINE = re.compile(r"^SPEAKER (?:\d+|[A-Z])(?:\s*\([^)]*\))?:", re.MULTILINE)
_SPACED_ID = re.compile(r"^speaker\s+(\S+)$", re.IGNORECASE)
# "Name: dialogue" at the start of an utterance (TV labelling artifact)
_NAME_PREFIX = re.compile(r"^([A-Za-zÁ-ÿ\s]+):\s")


def speaker_number(raw_speaker: str) -> str:
    """
    Short form of a raw speaker id: "speaker_1" -> "1", "SPEAKER 2" -> "2".
    Ids without a separator ("3", "A") are returned unchanged.
    """
    raw_speaker = str(raw_speaker).strip()
    match = _SPACED_ID.match(raw_speaker)
    if match:
        return match.group(1)
    if "_" in raw_speaker:
        return raw_speaker.rpartition("_")[2]
    return raw_speaker


def has_speaker_prefix(text: str) -> bool:
    """True if any line starts with a SPEAKER label (with or without a name annotation)."""
    return bool(text) and _HAS_SPEAKER_LINE.search(text) is not None


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines; stripped, empty blocks dropped."""
    return [block.strip() for block in _PARAGRAPH_SPLIT.split(text or "") if block.strip()]


def encode_utterance(utterance: Utterance) -> str:
    number = speaker_number(utterance.speaker)
    text = utterance.text.strip()
    match = _NAME_PREFIX.match(text)
    if match:
        return f"SPEAKER {number} ({match.group(1).strip()}): {text}"
    return f"SPEAKER {number}: {text}"


def encode(utterances: Iterable[Utterance]) -> str:
    """Utterances -> annotated text, one paragraph per utterance in input order."""
    return "\n\n".join(encode_utterance(u) for u in utterances or ())


def decode(text: str) -> list[Utterance]:
    """
    Annotated text -> utterances.

    Blocks without a recognizable SPEAKER prefix get the sentinel speaker "0". A
    parenthetical name is moved back into the text as "Name: ..." unless already there.
    """
    utterances: list[Utterance] = []
    for index, block in enumerate(split_paragraphs(text)):
        match = _SPEAKER_PREFIX.match(block)
        if match:
            speaker = match.group(1)
            name = (match.group(2) or "").strip()
            body = block[match.end():].strip()
            if name and not body.startswith(f"{name}:"):
                body = f"{name}: {body}" if body else f"{name}:"
        else:
            speaker = UNKNOWN_SPEAKER
            body = block
        utterances.append(
            Utterance(
                text=body,
                speaker=speaker,
                start=index * PLACEHOLDER_SEGMENT_MS,
                end=(index + 1) * PLACEHOLDER_SEGMENT_MS,
            )
        )
    return utterances


def format_plain_text_as_speaker(text: str) -> str:
    """
    Attribute unstructured text to a single speaker.

    Text that already has SPEAKER lines is returned unchanged, so applying this twice is
    the same as applying it once. Empty input still yields one (empty) speaker line.
    """
    text = text or ""
    if has_speaker_prefix(text):
        return text
    paragraphs = split_paragraphs(text)
    if not paragraphs:
        return f"SPEAKER {DEFAULT_SPEAKER}: " + text.strip()
    return "\n\n".join(f"SPEAKER {DEFAULT_SPEAKER}: {p}" for p in paragraphs)

"""
Copy/export rendering with custom speaker names.

Upstream sources store the raw id of the same speaker in different shapes: live
transcription uses "1" or "SPEAKER_1", batch-analyzed TV content "speaker_1" or
"SPEAKER 1". When only flat text is available, every shape is probed against the label
lookup before falling back to the generic "Speaker <n>".
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Sequence

from speakerkit.schemas.transcript import Utterance

logger = logging.getLogger(__name__)

DisplayNameLookup = Callable[[str], str]

# "SPEAKER 3:" at line start; the number is the only thing substituted
_LINE_LABEL = re.compile(r"^SPEAKER\s+(\d+)\b:", re.MULTILINE | re.IGNORECASE)
# What a lookup returns when no custom name exists ("Speaker 3", "Speaker SPEAKER 3")
_GENERIC_NAME = re.compile(r"^speaker[\s_]+(?:speaker[\s_]+)?(?:\d+|[a-z])$", re.IGNORECASE)


def candidate_speaker_ids(number: str) -> list[str]:
    """Raw-id spellings to probe for one speaker number, in priority order."""
    return [f"SPEAKER_{number}", f"SPEAKER {number}", number, f"speaker_{number}"]


def is_generic_name(name: str, candidate: str) -> bool:
    name = (name or "").strip()
    return not name or name == candidate or _GENERIC_NAME.match(name) is not None


def resolve_speaker_name(number: str, get_display_name: DisplayNameLookup) -> str:
    """First custom name found among the candidate ids, else the SPEAKER_<n> fallback."""
    for candidate in candidate_speaker_ids(number):
        name = get_display_name(candidate)
        if not is_generic_name(name, candidate):
            return name
    return get_display_name(f"SPEAKER_{number}")


def format_with_speaker_names(
    text: str,
    utterances: Sequence[Utterance] | None,
    get_display_name: DisplayNameLookup,
    is_loading: bool = False,
) -> str:
    """
    Render a transcript with display names instead of raw speaker tags.

    - is_loading: labels not fetched yet; return text unchanged rather than guess.
    - utterances present: one "<name>: <text>" paragraph per utterance.
    - flat text only: replace line-start "SPEAKER <n>:" labels; utterance bodies are
      never touched.
    """
    if is_loading:
        return text

    if utterances:
        return "\n\n".join(f"{get_display_name(u.speaker)}: {u.text}" for u in utterances)

    if not text:
        return text

    replacements: dict[str, str] = {}
    for match in _LINE_LABEL.finditer(text):
        number = match.group(1)
        if number not in replacements:
            replacements[number] = resolve_speaker_name(number, get_display_name)
    if not replacements:
        return text

    logger.debug("Substituting %d speaker labels in flat text", len(replacements))
    return _LINE_LABEL.sub(lambda m: f"{replacements[m.group(1)]}:", text)

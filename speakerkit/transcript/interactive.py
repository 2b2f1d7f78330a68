"""
Helpers for the interactive (timestamped) transcript view: speaker legend, colors,
time labels, and which utterance is active at a playback position.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from speakerkit.schemas.transcript import Utterance

SPEAKER_PALETTE = (
    "#3B82F6",
    "#EF4444",
    "#10B981",
    "#F59E0B",
    "#8B5CF6",
    "#F97316",
    "#06B6D4",
    "#84CC16",
)
UNKNOWN_SPEAKER_COLOR = "#6B7280"

# Playback snapping: an upcoming utterance this close counts as current; so does one that just ended
_UPCOMING_WINDOW_SEC = 1.0
_RECENT_WINDOW_SEC = 2.0


def unique_speakers(utterances: Iterable[Utterance] | None) -> list[str]:
    """Distinct raw speaker ids, sorted."""
    return sorted({u.speaker for u in utterances or () if u.speaker})


def speaker_colors(speakers: Sequence[str]) -> dict[str, str]:
    return {speaker: SPEAKER_PALETTE[i % len(SPEAKER_PALETTE)] for i, speaker in enumerate(speakers)}


def speaker_color(colors: dict[str, str], speaker: str) -> str:
    return colors.get(speaker, UNKNOWN_SPEAKER_COLOR)


def format_timestamp(time_ms: float) -> str:
    """Milliseconds -> "m:ss"."""
    seconds = int(max(0.0, time_ms) // 1000)
    return f"{seconds // 60}:{seconds % 60:02d}"


def _as_seconds(value: float) -> float:
    # Sources mix seconds and milliseconds; anything above 1000 is taken as ms
    return value / 1000.0 if value > 1000 else value


def current_utterance(utterances: Sequence[Utterance] | None, current_time: float) -> Utterance | None:
    """
    Utterance to highlight at playback time `current_time` (seconds).

    Exact containment wins; otherwise an utterance starting within 1s, otherwise one that
    ended within the last 2s; otherwise None.
    """
    if not utterances:
        return None

    for utterance in utterances:
        if _as_seconds(utterance.start) <= current_time <= _as_seconds(utterance.end):
            return utterance

    upcoming = [u for u in utterances if _as_seconds(u.start) > current_time]
    if upcoming:
        nearest = min(upcoming, key=lambda u: _as_seconds(u.start))
        if _as_seconds(nearest.start) - current_time < _UPCOMING_WINDOW_SEC:
            return nearest

    past = [u for u in utterances if _as_seconds(u.end) < current_time]
    if past:
        latest = max(past, key=lambda u: _as_seconds(u.end))
        if current_time - _as_seconds(latest.end) < _RECENT_WINDOW_SEC:
            return latest

    return None

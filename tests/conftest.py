from __future__ import annotations

import asyncio

import pytest

from speakerkit.labels.backend import InMemoryLabelBackend, LabelBackendError
from speakerkit.schemas.transcript import Utterance
from speakerkit.services.transcription_source import TranscriptionSource, TranscriptionSourceError
from speakerkit.session_store import InMemorySessionStore


class FailingLabelBackend(InMemoryLabelBackend):
    """In-memory backend whose selected operations raise LabelBackendError."""

    def __init__(self, fail_on: tuple[str, ...] = ("list", "upsert", "delete", "delete_all")) -> None:
        super().__init__()
        self.fail_on = fail_on

    async def list(self, transcription_id: str) -> dict[str, str]:
        if "list" in self.fail_on:
            raise LabelBackendError("list unavailable")
        return await super().list(transcription_id)

    async def upsert(self, transcription_id: str, original_speaker: str, custom_name: str) -> None:
        if "upsert" in self.fail_on:
            raise LabelBackendError("upsert unavailable")
        await super().upsert(transcription_id, original_speaker, custom_name)

    async def delete(self, transcription_id: str, original_speaker: str) -> None:
        if "delete" in self.fail_on:
            raise LabelBackendError("delete unavailable")
        await super().delete(transcription_id, original_speaker)

    async def delete_all(self, transcription_id: str) -> None:
        if "delete_all" in self.fail_on:
            raise LabelBackendError("delete_all unavailable")
        await super().delete_all(transcription_id)


class GatedLabelBackend(InMemoryLabelBackend):
    """Writes and lists for `gated_id` block until `gate` is set."""

    def __init__(self, gated_id: str) -> None:
        super().__init__()
        self.gated_id = gated_id
        self.gate = asyncio.Event()

    async def list(self, transcription_id: str) -> dict[str, str]:
        if transcription_id == self.gated_id:
            await self.gate.wait()
        return await super().list(transcription_id)

    async def upsert(self, transcription_id: str, original_speaker: str, custom_name: str) -> None:
        if transcription_id == self.gated_id:
            await self.gate.wait()
        await super().upsert(transcription_id, original_speaker, custom_name)


class StubTranscriptionSource(TranscriptionSource):
    def __init__(self, utterances: list[Utterance] | None = None, error: bool = False) -> None:
        self.utterances = utterances or []
        self.error = error
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def fetch_utterances(self, transcription_id: str) -> list[Utterance]:
        self.calls.append(transcription_id)
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise TranscriptionSourceError("function timed out")
        return list(self.utterances)


def utterance(speaker: str, text: str, start: float = 0.0, end: float = 0.0) -> Utterance:
    return Utterance(speaker=speaker, text=text, start=start, end=end)


@pytest.fixture
def session() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def backend() -> InMemoryLabelBackend:
    return InMemoryLabelBackend()


@pytest.fixture
def two_speakers() -> list[Utterance]:
    return [
        utterance("SPEAKER_1", "Buenas tardes, bienvenidos al noticiero.", 120, 4200),
        utterance("SPEAKER_2", "Gracias por la invitación.", 4300, 7900),
    ]

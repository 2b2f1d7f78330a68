import asyncio
import json

import httpx
import pytest

from speakerkit.config import Settings
from speakerkit.labels.backend import (
    InMemoryLabelBackend,
    LabelBackendError,
    SupabaseLabelBackend,
    create_label_backend,
)


def test_in_memory_backend_is_last_write_wins_per_pair():
    backend = InMemoryLabelBackend()

    async def scenario():
        await backend.upsert("t1", "SPEAKER_1", "Ana")
        await backend.upsert("t1", "SPEAKER_1", "Ana María")
        await backend.upsert("t1", "SPEAKER_2", "Luis")
        await backend.upsert("t2", "SPEAKER_1", "Otro")
        await backend.delete("t1", "SPEAKER_2")
        first = await backend.list("t1")
        await backend.delete_all("t1")
        return first, await backend.list("t1"), await backend.list("t2")

    first, cleared, other = asyncio.run(scenario())
    assert first == {"SPEAKER_1": "Ana María"}
    assert cleared == {}
    assert other == {"SPEAKER_1": "Otro"}


def _supabase(handler) -> tuple[SupabaseLabelBackend, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    backend = SupabaseLabelBackend(
        "https://project.supabase.co/",
        "anon-key",
        transport=httpx.MockTransport(record),
    )
    return backend, requests


def test_supabase_list_filters_by_transcript():
    rows = [
        {"original_speaker": "SPEAKER_1", "custom_name": "Ana"},
        {"original_speaker": "B", "custom_name": "Luis"},
    ]
    backend, requests = _supabase(lambda request: httpx.Response(200, json=rows))

    assert asyncio.run(backend.list("abc")) == {"SPEAKER_1": "Ana", "B": "Luis"}
    [request] = requests
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/speaker_labels"
    assert request.url.params["transcription_id"] == "eq.abc"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"


def test_supabase_upsert_merges_on_transcript_and_speaker():
    backend, requests = _supabase(lambda request: httpx.Response(201))

    asyncio.run(backend.upsert("abc", "SPEAKER_1", "Juan Pérez"))
    [request] = requests
    body = json.loads(request.content)
    assert request.method == "POST"
    assert request.url.params["on_conflict"] == "transcription_id,original_speaker"
    assert "resolution=merge-duplicates" in request.headers["Prefer"]
    assert body["transcription_id"] == "abc"
    assert body["original_speaker"] == "SPEAKER_1"
    assert body["custom_name"] == "Juan Pérez"
    assert "updated_at" in body


def test_supabase_delete_and_delete_all():
    backend, requests = _supabase(lambda request: httpx.Response(204))

    asyncio.run(backend.delete("abc", "SPEAKER_2"))
    asyncio.run(backend.delete_all("abc"))
    one, every = requests
    assert one.method == every.method == "DELETE"
    assert one.url.params["original_speaker"] == "eq.SPEAKER_2"
    assert "original_speaker" not in every.url.params
    assert every.url.params["transcription_id"] == "eq.abc"


def test_supabase_http_errors_become_backend_errors():
    backend, _ = _supabase(lambda request: httpx.Response(500, json={"message": "boom"}))
    with pytest.raises(LabelBackendError):
        asyncio.run(backend.upsert("abc", "SPEAKER_1", "Ana"))


def test_supabase_non_list_payload_is_an_error():
    backend, _ = _supabase(lambda request: httpx.Response(200, json={"rows": []}))
    with pytest.raises(LabelBackendError):
        asyncio.run(backend.list("abc"))


def test_factory_defaults_to_memory():
    assert isinstance(create_label_backend(Settings(LABELS_BACKEND="memory")), InMemoryLabelBackend)


def test_factory_falls_back_to_memory_without_credentials():
    settings = Settings(LABELS_BACKEND="supabase", SUPABASE_URL="", SUPABASE_API_KEY="")
    assert isinstance(create_label_backend(settings), InMemoryLabelBackend)


def test_factory_builds_supabase_backend():
    settings = Settings(LABELS_BACKEND="supabase", SUPABASE_URL="https://x.supabase.co", SUPABASE_API_KEY="k")
    assert isinstance(create_label_backend(settings), SupabaseLabelBackend)

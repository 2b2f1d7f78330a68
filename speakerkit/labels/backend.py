"""
LabelBackend: durable storage for custom speaker names.

Implementations: InMemoryLabelBackend (process-local), SupabaseLabelBackend (REST table
on the managed backend). One row per (transcription_id, original_speaker); concurrent
writes to the same pair are last-write-wins at the storage layer, nothing is queued or
locked here.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
import httpx

from speakerkit.config import Settings, get_settings, supabase_configured
from speakerkit.schemas.labels import SpeakerLabel

logger = logging.getLogger(__name__)


class LabelBackendError(Exception):
    """A label read or write did not reach durable storage."""


class LabelBackend(ABC):
    """Label persistence contract. All methods raise LabelBackendError on failure."""

    @abstractmethod
    async def list(self, transcription_id: str) -> dict[str, str]:
        """Return original_speaker -> custom_name for one transcript."""
        ...

    @abstractmethod
    async def upsert(self, transcription_id: str, original_speaker: str, custom_name: str) -> None:
        ...

    @abstractmethod
    async def delete(self, transcription_id: str, original_speaker: str) -> None:
        ...

    @abstractmethod
    async def delete_all(self, transcription_id: str) -> None:
        ...


class InMemoryLabelBackend(LabelBackend):
    """Dict-backed backend. Rows keyed by (transcription_id, original_speaker)."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], SpeakerLabel] = {}

    async def list(self, transcription_id: str) -> dict[str, str]:
        return {
            row.original_speaker: row.custom_name
            for (tid, _), row in self._rows.items()
            if tid == transcription_id
        }

    async def upsert(self, transcription_id: str, original_speaker: str, custom_name: str) -> None:
        self._rows[(transcription_id, original_speaker)] = SpeakerLabel(
            transcription_id=transcription_id,
            original_speaker=original_speaker,
            custom_name=custom_name,
        )

    async def delete(self, transcription_id: str, original_speaker: str) -> None:
        self._rows.pop((transcription_id, original_speaker), None)

    async def delete_all(self, transcription_id: str) -> None:
        for key in [k for k in self._rows if k[0] == transcription_id]:
            del self._rows[key]


class SupabaseLabelBackend(LabelBackend):
    """
    Labels in a PostgREST table: {base_url}/rest/v1/{table}.
    Each call opens its own AsyncClient; `transport` is injectable for tests.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "speaker_labels",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        params: dict[str, str],
        json: object = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.request(
                    method,
                    self._url,
                    params=params,
                    json=json,
                    headers={**self._headers, **(headers or {})},
                )
                resp.raise_for_status()
                return resp
        except httpx.HTTPError as e:
            raise LabelBackendError(f"{method} {self._url} failed: {e}") from e

    async def list(self, transcription_id: str) -> dict[str, str]:
        resp = await self._request(
            "GET",
            {"select": "original_speaker,custom_name", "transcription_id": f"eq.{transcription_id}"},
        )
        try:
            rows = resp.json()
        except ValueError as e:
            raise LabelBackendError(f"Label list response was not JSON: {e}") from e
        if not isinstance(rows, list):
            raise LabelBackendError("Label list response was not a JSON array")
        return {
            str(row["original_speaker"]): str(row["custom_name"])
            for row in rows
            if isinstance(row, dict) and row.get("original_speaker") is not None and row.get("custom_name")
        }

    async def upsert(self, transcription_id: str, original_speaker: str, custom_name: str) -> None:
        await self._request(
            "POST",
            {"on_conflict": "transcription_id,original_speaker"},
            json=SpeakerLabel(
                transcription_id=transcription_id,
                original_speaker=original_speaker,
                custom_name=custom_name,
            ).model_dump(mode="json"),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def delete(self, transcription_id: str, original_speaker: str) -> None:
        await self._request(
            "DELETE",
            {"transcription_id": f"eq.{transcription_id}", "original_speaker": f"eq.{original_speaker}"},
        )

    async def delete_all(self, transcription_id: str) -> None:
        await self._request("DELETE", {"transcription_id": f"eq.{transcription_id}"})


def create_label_backend(settings: Settings | None = None) -> LabelBackend:
    """Supabase backend when LABELS_BACKEND=supabase and URL/key are set; else in-memory."""
    settings = settings or get_settings()
    if settings.LABELS_BACKEND != "supabase":
        return InMemoryLabelBackend()
    if not supabase_configured(settings):
        logger.warning("LABELS_BACKEND=supabase but SUPABASE_URL/SUPABASE_API_KEY missing; using in-memory labels")
        return InMemoryLabelBackend()
    return SupabaseLabelBackend(
        settings.SUPABASE_URL,
        settings.SUPABASE_API_KEY,
        table=settings.SPEAKER_LABELS_TABLE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )

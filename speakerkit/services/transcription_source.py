"""
TranscriptionSource: fetches speaker-tagged utterances for a stored transcript.

The speech recognition itself runs in a serverless function on the managed backend;
this module only invokes it and validates the reply.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import ValidationError

from speakerkit.config import Settings, get_settings, supabase_configured
from speakerkit.schemas.transcript import Utterance

logger = logging.getLogger(__name__)


class TranscriptionSourceError(Exception):
    """Utterances could not be fetched."""


class TranscriptionSource(ABC):
    @abstractmethod
    async def fetch_utterances(self, transcription_id: str) -> list[Utterance]:
        """Return utterances for the transcript (possibly empty). Raise TranscriptionSourceError on failure."""
        ...


def parse_utterances(payload: Any) -> list[Utterance]:
    """Validate {"utterances": [...]} from the function. Missing or non-list -> []."""
    raw = payload.get("utterances") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return []
    try:
        return [Utterance.model_validate(item) for item in raw]
    except ValidationError as e:
        raise TranscriptionSourceError(f"Malformed utterances: {e}") from e


class SupabaseTranscriptionSource(TranscriptionSource):
    """Invokes {base_url}/functions/v1/{function} with {"transcriptId": id}."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        function: str = "fetch-utterances",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/functions/v1/{function}"
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def fetch_utterances(self, transcription_id: str) -> list[Utterance]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._url,
                    json={"transcriptId": transcription_id},
                    headers={
                        "apikey": self._api_key,
                        "Authorization": f"Bearer {self._api_key}",
                        "Accept": "application/json",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise TranscriptionSourceError(f"Fetching utterances for {transcription_id} failed: {e}") from e
        except ValueError as e:
            raise TranscriptionSourceError(f"Utterance response for {transcription_id} was not JSON: {e}") from e

        utterances = parse_utterances(data)
        logger.info("Fetched %d utterances for %s", len(utterances), transcription_id)
        return utterances


def create_transcription_source(settings: Settings | None = None) -> TranscriptionSource | None:
    """Remote source when SUPABASE_URL/SUPABASE_API_KEY are set; None otherwise."""
    settings = settings or get_settings()
    if not supabase_configured(settings):
        return None
    return SupabaseTranscriptionSource(
        settings.SUPABASE_URL,
        settings.SUPABASE_API_KEY,
        function=settings.UTTERANCES_FUNCTION,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )

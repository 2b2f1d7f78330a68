"""
SpeakerLabelStore: custom speaker names for the transcript currently on screen.

Local mapping original_speaker -> custom_name, kept in step with a LabelBackend.
Writes are optimistic (visible immediately, rolled back if the backend write fails);
a failed load yields an empty mapping. Nothing here raises to the caller: failures
are logged and reported through `on_warning`.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from speakerkit.labels.backend import LabelBackend
from speakerkit.labels.mutation import OptimisticMutation
from speakerkit.schemas.transcript import Utterance
from speakerkit.transcript.codec import speaker_number
from speakerkit.transcript.formatter import format_with_speaker_names

logger = logging.getLogger(__name__)

_MISSING = object()


class SpeakerLabelStore:
    """
    Labels for one bound transcript. `load()` (re)binds the store; results for a transcript
    the store is no longer bound to are dropped.
    """

    def __init__(
        self,
        backend: LabelBackend,
        transcription_id: str | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self._backend = backend
        self._transcription_id = transcription_id
        self._labels: dict[str, str] = {}
        self._on_warning = on_warning or (lambda message: None)
        self.is_loading = False
        self.pending_writes = 0
        # Speakers changed locally while a load is in flight; None when no load is running
        self._touched_during_load: set[str] | None = None
        self._cleared_during_load = False
        self._loads_in_flight = 0

    @property
    def transcription_id(self) -> str | None:
        return self._transcription_id

    @property
    def labels(self) -> dict[str, str]:
        """Copy of the current mapping."""
        return dict(self._labels)

    @property
    def is_saving(self) -> bool:
        return self.pending_writes > 0

    async def load(self, transcription_id: str | None = None) -> dict[str, str]:
        """
        Fetch all labels for `transcription_id` (default: the bound one) and bind to it.
        Empty mapping if there is no id or the fetch fails.
        """
        if transcription_id is not None and transcription_id != self._transcription_id:
            self._transcription_id = transcription_id
            self._labels = {}
            self._touched_during_load = None
            self._loads_in_flight = 0
        target = self._transcription_id
        if not target:
            self._labels = {}
            return {}

        self.is_loading = True
        if self._touched_during_load is None:
            self._touched_during_load = set()
            self._cleared_during_load = False
        self._loads_in_flight += 1
        failed = False
        try:
            labels = await self._backend.list(target)
        except Exception as e:
            logger.warning("Loading speaker labels for %s failed: %s", target, e)
            labels = {}
            failed = True
        finally:
            if target == self._transcription_id:
                self._loads_in_flight = max(0, self._loads_in_flight - 1)
                self.is_loading = self._loads_in_flight > 0

        if target != self._transcription_id:
            logger.debug("Dropping labels for %s; store now bound to %s", target, self._transcription_id)
            return {}
        if failed:
            self._on_warning("Failed to load speaker names")
        self._labels = self._merge_local_changes(labels)
        return self.labels

    def _merge_local_changes(self, loaded: dict[str, str]) -> dict[str, str]:
        """Loaded mapping with local writes made during the load laid over it."""
        touched = set(self._touched_during_load or ())
        merged = {} if self._cleared_during_load else dict(loaded)
        if self._loads_in_flight == 0:
            self._touched_during_load = None
            self._cleared_during_load = False
        for speaker in touched:
            if speaker in self._labels:
                merged[speaker] = self._labels[speaker]
            else:
                merged.pop(speaker, None)
        if touched:
            logger.debug("Kept %d local label changes made while loading", len(touched))
        return merged

    def _is_bound(self, transcription_id: str | None) -> bool:
        return bool(transcription_id) and transcription_id == self._transcription_id

    def _set_local(self, transcription_id: str, original_speaker: str, value: object) -> object:
        """Set (or, for _MISSING, remove) one local entry; returns the previous value."""
        if not self._is_bound(transcription_id):
            return _MISSING
        previous = self._labels.get(original_speaker, _MISSING)
        if self._touched_during_load is not None:
            self._touched_during_load.add(original_speaker)
        if value is _MISSING:
            self._labels.pop(original_speaker, None)
        else:
            self._labels[original_speaker] = value  # type: ignore[assignment]
        return previous

    async def _run(self, mutation: OptimisticMutation, warning: str) -> bool:
        self.pending_writes += 1
        try:
            ok = await mutation.run()
        finally:
            self.pending_writes -= 1
        if not ok:
            self._on_warning(warning)
        return ok

    async def save(self, transcription_id: str | None, original_speaker: str, custom_name: str) -> bool:
        """
        Upsert one label. A blank name removes the label instead.
        Returns False when nothing was saved.
        """
        if not transcription_id:
            return False
        name = (custom_name or "").strip()
        if not name:
            return await self.delete(transcription_id, original_speaker)

        mutation = OptimisticMutation(
            apply=lambda: self._set_local(transcription_id, original_speaker, name),
            write=lambda: self._backend.upsert(transcription_id, original_speaker, name),
            revert=lambda previous: self._set_local(transcription_id, original_speaker, previous),
            description=f"Saving speaker label {original_speaker!r} for {transcription_id}",
        )
        return await self._run(mutation, "Failed to save speaker name")

    async def delete(self, transcription_id: str | None, original_speaker: str) -> bool:
        if not transcription_id:
            return False
        mutation = OptimisticMutation(
            apply=lambda: self._set_local(transcription_id, original_speaker, _MISSING),
            write=lambda: self._backend.delete(transcription_id, original_speaker),
            revert=lambda previous: self._set_local(transcription_id, original_speaker, previous),
            description=f"Deleting speaker label {original_speaker!r} for {transcription_id}",
        )
        return await self._run(mutation, "Failed to delete speaker name")

    async def clear_all(
        self,
        transcription_id: str | None = None,
        confirm: Callable[[], bool] | None = None,
    ) -> bool:
        """
        Remove every label for the transcript ("reset all names").
        Does nothing unless `confirm` is given and returns True.
        """
        transcription_id = transcription_id or self._transcription_id
        if not transcription_id:
            return False
        if confirm is None or not confirm():
            logger.info("Reset of speaker names for %s not confirmed", transcription_id)
            return False

        def apply() -> dict[str, str]:
            previous = dict(self._labels) if self._is_bound(transcription_id) else {}
            if self._is_bound(transcription_id):
                self._labels = {}
                if self._touched_during_load is not None:
                    self._cleared_during_load = True
            return previous

        def revert(previous: dict[str, str]) -> None:
            if self._is_bound(transcription_id):
                self._labels = {**previous, **self._labels}

        mutation = OptimisticMutation(
            apply=apply,
            write=lambda: self._backend.delete_all(transcription_id),
            revert=revert,
            description=f"Clearing speaker labels for {transcription_id}",
        )
        ok = await self._run(mutation, "Failed to clear speaker names")
        if ok:
            logger.info("All speaker names cleared for %s", transcription_id)
        return ok

    def get_custom_name(self, original_speaker: str) -> str:
        return self._labels.get(original_speaker, "")

    def get_display_name(self, original_speaker: str) -> str:
        """Custom name if set, else "Speaker <n>" ("speaker_3" and "3" both give "Speaker 3")."""
        custom = self.get_custom_name(original_speaker)
        if custom:
            return custom
        return f"Speaker {speaker_number(original_speaker)}"

    def has_custom_name(self, original_speaker: str) -> bool:
        return original_speaker in self._labels

    def has_any_custom_name(self, speakers: Iterable[str]) -> bool:
        return any(self.has_custom_name(s) for s in speakers)

    def format_transcript(self, text: str, utterances: Sequence[Utterance] | None = None) -> str:
        """Copy-ready text with custom names; unchanged while labels are loading."""
        return format_with_speaker_names(text, utterances, self.get_display_name, self.is_loading)

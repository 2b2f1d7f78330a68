"""
EditorStateCoordinator: the text shown and edited in the transcript editor.

Keeps three things consistent for one transcript: the annotated text, the utterance list
derived from it, and the view toggles. Remote transcription results and user keystrokes
both write the text; which one wins is decided by a logical clock:

- every local mutation bumps `version`;
- a user edit records `user_edit_version`;
- a remote result carries `issued_at`, the coordinator `version` captured when it was
  requested (None = issued at the last reconciliation);
- a result is applied only if `issued_at >= user_edit_version`. A stale result never
  overwrites a newer edit, and a result requested after an edit does.

Text, edit mode and view mode are persisted in the session store so a reload keeps unsaved
edits. Results for another transcript id are dropped.
"""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from speakerkit.editor.state import EditorPhase, EditorState, ViewMode
from speakerkit.labels.store import SpeakerLabelStore
from speakerkit.schemas.transcript import TranscriptionResult, Utterance
from speakerkit.services.transcription_source import TranscriptionSource
from speakerkit.session_store import SessionStore, editor_key, get_session_store
from speakerkit.transcript.codec import decode, encode, format_plain_text_as_speaker, speaker_number

logger = logging.getLogger(__name__)

TEXT_KEY = "speaker"
EDIT_MODE_KEY = "editor-mode"
VIEW_MODE_KEY = "view-mode"
FETCH_ATTEMPTED_KEY = "utterances-fetched"


def _carry_timestamps(previous: Sequence[Utterance], decoded: list[Utterance]) -> list[Utterance] | None:
    """
    Keep real timestamps across an edit that did not add or remove blocks. The raw speaker
    id also survives while the block still names the same speaker number, so labels saved
    under "SPEAKER_1" keep matching.
    """
    if not previous or len(previous) != len(decoded):
        return None
    carried: list[Utterance] = []
    for old, new in zip(previous, decoded):
        update: dict[str, object] = {"start": old.start, "end": old.end, "confidence": old.confidence}
        if speaker_number(old.speaker) == new.speaker:
            update["speaker"] = old.speaker
        carried.append(new.model_copy(update=update))
    return carried


class EditorStateCoordinator:
    def __init__(
        self,
        transcription_id: str | None = None,
        session: SessionStore | None = None,
        source: TranscriptionSource | None = None,
        on_text_change: Callable[[str], None] | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self._session = session or get_session_store()
        self._source = source
        self._on_text_change = on_text_change or (lambda text: None)
        self._on_warning = on_warning or (lambda message: None)
        self._bind(transcription_id)

    # --- binding / persistence ---

    def _key(self, kind: str) -> str:
        return editor_key(kind, self._transcription_id)

    def _bind(self, transcription_id: str | None) -> None:
        self._transcription_id = transcription_id
        self._version = 0
        self._user_edit_version = 0
        self._reconciled_version = 0
        self._has_timestamp_data = False

        self._local_text = self._session.get(self._key(TEXT_KEY), "") or ""
        self._is_editing = bool(self._session.get(self._key(EDIT_MODE_KEY), False))
        stored_mode = self._session.get(self._key(VIEW_MODE_KEY))
        self._view_mode = ViewMode(stored_mode) if stored_mode in {m.value for m in ViewMode} else None
        self._utterances = decode(self._local_text) if self._local_text else []

        if self._local_text:
            # Restored text: a pending edit if the user was editing, else the last reconciled text
            self._version = 1
            if self._is_editing:
                self._user_edit_version = 1
            else:
                self._reconciled_version = 1
            logger.debug("Restored editor text for %s (%d chars)", self._key(TEXT_KEY), len(self._local_text))

    def switch_transcript(self, transcription_id: str | None) -> None:
        """Rebind to another transcript (or the draft); in-flight results for the old id are dropped."""
        if transcription_id == self._transcription_id:
            return
        self._bind(transcription_id)

    def _set_text(self, text: str) -> None:
        if text == self._local_text:
            return
        self._local_text = text
        self._session.set(self._key(TEXT_KEY), text)
        self._on_text_change(text)

    def _set_editing(self, value: bool) -> None:
        self._is_editing = value
        self._session.set(self._key(EDIT_MODE_KEY), value)

    def _set_view_mode(self, mode: ViewMode) -> None:
        self._view_mode = mode
        self._session.set(self._key(VIEW_MODE_KEY), mode.value)

    # --- read side ---

    @property
    def transcription_id(self) -> str | None:
        return self._transcription_id

    @property
    def local_text(self) -> str:
        return self._local_text

    @property
    def utterances(self) -> list[Utterance]:
        return list(self._utterances)

    @property
    def is_editing(self) -> bool:
        return self._is_editing

    @property
    def view_mode(self) -> ViewMode | None:
        return self._view_mode

    @property
    def has_timestamp_data(self) -> bool:
        return self._has_timestamp_data

    @property
    def version(self) -> int:
        return self._version

    @property
    def phase(self) -> EditorPhase:
        if not self._local_text.strip() and not self._utterances:
            return EditorPhase.NO_DATA
        if self._has_timestamp_data:
            return EditorPhase.HAS_STRUCTURED_TEXT
        return EditorPhase.HAS_FLAT_TEXT

    @property
    def renders_interactive(self) -> bool:
        return self._view_mode is ViewMode.INTERACTIVE and self._has_timestamp_data

    @property
    def state(self) -> EditorState:
        return EditorState(
            transcription_id=self._transcription_id,
            phase=self.phase,
            local_text=self._local_text,
            utterances=list(self._utterances),
            is_editing=self._is_editing,
            view_mode=self._view_mode,
            has_timestamp_data=self._has_timestamp_data,
            version=self._version,
        )

    # --- remote results ---

    def _accepts(self, issued_at: int | None) -> bool:
        effective = self._reconciled_version if issued_at is None else issued_at
        return effective >= self._user_edit_version

    def _reconciled(self, text: str) -> None:
        self._version += 1
        self._reconciled_version = self._version
        self._set_text(text)

    def receive_result(
        self,
        result: TranscriptionResult,
        transcription_id: str | None = None,
        issued_at: int | None = None,
    ) -> bool:
        """
        Reconcile a transcription result. Utterances win over flat text; an empty result
        for a transcript that had text resets the editor. Returns True if state changed.
        """
        if transcription_id is not None and transcription_id != self._transcription_id:
            logger.debug("Dropping result for %s; editor is on %s", transcription_id, self._transcription_id)
            return False

        if result.utterances:
            if not self._accepts(issued_at):
                logger.debug("Keeping newer local edit over remote utterances (issued_at=%s)", issued_at)
                return False
            self._utterances = list(result.utterances)
            self._has_timestamp_data = True
            if self._view_mode is None:
                self._set_view_mode(ViewMode.INTERACTIVE)
            self._reconciled(encode(self._utterances))
            return True

        text = result.text or ""
        if not text.strip():
            if self.phase is EditorPhase.NO_DATA:
                return False
            logger.info("Transcript text for %s was cleared", self._transcription_id or "draft")
            self.reset()
            return True

        if text == self._local_text:
            return False
        if not self._accepts(issued_at):
            logger.debug("Keeping newer local edit over remote text (issued_at=%s)", issued_at)
            return False

        formatted = format_plain_text_as_speaker(text)
        self._utterances = decode(formatted)
        self._has_timestamp_data = False
        if self._view_mode is None:
            self._set_view_mode(ViewMode.EDIT)
        self._reconciled(formatted)
        return True

    async def ensure_utterances(self) -> bool:
        """
        Fetch utterances for a transcript that has text but no timestamped utterances.
        Attempted at most once per transcript per session. On failure or an empty reply,
        falls back to single-speaker formatting of the current text. Fetched utterances never
        replace a pending local edit. Returns True if utterances were applied.
        """
        if self._source is None or not self._transcription_id:
            return False
        if self._has_timestamp_data or not self._local_text.strip():
            return False
        attempted_key = self._key(FETCH_ATTEMPTED_KEY)
        if self._session.get(attempted_key):
            return False
        self._session.set(attempted_key, True)

        target = self._transcription_id
        # Stored utterances reflect the last reconciled text, never an unsaved local edit
        issued_at = self._reconciled_version
        utterances: list[Utterance] = []
        try:
            utterances = await self._source.fetch_utterances(target)
        except Exception as e:
            logger.warning("Fetching utterances for %s failed: %s", target, e)
            self._on_warning("Could not load speaker data")

        if target != self._transcription_id:
            logger.debug("Dropping fetched utterances for %s; editor is on %s", target, self._transcription_id)
            return False
        if utterances:
            return self.receive_result(
                TranscriptionResult(text=encode(utterances), utterances=utterances),
                transcription_id=target,
                issued_at=issued_at,
            )
        # Fallback is derived from the current local text, so it is as new as that text
        self.receive_result(
            TranscriptionResult(text=format_plain_text_as_speaker(self._local_text)),
            transcription_id=target,
            issued_at=self._version,
        )
        return False

    # --- user actions ---

    def handle_text_change(self, new_text: str) -> None:
        """Keystroke in the editor: update text, re-derive utterances, enter edit mode."""
        new_text = new_text or ""
        if not new_text and not self._local_text:
            return
        self._version += 1
        self._user_edit_version = self._version

        decoded = decode(new_text)
        carried = _carry_timestamps(self._utterances, decoded) if self._has_timestamp_data else None
        self._utterances = carried if carried is not None else decoded
        self._has_timestamp_data = carried is not None
        self._set_text(new_text)
        if not self._is_editing:
            self._set_editing(True)

    def toggle_edit_mode(self) -> bool:
        self._set_editing(not self._is_editing)
        return self._is_editing

    def set_view_mode(self, mode: ViewMode | str) -> bool:
        """Switch view; interactive is refused (False) without timestamp data."""
        mode = ViewMode(mode)
        if mode is ViewMode.INTERACTIVE and not self._has_timestamp_data:
            return False
        self._set_view_mode(mode)
        return True

    def toggle_view_mode(self) -> ViewMode:
        """Flip between interactive and edit; stays on edit without timestamp data."""
        if self._view_mode is ViewMode.INTERACTIVE or not self._has_timestamp_data:
            target = ViewMode.EDIT
        else:
            target = ViewMode.INTERACTIVE
        self._set_view_mode(target)
        return target

    def reset(self) -> None:
        """Clear text and utterances; drop persisted text and toggles for this transcript."""
        logger.info("Resetting editor state for %s", self._transcription_id or "draft")
        for kind in (TEXT_KEY, EDIT_MODE_KEY, VIEW_MODE_KEY):
            self._session.remove(self._key(kind))
        self._local_text = ""
        self._utterances = []
        self._has_timestamp_data = False
        self._is_editing = False
        self._view_mode = ViewMode.EDIT
        self._version += 1
        self._user_edit_version = self._version
        self._reconciled_version = self._version

    def copy_text(self, labels: SpeakerLabelStore) -> str:
        """Current text with custom speaker names, reflecting the latest keystrokes."""
        return labels.format_transcript(self._local_text, self._utterances)

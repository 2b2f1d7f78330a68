import asyncio

from speakerkit.labels.backend import InMemoryLabelBackend
from speakerkit.labels.store import SpeakerLabelStore
from speakerkit.schemas.transcript import Utterance
from speakerkit.transcript.codec import speaker_number
from speakerkit.transcript.formatter import (
    candidate_speaker_ids,
    format_with_speaker_names,
    is_generic_name,
)


def _lookup(labels: dict[str, str]):
    def get_display_name(speaker: str) -> str:
        return labels.get(speaker) or f"Speaker {speaker_number(speaker)}"

    return get_display_name


def test_loading_returns_text_unchanged_even_with_utterances():
    utterances = [Utterance(speaker="1", text="hola")]
    text = "SPEAKER 1: hola"
    assert format_with_speaker_names(text, utterances, _lookup({"1": "Ana"}), is_loading=True) == text


def test_utterances_are_preferred_over_text():
    utterances = [
        Utterance(speaker="SPEAKER_1", text="Buenas tardes."),
        Utterance(speaker="SPEAKER_2", text="Gracias."),
    ]
    result = format_with_speaker_names("ignored", utterances, _lookup({"SPEAKER_1": "Ana"}))
    assert result == "Ana: Buenas tardes.\n\nSpeaker 2: Gracias."


def test_flat_text_probes_candidate_ids_in_order():
    assert candidate_speaker_ids("2") == ["SPEAKER_2", "SPEAKER 2", "2", "speaker_2"]
    text = "SPEAKER 1: Hola.\n\nSPEAKER 2: Qué tal.\n\nSPEAKER 3: Bien."
    labels = {"SPEAKER 1": "Ana", "2": "Luis", "speaker_3": "Marta"}
    assert format_with_speaker_names(text, None, _lookup(labels)) == "Ana: Hola.\n\nLuis: Qué tal.\n\nMarta: Bien."


def test_flat_text_first_custom_candidate_wins():
    text = "SPEAKER 1: Hola."
    labels = {"SPEAKER_1": "Primero", "1": "Segundo"}
    assert format_with_speaker_names(text, [], _lookup(labels)) == "Primero: Hola."


def test_flat_text_without_custom_names_uses_generic_fallback():
    text = "SPEAKER 1: Hola.\n\nSPEAKER 1: Otra vez."
    assert format_with_speaker_names(text, None, _lookup({})) == "Speaker 1: Hola.\n\nSpeaker 1: Otra vez."


def test_inner_speaker_mentions_are_not_replaced():
    text = "SPEAKER 1: hello SPEAKER 2 world"
    labels = {"SPEAKER_1": "Ana", "SPEAKER_2": "Luis"}
    assert format_with_speaker_names(text, None, _lookup(labels)) == "Ana: hello SPEAKER 2 world"


def test_line_labels_match_case_insensitively():
    text = "speaker 1: hola"
    assert format_with_speaker_names(text, None, _lookup({"SPEAKER_1": "Ana"})) == "Ana: hola"


def test_text_without_labels_is_returned_unchanged():
    text = "Sin etiquetas de hablante."
    assert format_with_speaker_names(text, None, _lookup({"1": "Ana"})) == text
    assert format_with_speaker_names("", None, _lookup({})) == ""


def test_identity_lookup_is_not_taken_as_custom_name():
    # A lookup that echoes the raw id (no labels) must not count as a custom name
    text = "SPEAKER 4: Hola."
    assert format_with_speaker_names(text, None, lambda s: s) == "SPEAKER_4: Hola."


def test_generic_name_detection():
    assert is_generic_name("Speaker 2", "2")
    assert is_generic_name("Speaker SPEAKER 2", "SPEAKER 2")
    assert is_generic_name("", "2")
    assert is_generic_name("SPEAKER_2", "SPEAKER_2")
    assert not is_generic_name("Juan Pérez", "2")
    assert not is_generic_name("Speaker de la mañana", "2")


def test_format_through_label_store():
    backend = InMemoryLabelBackend()
    asyncio.run(backend.upsert("t1", "SPEAKER_2", "Luis"))
    store = SpeakerLabelStore(backend)
    asyncio.run(store.load("t1"))
    text = "SPEAKER 1: Hola.\n\nSPEAKER 2: Qué tal."
    assert store.format_transcript(text) == "Speaker 1: Hola.\n\nLuis: Qué tal."

"""
Speaker labels and transcript text reconciliation for radio/TV transcripts.

Flat annotated text ("SPEAKER 1: ..."), structured utterances, and per-transcript custom
speaker names are kept consistent:

- transcript.codec: text <-> utterances.
- transcript.formatter: copy/export text with custom names.
- labels: custom names, persisted through an injected backend.
- editor: the edited text, reconciled with incoming transcription results.
"""
__version__ = "0.1.0"

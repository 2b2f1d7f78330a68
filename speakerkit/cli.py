#!/usr/bin/env python3
"""
Command-line access to the transcript codec, name formatting and the label backend.

Examples:
  python -m speakerkit encode result.json
  python -m speakerkit decode transcript.txt
  python -m speakerkit plain notes.txt
  python -m speakerkit copy transcript.txt --labels names.json
  python -m speakerkit copy transcript.txt --utterances result.json --transcript abc123
  python -m speakerkit labels set --transcript abc123 SPEAKER_1 "Juan Pérez"
  python -m speakerkit labels clear --transcript abc123 --yes

Input "-" reads stdin. Label commands use the backend selected by LABELS_BACKEND.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from speakerkit.config import configure_logging
from speakerkit.labels.backend import InMemoryLabelBackend, LabelBackend, LabelBackendError, create_label_backend
from speakerkit.labels.store import SpeakerLabelStore
from speakerkit.schemas.transcript import TranscriptionResult, Utterance
from speakerkit.transcript.codec import decode, encode, format_plain_text_as_speaker

logger = logging.getLogger(__name__)

# Transcript id under which --labels files are loaded
_LOCAL_TRANSCRIPT = "local"


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _load_utterances(source: str) -> list[Utterance]:
    """Accepts a bare utterance list or a result object {"text", "utterances"}."""
    payload: Any = json.loads(_read_text(source))
    if isinstance(payload, list):
        payload = {"utterances": payload}
    return TranscriptionResult.model_validate(payload).utterances or []


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="speakerkit", description="Speaker-annotated transcript tools.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = p.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Utterance JSON -> SPEAKER-annotated text.")
    enc.add_argument("source", help="JSON file (utterance list or result object), or -")

    dec = sub.add_parser("decode", help="SPEAKER-annotated text -> utterance JSON.")
    dec.add_argument("source", help="Text file, or -")

    plain = sub.add_parser("plain", help="Attribute plain text to SPEAKER 1 (no-op if already annotated).")
    plain.add_argument("source", help="Text file, or -")

    cp = sub.add_parser("copy", help="Transcript text with custom speaker names.")
    cp.add_argument("source", help="Text file, or -")
    cp.add_argument("--utterances", help="JSON file with utterances (preferred over text parsing).")
    names = cp.add_mutually_exclusive_group()
    names.add_argument("--labels", help='JSON mapping {"SPEAKER_1": "Name", ...}.')
    names.add_argument("--transcript", help="Load names for this transcript id from the label backend.")

    labels = sub.add_parser("labels", help="Manage stored speaker names.")
    labels_sub = labels.add_subparsers(dest="labels_command", required=True)
    for name in ("list", "set", "delete", "clear"):
        cmd = labels_sub.add_parser(name)
        cmd.add_argument("--transcript", required=True, help="Transcript id.")
        if name in ("set", "delete"):
            cmd.add_argument("speaker", help="Raw speaker id, e.g. SPEAKER_1.")
        if name == "set":
            cmd.add_argument("name", help="Custom display name (blank removes it).")
        if name == "clear":
            cmd.add_argument("--yes", action="store_true", help="Confirm removing every name.")

    return p.parse_args(argv)


async def _copy(args: argparse.Namespace) -> str:
    text = _read_text(args.source)
    utterances = _load_utterances(args.utterances) if args.utterances else None
    if args.labels:
        mapping = json.loads(_read_text(args.labels))
        if not isinstance(mapping, dict):
            raise ValueError("--labels must be a JSON object")
        backend: LabelBackend = InMemoryLabelBackend()
        for speaker, name in mapping.items():
            if not str(name).strip():
                continue
            await backend.upsert(_LOCAL_TRANSCRIPT, str(speaker), str(name).strip())
        store = SpeakerLabelStore(backend)
        await store.load(_LOCAL_TRANSCRIPT)
    else:
        store = SpeakerLabelStore(create_label_backend())
        if args.transcript:
            await store.load(args.transcript)
    return store.format_transcript(text, utterances)


async def _labels(args: argparse.Namespace) -> str:
    backend = create_label_backend()
    store = SpeakerLabelStore(backend, transcription_id=args.transcript, on_warning=logger.error)
    command = args.labels_command
    if command == "list":
        return json.dumps(await backend.list(args.transcript), ensure_ascii=False, indent=2)
    if command == "clear" and not args.yes:
        raise ValueError("labels clear needs --yes")
    if command == "set":
        ok = await store.save(args.transcript, args.speaker, args.name)
    elif command == "delete":
        ok = await store.delete(args.transcript, args.speaker)
    else:
        ok = await store.clear_all(args.transcript, confirm=lambda: args.yes)
    if not ok:
        raise LabelBackendError(f"labels {command} failed for {args.transcript}")
    return "ok"


def run(args: argparse.Namespace) -> str:
    if args.command == "encode":
        return encode(_load_utterances(args.source))
    if args.command == "decode":
        return json.dumps([u.model_dump() for u in decode(_read_text(args.source))], ensure_ascii=False, indent=2)
    if args.command == "plain":
        return format_plain_text_as_speaker(_read_text(args.source))
    if args.command == "copy":
        return asyncio.run(_copy(args))
    return asyncio.run(_labels(args))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        output = run(args)
    except (OSError, ValueError, ValidationError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2
    except LabelBackendError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Shared fixtures: a fake Gemini client and sample input files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

import pytest


class FakeChunk:
    """Stand-in for a streamed GenerateContentResponse."""

    def __init__(self, text: str | None) -> None:
        self.text = text


class FakeModels:
    """Records generate_content_stream calls and replays canned chunks."""

    def __init__(self, chunks: Iterable[str | None], error: Exception | None = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.calls: list[dict] = []

    def generate_content_stream(self, model: str, contents: list):
        self.calls.append({"model": model, "contents": contents})
        return self._stream()

    def _stream(self):
        for text in self.chunks:
            yield FakeChunk(text)
        if self.error is not None:
            raise self.error


class FakeClient:
    def __init__(self, chunks: Iterable[str | None], error: Exception | None = None) -> None:
        self.models = FakeModels(chunks, error)


def record_line(block_id, start: str, end: str, text: str) -> str:
    """One newline-terminated JSON record in the model's wire format."""
    return json.dumps({"id": block_id, "startTime": start, "endTime": end, "text": text}) + "\n"


@pytest.fixture
def make_client():
    """Factory for fake clients: make_client(chunks, error=None)."""
    return FakeClient


@pytest.fixture
def input_files(tmp_path: Path) -> tuple[Path, Path]:
    """A UTF-8 transcript and a small fake mp3."""
    transcript = tmp_path / "talk.txt"
    transcript.write_text("Hello there.\nGeneral Kenobi.", encoding="utf-8")
    audio = tmp_path / "talk.mp3"
    audio.write_bytes(b"ID3\x03\x00fake-mp3-bytes")
    return transcript, audio


@pytest.fixture
def restore_logging():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)

"""Tests for the single-run and batch command-line entry points."""

from __future__ import annotations

from pathlib import Path

import pytest

import main_batch
from conftest import FakeClient, record_line
from subalign import cli
from subalign.aligner import GeminiAligner

CHUNKS = [
    record_line(1, "00:00:00,000", "00:00:01,000", "Hello"),
    record_line(2, "00:00:01,000", "00:00:02,000", "World"),
]


@pytest.fixture
def fake_gemini(monkeypatch):
    """Replace the real Gemini client in the CLI wiring; returns created clients."""
    clients: list[FakeClient] = []

    def fake_aligner(api_key: str, model_name: str) -> GeminiAligner:
        client = FakeClient(CHUNKS)
        clients.append(client)
        return GeminiAligner(model_name=model_name, client=client)

    monkeypatch.setattr(cli, "GeminiAligner", fake_aligner)
    return clients


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch, restore_logging) -> Path:
    """Run from an empty directory so logs and defaults stay local."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_cli_writes_srt(fake_gemini, workdir: Path, input_files) -> None:
    transcript, audio = input_files
    out_dir = workdir / "subs"
    with pytest.raises(SystemExit) as excinfo:
        cli.CLIHandler().run([
            "-t", str(transcript), "-a", str(audio), "-o", str(out_dir),
            "--model", "gemini-test", "--no-progress", "--preview",
        ])
    assert excinfo.value.code == 0
    assert (out_dir / "talk.srt").read_text(encoding="utf-8") == (
        "1\n00:00:00,000 --> 00:00:01,000\nHello\n\n"
        "2\n00:00:01,000 --> 00:00:02,000\nWorld"
    )
    assert fake_gemini[0].models.calls[0]["model"] == "gemini-test"


def test_cli_missing_input_exits_1(fake_gemini, workdir: Path, input_files) -> None:
    transcript, _ = input_files
    with pytest.raises(SystemExit) as excinfo:
        cli.CLIHandler().run(["-t", str(transcript), "-a", str(workdir / "missing.mp3"), "--no-progress"])
    assert excinfo.value.code == 1
    assert fake_gemini == []


def test_cli_explicit_missing_config_exits_1(fake_gemini, workdir: Path, input_files) -> None:
    transcript, audio = input_files
    with pytest.raises(SystemExit) as excinfo:
        cli.CLIHandler().run(["-t", str(transcript), "-a", str(audio), "-c", "nope.yaml", "--no-progress"])
    assert excinfo.value.code == 1


def test_cli_generation_failure_exits_1(monkeypatch, workdir: Path, input_files) -> None:
    """A transport error ends the run with exit code 1 and no output file."""
    monkeypatch.setattr(
        cli,
        "GeminiAligner",
        lambda api_key, model_name: GeminiAligner(client=FakeClient([], error=ConnectionError("offline"))),
    )
    transcript, audio = input_files
    with pytest.raises(SystemExit) as excinfo:
        cli.CLIHandler().run(["-t", str(transcript), "-a", str(audio), "-o", "subs", "--no-progress"])
    assert excinfo.value.code == 1
    assert not (workdir / "subs" / "talk.srt").exists()


def test_find_and_sort_pairs(tmp_path: Path) -> None:
    """Only audio with a matching transcript is paired, smallest first."""
    (tmp_path / "big.mp3").write_bytes(b"x" * 100)
    (tmp_path / "big.txt").write_text("big", encoding="utf-8")
    (tmp_path / "small.mp3").write_bytes(b"x")
    (tmp_path / "small.txt").write_text("small", encoding="utf-8")
    (tmp_path / "orphan.mp3").write_bytes(b"x" * 10)
    (tmp_path / "notes.txt").write_text("not audio", encoding="utf-8")

    pairs = main_batch.find_and_sort_pairs(str(tmp_path))

    assert [Path(audio).name for audio, _, _ in pairs] == ["small.mp3", "big.mp3"]
    assert [Path(transcript).name for _, transcript, _ in pairs] == ["small.txt", "big.txt"]


def test_find_and_sort_pairs_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        main_batch.find_and_sort_pairs(str(tmp_path / "absent"))


def test_batch_processes_every_pair(fake_gemini, workdir: Path) -> None:
    media = workdir / "media"
    media.mkdir()
    for stem in ("one", "two"):
        (media / f"{stem}.mp3").write_bytes(b"audio")
        (media / f"{stem}.txt").write_text("Hello World", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main_batch.run_batch_processing(["-i", str(media)])

    assert excinfo.value.code == 0
    assert sorted(path.name for path in (media / "Subs").iterdir()) == ["one.srt", "two.srt"]
    assert len(fake_gemini) == 1


def test_find_and_sort_pairs_skips_duplicate_stems(tmp_path: Path) -> None:
    """Two audio files for one transcript would write the same .srt; only the first is kept."""
    (tmp_path / "talk.mp3").write_bytes(b"x" * 50)
    (tmp_path / "talk.wav").write_bytes(b"x")
    (tmp_path / "talk.txt").write_text("talk", encoding="utf-8")

    pairs = main_batch.find_and_sort_pairs(str(tmp_path))

    assert [Path(audio).name for audio, _, _ in pairs] == ["talk.mp3"]

"""CLI tests for the read/write commands."""

from __future__ import annotations

import json
from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from ffmetadata.cli import app


def test_read_command_prints_well_known_tags_first(
    fake_ffmpeg: Path,
    media_dir: Path,
    write_media,
) -> None:
    """Read should print canonical tags first, then the rest sorted."""

    source = write_media(
        media_dir / "song.mp3",
        {"zeta": "z", "title": "Test", "artist": "Someone", "alpha": "a"},
    )

    result = CliRunner().invoke(app, ["--ffmpeg", str(fake_ffmpeg), "read", str(source)])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "artist=Someone",
        "title=Test",
        "alpha=a",
        "zeta=z",
    ]


def test_read_command_json_output(
    fake_ffmpeg: Path,
    media_dir: Path,
    write_media,
) -> None:
    """`--json` should print a JSON object."""

    source = write_media(media_dir / "song.mp3", {"title": "Test"})

    result = CliRunner().invoke(
        app, ["--ffmpeg", str(fake_ffmpeg), "read", str(source), "--json"]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"title": "Test"}


def test_write_command_updates_file_and_echoes_tags(
    fake_ffmpeg: Path,
    media_dir: Path,
    write_media,
    read_media,
) -> None:
    """Write should tag the file in place and echo what was written."""

    source = write_media(media_dir / "song.mp3")

    result = CliRunner().invoke(
        app,
        [
            "--ffmpeg",
            str(fake_ffmpeg),
            "write",
            str(source),
            "--tag",
            "title=Test",
            "-t",
            "date=2024",
        ],
    )

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["title=Test", "date=2024"]
    assert read_media(source)["tags"] == {"title": "Test", "date": "2024"}


def test_write_dry_run_prints_quoted_command(tmp_path: Path) -> None:
    """Dry runs should print the command without needing ffmpeg installed."""

    source = tmp_path / "my song.mp3"

    result = CliRunner().invoke(
        app,
        [
            "--ffmpeg",
            "ffmpeg",
            "write",
            str(source),
            "--tag",
            "title=Test",
            "--attach",
            "cover.jpg",
            "--id3v1",
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "-map 0:0 -map 1:0 -codec copy -write_id3v1 1" in result.output
    assert "'" + str(tmp_path / "my song.ffmetadata.mp3") + "'" in result.output
    assert not source.exists()


def test_write_command_reports_process_failure(
    monkeypatch: MonkeyPatch,
    fake_ffmpeg: Path,
    media_dir: Path,
    write_media,
) -> None:
    """ffmpeg failures should print stage-aware diagnostics and exit 1."""

    monkeypatch.setenv("FAKE_FFMPEG_FAIL", "Invalid data")
    source = write_media(media_dir / "song.mp3")

    result = CliRunner().invoke(
        app, ["--ffmpeg", str(fake_ffmpeg), "write", str(source), "--tag", "title=x"]
    )

    assert result.exit_code == 1
    assert "write failed at stage `process`: Invalid data" in result.output
    assert "Hint: ffmpeg exited with code 1." in result.output


def test_write_command_rejects_malformed_tag(tmp_path: Path) -> None:
    """Tags without `=` should be rejected before anything runs."""

    result = CliRunner().invoke(
        app, ["--ffmpeg", "ffmpeg", "write", str(tmp_path / "a.mp3"), "--tag", "title"]
    )

    assert result.exit_code == 1
    assert "write failed at stage `arguments`" in result.output


def test_read_command_reports_missing_config_file(tmp_path: Path) -> None:
    """A missing `--config` file should fail at the config stage."""

    missing = tmp_path / "missing.yaml"

    result = CliRunner().invoke(app, ["--config", str(missing), "read", "song.mp3"])

    assert result.exit_code == 1
    assert "read failed at stage `config`" in result.output

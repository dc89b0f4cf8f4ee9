"""Shared pytest fixtures for the full ffmetadata test suite.

The `fake_ffmpeg` fixture writes a small Python program that mimics the parts
of ffmpeg this package relies on. Media files are JSON documents so tests can
inspect exactly what a write produced.
"""

from __future__ import annotations

import json
from pathlib import Path
import stat
import sys
import textwrap

import pytest
from loguru import logger

from ffmetadata.config import FfmetadataConfig


_FAKE_FFMPEG_SOURCE = '''
import json
import os
import sys
import time


def escape(text):
    return "".join("\\\\" + ch if ch in "\\\\=;#\\n" else ch for ch in text)


def main(args):
    log_path = os.environ.get("FAKE_FFMPEG_LOG")
    if log_path:
        with open(log_path, "a", encoding="utf-8") as handle:
            handle.write(json.dumps(args) + "\\n")

    noise = int(os.environ.get("FAKE_FFMPEG_STDERR_NOISE", "0"))
    if noise:
        sys.stderr.write("x" * noise)
        sys.stderr.flush()

    delay = float(os.environ.get("FAKE_FFMPEG_SLEEP", "0"))
    if delay:
        time.sleep(delay)

    inputs = [args[index + 1] for index, arg in enumerate(args[:-1]) if arg == "-i"]
    try:
        with open(inputs[0], encoding="utf-8") as handle:
            document = json.load(handle)
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"{inputs[0]}: {exc}")
        return 1

    if "-f" in args and args[args.index("-f") + 1] == "ffmetadata":
        lines = [";FFMETADATA1"]
        for key, value in document["tags"].items():
            lines.append(f"{escape(key)}={escape(value)}")
        for name, tags in document.get("sections", []):
            lines.append(f"[{name}]")
            for key, value in tags.items():
                lines.append(f"{escape(key)}={escape(value)}")
        sys.stdout.write("\\n".join(lines) + "\\n")
        sys.stdout.write(os.environ.get("FAKE_FFMPEG_EXTRA_STDOUT", ""))
        sys.stdout.flush()
        return int(os.environ.get("FAKE_FFMPEG_EXIT", "0"))

    if "-codec" not in args:
        with open(args[-1], "wb") as handle:
            handle.write(document.get("cover", "").encode("utf-8"))
        return 0

    output = args[-1]
    if os.environ.get("FAKE_FFMPEG_PARTIAL"):
        with open(output, "w", encoding="utf-8") as handle:
            handle.write("{truncated")

    failure = os.environ.get("FAKE_FFMPEG_FAIL")
    if failure:
        sys.stderr.write(failure)
        return 1

    tags = dict(document["tags"])
    for index, arg in enumerate(args[:-1]):
        if arg == "-metadata":
            key, _, value = args[index + 1].partition("=")
            tags[key] = value
    maps = [args[index + 1] for index, arg in enumerate(args[:-1]) if arg == "-map"]
    written = {
        "audio": document["audio"],
        "tags": tags,
        "streams": maps,
        "inputs": inputs,
    }
    with open(output, "w", encoding="utf-8") as handle:
        json.dump(written, handle)

    if os.environ.get("FAKE_FFMPEG_STDOUT"):
        sys.stdout.write(os.environ["FAKE_FFMPEG_STDOUT"])
    return 0


sys.exit(main(sys.argv[1:]))
'''


def _write_media(
    path: Path,
    tags: dict[str, str] | None = None,
    *,
    sections: list[tuple[str, dict[str, str]]] | None = None,
    cover: str = "",
) -> Path:
    """Write a JSON media document understood by the fake ffmpeg program."""

    document = {
        "audio": f"pcm:{path.name}",
        "tags": tags or {},
        "sections": [list(item) for item in sections or []],
        "cover": cover,
    }
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def _read_media(path: Path) -> dict[str, object]:
    """Load a JSON media document."""

    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def fake_ffmpeg(tmp_path: Path) -> Path:
    """Provide an executable fake ffmpeg program."""

    if sys.platform == "win32":
        pytest.skip("The fake ffmpeg program relies on a POSIX shebang.")
    script = tmp_path / "bin" / "ffmpeg"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(
        f"#!{sys.executable}\n" + textwrap.dedent(_FAKE_FFMPEG_SOURCE),
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def fake_config(fake_ffmpeg: Path) -> FfmetadataConfig:
    """Provide a config that spawns the fake ffmpeg program."""

    return FfmetadataConfig(ffmpeg_path=str(fake_ffmpeg))


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Provide an empty directory for media files."""

    directory = tmp_path / "media"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def _clean_fake_ffmpeg_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep fake ffmpeg switches from leaking between tests."""

    for name in (
        "FAKE_FFMPEG_LOG",
        "FAKE_FFMPEG_STDERR_NOISE",
        "FAKE_FFMPEG_SLEEP",
        "FAKE_FFMPEG_EXTRA_STDOUT",
        "FAKE_FFMPEG_EXIT",
        "FAKE_FFMPEG_PARTIAL",
        "FAKE_FFMPEG_FAIL",
        "FAKE_FFMPEG_STDOUT",
        "FFMPEG_PATH",
        "FFMETADATA_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def captured_logs():
    """Enable ffmetadata logs into a list of lines for the duration of a test."""

    lines: list[str] = []
    logger.enable("ffmetadata")
    handler_id = logger.add(
        lambda message: lines.append(str(message).rstrip("\n")),
        format="{message}",
        level="DEBUG",
    )
    yield lines
    logger.remove(handler_id)
    logger.disable("ffmetadata")


@pytest.fixture
def write_media():
    """Provide the JSON media document writer."""

    return _write_media


@pytest.fixture
def read_media():
    """Provide the JSON media document loader."""

    return _read_media

"""Runtime executable resolution for the ffmpeg dependency.

Responsibilities:
- Resolve the ffmpeg executable once, when configuration is built.
- Honor an explicit path or `FFMPEG_PATH` before bundled and `PATH` lookups.
- Support frozen app layouts (for example PyInstaller) and local development runs.
"""

from __future__ import annotations

import os
from pathlib import Path
import shutil
import sys
from typing import Mapping


DEFAULT_FFMPEG_NAME = "ffmpeg"
FFMPEG_PATH_ENV = "FFMPEG_PATH"


def resolve_ffmpeg(
    explicit: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Resolve the ffmpeg executable from explicit value, environment, then lookup.

    Resolution order:
    1. `explicit` when it is a non-blank string.
    2. The `FFMPEG_PATH` environment variable.
    3. `resolve_executable("ffmpeg")`.
    """

    env_map: Mapping[str, str] = os.environ if env is None else env
    for candidate in (explicit, env_map.get(FFMPEG_PATH_ENV)):
        if candidate is not None and candidate.strip():
            return _expand(candidate.strip())
    return resolve_executable(DEFAULT_FFMPEG_NAME)


def resolve_executable(command_name: str) -> str:
    """Resolve an executable with bundled-first precedence, then PATH.

    Resolution order:
    1. Bundled app directories (`./bin/<tool>` then `./<tool>` from app root).
    2. System `PATH`.
    3. Raw command name (allowing subprocess to raise a native missing-binary error).
    """

    normalized = command_name.strip()
    if not normalized:
        return command_name

    for candidate in _bundled_candidates(normalized):
        if candidate.is_file():
            return str(candidate)

    resolved_path = shutil.which(normalized)
    if resolved_path is not None:
        return resolved_path

    return normalized


def _expand(path_text: str) -> str:
    """Expand a user-home prefix while leaving bare command names untouched."""

    if path_text.startswith("~"):
        return str(Path(path_text).expanduser())
    return path_text


def _bundled_candidates(command_name: str) -> list[Path]:
    """Return bundled candidate paths for one executable name."""

    app_root = _app_root()
    names = _candidate_names(command_name)
    candidates: list[Path] = []
    for name in names:
        candidates.append(app_root / "bin" / name)
        candidates.append(app_root / name)
    return candidates


def _candidate_names(command_name: str) -> tuple[str, ...]:
    """Return command name variants including Windows `.exe` fallback."""

    lowered = command_name.lower()
    if lowered.endswith(".exe"):
        return (command_name,)
    return (command_name, f"{command_name}.exe")


def _app_root() -> Path:
    """Resolve runtime application root for frozen and non-frozen execution."""

    frozen = bool(getattr(sys, "frozen", False))
    if frozen:
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]

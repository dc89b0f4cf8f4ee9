"""Core datatypes shared across ffmetadata modules.

Responsibilities:
- Represent the read-only operation options handed to the argument builder.
- Represent one ffmpeg process outcome and the write pipeline states.

Key types:
- `TagOptions`, `ProcessOutcome`, `WriteState`, and the `MetadataRecord` alias.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import os
from typing import Any, Mapping

from ..parsing import normalize_optional_string, parse_required_boolean


MetadataRecord = dict[str, str]

WELL_KNOWN_TAGS: tuple[str, ...] = (
    "artist",
    "album",
    "title",
    "track",
    "disk",
    "label",
    "date",
)

_OPTION_ALIASES = {
    "attachments": "attachments",
    "id3v1": "id3v1",
    "id3v2.3": "id3v2_3",
    "id3v2_3": "id3v2_3",
    "dryRun": "dry_run",
    "dry_run": "dry_run",
    "coverPath": "cover_path",
    "cover_path": "cover_path",
}


@dataclass(frozen=True, slots=True)
class TagOptions:
    """Options for one read or write operation.

    Attributes:
        attachments: Extra input files muxed in after the source (write only).
        id3v1: Also write a legacy ID3v1 tag.
        id3v2_3: Pin the ID3v2 container version to 3.
        dry_run: Return the argument vector instead of running ffmpeg.
        cover_path: Extract embedded cover art to this path (read only).
    """

    attachments: tuple[str, ...] = ()
    id3v1: bool = False
    id3v2_3: bool = False
    dry_run: bool = False
    cover_path: str | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> TagOptions:
        """Build options from a mapping using either camelCase or snake_case keys.

        Raises:
            ValueError: If a key is unknown or a flag is not a boolean token.
        """

        resolved: dict[str, Any] = {}
        for key, value in values.items():
            field_name = _OPTION_ALIASES.get(key)
            if field_name is None:
                supported = ", ".join(sorted(_OPTION_ALIASES))
                raise ValueError(f"Unsupported option `{key}`; supported: {supported}.")
            if field_name == "attachments":
                resolved[field_name] = _attachment_tuple(value)
            elif field_name == "cover_path":
                resolved[field_name] = (
                    None if value is None else normalize_optional_string(os.fspath(value))
                )
            else:
                resolved[field_name] = (
                    value if isinstance(value, bool) else parse_required_boolean(value, key)
                )
        return cls(**resolved)


def _attachment_tuple(value: Any) -> tuple[str, ...]:
    """Normalize an attachment sequence into a tuple of path strings."""

    if value is None:
        return ()
    if isinstance(value, (str, os.PathLike)):
        return (os.fspath(value),)
    return tuple(os.fspath(item) for item in value)


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Result of one finished ffmpeg invocation.

    Attributes:
        exit_code: Process return code.
        stderr: Full standard error payload.
        timed_out: Whether the process was killed by the configured deadline.
    """

    exit_code: int
    stderr: bytes
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        """Return whether the process exited cleanly."""

        return self.exit_code == 0 and not self.timed_out

    @property
    def stderr_text(self) -> str:
        """Decode stderr for diagnostics, replacing invalid bytes."""

        return self.stderr.decode("utf-8", errors="replace").strip()


class WriteState(StrEnum):
    """Lifecycle states of one write operation."""

    BUILDING = "building"
    PLANNED = "planned"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

"""Streaming codec for ffmpeg's `ffmetadata` INI-style format.

Responsibilities:
- Decode export lines incrementally into a tag record with O(1) extra state.
- Escape tag keys and values before they are handed to ffmpeg as arguments.

Format summary:
- `;` starts a comment line, blank lines are ignored.
- `key=value` starts a directive; ffmpeg's export backslash-escapes `\\`, `=`,
  `;`, `#` and newline inside keys and values.
- A backslash at the end of a line is an escaped newline: the next line
  continues the same value.
- `[NAME]` lines open chapter/stream sections whose tags are kept apart from
  the global record.

Outgoing `-metadata` tokens are escaped with a smaller set: `=`, newline and a
leading `;`. ffmpeg stores those arguments verbatim, so any other character is
passed through untouched.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from ..errors import DecodeError
from ..models.datatypes import MetadataRecord


COMMENT_MARKER = ";"
_ALWAYS_ESCAPED = frozenset({"=", "\n"})


def escape_value(text: str) -> str:
    """Backslash-escape `=`, newlines and a leading comment marker."""

    escaped = "".join(f"\\{ch}" if ch in _ALWAYS_ESCAPED else ch for ch in text)
    if escaped.startswith(COMMENT_MARKER):
        return f"\\{escaped}"
    return escaped


def unescape_value(text: str) -> str:
    """Drop escape backslashes, keeping the escaped character verbatim."""

    if "\\" not in text:
        return text
    chars: list[str] = []
    escaped = False
    for ch in text:
        if escaped:
            chars.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        else:
            chars.append(ch)
    if escaped:
        chars.append("\\")
    return "".join(chars)


def encode_metadata_args(metadata: Mapping[str, object]) -> list[str]:
    """Return escaped `key=value` tokens in the record's own order."""

    return [
        f"{escape_value(str(key))}={escape_value(str(value))}"
        for key, value in metadata.items()
    ]


def _split_directive(line: str) -> tuple[str, str] | None:
    """Split at the first unescaped `=`, or return `None` when there is none."""

    escaped = False
    for index, ch in enumerate(line):
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "=":
            return line[:index], line[index + 1 :]
    return None


def _strip_continuation_marker(line: str) -> tuple[str, bool]:
    """Remove a trailing escaped-newline marker and report whether one was present."""

    trailing = len(line) - len(line.rstrip("\\"))
    if trailing % 2 == 1:
        return line[:-1], True
    return line, False


def _is_section_header(line: str) -> bool:
    return len(line) > 2 and line.startswith("[") and line.endswith("]")


class FfmetadataDecoder:
    """Incremental decoder for ffmetadata output.

    Feed lines as they arrive with `feed_line`, then call `finish` once the
    line source reaches end-of-input. Only the global section ends up in the
    returned record; chapter and stream sections are exposed via `sections`.
    """

    def __init__(self) -> None:
        self._data: MetadataRecord = {}
        self._target: dict[str, str] = self._data
        self._key: str | None = None
        self._parts: list[str] = []
        self._continues = False
        self._line_number = 0
        self._finished = False
        self.sections: list[tuple[str, dict[str, str]]] = []

    @property
    def line_number(self) -> int:
        return self._line_number

    def feed(self, lines: Iterable[str]) -> None:
        """Feed every line of an iterable."""

        for line in lines:
            self.feed_line(line)

    def feed_line(self, raw_line: str) -> None:
        """Consume one line of ffmetadata output."""

        if self._finished:
            raise DecodeError("Decoder received input after it was finished")

        self._line_number += 1
        line = raw_line.rstrip("\r\n")

        if self._continues:
            self._append_continuation(line)
            return

        if not line.strip() or line.startswith(COMMENT_MARKER):
            return

        if _is_section_header(line) and _split_directive(line) is None:
            self._open_section(line[1:-1])
            return

        directive = _split_directive(line)
        if directive is None:
            self._append_continuation(line)
            return

        raw_key, raw_value = directive
        self._flush()
        self._key = unescape_value(raw_key)
        self._parts = []
        self._append_value(raw_value)

    def finish(self) -> MetadataRecord:
        """Finalize the decode and return the global tag record."""

        if self._finished:
            raise DecodeError("Decoder was already finished")
        self._flush()
        self._finished = True
        return dict(self._data)

    def _append_continuation(self, line: str) -> None:
        if self._key is None:
            raise DecodeError(
                "Continuation line appeared before any key", self._line_number
            )
        self._append_value(line)

    def _append_value(self, raw: str) -> None:
        text, self._continues = _strip_continuation_marker(raw)
        self._parts.append(unescape_value(text))
        if self._continues:
            self._parts.append("\n")

    def _open_section(self, name: str) -> None:
        self._flush()
        section: dict[str, str] = {}
        self.sections.append((name, section))
        self._target = section

    def _flush(self) -> None:
        """Store the pending key; a repeated key overwrites its prior value."""

        if self._key is not None:
            self._target[self._key] = "".join(self._parts)
        self._key = None
        self._parts = []


def decode_lines(lines: Iterable[str]) -> MetadataRecord:
    """Decode a complete sequence of ffmetadata lines into a tag record."""

    decoder = FfmetadataDecoder()
    decoder.feed(lines)
    return decoder.finish()

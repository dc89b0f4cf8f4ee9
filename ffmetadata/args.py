"""ffmpeg argument construction for tag read and write operations.

Responsibilities:
- Map a source path and `TagOptions` to the ordered ffmpeg argument vector.
- Derive the sibling temp artifact path used by the write pipeline.

Builders are pure: they never spawn processes or touch the filesystem.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from .codec.ini import encode_metadata_args
from .models.datatypes import TagOptions


EXPORT_FORMAT = "ffmetadata"
STDOUT_TARGET = "pipe:1"
TEMP_INFIX = ".ffmetadata"

PathLike = str | os.PathLike[str]


def temp_path_for(source: PathLike) -> Path:
    """Return `<dir>/<stem>.ffmetadata<ext>` for a source file."""

    source_path = Path(source)
    return source_path.with_name(f"{source_path.stem}{TEMP_INFIX}{source_path.suffix}")


def build_read_args(source: PathLike, options: TagOptions) -> list[str]:
    """Build arguments that export metadata to stdout or extract cover art."""

    src = os.fspath(source)
    if options.cover_path is not None:
        return ["-i", src, options.cover_path]
    return ["-i", src, "-f", EXPORT_FORMAT, STDOUT_TARGET]


def build_write_args(
    source: PathLike,
    destination: PathLike,
    metadata: Mapping[str, object],
    options: TagOptions,
) -> list[str]:
    """Build arguments that copy streams, mux attachments and set tags.

    Every `-i` precedes every `-map`: ffmpeg treats options placed before an
    `-i` as options of that input. Attachment *n* (1-based) is bound to output
    stream *n*.
    """

    inputs = ["-i", os.fspath(source)]
    maps = ["-map", "0:0"]
    for attachment in options.attachments:
        input_index = len(inputs) // 2
        inputs.extend(["-i", os.fspath(attachment)])
        maps.extend(["-map", f"{input_index}:0"])

    args = ["-y", *inputs, *maps, "-codec", "copy"]

    if options.id3v1:
        args.extend(["-write_id3v1", "1"])

    if options.id3v2_3:
        args.extend(["-id3v2_version", "3"])

    for token in encode_metadata_args(metadata):
        args.extend(["-metadata", token])

    args.append(os.fspath(destination))
    return args

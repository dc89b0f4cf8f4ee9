"""Codec for the ffmetadata export/import text format."""

from .ini import (
    FfmetadataDecoder,
    decode_lines,
    encode_metadata_args,
    escape_value,
    unescape_value,
)

__all__ = [
    "FfmetadataDecoder",
    "decode_lines",
    "encode_metadata_args",
    "escape_value",
    "unescape_value",
]

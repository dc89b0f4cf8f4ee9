"""Shared typed data models for ffmetadata.

This package contains the dataclasses and enums exchanged between the argument
builder, the process runner and the write pipeline.
"""

from .datatypes import (
    WELL_KNOWN_TAGS,
    MetadataRecord,
    ProcessOutcome,
    TagOptions,
    WriteState,
)

__all__ = [
    "WELL_KNOWN_TAGS",
    "MetadataRecord",
    "ProcessOutcome",
    "TagOptions",
    "WriteState",
]

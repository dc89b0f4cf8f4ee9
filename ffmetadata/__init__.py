"""Top-level package for ffmetadata.

This package reads and writes media tags by running ffmpeg: it builds the
argument vectors, decodes the `ffmetadata` export stream as it arrives, and
replaces files atomically on write. The main entry points are `read`, `write`
and `FfmetadataClient`.
"""

from loguru import logger as _logger

from .client import FfmetadataClient, read, write
from .config import ConfigLoader, FfmetadataConfig
from .errors import (
    DecodeError,
    FfmetadataError,
    FilesystemError,
    ProcessExitError,
    ProcessTimeoutError,
    SpawnError,
)
from .models.datatypes import WELL_KNOWN_TAGS, TagOptions

_logger.disable(__name__)

__all__ = [
    "ConfigLoader",
    "DecodeError",
    "FfmetadataClient",
    "FfmetadataConfig",
    "FfmetadataError",
    "FilesystemError",
    "ProcessExitError",
    "ProcessTimeoutError",
    "SpawnError",
    "TagOptions",
    "WELL_KNOWN_TAGS",
    "__version__",
    "read",
    "write",
]

__version__ = "0.3.0"

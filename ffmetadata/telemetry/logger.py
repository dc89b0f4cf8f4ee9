"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic stage-level logs for read and write operations.
- Route every line through `loguru`; the package namespace stays disabled until
  an application (for example the CLI) enables it.
"""

from __future__ import annotations

from typing import TextIO

from loguru import logger as _loguru_logger


_LOGGER_NAMESPACE = "ffmetadata"


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(sink: TextIO, *, level: str = "INFO") -> int:
    """Enable ffmetadata logs and route all loguru output to `sink`.

    Existing loguru handlers are removed. Returns the new handler id.
    """

    _loguru_logger.remove()
    _loguru_logger.enable(_LOGGER_NAMESPACE)
    return _loguru_logger.add(sink, format="{message}", level=level, colorize=False)


class RunLogger:
    """Emit deterministic stage logs for tag read/write activity."""

    def __init__(self, operation: str = "tags") -> None:
        """Bind the logger to one operation label."""

        self._logger = _loguru_logger.bind(operation=operation)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)

    def log_transition(self, state: str, **context: object) -> None:
        """Emit a write-pipeline state transition."""

        self._emit("INFO", "transition", "write", state=state, **context)

    def log_detail(self, stage: str, event: str, **context: object) -> None:
        """Emit a debug-level detail line."""

        self._emit("DEBUG", event, stage, **context)

    def log_warning(self, stage: str, event: str, **context: object) -> None:
        """Emit a warning that does not change the operation outcome."""

        self._emit("WARNING", event, stage, **context)

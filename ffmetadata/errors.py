"""Domain exceptions for tag read/write diagnostics.

Every failure of one `read` or `write` call surfaces as exactly one
`FfmetadataError` subclass. None of them are retried internally.
"""

from __future__ import annotations


class FfmetadataError(RuntimeError):
    """Raised when a specific stage of a tag operation fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class SpawnError(FfmetadataError):
    """Raised when the ffmpeg executable cannot be started."""

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(
            stage="spawn",
            detail=f"Could not start `{executable}`: {reason}",
            hint="Install ffmpeg or point `FFMPEG_PATH` / `--ffmpeg` at the executable.",
        )
        self.executable = executable


class ProcessExitError(FfmetadataError):
    """Raised when ffmpeg exits with a nonzero code.

    The message body is the captured standard error text, so `str(exc)` shows
    ffmpeg's own diagnostic.
    """

    def __init__(self, exit_code: int, stderr: str) -> None:
        super().__init__(
            stage="process",
            detail=stderr,
            hint=f"ffmpeg exited with code {exit_code}.",
        )
        self.exit_code = exit_code
        self.stderr = stderr


class ProcessTimeoutError(ProcessExitError):
    """Raised when ffmpeg is killed because the configured deadline elapsed."""

    def __init__(self, timeout_seconds: float, exit_code: int, stderr: str) -> None:
        super().__init__(exit_code, stderr)
        self.detail = f"ffmpeg did not finish within {timeout_seconds:g}s."
        self.hint = "Raise `timeout_seconds` / `--timeout` or check the input file."
        self.args = (self.detail,)
        self.timeout_seconds = timeout_seconds


class FilesystemError(FfmetadataError):
    """Raised when the temp artifact cannot be moved over the source file."""


class DecodeError(FfmetadataError):
    """Raised when ffmetadata output is malformed."""

    def __init__(self, detail: str, line_number: int | None = None) -> None:
        location = f" (line {line_number})" if line_number is not None else ""
        super().__init__(stage="decode", detail=f"{detail}{location}")
        self.line_number = line_number

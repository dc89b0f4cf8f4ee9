"""Atomic write pipeline around one ffmpeg tag-injection run.

Responsibilities:
- Build the temp artifact path and write arguments.
- Run ffmpeg with the temp path as output target.
- Commit by renaming the temp artifact over the source, or roll back by
  removing it and re-raising the original failure.

State flow:
`building -> running -> (succeeded | failed) -> (committed | rolled_back)`;
dry runs stop in `planned` without spawning anything.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from .args import PathLike, build_write_args, temp_path_for
from .errors import FilesystemError
from .models.datatypes import TagOptions, WriteState
from .process.runner import OutputSink, ProcessRunner
from .telemetry.logger import RunLogger


class WritePipeline:
    """Drive one write invocation through its state machine.

    A pipeline instance serves exactly one `run` call; `state` holds the
    terminal state afterwards.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        run_logger: RunLogger | None = None,
        output_sink: OutputSink | None = None,
    ) -> None:
        self._runner = runner
        self._run_logger = run_logger if run_logger is not None else RunLogger("write")
        self._output_sink = output_sink
        self.state = WriteState.BUILDING
        self.temp_path: Path | None = None

    def run(
        self,
        source: PathLike,
        metadata: Mapping[str, object],
        options: TagOptions,
    ) -> list[str]:
        """Execute the write and return the argument vector that was used.

        Raises:
            RuntimeError: If the pipeline instance was already used.
            FfmetadataError: The original spawn/process error after rollback, or
                a `FilesystemError` when the commit rename failed.
        """

        if self.state is not WriteState.BUILDING:
            raise RuntimeError("WritePipeline instances run exactly once.")

        source_path = Path(source)
        self.temp_path = temp_path_for(source_path)
        args = build_write_args(source_path, self.temp_path, metadata, options)

        if options.dry_run:
            self._transition(WriteState.PLANNED, source=source_path)
            return args

        temp_path = self.temp_path
        self._transition(WriteState.RUNNING, source=source_path, temp=temp_path.name)
        try:
            self._runner.run_write(args, output_sink=self._output_sink)
        except BaseException as exc:
            self._transition(WriteState.FAILED, error_type=type(exc).__name__)
            self._roll_back(temp_path)
            raise

        self._transition(WriteState.SUCCEEDED)
        self._commit(temp_path, source_path)
        return args

    def _commit(self, temp_path: Path, source_path: Path) -> None:
        """Atomically replace the source with the temp artifact."""

        try:
            os.replace(temp_path, source_path)
        except OSError as exc:
            self._transition(WriteState.FAILED, error_type=type(exc).__name__)
            self._roll_back(temp_path)
            raise FilesystemError(
                stage="commit",
                detail=(
                    f"Could not replace `{source_path}` with `{temp_path.name}`: "
                    f"{exc.strerror or exc}"
                ),
                hint="Check write permissions on the source directory.",
            ) from exc
        self._transition(WriteState.COMMITTED, source=source_path)

    def _roll_back(self, temp_path: Path) -> None:
        """Remove the temp artifact; removal failures never mask the original error."""

        try:
            temp_path.unlink(missing_ok=True)
        except OSError as exc:
            self._run_logger.log_warning(
                "rollback",
                "cleanup_failed",
                temp=temp_path.name,
                error_type=type(exc).__name__,
            )
        self._transition(WriteState.ROLLED_BACK, temp=temp_path.name)

    def _transition(self, state: WriteState, **context: object) -> None:
        self.state = state
        self._run_logger.log_transition(state.value, **context)

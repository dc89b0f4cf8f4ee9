"""Public read/write entry points.

Responsibilities:
- Normalize caller options and delegate to the argument builder, the process
  runner and the write pipeline.
- Deliver results one way: a return value on success, an exception on failure.

Key public names:
- `FfmetadataClient`: configured client reused across calls.
- `read`, `write`: one-shot helpers building a client per call.
"""

from __future__ import annotations

from typing import Any, Mapping

from .args import PathLike, build_read_args
from .config import ConfigLoader, FfmetadataConfig
from .models.datatypes import MetadataRecord, TagOptions
from .pipeline import WritePipeline
from .process.runner import OutputSink, ProcessRunner
from .telemetry.logger import RunLogger


OptionsInput = TagOptions | Mapping[str, Any] | None


def resolve_options(options: OptionsInput) -> TagOptions:
    """Accept `TagOptions`, a plain mapping, or `None`."""

    if options is None:
        return TagOptions()
    if isinstance(options, TagOptions):
        return options
    return TagOptions.from_mapping(options)


class FfmetadataClient:
    """Read and write media tags through ffmpeg.

    The configuration (and with it the ffmpeg executable) is resolved once, at
    construction. Calls share no mutable state.
    """

    def __init__(
        self,
        config: FfmetadataConfig | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._config = config if config is not None else ConfigLoader.from_env()
        self._config.validate()
        self._run_logger = run_logger if run_logger is not None else RunLogger()

    @property
    def config(self) -> FfmetadataConfig:
        return self._config

    def read(self, source: PathLike, options: OptionsInput = None) -> MetadataRecord | list[str]:
        """Read the global tags of `source`.

        With `cover_path` set, ffmpeg extracts the embedded cover image instead
        and the returned record is empty. With `dry_run` set, the argument
        vector is returned and nothing runs.
        """

        resolved = resolve_options(options)
        args = build_read_args(source, resolved)
        if resolved.dry_run:
            return args

        stage = "cover" if resolved.cover_path is not None else "read"
        self._run_logger.log_stage_start(stage, source=source)
        try:
            record = ProcessRunner(self._config, self._run_logger).run_read(args)
        except Exception as exc:
            self._run_logger.log_stage_failure(stage, type(exc).__name__)
            raise
        self._run_logger.log_stage_complete(stage, tags=len(record))
        return record

    def write(
        self,
        source: PathLike,
        metadata: Mapping[str, object],
        options: OptionsInput = None,
        output_sink: OutputSink | None = None,
    ) -> MetadataRecord | list[str]:
        """Write `metadata` into `source` in place and echo the written record.

        The source is only replaced after ffmpeg exits successfully; on any
        failure the temp artifact is removed and the original error is raised.
        With `dry_run` set, the argument vector is returned and nothing runs.
        """

        resolved = resolve_options(options)
        written = {str(key): str(value) for key, value in metadata.items()}
        pipeline = WritePipeline(
            ProcessRunner(self._config, self._run_logger),
            run_logger=self._run_logger,
            output_sink=output_sink,
        )

        if not resolved.dry_run:
            self._run_logger.log_stage_start("write", source=source, tags=len(written))
        args = pipeline.run(source, written, resolved)
        if resolved.dry_run:
            return args

        self._run_logger.log_stage_complete("write", state=pipeline.state.value)
        return written


def read(
    source: PathLike,
    options: OptionsInput = None,
    *,
    config: FfmetadataConfig | None = None,
) -> MetadataRecord | list[str]:
    """Read tags from `source` with a client built for this call."""

    return FfmetadataClient(config).read(source, options)


def write(
    source: PathLike,
    metadata: Mapping[str, object],
    options: OptionsInput = None,
    *,
    config: FfmetadataConfig | None = None,
) -> MetadataRecord | list[str]:
    """Write tags into `source` with a client built for this call."""

    return FfmetadataClient(config).write(source, metadata, options)

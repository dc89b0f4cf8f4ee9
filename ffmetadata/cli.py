"""Command-line interface for ffmetadata.

Responsibilities:
- Expose `read` and `write` commands over the library client.
- Resolve configuration from `--config`, `--ffmpeg`, `--timeout` and the environment.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sys
from typing import Annotated, Optional

import typer

from .cli_rendering import echo_command, echo_tags, exit_with_command_error
from .client import FfmetadataClient
from .config import ConfigLoader, FfmetadataConfig
from .errors import FfmetadataError
from .models.datatypes import TagOptions
from .telemetry.logger import RunLogger, configure_logging

app = typer.Typer(
    name="ffmetadata",
    no_args_is_help=True,
    help="Read and write media tags through ffmpeg.",
)


@dataclass(frozen=True, slots=True)
class CliState:
    """Per-invocation CLI settings shared with subcommands."""

    config_file: Path | None
    ffmpeg: str | None
    timeout: float | None


def _load_config(state: CliState) -> FfmetadataConfig:
    """Load configuration and map failures to stage errors."""

    try:
        if state.config_file is not None:
            config = ConfigLoader.from_yaml(state.config_file)
        else:
            config = ConfigLoader.from_env()
        if state.ffmpeg is not None:
            config = config.with_ffmpeg_path(state.ffmpeg)
        if state.timeout is not None:
            config = config.with_timeout(state.timeout)
    except FileNotFoundError as exc:
        raise FfmetadataError(
            stage="config",
            detail=f"Config file not found: `{state.config_file}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise FfmetadataError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config values and rerun.",
        ) from exc
    return config


def _parse_tag_assignments(assignments: list[str]) -> dict[str, str]:
    """Parse repeated `KEY=VALUE` options; later duplicates win."""

    metadata: dict[str, str] = {}
    for assignment in assignments:
        key, separator, value = assignment.partition("=")
        if not separator or not key:
            raise FfmetadataError(
                stage="arguments",
                detail=f"Invalid tag `{assignment}`; expected KEY=VALUE.",
                hint="Pass tags as `--tag title=Example`.",
            )
        metadata[key] = value
    return metadata


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", help="YAML file with `ffmpeg_path` / `timeout_seconds`."),
    ] = None,
    ffmpeg: Annotated[
        Optional[str],
        typer.Option("--ffmpeg", help="ffmpeg executable name or path."),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", help="Kill ffmpeg after this many seconds."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log stage events to stderr."),
    ] = False,
) -> None:
    """Read and write media tags through ffmpeg."""

    if verbose:
        configure_logging(sys.stderr, level="DEBUG")
    ctx.obj = CliState(config_file=config_file, ffmpeg=ffmpeg, timeout=timeout)


@app.command("read")
def read_command(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Media file to read tags from.")],
    cover: Annotated[
        Optional[Path],
        typer.Option("--cover", help="Extract embedded cover art to this path instead."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the ffmpeg command without running it."),
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print tags as JSON.")] = False,
) -> None:
    """Print the global tags of a media file."""

    try:
        config = _load_config(ctx.obj)
        options = TagOptions(
            dry_run=dry_run,
            cover_path=str(cover) if cover is not None else None,
        )
        result = FfmetadataClient(config, RunLogger("read")).read(source, options)
    except Exception as exc:
        exit_with_command_error("read", exc)

    if isinstance(result, list):
        echo_command(config.ffmpeg_path, result)
    elif cover is not None:
        typer.echo(f"Cover: {cover}")
    else:
        echo_tags(result, as_json=as_json)


@app.command("write")
def write_command(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Media file to tag in place.")],
    tags: Annotated[
        list[str],
        typer.Option("--tag", "-t", help="Tag assignment `KEY=VALUE`; repeatable."),
    ],
    attachments: Annotated[
        Optional[list[Path]],
        typer.Option("--attach", help="Extra input to mux in (e.g. cover art); repeatable."),
    ] = None,
    id3v1: Annotated[bool, typer.Option("--id3v1", help="Also write an ID3v1 tag.")] = False,
    id3v2_3: Annotated[
        bool,
        typer.Option("--id3v2-3", help="Write ID3v2.3 instead of ffmpeg's default."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the ffmpeg command without running it."),
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print written tags as JSON.")] = False,
) -> None:
    """Write tags into a media file, replacing it atomically."""

    try:
        config = _load_config(ctx.obj)
        metadata = _parse_tag_assignments(tags)
        options = TagOptions(
            attachments=tuple(str(path) for path in attachments or []),
            id3v1=id3v1,
            id3v2_3=id3v2_3,
            dry_run=dry_run,
        )
        result = FfmetadataClient(config, RunLogger("write")).write(source, metadata, options)
    except Exception as exc:
        exit_with_command_error("write", exc)

    if isinstance(result, list):
        echo_command(config.ffmpeg_path, result)
    else:
        echo_tags(result, as_json=as_json)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()

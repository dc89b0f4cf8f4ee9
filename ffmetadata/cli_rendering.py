"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for tag records, dry-run
commands and command diagnostics.
"""

from __future__ import annotations

import json
import shlex
from typing import Mapping, NoReturn

import typer

from .errors import FfmetadataError
from .models.datatypes import WELL_KNOWN_TAGS


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, FfmetadataError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def ordered_tag_items(record: Mapping[str, str]) -> list[tuple[str, str]]:
    """Return well-known tags first (in canonical order), then the rest sorted."""

    known = [(key, record[key]) for key in WELL_KNOWN_TAGS if key in record]
    rest = sorted((key, value) for key, value in record.items() if key not in WELL_KNOWN_TAGS)
    return known + rest


def echo_tags(record: Mapping[str, str], *, as_json: bool = False) -> None:
    """Print a tag record as `key=value` lines or as a JSON object."""

    if as_json:
        typer.echo(json.dumps(dict(ordered_tag_items(record)), ensure_ascii=False, indent=2))
        return
    for key, value in ordered_tag_items(record):
        typer.echo(f"{key}={value}")


def echo_command(executable: str, args: list[str]) -> None:
    """Print the shell-quoted ffmpeg command a dry run would execute."""

    typer.echo(shlex.join([executable, *args]))

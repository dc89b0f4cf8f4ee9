"""Configuration model and loaders for ffmetadata.

Responsibilities:
- Define runtime configuration as a typed, immutable dataclass.
- Resolve the ffmpeg executable once, when configuration is built.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `FfmetadataConfig`: normalized runtime settings handed to the process runner.
- `ConfigLoader`: static construction helpers for `FfmetadataConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_optional_string, parse_optional_positive_float
from .runtime_tools import DEFAULT_FFMPEG_NAME, FFMPEG_PATH_ENV, resolve_ffmpeg


FFMETADATA_TIMEOUT_ENV = "FFMETADATA_TIMEOUT"


@dataclass(frozen=True, slots=True)
class FfmetadataConfig:
    """Runtime configuration for tag operations.

    Attributes:
        ffmpeg_path: Executable name or path used to spawn ffmpeg.
        timeout_seconds: Optional deadline per ffmpeg invocation; `None` waits forever.
    """

    ffmpeg_path: str = DEFAULT_FFMPEG_NAME
    timeout_seconds: float | None = None

    def validate(self) -> None:
        """Validate configuration values before they reach the process runner."""

        if not isinstance(self.ffmpeg_path, str) or not self.ffmpeg_path.strip():
            raise ValueError("`ffmpeg_path` must be a non-empty string.")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be a positive number.")

    def with_ffmpeg_path(self, path: str | os.PathLike[str]) -> FfmetadataConfig:
        """Return a copy that spawns the given ffmpeg executable."""

        config = replace(self, ffmpeg_path=os.fspath(path))
        config.validate()
        return config

    def with_timeout(self, timeout_seconds: float | None) -> FfmetadataConfig:
        """Return a copy with a different per-invocation deadline."""

        config = replace(self, timeout_seconds=timeout_seconds)
        config.validate()
        return config


class ConfigLoader:
    """Factory methods for creating `FfmetadataConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset({"ffmpeg_path", "timeout_seconds"})

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> FfmetadataConfig:
        """Create a validated config from environment variables.

        `FFMPEG_PATH` overrides the executable; otherwise bundled and `PATH`
        lookups run once here. `FFMETADATA_TIMEOUT` sets the deadline.
        """

        env_map: Mapping[str, str] = os.environ if env is None else env

        config = FfmetadataConfig(
            ffmpeg_path=resolve_ffmpeg(env=env_map),
            timeout_seconds=parse_optional_positive_float(
                env_map.get(FFMETADATA_TIMEOUT_ENV), FFMETADATA_TIMEOUT_ENV
            ),
        )
        config.validate()
        return config

    @staticmethod
    def from_yaml(path: Path, env: Mapping[str, str] | None = None) -> FfmetadataConfig:
        """Create a validated config from a YAML file.

        Keys missing from the file fall back to the environment defaults.
        """

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)
        return ConfigLoader._build_config_from_mapping(
            payload,
            source_label=f"YAML `{path}`",
            env=env,
        )

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any],
        source_label: str,
        env: Mapping[str, str] | None = None,
    ) -> FfmetadataConfig:
        """Build a validated config from a mapping payload."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

        env_map: Mapping[str, str] = os.environ if env is None else env
        explicit_path = normalize_optional_string(payload.get("ffmpeg_path"))

        if "timeout_seconds" in payload:
            try:
                timeout = parse_optional_positive_float(
                    payload["timeout_seconds"], "timeout_seconds"
                )
            except ValueError as exc:
                raise ValueError(f"{source_label}: {exc}") from exc
        else:
            timeout = parse_optional_positive_float(
                env_map.get(FFMETADATA_TIMEOUT_ENV), FFMETADATA_TIMEOUT_ENV
            )

        config = FfmetadataConfig(
            ffmpeg_path=resolve_ffmpeg(explicit_path, env=env_map),
            timeout_seconds=timeout,
        )
        config.validate()
        return config

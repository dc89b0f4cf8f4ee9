"""ffmpeg process execution with streamed output handling.

Responsibilities:
- Spawn ffmpeg with piped stdout/stderr and no interactive stdin.
- Stream stdout into the ffmetadata decoder while the process is running.
- Buffer stderr on a worker thread and classify the outcome by exit code.
- Enforce the optional per-invocation deadline from `FfmetadataConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
import io
import subprocess
import threading
from typing import IO, Callable

from ..codec.ini import FfmetadataDecoder
from ..config import FfmetadataConfig
from ..errors import ProcessExitError, ProcessTimeoutError, SpawnError
from ..models.datatypes import MetadataRecord, ProcessOutcome
from ..telemetry.logger import RunLogger


_CHUNK_SIZE = 64 * 1024

OutputSink = Callable[[bytes], None]


@dataclass(slots=True)
class _StderrCollector:
    """Drain one byte stream on a daemon thread into an in-memory buffer."""

    stream: IO[bytes]
    chunks: list[bytes] = field(default_factory=list)
    thread: threading.Thread | None = None

    def start(self) -> None:
        self.thread = threading.Thread(target=self._drain, name="ffmpeg-stderr", daemon=True)
        self.thread.start()

    def join(self) -> bytes:
        if self.thread is not None:
            self.thread.join()
        return b"".join(self.chunks)

    def _drain(self) -> None:
        for chunk in iter(partial(self.stream.read1, _CHUNK_SIZE), b""):
            self.chunks.append(chunk)


class _Deadline:
    """Kill a process when the configured timeout elapses."""

    def __init__(self, process: subprocess.Popen[bytes], timeout_seconds: float | None) -> None:
        self.expired = threading.Event()
        self._process = process
        self._timer: threading.Timer | None = None
        if timeout_seconds is not None:
            self._timer = threading.Timer(timeout_seconds, self._expire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _expire(self) -> None:
        # Only a kill counts as expiry; an exited process keeps its own exit code.
        if self._process.poll() is None:
            self.expired.set()
            self._process.kill()


class ProcessRunner:
    """Run ffmpeg for one read or write invocation at a time."""

    def __init__(self, config: FfmetadataConfig, run_logger: RunLogger | None = None) -> None:
        """Initialize the runner with a resolved executable and optional deadline."""

        config.validate()
        self._config = config
        self._run_logger = run_logger if run_logger is not None else RunLogger("process")

    @property
    def executable(self) -> str:
        return self._config.ffmpeg_path

    def run_read(self, args: list[str]) -> MetadataRecord:
        """Run an export invocation and decode stdout as it streams in.

        Every stdout line is decoded before the exit code is inspected, so a
        successful result always includes trailing directives.

        Raises:
            SpawnError: If ffmpeg cannot be started.
            ProcessExitError: If ffmpeg exits with a nonzero code.
            DecodeError: If the export stream is malformed.
        """

        decoder = FfmetadataDecoder()
        with self._spawn(args) as process:
            stderr = _StderrCollector(process.stderr)
            stderr.start()
            deadline = _Deadline(process, self._config.timeout_seconds)
            try:
                reader = io.TextIOWrapper(
                    process.stdout, encoding="utf-8", errors="replace", newline="\n"
                )
                for line in reader:
                    decoder.feed_line(line)
                exit_code = process.wait()
            except BaseException:
                self._abort(process)
                raise
            finally:
                deadline.cancel()
                stderr_bytes = stderr.join()

        outcome = ProcessOutcome(
            exit_code=exit_code,
            stderr=stderr_bytes,
            timed_out=deadline.expired.is_set(),
        )
        self._raise_for_outcome(outcome)
        record = decoder.finish()
        self._run_logger.log_detail(
            "read",
            "decoded",
            tags=len(record),
            sections=len(decoder.sections),
            lines=decoder.line_number,
        )
        return record

    def run_write(self, args: list[str], output_sink: OutputSink | None = None) -> ProcessOutcome:
        """Run a tag-injection invocation, forwarding stdout chunks opaquely.

        Raises:
            SpawnError: If ffmpeg cannot be started.
            ProcessExitError: If ffmpeg exits with a nonzero code.
        """

        forwarded = 0
        with self._spawn(args) as process:
            stderr = _StderrCollector(process.stderr)
            stderr.start()
            deadline = _Deadline(process, self._config.timeout_seconds)
            try:
                for chunk in iter(partial(process.stdout.read1, _CHUNK_SIZE), b""):
                    forwarded += len(chunk)
                    if output_sink is not None:
                        output_sink(chunk)
                exit_code = process.wait()
            except BaseException:
                self._abort(process)
                raise
            finally:
                deadline.cancel()
                stderr_bytes = stderr.join()

        outcome = ProcessOutcome(
            exit_code=exit_code,
            stderr=stderr_bytes,
            timed_out=deadline.expired.is_set(),
        )
        if forwarded:
            self._run_logger.log_detail("write", "stdout", bytes=forwarded)
        self._raise_for_outcome(outcome)
        return outcome

    def _spawn(self, args: list[str]) -> subprocess.Popen[bytes]:
        """Start ffmpeg or raise `SpawnError`."""

        command = [self.executable, *args]
        self._run_logger.log_detail("process", "spawn", executable=self.executable, argc=len(args))
        try:
            return subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            reason = exc.strerror or str(exc)
            self._run_logger.log_stage_failure("spawn", type(exc).__name__)
            raise SpawnError(self.executable, reason) from exc

    def _raise_for_outcome(self, outcome: ProcessOutcome) -> None:
        """Map a failed outcome to the matching exception."""

        if outcome.succeeded:
            return
        if outcome.timed_out:
            self._run_logger.log_stage_failure("process", "ProcessTimeoutError")
            raise ProcessTimeoutError(
                self._config.timeout_seconds or 0.0,
                outcome.exit_code,
                outcome.stderr_text,
            )
        if outcome.exit_code != 0:
            self._run_logger.log_stage_failure(
                "process", "ProcessExitError", exit_code=outcome.exit_code
            )
            raise ProcessExitError(outcome.exit_code, outcome.stderr_text)

    @staticmethod
    def _abort(process: subprocess.Popen[bytes]) -> None:
        """Kill and reap a process whose output handling failed."""

        if process.poll() is None:
            process.kill()
        process.wait()

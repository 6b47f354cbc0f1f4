"""
L4 Execution — Process runner and log capture.

Runs the wrapped tool with stderr merged into stdout and fans every
chunk out to two sinks, in the same order: the operator's console and
a uniquely named capture file. The capture file is flushed and closed
before ``run`` returns, so whoever receives the ``InstallRun`` can read
it in full.

The runner records the exit status but does not judge it.
"""

from __future__ import annotations

import logging
import sys
import tempfile
from typing import BinaryIO, Sequence

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.models.artifacts import InstallRun

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
EXIT_NOT_STARTED = 127


class TeeWriter:
    """One input stream, two independent sinks.

    ``write`` hands the same bytes to both sinks before returning, so the
    sinks can never observe different orderings.
    """

    def __init__(self, console: BinaryIO, capture: BinaryIO):
        self.console = console
        self.capture = capture
        self.bytes_written = 0

    def write(self, chunk: bytes) -> None:
        if not chunk:
            return
        self.capture.write(chunk)
        self.console.write(chunk)
        self.console.flush()
        self.bytes_written += len(chunk)

    def pump(self, source: BinaryIO, chunk_size: int = CHUNK_SIZE) -> int:
        """Copy ``source`` until EOF. Returns total bytes copied."""
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            self.write(chunk)
        return self.bytes_written

    def flush(self) -> None:
        self.capture.flush()
        self.console.flush()


class ProcessRunner:
    def __init__(
        self,
        env: SystemEnvironment,
        *,
        console: BinaryIO | None = None,
        capture_dir: str | None = None,
    ):
        self.env = env
        self.console = console if console is not None else sys.stdout.buffer
        self.capture_dir = capture_dir

    def run(self, command: str, args: Sequence[str]) -> InstallRun:
        """Run ``command args...``, streaming to console and capture file."""
        argv = [command, *args]

        # delete=False: the extractor opens the file after we close it.
        with tempfile.NamedTemporaryFile(
            prefix="hostboot-capture-",
            suffix=".log",
            dir=self.capture_dir,
            delete=False,
        ) as capture:
            log_path = capture.name
            tee = TeeWriter(self.console, capture)
            try:
                proc = self.env.spawn(argv)
            except OSError as e:
                logger.error("Could not start %s: %s", command, e)
                return InstallRun(argv=argv, exit_status=EXIT_NOT_STARTED, log_path=log_path)

            if proc.stdout is not None:
                tee.pump(proc.stdout)
                proc.stdout.close()
            exit_status = proc.wait()
            tee.flush()

        logger.info(
            "%s exited with status %d (%d bytes captured in %s)",
            " ".join(argv), exit_status, tee.bytes_written, log_path,
        )
        return InstallRun(
            argv=argv,
            exit_status=exit_status,
            log_path=log_path,
            bytes_captured=tee.bytes_written,
        )

# src/ledgerlab/engine/tee.py
"""Explicit output fan-out for launched processes.

Each window runs its process through run_teed(), which merges the child's
stderr into stdout and copies every chunk to the pane and to the log file.
"""

import os
import subprocess
import sys
from collections.abc import Mapping
from io import BufferedReader
from pathlib import Path
from typing import BinaryIO, cast

from ledgerlab.contracts import LaunchError

CHUNK_SIZE = 4096


class FanOutWriter:
    """Binary writer that duplicates every write to all sinks.

    Sinks are flushed after each write so a pane and its log stay in step
    while the child is running.
    """

    def __init__(self, *sinks: BinaryIO) -> None:
        if not sinks:
            raise ValueError("FanOutWriter requires at least one sink")
        self._sinks = sinks

    def write(self, data: bytes) -> int:
        for sink in self._sinks:
            sink.write(data)
            sink.flush()
        return len(data)

    def flush(self) -> None:
        for sink in self._sinks:
            sink.flush()


def run_teed(
    command: list[str],
    log_path: Path,
    env: Mapping[str, str] | None = None,
    *,
    terminal: BinaryIO | None = None,
) -> int:
    """Run command, fanning its combined output to terminal and log_path.

    Args:
        command: Executable and arguments
        log_path: Log file, truncated on open
        env: Variables added to the inherited environment
        terminal: Terminal sink (defaults to this process's stdout)

    Returns:
        Exit status of the child

    Raises:
        LaunchError: If the child cannot be spawned; the reason is written
            to both sinks first
    """
    if terminal is None:
        terminal = sys.stdout.buffer
    child_env = {**os.environ, **(env or {})}

    with open(log_path, "wb") as log:
        writer = FanOutWriter(terminal, log)
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=child_env,
            )
        except OSError as e:
            message = f"ledgerlab: cannot start {command[0]}: {e}\n"
            writer.write(message.encode())
            raise LaunchError(message.strip()) from e

        stream = cast(BufferedReader, process.stdout)
        with stream:
            for chunk in iter(lambda: stream.read1(CHUNK_SIZE), b""):
                writer.write(chunk)
        return process.wait()

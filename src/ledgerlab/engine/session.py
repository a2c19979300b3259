# src/ledgerlab/engine/session.py
"""
Session backends: the terminal multiplexer seen through a narrow protocol.

The orchestrator only creates sessions and windows, kills a session by name
and attaches. Window commands are shell command lines.
"""

import subprocess
from typing import Protocol, runtime_checkable

from ledgerlab.contracts import LaunchError, SessionTeardownError
from ledgerlab.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class SessionBackend(Protocol):
    """Protocol for session/window management."""

    def has_session(self, session: str) -> bool:
        """Check if a session with this name exists."""
        ...

    def kill_session(self, session: str) -> None:
        """Kill a session.

        Raises:
            SessionTeardownError: If the session cannot be killed (including
                when it does not exist)
        """
        ...

    def new_session(self, session: str, window: str, command: str) -> None:
        """Create a detached session whose first window runs command.

        Raises:
            LaunchError: If the session cannot be created
        """
        ...

    def new_window(self, session: str, window: str | None, command: str) -> None:
        """Add a window running command to an existing session.

        Raises:
            LaunchError: If the window cannot be created
        """
        ...

    def attach(self, session: str) -> int:
        """Attach the current terminal; block until detach. Returns exit status."""
        ...


class TmuxBackend:
    """SessionBackend driving the tmux executable."""

    def __init__(self, binary: str = "tmux") -> None:
        self.binary = binary

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [self.binary, *args],
            capture_output=True,
            text=True,
            check=False,
        )

    def has_session(self, session: str) -> bool:
        try:
            return self._run("has-session", "-t", session).returncode == 0
        except FileNotFoundError:
            return False

    def kill_session(self, session: str) -> None:
        try:
            result = self._run("kill-session", "-t", session)
        except FileNotFoundError as e:
            raise SessionTeardownError(f"'{self.binary}' not found on PATH") from e
        if result.returncode != 0:
            raise SessionTeardownError(
                f"kill-session -t {session} failed: {result.stderr.strip()}"
            )

    def new_session(self, session: str, window: str, command: str) -> None:
        self._launch("new-session", "-d", "-s", session, "-n", window, command)

    def new_window(self, session: str, window: str | None, command: str) -> None:
        args = ["new-window", "-t", session]
        if window is not None:
            args += ["-n", window]
        self._launch(*args, command)

    def attach(self, session: str) -> int:
        # Inherits the terminal; -2 forces 256 colours
        return subprocess.call([self.binary, "-2", "attach-session", "-t", session])

    def _launch(self, *args: str) -> None:
        try:
            result = self._run(*args)
        except FileNotFoundError as e:
            raise LaunchError(f"'{self.binary}' not found on PATH") from e
        if result.returncode != 0:
            raise LaunchError(f"{args[0]} failed: {result.stderr.strip()}")

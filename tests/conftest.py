# tests/conftest.py
"""Shared test fixtures and helpers.

This module provides stand-ins for the external collaborators: an engine
initializer that writes a Tendermint-shaped config.toml without running
tendermint, and a session backend that records calls instead of driving
tmux.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from ledgerlab.contracts import LaunchError, ProvisionError, SessionTeardownError

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# Trimmed version of what `tendermint init validator` writes
TENDERMINT_CONFIG = """\
# This is a TOML config file.
# For more information, see https://github.com/toml-lang/toml

#######################################################################
###                   Main Base Config Options                      ###
#######################################################################

# TCP or UNIX socket address of the ABCI application,
# or the name of an ABCI application compiled in with the Tendermint binary
proxy-app = "tcp://127.0.0.1:26658"

# A custom human readable name for this node
moniker = "node"
mode = "validator"

[rpc]

# TCP or UNIX socket address for the RPC server to listen on
laddr = "tcp://127.0.0.1:26657"
cors-allowed-origins = []
cors-allowed-methods = ["HEAD", "GET", "POST", ]
max-open-connections = 900

[p2p]

# Address to listen for incoming connections
laddr = "tcp://0.0.0.0:26656"
persistent-peers = ""
max-connections = 64

[consensus]
timeout-propose = "3s"
timeout-commit = "1s"
create-empty-blocks = true
"""


class FakeInitializer:
    """EngineInitializer that writes a config file instead of running tendermint."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[Path] = []
        self._fail_on = fail_on

    def init_node(self, home: Path) -> None:
        self.calls.append(home)
        if self._fail_on is not None and home.name == self._fail_on:
            raise ProvisionError(f"init failed for {home}")
        config_dir = home / "config"
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "config.toml").write_text(TENDERMINT_CONFIG)


class RecordingBackend:
    """SessionBackend that records every call and tracks live sessions."""

    def __init__(
        self,
        existing: list[str] | None = None,
        failing_windows: set[str] | None = None,
        attach_status: int = 0,
    ) -> None:
        self.sessions: dict[str, list[str | None]] = {name: [] for name in existing or []}
        self.calls: list[tuple[str, ...]] = []
        self.commands: dict[str | None, str] = {}
        self._failing = failing_windows or set()
        self._attach_status = attach_status

    def has_session(self, session: str) -> bool:
        return session in self.sessions

    def kill_session(self, session: str) -> None:
        self.calls.append(("kill_session", session))
        if session not in self.sessions:
            raise SessionTeardownError(f"can't find session: {session}")
        del self.sessions[session]

    def new_session(self, session: str, window: str, command: str) -> None:
        self.calls.append(("new_session", session, window))
        if session in self.sessions:
            raise LaunchError(f"duplicate session: {session}")
        self.sessions[session] = [window]
        self.commands[window] = command

    def new_window(self, session: str, window: str | None, command: str) -> None:
        self.calls.append(("new_window", session, str(window)))
        if window in self._failing:
            raise LaunchError(f"cannot create window {window}")
        self.sessions[session].append(window)
        self.commands[window] = command

    def attach(self, session: str) -> int:
        self.calls.append(("attach", session))
        return self._attach_status

    @property
    def launched_windows(self) -> list[str]:
        return [call[2] for call in self.calls if call[0] in ("new_session", "new_window")]


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo configure_logging() so later tests don't log to a closed stream."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_initializer() -> FakeInitializer:
    return FakeInitializer()


@pytest.fixture
def make_initializer() -> type[FakeInitializer]:
    """FakeInitializer class, for tests that need fail_on."""
    return FakeInitializer


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def make_backend() -> type[RecordingBackend]:
    """RecordingBackend class, for tests that need pre-existing sessions or failures."""
    return RecordingBackend


@pytest.fixture
def tendermint_config() -> str:
    return TENDERMINT_CONFIG


@pytest.fixture
def node_config(tmp_path: Path) -> Path:
    """A Tendermint-shaped config.toml in a scratch directory."""
    path = tmp_path / "config.toml"
    path.write_text(TENDERMINT_CONFIG)
    return path


__all__ = ["TENDERMINT_CONFIG", "FakeInitializer", "RecordingBackend"]

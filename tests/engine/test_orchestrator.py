# tests/engine/test_orchestrator.py
"""Tests for Orchestrator."""

from __future__ import annotations

import shlex
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from ledgerlab.contracts import Topology
    from ledgerlab.core.config import LedgerlabSettings

EXPECTED_WINDOWS = [
    "tendermint-ledger",
    "tendermint-kvstore",
    "ledger",
    "kvstore",
    "ledger-abci",
    "kvstore-abci",
    "http",
]


@pytest.fixture
def settings() -> LedgerlabSettings:
    from ledgerlab.core.config import LedgerlabSettings, SessionSettings

    return LedgerlabSettings(session=SessionSettings(shell="/bin/bash"))


@pytest.fixture
def topology(settings: LedgerlabSettings) -> Topology:
    from ledgerlab.core.topology import default_topology

    return default_topology(settings)


class TestSessionLifecycle:
    """Teardown, session creation and attach."""

    def test_stale_session_killed_first(
        self, tmp_path: Path, make_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        backend = make_backend(existing=["many"])
        Orchestrator(backend, settings).run("many", tmp_path, topology, attach=False)

        assert backend.calls[0] == ("kill_session", "many")
        assert backend.calls[1][0] == "new_session"

    def test_missing_session_teardown_is_ignored(
        self, tmp_path: Path, recording_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        result = Orchestrator(recording_backend, settings).run(
            "many", tmp_path, topology, attach=False
        )

        assert recording_backend.calls[0] == ("kill_session", "many")
        assert result.launched == EXPECTED_WINDOWS

    def test_exactly_one_session_after_rerun(
        self, tmp_path: Path, make_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        backend = make_backend(existing=["many", "other"])
        orchestrator = Orchestrator(backend, settings)
        orchestrator.run("many", tmp_path, topology, attach=False)
        orchestrator.run("many", tmp_path, topology, attach=False)

        assert sorted(backend.sessions) == ["many", "other"]
        assert backend.sessions["many"] == [*EXPECTED_WINDOWS, None]

    def test_windows_in_launch_order_with_shell_last(
        self, tmp_path: Path, recording_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        Orchestrator(recording_backend, settings).run("many", tmp_path, topology, attach=False)

        assert recording_backend.launched_windows == [*EXPECTED_WINDOWS, "None"]
        assert recording_backend.commands[None] == "/bin/bash"

    def test_attach_status_returned(
        self, tmp_path: Path, make_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        backend = make_backend(attach_status=3)
        result = Orchestrator(backend, settings).run("devnet", tmp_path, topology)

        assert backend.calls[-1] == ("attach", "devnet")
        assert result.attach_status == 3
        assert result.exit_code == 3

    def test_no_attach_when_disabled(
        self, tmp_path: Path, recording_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        result = Orchestrator(recording_backend, settings).run(
            "many", tmp_path, topology, attach=False
        )

        assert all(call[0] != "attach" for call in recording_backend.calls)
        assert result.attach_status is None
        assert result.exit_code == 0


class TestFailureIsolation:
    """A failed window does not stop the rest of the launch."""

    def test_failed_window_recorded_and_others_launch(
        self, tmp_path: Path, make_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        backend = make_backend(failing_windows={"ledger-abci"})
        result = Orchestrator(backend, settings).run("many", tmp_path, topology, attach=False)

        assert result.failed == ["ledger-abci"]
        assert result.launched == [w for w in EXPECTED_WINDOWS if w != "ledger-abci"]
        assert "http" in backend.sessions["many"]

    def test_failed_shell_window_is_not_fatal(
        self, tmp_path: Path, make_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        backend = make_backend(failing_windows={None}, attach_status=0)
        result = Orchestrator(backend, settings).run("many", tmp_path, topology)

        assert result.failed == []
        assert backend.calls[-1] == ("attach", "many")

    def test_session_creation_failure_propagates(
        self, tmp_path: Path, recording_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.contracts import LaunchError
        from ledgerlab.engine import Orchestrator

        def refuse(session: str, window: str, command: str) -> None:
            raise LaunchError("server exited unexpectedly")

        recording_backend.new_session = refuse

        with pytest.raises(LaunchError, match="server exited"):
            Orchestrator(recording_backend, settings).run("many", tmp_path, topology)


class TestWindowCommand:
    """Window command lines route output through the fan-out."""

    def test_command_runs_tee_with_log_env_and_argv(self, tmp_path: Path) -> None:
        from ledgerlab.contracts import ProcessKind, ProcessSpec
        from ledgerlab.engine import window_command

        spec = ProcessSpec(
            name="tendermint-ledger",
            kind=ProcessKind.ENGINE,
            command=("tendermint", "start"),
            log_path=tmp_path / "tendermint-ledger.log",
            env={"TMHOME": str(tmp_path / "ledger")},
        )

        argv = shlex.split(window_command(spec))

        assert argv == [
            sys.executable,
            "-m",
            "ledgerlab.cli",
            "tee",
            "--log",
            str(tmp_path / "tendermint-ledger.log"),
            "--env",
            f"TMHOME={tmp_path / 'ledger'}",
            "--",
            "tendermint",
            "start",
        ]

    def test_arguments_with_spaces_survive_quoting(self, tmp_path: Path) -> None:
        from ledgerlab.contracts import ProcessKind, ProcessSpec
        from ledgerlab.engine import window_command

        spec = ProcessSpec(
            name="ledger",
            kind=ProcessKind.APPLICATION,
            command=("many-ledger", "--state", "/my states/ledger.json"),
            log_path=tmp_path / "my logs" / "ledger.log",
        )

        argv = shlex.split(window_command(spec, python="python3"))

        assert argv[0] == "python3"
        assert argv[argv.index("--log") + 1] == str(tmp_path / "my logs" / "ledger.log")
        assert argv[-1] == "/my states/ledger.json"

    def test_windows_receive_tee_commands(
        self, tmp_path: Path, recording_backend, settings: LedgerlabSettings, topology: Topology
    ) -> None:
        from ledgerlab.engine import Orchestrator

        Orchestrator(recording_backend, settings).run("many", tmp_path, topology, attach=False)

        argv = shlex.split(recording_backend.commands["kvstore-abci"])
        assert argv[1:4] == ["-m", "ledgerlab.cli", "tee"]
        assert argv[argv.index("--log") + 1] == str(tmp_path / "kvstore-abci.log")

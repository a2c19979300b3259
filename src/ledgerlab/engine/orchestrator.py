# src/ledgerlab/engine/orchestrator.py
"""Orchestrator: session lifecycle for one launch.

Coordinates:
- Best-effort teardown of a stale session of the same name
- One window per process, in launch-plan order
- A final operator shell window
- Terminal attach

Launch calls are only sequenced. Nothing here waits for a process to
become reachable before starting its dependents.
"""

import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path

from ledgerlab.contracts import (
    LaunchError,
    LaunchPlan,
    ProcessSpec,
    SessionTeardownError,
    Topology,
)
from ledgerlab.core.config import LedgerlabSettings
from ledgerlab.core.logging import get_logger
from ledgerlab.engine.processes import build_launch_plan
from ledgerlab.engine.session import SessionBackend

logger = get_logger(__name__)


@dataclass
class RunResult:
    """Result of an orchestration run."""

    session: str
    launched: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    attach_status: int | None = None  # None when not attached

    @property
    def exit_code(self) -> int:
        return self.attach_status or 0


def window_command(spec: ProcessSpec, python: str | None = None) -> str:
    """Shell command line that runs spec under the output fan-out."""
    argv = [python or sys.executable, "-m", "ledgerlab.cli", "tee", "--log", str(spec.log_path)]
    for key, value in spec.env.items():
        argv += ["--env", f"{key}={value}"]
    argv += ["--", *spec.command]
    return shlex.join(argv)


class Orchestrator:
    """Launches a LaunchPlan into a multiplexer session.

    Failure of an individual window is logged and the run continues; the
    failure is then only visible in that window and its log. Failure to
    create the session itself propagates, since later windows would have
    nothing to join.
    """

    def __init__(self, backend: SessionBackend, settings: LedgerlabSettings) -> None:
        self._backend = backend
        self._settings = settings

    def run(
        self,
        session_name: str,
        root_dir: Path,
        topology: Topology,
        *,
        attach: bool = True,
    ) -> RunResult:
        """Launch topology from a provisioned root_dir into session_name.

        Raises:
            TopologyValidationError: If the launch plan cannot be ordered
            LaunchError: If the session cannot be created
        """
        plan = build_launch_plan(topology, root_dir, self._settings)
        return self.launch(session_name, plan, attach=attach)

    def launch(self, session_name: str, plan: LaunchPlan, *, attach: bool = True) -> RunResult:
        """Launch an already ordered plan."""
        result = RunResult(session=session_name)
        self._teardown(session_name)

        first, *rest = plan.processes
        self._backend.new_session(session_name, first.name, window_command(first))
        result.launched.append(first.name)
        logger.info("window_started", session=session_name, window=first.name, log=str(first.log_path))

        for spec in rest:
            try:
                self._backend.new_window(session_name, spec.name, window_command(spec))
            except LaunchError as e:
                result.failed.append(spec.name)
                logger.warning("window_failed", session=session_name, window=spec.name, error=str(e))
                continue
            result.launched.append(spec.name)
            logger.info("window_started", session=session_name, window=spec.name, log=str(spec.log_path))

        shell = self._settings.session.resolved_shell()
        try:
            self._backend.new_window(session_name, None, shell)
        except LaunchError as e:
            logger.warning("shell_window_failed", session=session_name, error=str(e))

        if attach:
            logger.info("session_attach", session=session_name)
            result.attach_status = self._backend.attach(session_name)
        return result

    def _teardown(self, session_name: str) -> None:
        try:
            self._backend.kill_session(session_name)
        except SessionTeardownError as e:
            # Usually just "no such session"
            logger.debug("session_teardown_skipped", session=session_name, error=str(e))
        else:
            logger.info("session_killed", session=session_name)

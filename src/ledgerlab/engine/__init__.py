"""Engine: Provisioner, Orchestrator, session backends, output fan-out."""

from ledgerlab.engine.initializer import EngineInitializer, TendermintInitializer
from ledgerlab.engine.orchestrator import Orchestrator, RunResult, window_command
from ledgerlab.engine.processes import build_launch_plan
from ledgerlab.engine.provisioner import ProvisionResult, Provisioner
from ledgerlab.engine.session import SessionBackend, TmuxBackend
from ledgerlab.engine.tee import FanOutWriter, run_teed

__all__ = [
    "EngineInitializer",
    "FanOutWriter",
    "Orchestrator",
    "ProvisionResult",
    "Provisioner",
    "RunResult",
    "SessionBackend",
    "TendermintInitializer",
    "TmuxBackend",
    "build_launch_plan",
    "run_teed",
    "window_command",
]

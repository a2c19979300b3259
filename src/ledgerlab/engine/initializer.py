# src/ledgerlab/engine/initializer.py
"""Node state initialization through the consensus engine."""

import os
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from ledgerlab.contracts import ProvisionError
from ledgerlab.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class EngineInitializer(Protocol):
    """Protocol for creating a node's default config and key material."""

    def init_node(self, home: Path) -> None:
        """Initialize a validator node in home.

        Raises:
            ProvisionError: If initialization fails
        """
        ...


class TendermintInitializer:
    """Runs `tendermint init validator` with TMHOME pointed at the node home."""

    def __init__(self, binary: str = "tendermint") -> None:
        self.binary = binary

    def init_node(self, home: Path) -> None:
        env = {**os.environ, "TMHOME": str(home)}
        command = [self.binary, "init", "validator"]
        logger.info("node_init", home=str(home))
        try:
            subprocess.run(
                command,
                env=env,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ProvisionError(
                f"Consensus engine '{self.binary}' not found on PATH"
            ) from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip()
            raise ProvisionError(
                f"'{' '.join(command)}' failed for {home} "
                f"(exit {e.returncode}): {detail}"
            ) from e

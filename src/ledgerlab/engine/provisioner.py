# src/ledgerlab/engine/provisioner.py
"""Provisioner: root directory and per-node state.

Coordinates:
- Root directory selection (given or fresh temp dir)
- Idempotence gate on the first node's home directory
- Node initialization through an EngineInitializer
- Config override application through the config patcher
"""

import tempfile
from dataclasses import dataclass
from pathlib import Path

from ledgerlab.contracts import ConfigWriteError, ProvisionError, Topology
from ledgerlab.core.config_patch import set_value
from ledgerlab.core.logging import get_logger
from ledgerlab.engine.initializer import EngineInitializer

logger = get_logger(__name__)

TEMP_DIR_PREFIX = "ledgerlab-"


@dataclass
class ProvisionResult:
    """Result of a provisioning pass."""

    root_dir: Path
    allocated: bool  # root_dir was created as a fresh temp dir
    initialized: bool  # nodes were initialized and patched on this pass


class Provisioner:
    """Prepares a root directory for a topology.

    A root whose marker node home already exists is reused as-is: no
    re-initialization and no re-application of overrides. A root left
    half-provisioned by a failed pass is also reused as-is, so the
    operator must remove it before retrying.
    """

    def __init__(self, initializer: EngineInitializer) -> None:
        self._initializer = initializer

    def provision(self, root_dir: Path | None, topology: Topology) -> ProvisionResult:
        """Provision root_dir (or a fresh temp dir) for topology.

        Raises:
            ProvisionError: If any node fails to initialize or patch
        """
        allocated = root_dir is None
        if root_dir is None:
            root_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
        else:
            try:
                root_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ProvisionError(f"Cannot create root directory {root_dir}: {e}") from e
            root_dir = root_dir.absolute()
        logger.info("root_dir_selected", root_dir=str(root_dir), allocated=allocated)

        marker = topology.marker_node.home_dir(root_dir)
        if marker.exists():
            logger.info("provision_skipped", root_dir=str(root_dir), marker=str(marker))
            return ProvisionResult(root_dir=root_dir, allocated=allocated, initialized=False)

        for node in topology.nodes:
            try:
                self._initializer.init_node(node.home_dir(root_dir))
            except ProvisionError as e:
                raise ProvisionError(str(e), root_dir=root_dir) from e

        for node in topology.nodes:
            for override in node.overrides(root_dir):
                try:
                    set_value(override.file, override.key_path, override.value)
                except ConfigWriteError as e:
                    raise ProvisionError(
                        f"Node '{node.name}': cannot set {override.key_path}: {e}",
                        root_dir=root_dir,
                    ) from e
                logger.debug(
                    "override_applied",
                    node=node.name,
                    key=override.key_path,
                    value=override.value,
                )

        logger.info("provision_completed", root_dir=str(root_dir), nodes=len(topology.nodes))
        return ProvisionResult(root_dir=root_dir, allocated=allocated, initialized=True)

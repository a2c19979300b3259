"""Shared contracts for cross-boundary data types.

Import pattern:
    from ledgerlab.contracts import Topology, ProcessSpec, ProvisionError
"""

from ledgerlab.contracts.enums import BindStyle, ProcessKind
from ledgerlab.contracts.errors import (
    ConfigWriteError,
    LaunchError,
    ProvisionError,
    SessionTeardownError,
    TopologyValidationError,
)
from ledgerlab.contracts.topology import (
    NODE_CONFIG_FILE,
    Address,
    ApplicationSpec,
    BridgeSpec,
    ConfigOverride,
    GatewaySpec,
    LaunchPlan,
    NodeSpec,
    ProcessSpec,
    Scalar,
    Topology,
)

__all__ = [
    "NODE_CONFIG_FILE",
    "Address",
    "ApplicationSpec",
    "BindStyle",
    "BridgeSpec",
    "ConfigOverride",
    "ConfigWriteError",
    "GatewaySpec",
    "LaunchError",
    "LaunchPlan",
    "NodeSpec",
    "ProcessKind",
    "ProcessSpec",
    "ProvisionError",
    "Scalar",
    "SessionTeardownError",
    "Topology",
    "TopologyValidationError",
]

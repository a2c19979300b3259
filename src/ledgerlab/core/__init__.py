# src/ledgerlab/core/__init__.py
"""Core infrastructure: Configuration, Config patching, Topology, DAG, Logging."""

from ledgerlab.core.config import (
    BinarySettings,
    ConsensusSettings,
    LedgerlabSettings,
    SessionSettings,
    load_settings,
)
from ledgerlab.core.config_patch import get_value, parse_scalar, set_value
from ledgerlab.core.dag import LaunchGraph, NodeInfo
from ledgerlab.core.logging import (
    configure_logging,
    get_logger,
)
from ledgerlab.core.topology import default_topology, validate_topology

__all__ = [
    "BinarySettings",
    "ConsensusSettings",
    "LaunchGraph",
    "LedgerlabSettings",
    "NodeInfo",
    "SessionSettings",
    "configure_logging",
    "default_topology",
    "get_logger",
    "get_value",
    "load_settings",
    "parse_scalar",
    "set_value",
    "validate_topology",
]

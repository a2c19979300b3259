"""Kinds and styles shared between topology, planning and launch."""

from enum import Enum


class ProcessKind(str, Enum):
    """Role of a launched process within the topology.

    Declaration order is also the launch tier: among processes whose
    dependencies are satisfied, engines start before applications,
    applications before bridges, bridges before the gateway.
    """

    ENGINE = "engine"
    APPLICATION = "application"
    BRIDGE = "bridge"
    GATEWAY = "gateway"

    @property
    def tier(self) -> int:
        return list(ProcessKind).index(self)


class BindStyle(str, Enum):
    """How an application binary is told where to listen."""

    ADDRESS = "addr"  # --addr host:port
    PORT = "port"  # --port N

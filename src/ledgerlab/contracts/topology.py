"""Immutable topology and launch types.

A Topology is built once at startup and passed explicitly to the
provisioner and the orchestrator. Nothing here touches the filesystem;
paths are resolved against a root directory by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ledgerlab.contracts.enums import BindStyle, ProcessKind

Scalar = str | int | float | bool

# Node config file relative to the node home, as written by `tendermint init`
NODE_CONFIG_FILE = Path("config") / "config.toml"

_WILDCARD_HOSTS = frozenset({"0.0.0.0", "::", ""})


@dataclass(frozen=True)
class Address:
    """A host/port pair a process listens on or dials."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def dial_host(self) -> str:
        """Host to connect to; wildcard binds are reached via localhost."""
        if self.host in _WILDCARD_HOSTS:
            return "localhost"
        return self.host

    def tcp(self) -> str:
        return f"tcp://{self}"

    def http(self, path: str = "") -> str:
        return f"http://{self.dial_host}:{self.port}{path}"


@dataclass(frozen=True)
class ConfigOverride:
    """One key-path assignment in a structured config file."""

    file: Path
    key_path: str
    value: Scalar


@dataclass(frozen=True)
class NodeSpec:
    """One consensus-engine instance.

    extra_overrides are applied before the address overrides, so the
    addresses always win if a key path appears in both.
    """

    name: str
    home: str
    p2p: Address
    rpc: Address
    proxy_app: Address
    extra_overrides: tuple[tuple[str, Scalar], ...] = ()

    @property
    def window_name(self) -> str:
        return f"tendermint-{self.name}"

    def home_dir(self, root_dir: Path) -> Path:
        return root_dir / self.home

    def config_file(self, root_dir: Path) -> Path:
        return self.home_dir(root_dir) / NODE_CONFIG_FILE

    def overrides(self, root_dir: Path) -> tuple[ConfigOverride, ...]:
        """All overrides for this node, in application order."""
        config_file = self.config_file(root_dir)
        assignments: list[tuple[str, Scalar]] = list(self.extra_overrides)
        assignments += [
            ("p2p.laddr", self.p2p.tcp()),
            ("rpc.laddr", self.rpc.tcp()),
            ("proxy-app", self.proxy_app.tcp()),
        ]
        return tuple(
            ConfigOverride(file=config_file, key_path=key, value=value)
            for key, value in assignments
        )


@dataclass(frozen=True)
class ApplicationSpec:
    """An application back-end holding persistent state."""

    name: str
    node: str
    binary: str
    listen: Address
    state_file: Path
    store: str
    bind_style: BindStyle = BindStyle.ADDRESS
    verbosity: int = 0


@dataclass(frozen=True)
class BridgeSpec:
    """A protocol bridge between one engine and one application.

    The bridge serves the engine on the node's proxy_app address and the
    public on its own listen address.
    """

    name: str
    application: str
    node: str
    listen: Address
    verbosity: int = 0


@dataclass(frozen=True)
class GatewaySpec:
    """The public-facing relay in front of one bridge."""

    name: str
    upstream: str
    listen: Address
    verbosity: int = 0


@dataclass(frozen=True)
class Topology:
    """Complete static description of the test network."""

    nodes: tuple[NodeSpec, ...]
    applications: tuple[ApplicationSpec, ...]
    bridges: tuple[BridgeSpec, ...]
    gateway: GatewaySpec | None = None

    @property
    def marker_node(self) -> NodeSpec:
        """Node whose home directory marks a provisioned root."""
        return self.nodes[0]

    def node(self, name: str) -> NodeSpec:
        for node in self.nodes:
            if node.name == name:
                return node
        raise KeyError(f"Unknown node: {name}")

    def application(self, name: str) -> ApplicationSpec:
        for app in self.applications:
            if app.name == name:
                return app
        raise KeyError(f"Unknown application: {name}")

    def bridge(self, name: str) -> BridgeSpec:
        for bridge in self.bridges:
            if bridge.name == name:
                return bridge
        raise KeyError(f"Unknown bridge: {name}")

    def declared_addresses(self) -> list[tuple[str, Address]]:
        """Every address owned by some process, labelled by owner."""
        owned: list[tuple[str, Address]] = []
        for node in self.nodes:
            owned.append((f"{node.name}.p2p", node.p2p))
            owned.append((f"{node.name}.rpc", node.rpc))
            owned.append((f"{node.name}.proxy_app", node.proxy_app))
        for app in self.applications:
            owned.append((app.name, app.listen))
        for bridge in self.bridges:
            owned.append((bridge.name, bridge.listen))
        if self.gateway is not None:
            owned.append((self.gateway.name, self.gateway.listen))
        return owned

    def declared_ports(self) -> list[int]:
        return [address.port for _, address in self.declared_addresses()]


@dataclass(frozen=True)
class ProcessSpec:
    """One launchable unit, resolved against a root directory."""

    name: str
    kind: ProcessKind
    command: tuple[str, ...]
    log_path: Path
    env: dict[str, str] = field(default_factory=dict, hash=False)
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class LaunchPlan:
    """ProcessSpecs in launch order."""

    root_dir: Path
    processes: tuple[ProcessSpec, ...]

    @property
    def names(self) -> list[str]:
        return [spec.name for spec in self.processes]

    def get(self, name: str) -> ProcessSpec:
        for spec in self.processes:
            if spec.name == name:
                return spec
        raise KeyError(f"Unknown process: {name}")

# src/ledgerlab/engine/processes.py
"""Resolve a Topology into ordered ProcessSpecs for one root directory."""

from pathlib import Path

from ledgerlab.contracts import (
    ApplicationSpec,
    BindStyle,
    BridgeSpec,
    GatewaySpec,
    LaunchPlan,
    NodeSpec,
    ProcessKind,
    ProcessSpec,
    Topology,
)
from ledgerlab.core.config import LedgerlabSettings
from ledgerlab.core.dag import LaunchGraph


def _verbosity(level: int) -> list[str]:
    return ["-v"] * level


def _log_path(root_dir: Path, name: str) -> Path:
    return root_dir / f"{name}.log"


def engine_process(node: NodeSpec, root_dir: Path, settings: LedgerlabSettings) -> ProcessSpec:
    return ProcessSpec(
        name=node.window_name,
        kind=ProcessKind.ENGINE,
        command=(settings.binaries.tendermint, "start"),
        env={"TMHOME": str(node.home_dir(root_dir))},
        log_path=_log_path(root_dir, node.window_name),
    )


def application_process(
    app: ApplicationSpec, root_dir: Path, settings: LedgerlabSettings
) -> ProcessSpec:
    if app.bind_style is BindStyle.PORT:
        bind = ["--port", str(app.listen.port)]
    else:
        bind = ["--addr", str(app.listen)]
    command = [
        settings.binaries.path_for(app.binary),
        *_verbosity(app.verbosity),
        "--abci",
        *bind,
        "--pem",
        str(settings.identity.pem.absolute()),
        "--state",
        str(app.state_file.absolute()),
        "--persistent",
        str(root_dir / app.store),
    ]
    return ProcessSpec(
        name=app.name,
        kind=ProcessKind.APPLICATION,
        command=tuple(command),
        log_path=_log_path(root_dir, app.name),
    )


def bridge_process(
    bridge: BridgeSpec, topology: Topology, root_dir: Path, settings: LedgerlabSettings
) -> ProcessSpec:
    app = topology.application(bridge.application)
    node = topology.node(bridge.node)
    command = [
        settings.binaries.path_for("abci"),
        *_verbosity(bridge.verbosity),
        "--many",
        str(bridge.listen),
        "--many-app",
        app.listen.http(),
        "--many-pem",
        str(settings.identity.pem.absolute()),
        "--abci",
        str(node.proxy_app),
        "--tendermint",
        node.rpc.http("/"),
    ]
    return ProcessSpec(
        name=bridge.name,
        kind=ProcessKind.BRIDGE,
        command=tuple(command),
        log_path=_log_path(root_dir, bridge.name),
        depends_on=(app.name, node.window_name),
    )


def gateway_process(
    gateway: GatewaySpec, topology: Topology, root_dir: Path, settings: LedgerlabSettings
) -> ProcessSpec:
    upstream = topology.bridge(gateway.upstream)
    command = [
        settings.binaries.path_for("gateway"),
        *_verbosity(gateway.verbosity),
        upstream.listen.http(),
        "--pem",
        str(settings.identity.pem.absolute()),
        "--addr",
        str(gateway.listen),
    ]
    return ProcessSpec(
        name=gateway.name,
        kind=ProcessKind.GATEWAY,
        command=tuple(command),
        log_path=_log_path(root_dir, gateway.name),
        depends_on=(upstream.name,),
    )


def build_launch_plan(
    topology: Topology, root_dir: Path, settings: LedgerlabSettings
) -> LaunchPlan:
    """Build every ProcessSpec and order them for launch.

    Raises:
        TopologyValidationError: If names collide or dependencies cycle
    """
    specs = [engine_process(node, root_dir, settings) for node in topology.nodes]
    specs += [application_process(app, root_dir, settings) for app in topology.applications]
    specs += [
        bridge_process(bridge, topology, root_dir, settings) for bridge in topology.bridges
    ]
    if topology.gateway is not None:
        specs.append(gateway_process(topology.gateway, topology, root_dir, settings))

    graph = LaunchGraph.from_specs(specs)
    return LaunchPlan(root_dir=root_dir, processes=tuple(graph.launch_order()))

# src/ledgerlab/core/topology.py
"""The compiled-in test network and its validation.

Two Tendermint nodes ("ledger" and "kvstore"), one MANY application per
node, one many-abci bridge per application and one HTTP gateway in front
of the kvstore bridge.
"""

from collections import Counter

from ledgerlab.contracts import (
    Address,
    ApplicationSpec,
    BindStyle,
    BridgeSpec,
    GatewaySpec,
    NodeSpec,
    Topology,
    TopologyValidationError,
)
from ledgerlab.core.config import LedgerlabSettings

LOOPBACK = "127.0.0.1"
ALL_INTERFACES = "0.0.0.0"


def default_topology(settings: LedgerlabSettings) -> Topology:
    """Build the standard two-node topology.

    Consensus tuning from settings is attached to every node.
    """
    consensus = settings.consensus.overrides()
    nodes = (
        NodeSpec(
            name="ledger",
            home="ledger",
            p2p=Address(LOOPBACK, 26656),
            rpc=Address(LOOPBACK, 26657),
            proxy_app=Address(LOOPBACK, 26658),
            extra_overrides=consensus,
        ),
        NodeSpec(
            name="kvstore",
            home="kvstore",
            p2p=Address(LOOPBACK, 16656),
            rpc=Address(LOOPBACK, 16657),
            proxy_app=Address(LOOPBACK, 16658),
            extra_overrides=consensus,
        ),
    )
    applications = (
        ApplicationSpec(
            name="ledger",
            node="ledger",
            binary="ledger",
            listen=Address(LOOPBACK, 8001),
            state_file=settings.staging.ledger_state,
            store="ledger.db",
            verbosity=2,
        ),
        ApplicationSpec(
            name="kvstore",
            node="kvstore",
            binary="kvstore",
            listen=Address(LOOPBACK, 8010),
            state_file=settings.staging.kvstore_state,
            store="kvstore.db",
            bind_style=BindStyle.PORT,
        ),
    )
    bridges = (
        BridgeSpec(
            name="ledger-abci",
            application="ledger",
            node="ledger",
            listen=Address(ALL_INTERFACES, 8000),
            verbosity=2,
        ),
        BridgeSpec(
            name="kvstore-abci",
            application="kvstore",
            node="kvstore",
            listen=Address(ALL_INTERFACES, 8011),
            verbosity=1,
        ),
    )
    gateway = GatewaySpec(
        name="http",
        upstream="kvstore-abci",
        listen=Address(ALL_INTERFACES, 8888),
        verbosity=1,
    )
    topology = Topology(
        nodes=nodes,
        applications=applications,
        bridges=bridges,
        gateway=gateway,
    )
    validate_topology(topology)
    return topology


def validate_topology(topology: Topology) -> None:
    """Check names, references and port allocation.

    Raises:
        TopologyValidationError: On the first problem found
    """
    if not topology.nodes:
        raise TopologyValidationError("Topology must have at least one node")

    names = (
        [node.window_name for node in topology.nodes]
        + [app.name for app in topology.applications]
        + [bridge.name for bridge in topology.bridges]
    )
    if topology.gateway is not None:
        names.append(topology.gateway.name)
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise TopologyValidationError(f"Duplicate process names: {duplicates}")

    homes = Counter(node.home for node in topology.nodes)
    shared = sorted(home for home, count in homes.items() if count > 1)
    if shared:
        raise TopologyValidationError(f"Nodes share home directories: {shared}")

    node_names = {node.name for node in topology.nodes}
    app_names = {app.name for app in topology.applications}
    bridge_names = {bridge.name for bridge in topology.bridges}
    for app in topology.applications:
        if app.node not in node_names:
            raise TopologyValidationError(
                f"Application '{app.name}' references unknown node '{app.node}'"
            )
    for bridge in topology.bridges:
        if bridge.application not in app_names:
            raise TopologyValidationError(
                f"Bridge '{bridge.name}' references unknown application "
                f"'{bridge.application}'"
            )
        if bridge.node not in node_names:
            raise TopologyValidationError(
                f"Bridge '{bridge.name}' references unknown node '{bridge.node}'"
            )
    if topology.gateway is not None and topology.gateway.upstream not in bridge_names:
        raise TopologyValidationError(
            f"Gateway '{topology.gateway.name}' references unknown bridge "
            f"'{topology.gateway.upstream}'"
        )

    owners: dict[int, str] = {}
    for owner, address in topology.declared_addresses():
        if address.port in owners:
            raise TopologyValidationError(
                f"Port {address.port} is claimed by both "
                f"'{owners[address.port]}' and '{owner}'"
            )
        owners[address.port] = owner

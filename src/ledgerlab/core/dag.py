# src/ledgerlab/core/dag.py
"""Launch dependency graph.

Uses NetworkX for graph operations including:
- Acyclicity validation
- Deterministic topological ordering
"""

from __future__ import annotations

from dataclasses import dataclass

import networkx as nx
from networkx import DiGraph

from ledgerlab.contracts import ProcessKind, ProcessSpec, TopologyValidationError


@dataclass
class NodeInfo:
    """Information about a process node in the launch graph."""

    name: str
    kind: ProcessKind
    position: int  # declaration order, used to break ties


class LaunchGraph:
    """Dependency graph over ProcessSpecs.

    Edges run from a dependency to its dependent, so a topological order
    is a valid launch order.
    """

    def __init__(self) -> None:
        self._graph: DiGraph[str] = nx.DiGraph()
        self._specs: dict[str, ProcessSpec] = {}

    @classmethod
    def from_specs(cls, specs: list[ProcessSpec]) -> LaunchGraph:
        graph = cls()
        for spec in specs:
            graph.add_process(spec)
        for spec in specs:
            for dependency in spec.depends_on:
                graph.add_dependency(spec.name, dependency)
        return graph

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def add_process(self, spec: ProcessSpec) -> None:
        if spec.name in self._specs:
            raise TopologyValidationError(f"Duplicate process name: {spec.name}")
        info = NodeInfo(name=spec.name, kind=spec.kind, position=len(self._specs))
        self._specs[spec.name] = spec
        self._graph.add_node(spec.name, info=info)

    def add_dependency(self, dependent: str, dependency: str) -> None:
        """Record that dependent must launch after dependency."""
        for name in (dependent, dependency):
            if name not in self._specs:
                raise TopologyValidationError(
                    f"Dependency references unknown process '{name}'"
                )
        self._graph.add_edge(dependency, dependent)

    def dependencies(self, name: str) -> list[str]:
        return sorted(self._graph.predecessors(name))

    def validate(self) -> None:
        """Raise TopologyValidationError if the graph contains a cycle."""
        if nx.is_directed_acyclic_graph(self._graph):
            return
        try:
            cycle = nx.find_cycle(self._graph)
            cycle_str = " -> ".join(f"{u}" for u, v in cycle)
            raise TopologyValidationError(f"Launch graph contains a cycle: {cycle_str}")
        except nx.NetworkXNoCycle:
            raise TopologyValidationError("Launch graph contains a cycle") from None

    def launch_order(self) -> list[ProcessSpec]:
        """Topological order, ties broken by kind tier then declaration.

        Raises:
            TopologyValidationError: If the graph contains a cycle
        """
        self.validate()

        def sort_key(name: str) -> tuple[int, int]:
            info: NodeInfo = self._graph.nodes[name]["info"]
            return (info.kind.tier, info.position)

        order = nx.lexicographical_topological_sort(self._graph, key=sort_key)
        return [self._specs[name] for name in order]

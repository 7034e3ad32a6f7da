from __future__ import annotations

from aipart.ir.graph import Graph, GraphValidator, Node
from aipart.ir.utils import build_edge_map, build_producer_map


class GraphView:
    """
    Read-only access to a Graph for partitioning.

    The topological order, producer map and consumer edges are computed once at
    construction; the underlying graph must not be mutated while a view is in use.
    """

    def __init__(self, graph: Graph, *, validate: bool = True) -> None:
        validator = GraphValidator(graph)
        if validate:
            validator.validate()
        self._graph = graph
        self._order = tuple(validator.topological_order())
        self._producers = build_producer_map(graph)
        self._edges = build_edge_map(graph)
        self._initializers = frozenset(graph.initializers)
        self._inputs = frozenset(graph.inputs)
        self._outputs = tuple(graph.outputs)

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def name(self) -> str:
        return self._graph.name

    @property
    def is_subgraph(self) -> bool:
        return self._graph.is_subgraph

    @property
    def initializers(self) -> frozenset[str]:
        return self._initializers

    @property
    def graph_inputs(self) -> frozenset[str]:
        """Declared graph inputs, including initializers that are also inputs."""
        return self._inputs

    @property
    def graph_outputs(self) -> tuple[str, ...]:
        return self._outputs

    def __len__(self) -> int:
        return len(self._graph.nodes)

    def topological_order(self) -> list[int]:
        return list(self._order)

    def node(self, idx: int) -> Node:
        return self._graph.nodes[idx]

    def consumers(self, idx: int) -> list[int]:
        """Distinct indices of nodes reading an output of node `idx`, ascending."""
        return list(self._edges.get(idx, []))

    def producer(self, name: str) -> int | None:
        return self._producers.get(name)

    def is_initializer(self, name: str) -> bool:
        return name in self._initializers

    def external_initializers(self) -> list[str]:
        return self._graph.external_initializers()

    def has_external_initializers(self) -> bool:
        return bool(self.external_initializers())

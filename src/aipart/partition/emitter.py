from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from aipart.config import PartitionerConfig
from aipart.ir.graph import Graph
from aipart.ir.utils import extract_subgraph
from aipart.partition.boundary import ClusterInterface


class NameCounter:
    """Monotonic counter; safe to share between threads."""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass(frozen=True)
class SubgraphDescriptor:
    """A named, boundary-annotated cluster handed to a delegate."""

    name: str
    domain: str
    since_version: int
    status: str
    node_indices: tuple[int, ...]
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["node_indices"] = list(self.node_indices)
        data["inputs"] = list(self.inputs)
        data["outputs"] = list(self.outputs)
        return data


class SubgraphEmitter:
    def __init__(
        self,
        config: PartitionerConfig | None = None,
        counter: NameCounter | None = None,
    ) -> None:
        self.config = config or PartitionerConfig()
        self.counter = counter or NameCounter()

    def emit(
        self, cluster: Sequence[int], interface: ClusterInterface
    ) -> SubgraphDescriptor:
        return SubgraphDescriptor(
            name=f"{self.config.name_prefix}_{self.counter.next()}",
            domain=self.config.domain,
            since_version=self.config.since_version,
            status=self.config.status,
            node_indices=tuple(cluster),
            inputs=interface.inputs,
            outputs=interface.outputs,
        )

    @staticmethod
    def materialize(graph: Graph, descriptor: SubgraphDescriptor) -> Graph:
        """Copy the descriptor's nodes into a standalone graph with its boundary."""
        sub = extract_subgraph(
            graph,
            descriptor.node_indices,
            descriptor.inputs,
            descriptor.outputs,
            name=descriptor.name,
        )
        sub.metadata["domain"] = descriptor.domain
        sub.metadata["since_version"] = descriptor.since_version
        return sub

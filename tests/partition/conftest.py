from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

import pytest

from aipart.ir import Graph, Node, Tensor

GraphBuilder = Callable[..., Graph]


def _t(name: str) -> Tensor:
    return Tensor(name=name, dtype="float32", shape=[1])


def build_graph(
    nodes: Sequence[Node],
    inputs: Iterable[str] = (),
    outputs: Iterable[str] = (),
    initializers: Iterable[str] = (),
    name: str = "g",
) -> Graph:
    g = Graph(name=name)
    for init in initializers:
        g.add_initializer(_t(init))
    g.inputs = list(inputs)
    g.outputs = list(outputs)
    for tname in [*g.inputs, *g.outputs]:
        if tname not in g.tensors:
            g.add_tensor(_t(tname))
    for node in nodes:
        for tname in [*node.inputs, *node.outputs]:
            if tname and tname not in g.tensors:
                g.add_tensor(_t(tname))
        g.add_node(node)
    return g


@pytest.fixture
def make_graph() -> GraphBuilder:
    return build_graph


@pytest.fixture
def chain_graph() -> Graph:
    # x -> A -> a -> B -> b -> C -> y
    return build_graph(
        [
            Node("A", ["x"], ["a"]),
            Node("B", ["a"], ["b"]),
            Node("C", ["b"], ["y"]),
        ],
        inputs=["x"],
        outputs=["y"],
    )

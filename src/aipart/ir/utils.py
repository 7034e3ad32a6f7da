from __future__ import annotations

from collections.abc import Sequence

from aipart.ir.graph import Graph, Node, Tensor, ValidationError


def build_producer_map(graph: Graph) -> dict[str, int]:
    """
    Map tensor name -> producing node index. Graph inputs have no producer.
    Raises ValidationError on duplicate producers.
    """
    producer: dict[str, int] = {}
    for idx, node in enumerate(graph.nodes):
        for out in node.outputs:
            if not out:
                continue
            if out in producer:
                raise ValidationError(
                    f"Multiple producers for tensor '{out}' at node {idx} and {producer[out]}",
                    code="EDUP_PRODUCER",
                    node_index=idx,
                )
            producer[out] = idx
    return producer


def build_consumer_map(graph: Graph) -> dict[str, list[int]]:
    """
    Map tensor name -> list of consuming node indices.
    A node reading the same tensor twice is listed once.
    """
    consumers: dict[str, list[int]] = {}
    for idx, node in enumerate(graph.nodes):
        for inp in node.inputs:
            if not inp:
                continue
            use_list = consumers.setdefault(inp, [])
            if not use_list or use_list[-1] != idx:
                use_list.append(idx)
    return consumers


def build_edge_map(graph: Graph) -> dict[int, list[int]]:
    """
    Map node index -> ascending indices of the nodes that read any of its outputs.
    """
    consumers = build_consumer_map(graph)
    edges: dict[int, list[int]] = {}
    for idx, node in enumerate(graph.nodes):
        targets: set[int] = set()
        for out in node.outputs:
            if out:
                targets.update(consumers.get(out, []))
        edges[idx] = sorted(targets)
    return edges


def _copy_tensor(t: Tensor) -> Tensor:
    # shallow copy
    return Tensor(
        name=t.name,
        dtype=t.dtype,
        shape=list(t.shape),
        layout=t.layout,
        external_data=t.external_data,
        metadata=dict(t.metadata),
    )


def extract_subgraph(
    graph: Graph,
    node_indices: Sequence[int],
    inputs: Sequence[str],
    outputs: Sequence[str],
    *,
    name: str = "subgraph",
) -> Graph:
    """
    Create a new Graph that holds copies of the given nodes, in the given order.
    - Tensors include any referenced by the included nodes or the boundary lists.
    - Graph inputs/outputs are exactly `inputs`/`outputs`; boundary inputs that
      are initializers of the source graph stay initializers.
    """
    new_graph = Graph(name=name)
    if not node_indices:
        return new_graph

    referenced: list[str] = []
    for i in node_indices:
        node = graph.nodes[i]
        new_graph.add_node(
            Node(
                op_type=node.op_type,
                inputs=list(node.inputs),
                outputs=list(node.outputs),
                name=node.name,
                attributes=dict(node.attributes),
                metadata=dict(node.metadata),
            )
        )
        referenced.extend(t for t in node.inputs if t)
        referenced.extend(t for t in node.outputs if t)
    referenced.extend(inputs)
    referenced.extend(outputs)

    for tname in referenced:
        t = graph.get_tensor(tname)
        if t is None or tname in new_graph.tensors:
            continue
        if graph.is_initializer(tname):
            new_graph.add_initializer(_copy_tensor(t))
        else:
            new_graph.add_tensor(_copy_tensor(t))

    new_graph.inputs = list(inputs)
    new_graph.outputs = list(outputs)
    return new_graph

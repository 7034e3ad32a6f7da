from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass

from aipart.ir.view import GraphView


@dataclass(frozen=True)
class ClusterInterface:
    """Ordered boundary of a cluster: dynamic inputs come before constants."""

    dynamic_inputs: tuple[str, ...]
    constant_inputs: tuple[str, ...]
    outputs: tuple[str, ...]

    @property
    def inputs(self) -> tuple[str, ...]:
        return self.dynamic_inputs + self.constant_inputs

    @property
    def has_dynamic_input(self) -> bool:
        return bool(self.dynamic_inputs)

    def is_degenerate(self, *, require_dynamic_input: bool = True) -> bool:
        if require_dynamic_input:
            return not self.dynamic_inputs
        return not self.inputs


def is_constant_input(
    view: GraphView, name: str, required_initializers: Collection[str]
) -> bool:
    """
    An initializer is a constant unless it is also a declared graph input,
    which makes it an overridable default, and no supported node requires it.
    """
    if not view.is_initializer(name):
        return False
    return name not in view.graph_inputs or name in required_initializers


def resolve_boundary(
    view: GraphView,
    cluster: Sequence[int],
    required_initializers: Collection[str],
) -> ClusterInterface:
    """
    Compute the tensors a cluster reads from and exposes to the rest of the graph.

    Outputs read by nodes outside the cluster are listed in production order,
    followed by graph outputs produced inside the cluster in graph order.
    """
    members = set(cluster)
    ordered_input_args: list[str] = []
    seen_inputs: set[str] = set()
    output_args: set[str] = set()
    external_outputs: list[str] = []
    seen_external: set[str] = set()

    for idx in cluster:
        node = view.node(idx)
        for name in node.inputs:
            if name and name not in seen_inputs:
                seen_inputs.add(name)
                ordered_input_args.append(name)
        output_args.update(out for out in node.outputs if out)

        # Outputs of this node read by consumers outside the cluster
        read_outside: set[str] = set()
        for consumer_idx in view.consumers(idx):
            if consumer_idx in members:
                continue
            read_outside.update(view.node(consumer_idx).inputs)
        for out in node.outputs:
            if out and out in read_outside and out not in seen_external:
                seen_external.add(out)
                external_outputs.append(out)

    dynamic_inputs: list[str] = []
    constant_inputs: list[str] = []
    for name in ordered_input_args:
        if name in output_args:
            continue
        if is_constant_input(view, name, required_initializers):
            constant_inputs.append(name)
        else:
            dynamic_inputs.append(name)

    outputs = list(external_outputs)
    for name in view.graph_outputs:
        if name in output_args and name not in seen_external:
            seen_external.add(name)
            outputs.append(name)

    return ClusterInterface(
        dynamic_inputs=tuple(dynamic_inputs),
        constant_inputs=tuple(constant_inputs),
        outputs=tuple(outputs),
    )

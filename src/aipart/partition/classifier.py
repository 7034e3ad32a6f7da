from __future__ import annotations

from dataclasses import dataclass, field

from aipart.ir.view import GraphView
from aipart.partition.errors import OracleInconsistencyError, SupportMismatch
from aipart.partition.oracle import TensorPredicate


@dataclass
class SupportVerdict:
    unsupported: list[int] = field(default_factory=list)
    required_initializers: set[str] = field(default_factory=set)


def find_support_mismatches(
    view: GraphView, order: list[int], is_supported: TensorPredicate
) -> list[SupportMismatch]:
    """Report every node whose output tensors do not agree on support."""
    mismatches: list[SupportMismatch] = []
    for idx in order:
        node = view.node(idx)
        outputs = [out for out in node.outputs if out]
        flags = [is_supported(out) for out in outputs]
        if len(set(flags)) < 2:
            continue
        # The first output that contradicts the verdict set by the first output
        offending = next(out for out, flag in zip(outputs, flags) if flag != flags[0])
        mismatches.append(
            SupportMismatch(
                node_index=idx,
                op_type=node.op_type,
                tensor=offending,
                supported=tuple(o for o, f in zip(outputs, flags) if f),
                unsupported=tuple(o for o, f in zip(outputs, flags) if not f),
            )
        )
    return mismatches


def classify_nodes(
    view: GraphView, order: list[int], is_supported: TensorPredicate, target: str
) -> SupportVerdict:
    """
    Split nodes into unsupported ones and collect initializers read by supported ones.

    Raises OracleInconsistencyError if any node is only partially supported.
    A node without outputs is unsupported.
    """
    mismatches = find_support_mismatches(view, order, is_supported)
    if mismatches:
        raise OracleInconsistencyError(target, mismatches)

    verdict = SupportVerdict()
    for idx in order:
        node = view.node(idx)
        outputs = [out for out in node.outputs if out]
        if outputs and is_supported(outputs[0]):
            for inp in node.inputs:
                if inp and view.is_initializer(inp):
                    verdict.required_initializers.add(inp)
        else:
            verdict.unsupported.append(idx)
    return verdict

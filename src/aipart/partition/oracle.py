from __future__ import annotations

import json
from collections.abc import Callable, Collection, Iterable, Mapping
from pathlib import Path
from typing import Protocol, Union

from aipart.ir.view import GraphView

SupportInfo = Union[Collection[str], Mapping[str, bool]]
TensorPredicate = Callable[[str], bool]


class SupportOracle(Protocol):
    """Decides which node output tensors a backend target can produce."""

    def supported_tensors(self, view: GraphView, target: str) -> SupportInfo: ...


def tensor_support_predicate(info: SupportInfo) -> TensorPredicate:
    """Normalize an oracle result (name set or name -> flag map) to a predicate."""
    if isinstance(info, Mapping):
        flags = {str(k): bool(v) for k, v in info.items()}
        return lambda name: flags.get(name, False)
    names = frozenset(info)
    return lambda name: name in names


# Operators a DPU-class accelerator typically executes natively.
DEFAULT_SUPPORTED_OPS: dict[str, frozenset[str]] = {
    "dpuv1": frozenset(
        {
            "Add",
            "AveragePool",
            "BatchNormalization",
            "Concat",
            "Conv",
            "ConvTranspose",
            "Flatten",
            "GlobalAveragePool",
            "Identity",
            "LeakyRelu",
            "MaxPool",
            "Mul",
            "Pad",
            "Relu",
            "Reshape",
            "Transpose",
        }
    ),
}


class OpTypeOracle:
    """Marks every output of a node as supported when its op_type is in the target's table."""

    def __init__(self, supported_ops: Mapping[str, Iterable[str]] | None = None) -> None:
        table = DEFAULT_SUPPORTED_OPS if supported_ops is None else supported_ops
        self._ops = {target: frozenset(ops) for target, ops in table.items()}

    @property
    def targets(self) -> list[str]:
        return sorted(self._ops)

    def supported_ops(self, target: str) -> frozenset[str]:
        return self._ops.get(target, frozenset())

    def supported_tensors(self, view: GraphView, target: str) -> set[str]:
        ops = self.supported_ops(target)
        names: set[str] = set()
        for idx in view.topological_order():
            node = view.node(idx)
            if node.op_type in ops:
                names.update(out for out in node.outputs if out)
        return names


class AnnotatedTensorOracle:
    """
    Support from per-tensor target annotations, e.g. as written by an external
    backend partitioner that tags each layer it claims with a target name.
    """

    def __init__(self, annotations: Mapping[str, str]) -> None:
        self._annotations = dict(annotations)

    @classmethod
    def from_json(cls, path: str | Path) -> AnnotatedTensorOracle:
        """Load a {"tensor_name": "target", ...} JSON object."""
        data = json.loads(Path(path).read_text())
        if not isinstance(data, dict):
            raise ValueError(f"Annotation file {path} must hold a JSON object")
        return cls({str(k): str(v) for k, v in data.items()})

    def supported_tensors(self, view: GraphView, target: str) -> set[str]:
        return {name for name, t in self._annotations.items() if t == target}

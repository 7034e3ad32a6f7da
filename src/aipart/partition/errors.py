from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PartitionError(Exception):
    """Partitioning error with optional code and context."""

    def __init__(
        self, message: str, code: str = "EPARTITION", node_index: int | None = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.node_index = node_index


@dataclass(frozen=True)
class SupportMismatch:
    """A node whose output tensors disagree on backend support."""

    node_index: int
    op_type: str
    tensor: str
    supported: tuple[str, ...]
    unsupported: tuple[str, ...]

    def describe(self) -> str:
        return (
            f"node {self.node_index} ({self.op_type}): output tensor '{self.tensor}' "
            f"is only partially supported (supported={list(self.supported)}, "
            f"unsupported={list(self.unsupported)})"
        )


class OracleInconsistencyError(PartitionError):
    """The oracle marked some, but not all, outputs of a node as supported."""

    def __init__(self, target: str, mismatches: list[SupportMismatch]) -> None:
        first = mismatches[0]
        details = "; ".join(m.describe() for m in mismatches)
        super().__init__(
            f"Inconsistent support for target '{target}': {details}",
            code="EORACLE_MISMATCH",
            node_index=first.node_index,
        )
        self.target = target
        self.mismatches = list(mismatches)
        self.tensor = first.tensor


class SkipReason(str, Enum):
    """Why a whole graph yielded no clusters without an error."""

    EXTERNAL_DATA = "external_data"
    NESTED_GRAPH = "nested_graph"

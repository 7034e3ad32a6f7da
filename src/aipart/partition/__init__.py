"""Support classification, clustering and boundary extraction for delegation."""

from .boundary import ClusterInterface, is_constant_input, resolve_boundary
from .classifier import SupportVerdict, classify_nodes, find_support_mismatches
from .clusters import build_clusters
from .emitter import NameCounter, SubgraphDescriptor, SubgraphEmitter
from .errors import OracleInconsistencyError, PartitionError, SkipReason, SupportMismatch
from .oracle import (
    DEFAULT_SUPPORTED_OPS,
    AnnotatedTensorOracle,
    OpTypeOracle,
    SupportOracle,
    tensor_support_predicate,
)
from .partitioner import GraphPartitioner, PartitionReport

__all__ = [
    "GraphPartitioner",
    "PartitionReport",
    "SupportOracle",
    "OpTypeOracle",
    "AnnotatedTensorOracle",
    "DEFAULT_SUPPORTED_OPS",
    "tensor_support_predicate",
    "SupportVerdict",
    "classify_nodes",
    "find_support_mismatches",
    "build_clusters",
    "ClusterInterface",
    "is_constant_input",
    "resolve_boundary",
    "NameCounter",
    "SubgraphDescriptor",
    "SubgraphEmitter",
    "PartitionError",
    "OracleInconsistencyError",
    "SupportMismatch",
    "SkipReason",
]

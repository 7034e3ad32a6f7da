from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from aipart.config import PartitionerConfig
from aipart.ir.graph import Graph
from aipart.ir.view import GraphView
from aipart.partition.boundary import resolve_boundary
from aipart.partition.classifier import classify_nodes
from aipart.partition.clusters import build_clusters
from aipart.partition.emitter import NameCounter, SubgraphDescriptor, SubgraphEmitter
from aipart.partition.errors import OracleInconsistencyError, SkipReason
from aipart.partition.oracle import SupportOracle, tensor_support_predicate
from aipart.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class PartitionReport:
    target: str
    descriptors: list[SubgraphDescriptor] = field(default_factory=list)
    unsupported: list[int] = field(default_factory=list)
    clusters: list[list[int]] = field(default_factory=list)
    dropped: list[list[int]] = field(default_factory=list)
    skipped: SkipReason | None = None
    error: OracleInconsistencyError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GraphPartitioner:
    """
    Carves a graph into backend-supported clusters and emits one descriptor
    per cluster that has a usable input boundary.
    """

    def __init__(
        self,
        oracle: SupportOracle,
        config: PartitionerConfig | None = None,
        emitter: SubgraphEmitter | None = None,
        counter: NameCounter | None = None,
    ) -> None:
        self.oracle = oracle
        self.config = config or PartitionerConfig()
        self.emitter = emitter or SubgraphEmitter(self.config, counter)

    def _view(self, graph: Graph | GraphView) -> GraphView:
        if isinstance(graph, GraphView):
            return graph
        return GraphView(graph, validate=self.config.validate_graph)

    def get_capability(
        self, graph: Graph | GraphView, target: str | None = None
    ) -> list[SubgraphDescriptor]:
        return self.partition(graph, target).descriptors

    def partition(
        self, graph: Graph | GraphView, target: str | None = None
    ) -> PartitionReport:
        """
        Partition `graph` for one target.

        Nested graphs and graphs with externally stored initializers yield an
        empty report. Raises OracleInconsistencyError when the oracle's answer
        cannot be mapped onto whole nodes.
        """
        target = target or self.config.target
        report = PartitionReport(target=target)
        # Guards run on the raw graph: nested bodies may read outer-scope
        # tensors and would not pass validation.
        source = graph.graph if isinstance(graph, GraphView) else graph

        external = source.external_initializers()
        if external:
            logger.warning(
                "Initializers with external data location are not supported (%s); "
                "graph '%s' will not be partitioned",
                ", ".join(external),
                source.name,
            )
            report.skipped = SkipReason.EXTERNAL_DATA
            return report

        if source.is_subgraph:
            logger.warning(
                "Graph '%s' is a nested graph; partitioning nested graphs is not supported",
                source.name,
            )
            report.skipped = SkipReason.NESTED_GRAPH
            return report

        view = self._view(graph)

        order = view.topological_order()
        is_supported = tensor_support_predicate(
            self.oracle.supported_tensors(view, target)
        )
        try:
            verdict = classify_nodes(view, order, is_supported, target)
        except OracleInconsistencyError as exc:
            logger.error("%s", exc)
            raise

        report.unsupported = verdict.unsupported
        report.clusters = build_clusters(order, verdict.unsupported)
        for cluster in report.clusters:
            interface = resolve_boundary(view, cluster, verdict.required_initializers)
            if interface.is_degenerate(
                require_dynamic_input=self.config.require_dynamic_input
            ):
                logger.debug(
                    "Dropping cluster %s: no dynamic input (inputs=%s)",
                    cluster,
                    list(interface.inputs),
                )
                report.dropped.append(cluster)
                continue
            descriptor = self.emitter.emit(cluster, interface)
            logger.debug(
                "Emitted %s: nodes=%s inputs=%s outputs=%s",
                descriptor.name,
                list(descriptor.node_indices),
                list(descriptor.inputs),
                list(descriptor.outputs),
            )
            report.descriptors.append(descriptor)

        logger.info(
            "Target '%s': %d of %d nodes unsupported, %d cluster(s), %d descriptor(s)",
            target,
            len(report.unsupported),
            len(order),
            len(report.clusters),
            len(report.descriptors),
        )
        return report

    def partition_targets(
        self, graph: Graph | GraphView, targets: Iterable[str]
    ) -> dict[str, PartitionReport]:
        """Partition for each target; an inconsistent oracle only fails its own target."""
        source = graph.graph if isinstance(graph, GraphView) else graph
        if not (source.is_subgraph or source.external_initializers()):
            # Validate once for all targets
            graph = self._view(graph)
        reports: dict[str, PartitionReport] = {}
        for target in targets:
            try:
                reports[target] = self.partition(graph, target)
            except OracleInconsistencyError as exc:
                reports[target] = PartitionReport(target=target, error=exc)
        return reports

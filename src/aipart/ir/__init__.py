"""Graph IR data structures, the read-only graph view and analysis utilities."""

from .graph import Graph, GraphValidator, Node, Tensor, ValidationError
from .utils import build_consumer_map, build_edge_map, build_producer_map, extract_subgraph
from .view import GraphView

__all__ = [
    "Graph",
    "Node",
    "Tensor",
    "GraphValidator",
    "GraphView",
    "ValidationError",
    "build_producer_map",
    "build_consumer_map",
    "build_edge_map",
    "extract_subgraph",
]

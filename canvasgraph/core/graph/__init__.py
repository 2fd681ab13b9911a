"""Pipeline graph: edges, the invariant-checking builder and the validator."""

from .graph import Edge, EdgeEndpoint, Graph, GraphBuilder, topological_order
from .validator import collect_violations, validate_graph

__all__ = [
    "Edge",
    "EdgeEndpoint",
    "Graph",
    "GraphBuilder",
    "collect_violations",
    "topological_order",
    "validate_graph",
]

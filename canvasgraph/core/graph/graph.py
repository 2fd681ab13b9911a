# canvasgraph/core/graph/graph.py
"""GraphBuilder and Graph: the node/edge container handed to the engine.

GraphBuilder is the mutable side. Base topology and augmentation stages
add nodes and edges through it, and every call checks the structural
invariants incrementally (unique ids, known endpoints, declared ports,
single writer per input port, no cycles). ``finish()`` runs the full
validator and returns a read-only Graph.
"""
from __future__ import annotations

import json
import logging
from collections import OrderedDict, deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ...errors import GraphConstructionError
from ..nodes.base import BaseNode
from ..nodes.port import PortValidator
from ..nodes.registry import node_from_dict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Edge
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EdgeEndpoint:
    """One side of an edge: a node id and one of its port names."""
    node_id: str
    field: str

    def __post_init__(self) -> None:
        for name in ("node_id", "field"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string")

    def to_dict(self) -> Dict[str, str]:
        return {"node_id": self.node_id, "field": self.field}

    def __str__(self) -> str:
        return f"{self.node_id}.{self.field}"


@dataclass(frozen=True)
class Edge:
    """Data dependency from an output port to an input port."""
    source: EdgeEndpoint
    destination: EdgeEndpoint

    @classmethod
    def of(cls, src: str, src_field: str, dst: str, dst_field: str) -> Edge:
        return cls(EdgeEndpoint(src, src_field), EdgeEndpoint(dst, dst_field))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Edge:
        src, dst = data["source"], data["destination"]
        return cls.of(src["node_id"], src["field"], dst["node_id"], dst["field"])

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {"source": self.source.to_dict(), "destination": self.destination.to_dict()}

    def __repr__(self) -> str:
        return f"{self.source} -> {self.destination}"


def topological_order(node_ids: Iterable[str], edges: Iterable[Edge]) -> List[str]:
    """Kahn's algorithm over ``edges``; edges to unknown nodes are ignored.

    Raises:
        ValueError: If the edges contain a cycle.
    """
    in_degree: Dict[str, int] = OrderedDict((nid, 0) for nid in node_ids)
    adj: Dict[str, List[str]] = {nid: [] for nid in in_degree}

    for edge in edges:
        src, dst = edge.source.node_id, edge.destination.node_id
        if src in adj and dst in in_degree:
            adj[src].append(dst)
            in_degree[dst] += 1

    queue = deque([n for n, d in in_degree.items() if d == 0])
    result: List[str] = []
    while queue:
        node = queue.popleft()
        result.append(node)
        for neighbor in adj[node]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(result) != len(in_degree):
        remaining = sorted(set(in_degree) - set(result))
        raise ValueError(f"Graph contains a cycle involving nodes: {remaining}")
    return result


class _GraphQueries:
    """Read-only queries shared by GraphBuilder and Graph."""

    id: str
    nodes: Mapping[str, BaseNode]
    edges: Sequence[Edge]

    def get_node(self, node_id: str) -> Optional[BaseNode]:
        return self.nodes.get(node_id)

    def get_edges_from(self, node_id: str, field: Optional[str] = None) -> List[Edge]:
        """All edges leaving ``node_id`` (optionally only from ``field``)."""
        return [
            e for e in self.edges
            if e.source.node_id == node_id and (field is None or e.source.field == field)
        ]

    def get_edges_to(self, node_id: str, field: Optional[str] = None) -> List[Edge]:
        """All edges entering ``node_id`` (optionally only into ``field``)."""
        return [
            e for e in self.edges
            if e.destination.node_id == node_id and (field is None or e.destination.field == field)
        ]

    def get_writer(self, node_id: str, field: str) -> Optional[EdgeEndpoint]:
        """Source feeding a single-writer input port, or None."""
        for e in self.edges:
            if e.destination.node_id == node_id and e.destination.field == field:
                return e.source
        return None

    def get_connected_inputs(self, node_id: str) -> Set[str]:
        return {e.destination.field for e in self.edges if e.destination.node_id == node_id}

    def nodes_of_type(self, node_type: str) -> List[BaseNode]:
        return [n for n in self.nodes.values() if n.type == node_type]

    def topological_sort(self) -> List[str]:
        return topological_order(self.nodes.keys(), self.edges)

    def has_path(self, src: str, dst: str) -> bool:
        """Whether ``dst`` is reachable from ``src`` along edges."""
        seen = {src}
        queue = deque([src])
        while queue:
            current = queue.popleft()
            if current == dst:
                return True
            for e in self.edges:
                if e.source.node_id == current and e.destination.node_id not in seen:
                    seen.add(e.destination.node_id)
                    queue.append(e.destination.node_id)
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the execution engine's schema."""
        return {
            "id": self.id,
            "nodes": {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def visualize(self) -> str:
        """Mermaid diagram of the graph."""
        lines = ["graph LR"]
        for node_id, node in self.nodes.items():
            shape = f'{node_id}["{node_id}\\n{node.type}"]'
            if not node.is_intermediate:
                shape = f'{node_id}[["{node_id}\\n{node.type}"]]'
            lines.append(f"    {shape}")
        for edge in self.edges:
            label = f"{edge.source.field} -> {edge.destination.field}"
            lines.append(f'    {edge.source.node_id} -->|"{label}"| {edge.destination.node_id}')
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def __getitem__(self, node_id: str) -> BaseNode:
        return self.nodes[node_id]


# ---------------------------------------------------------------------------
# GraphBuilder: mutable, invariant-checking
# ---------------------------------------------------------------------------

class GraphBuilder(_GraphQueries):
    """Mutable graph under construction.

    Example::

        builder = GraphBuilder("inpaint_graph")
        builder.add_node(SDXLModelLoaderNode(id="sdxl_model_loader", model=model))
        builder.add_node(DenoiseLatentsNode(id="inpaint"))
        builder.connect("sdxl_model_loader", "unet", "inpaint", "unet")
        graph = builder.finish(anchors=["sdxl_model_loader"])
    """

    def __init__(self, graph_id: str = "graph"):
        if not graph_id:
            raise ValueError("graph_id must be non-empty")
        self.id: str = graph_id
        self.nodes: OrderedDict[str, BaseNode] = OrderedDict()
        self.edges: List[Edge] = []

    # ==================== NODES ====================

    def add_node(self, node: BaseNode) -> str:
        """Add a node under its own id. Returns the id."""
        if not isinstance(node, BaseNode):
            raise GraphConstructionError(f"Expected a BaseNode, got {type(node).__name__}")
        if node.id in self.nodes:
            raise GraphConstructionError(f"Node '{node.id}' already exists in graph '{self.id}'")
        self.nodes[node.id] = node
        logger.debug(f"[{self.id}] add node {node.id} ({node.type})")
        return node.id

    # ==================== EDGES ====================

    def connect(self, src: str, src_field: str, dst: str, dst_field: str) -> GraphBuilder:
        """Connect ``src.src_field`` to ``dst.dst_field``. Returns self for chaining."""
        return self.add_edge(Edge.of(src, src_field, dst, dst_field))

    def add_edge(self, edge: Edge) -> GraphBuilder:
        self._validate_edge(edge)
        dst_port = type(self.nodes[edge.destination.node_id]).get_input_port(edge.destination.field)
        if not dst_port.multiple:
            writer = self.get_writer(edge.destination.node_id, edge.destination.field)
            if writer is not None:
                raise GraphConstructionError(
                    f"Port '{edge.destination}' already has a writer ({writer}); "
                    f"use rewire() to replace it"
                )
        elif edge in self.edges:
            raise GraphConstructionError(f"Edge {edge!r} already exists in graph '{self.id}'")
        self.edges.append(edge)
        logger.debug(f"[{self.id}] add edge {edge!r}")
        return self

    def rewire(self, destination: EdgeEndpoint, new_source: EdgeEndpoint) -> Edge:
        """Replace the writer of an already-connected input port.

        The replacement takes the old edge's position in the edge list, so
        the port keeps exactly one writer. Returns the replaced edge.
        """
        index = None
        for i, e in enumerate(self.edges):
            if e.destination == destination:
                index = i
                break
        if index is None:
            raise GraphConstructionError(f"Port '{destination}' has no writer to rewire")
        old = self.edges[index]
        new = Edge(new_source, destination)
        self._validate_edge(new)
        self.edges[index] = new
        logger.debug(f"[{self.id}] rewire {old!r} => {new!r}")
        return old

    def _validate_edge(self, edge: Edge) -> None:
        src, dst = edge.source, edge.destination
        if src.node_id not in self.nodes:
            raise GraphConstructionError(f"Source node '{src.node_id}' not found in graph '{self.id}'")
        if dst.node_id not in self.nodes:
            raise GraphConstructionError(f"Destination node '{dst.node_id}' not found in graph '{self.id}'")

        src_node, dst_node = self.nodes[src.node_id], self.nodes[dst.node_id]
        sp = type(src_node).get_output_port(src.field)
        dp = type(dst_node).get_input_port(dst.field)
        if sp is None:
            raise GraphConstructionError(
                f"Output port '{src.field}' not declared on {src.node_id} ({src_node.type})"
            )
        if dp is None:
            raise GraphConstructionError(
                f"Input port '{dst.field}' not declared on {dst.node_id} ({dst_node.type})"
            )
        valid, msg = PortValidator.validate_connection(src_node.type, sp, dst_node.type, dp)
        if not valid:
            raise GraphConstructionError(msg)

        if src.node_id == dst.node_id or self.has_path(dst.node_id, src.node_id):
            raise GraphConstructionError(f"Edge {edge!r} would create a cycle in graph '{self.id}'")

    # ==================== FINISH ====================

    def finish(self, anchors: Iterable[str] = ()) -> Graph:
        """Validate the whole graph and return it as a read-only value.

        Raises:
            GraphValidationError: On the first structural violation.
        """
        from .validator import validate_graph

        validate_graph(self, anchors=anchors)
        return Graph(self.id, self.nodes, self.edges)

    def __repr__(self) -> str:
        return f"<GraphBuilder '{self.id}' nodes={len(self.nodes)} edges={len(self.edges)}>"


# ---------------------------------------------------------------------------
# Graph: finished, read-only
# ---------------------------------------------------------------------------

class Graph(_GraphQueries):
    """Finished graph handed to the execution engine.

    ``nodes`` is a read-only mapping and ``edges`` a tuple. The graph keeps
    private node copies and hands out fresh copies on every lookup, so
    neither later builder changes nor edits to a returned node reach it.
    """

    def __init__(self, graph_id: str, nodes: Mapping[str, BaseNode], edges: Iterable[Edge]):
        self._id = graph_id
        self._nodes: Dict[str, BaseNode] = OrderedDict(
            (node_id, node.model_copy(deep=True)) for node_id, node in nodes.items()
        )
        self._edges: Tuple[Edge, ...] = tuple(edges)

    @property
    def id(self) -> str:
        return self._id

    @property
    def nodes(self) -> Mapping[str, BaseNode]:
        return MappingProxyType(OrderedDict(
            (node_id, node.model_copy(deep=True)) for node_id, node in self._nodes.items()
        ))

    def get_node(self, node_id: str) -> Optional[BaseNode]:
        node = self._nodes.get(node_id)
        return node.model_copy(deep=True) if node is not None else None

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __getitem__(self, node_id: str) -> BaseNode:
        return self._nodes[node_id].model_copy(deep=True)

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Graph:
        """Rebuild a graph from its serialized form (no validation)."""
        nodes = OrderedDict(
            (node_id, node_from_dict(node_data)) for node_id, node_data in data.get("nodes", {}).items()
        )
        edges = [Edge.from_dict(e) for e in data.get("edges", [])]
        return cls(data["id"], nodes, edges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"<Graph '{self.id}' nodes={len(self.nodes)} edges={len(self.edges)}>"

# canvasgraph/core/graph/validator.py
"""Structural check run once on an assembled graph before it is handed off."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List

from ...errors import GraphValidationError
from ..nodes.port import PortValidator
from .graph import topological_order

logger = logging.getLogger(__name__)


def collect_violations(graph, anchors: Iterable[str] = ()) -> List[str]:
    """Return every structural violation found in ``graph``, in check order.

    Checks:
    1. Node ids match their map keys and are unique
    2. All edge endpoints reference existing nodes
    3. At most one writer per destination port (unless the port is ``multiple``)
    4. Graph is acyclic (topological sort succeeds)
    5. Mandatory anchor nodes are present
    6. Required input ports are connected or carry a literal value
    """
    errors: List[str] = []
    nodes = graph.nodes

    # 1. Node ids
    for key, node in nodes.items():
        if node.id != key:
            errors.append(f"Node stored under '{key}' has id '{node.id}'")
    for node_id, count in Counter(node.id for node in nodes.values()).items():
        if count > 1:
            errors.append(f"Duplicate node id '{node_id}' ({count} nodes)")

    # 2. Edge endpoints
    for edge in graph.edges:
        if edge.source.node_id not in nodes:
            errors.append(f"Edge {edge!r} references non-existent source node '{edge.source.node_id}'")
        if edge.destination.node_id not in nodes:
            errors.append(
                f"Edge {edge!r} references non-existent destination node '{edge.destination.node_id}'"
            )

    # 3. Single writer per destination port
    writers = Counter(edge.destination for edge in graph.edges)
    for destination, count in writers.items():
        if count < 2:
            continue
        node = nodes.get(destination.node_id)
        port = type(node).get_input_port(destination.field) if node is not None else None
        if port is not None and port.multiple:
            continue
        errors.append(f"Port '{destination}' has {count} writers")

    # 4. Acyclicity
    try:
        topological_order(nodes.keys(), graph.edges)
    except ValueError as e:
        errors.append(str(e))

    # 5. Anchors
    for anchor in anchors:
        if anchor not in nodes:
            errors.append(f"Mandatory node '{anchor}' is missing")

    # 6. Required inputs
    for node_id, node in nodes.items():
        connected = {e.destination.field for e in graph.edges if e.destination.node_id == node_id}
        errors.extend(
            PortValidator.check_required_inputs(
                node_id, node.type, type(node).inputs, connected, node.literal_inputs()
            )
        )

    return errors


def validate_graph(graph, anchors: Iterable[str] = ()) -> None:
    """Raise GraphValidationError carrying the first violation, if any."""
    violations = collect_violations(graph, anchors=anchors)
    if violations:
        logger.error(f"Graph '{graph.id}' failed validation: {violations[0]}")
        raise GraphValidationError(
            f"Graph '{graph.id}' validation failed: {violations[0]}", violations
        )
    logger.debug(f"Graph '{graph.id}' passed validation ({len(graph.nodes)} nodes, {len(graph.edges)} edges)")

"""canvasgraph: pipeline-graph assembler for SDXL canvas outpainting.

Turns a flat generation configuration into a validated DAG of typed nodes
for an external inference engine.

Usage:
    from canvasgraph import build_canvas_outpaint_graph, load_config
    config = load_config("outpaint.yaml", overrides=["steps=30"])
    graph = build_canvas_outpaint_graph(config)
    payload = graph.to_dict()

    # CLI
    python -m canvasgraph build outpaint.yaml --format json
"""
__version__ = "0.1.0"

from canvasgraph.errors import (
    CanvasGraphError,
    ConfigurationError,
    GraphConstructionError,
    GraphValidationError,
    StageOrderError,
)
from canvasgraph.core.config import GenerationConfig, load_config
from canvasgraph.core.graph import Edge, EdgeEndpoint, Graph, GraphBuilder, validate_graph
from canvasgraph.assemblers.outpaint import (
    build_base_graph,
    build_canvas_outpaint_graph,
    default_outpaint_pipeline,
)

__all__ = [
    "CanvasGraphError",
    "ConfigurationError",
    "Edge",
    "EdgeEndpoint",
    "GenerationConfig",
    "Graph",
    "GraphBuilder",
    "GraphConstructionError",
    "GraphValidationError",
    "StageOrderError",
    "build_base_graph",
    "build_canvas_outpaint_graph",
    "default_outpaint_pipeline",
    "load_config",
    "validate_graph",
]

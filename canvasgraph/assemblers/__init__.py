"""Graph assemblers: functions that turn a GenerationConfig into a Graph.

Each assembler registers itself under a name, so tools can pick one by
string (``canvasgraph build --graph sdxl_canvas_outpaint``).
"""
from __future__ import annotations

from typing import Callable, Dict

# Registry of graph builders
_GRAPH_BUILDERS: Dict[str, Callable] = {}


def register_graph_builder(name: str):
    """Decorator registering a graph builder under ``name``."""
    def decorator(fn: Callable) -> Callable:
        _GRAPH_BUILDERS[name] = fn
        return fn
    return decorator


def get_graph_builder(name: str) -> Callable:
    """Get a graph builder by name."""
    _ensure_builders_loaded()
    if name not in _GRAPH_BUILDERS:
        available = list_graph_builders()
        raise KeyError(f"Graph builder '{name}' not found. Available: {available}")
    return _GRAPH_BUILDERS[name]


def list_graph_builders() -> list[str]:
    _ensure_builders_loaded()
    return sorted(_GRAPH_BUILDERS.keys())


def _ensure_builders_loaded():
    """Lazy-load the modules that register builders."""
    import importlib

    for mod in ("canvasgraph.assemblers.outpaint",):
        importlib.import_module(mod)

import importlib
import logging
from difflib import get_close_matches
from typing import Any, Dict, List, Mapping, Type

from .base import BaseNode

logger = logging.getLogger(__name__)


class NodeRegistry:
    """Catalog of node types, keyed by their ``type`` tag.

    The catalog is append-only: a tag may be registered once, and node types
    register themselves via the @register_node decorator. Built-in modules are
    imported lazily on the first lookup.
    """
    _registry: Dict[str, Type[BaseNode]] = {}
    _discovered: bool = False

    _BUILTIN_MODULES = (
        "canvasgraph.core.nodes.catalog",
        "canvasgraph.core.nodes.extensions",
    )

    @classmethod
    def register(cls, node_type: str):
        """Decorator: @register_node("denoise_latents")"""
        def decorator(node_cls: Type[BaseNode]):
            if not issubclass(node_cls, BaseNode):
                raise TypeError(f"{node_cls.__name__} must subclass BaseNode")
            declared = node_cls.node_type()
            if declared != node_type:
                raise ValueError(
                    f"{node_cls.__name__} declares type '{declared}' but is registered as '{node_type}'"
                )
            existing = cls._registry.get(node_type)
            if existing is not None and existing is not node_cls:
                raise ValueError(
                    f"Node type '{node_type}' is already registered by {existing.__name__}"
                )
            cls._registry[node_type] = node_cls
            logger.debug(f"Registered node type '{node_type}' -> {node_cls.__name__}")
            return node_cls
        return decorator

    @classmethod
    def get(cls, node_type: str) -> Type[BaseNode]:
        """Get node class by tag. Raises informative KeyError with suggestions."""
        cls._auto_discover()
        if node_type not in cls._registry:
            similar = get_close_matches(node_type, cls._registry.keys(), n=5, cutoff=0.4)
            msg = f"Node type '{node_type}' not found in catalog."
            if similar:
                msg += f" Did you mean: {', '.join(similar)}?"
            raise KeyError(msg)
        return cls._registry[node_type]

    @classmethod
    def contains(cls, node_type: str) -> bool:
        cls._auto_discover()
        return node_type in cls._registry

    @classmethod
    def list_types(cls) -> List[str]:
        cls._auto_discover()
        return sorted(cls._registry)

    @classmethod
    def _auto_discover(cls):
        if cls._discovered:
            return
        cls._discovered = True
        for module in cls._BUILTIN_MODULES:
            importlib.import_module(module)


# Convenience aliases
register_node = NodeRegistry.register
get_node_class = NodeRegistry.get
list_node_types = NodeRegistry.list_types


def node_from_dict(data: Mapping[str, Any]) -> BaseNode:
    """Rebuild a node from its serialized form, dispatching on ``type``."""
    if "type" not in data:
        raise ValueError("Node data has no 'type' field")
    node_cls = NodeRegistry.get(data["type"])
    return node_cls.model_validate(dict(data))

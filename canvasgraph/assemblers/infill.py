# canvasgraph/assemblers/infill.py
"""Infill strategy: which node fills the transparent part of the canvas.

Every variant writes its result to an ``image`` output port, so the rest of
the graph is wired the same way whichever one is chosen.
"""
from __future__ import annotations

from typing import Callable, Dict, List

from ..core.config import GenerationConfig
from ..core.nodes.base import BaseNode
from ..core.nodes.catalog import InfillPatchMatchNode, InfillTileNode
from ..errors import ConfigurationError
from .constants import INPAINT_INFILL

_INFILL_BUILDERS: Dict[str, Callable[[GenerationConfig], BaseNode]] = {}


def register_infill(method: str):
    """Decorator for an infill node factory keyed by ``infill_method``."""
    def decorator(fn: Callable[[GenerationConfig], BaseNode]) -> Callable[[GenerationConfig], BaseNode]:
        _INFILL_BUILDERS[method] = fn
        return fn
    return decorator


def list_infill_methods() -> List[str]:
    return sorted(_INFILL_BUILDERS)


@register_infill("tile")
def _tile(config: GenerationConfig) -> BaseNode:
    return InfillTileNode(id=INPAINT_INFILL, image=config.init_image, tile_size=config.tile_size)


@register_infill("patchmatch")
def _patchmatch(config: GenerationConfig) -> BaseNode:
    return InfillPatchMatchNode(id=INPAINT_INFILL, image=config.init_image)


def make_infill_node(config: GenerationConfig) -> BaseNode:
    """Build the infill node for ``config.infill_method``."""
    builder = _INFILL_BUILDERS.get(config.infill_method)
    if builder is None:
        raise ConfigurationError(
            f"Unknown infill method '{config.infill_method}'. Available: {list_infill_methods()}"
        )
    return builder(config)

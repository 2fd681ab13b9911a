# canvasgraph/augmentations/controlnet.py
"""ControlNet guidance for the base denoiser."""
from __future__ import annotations

import logging
from typing import Optional

from ..assemblers.constants import CONTROL_NET_COLLECT
from ..core.config import GenerationConfig
from ..core.graph.graph import GraphBuilder
from ..core.nodes.extensions import CollectNode, ControlNetNode
from .base import AugmentationStage

logger = logging.getLogger(__name__)


class ControlNetStage(AugmentationStage):
    """Adds one ``controlnet`` node per valid adapter, collected into ``anchor.control``.

    An adapter is valid when enabled, with a model and an image. Nothing
    happens when ControlNet is off or no adapter is valid.
    """
    name = "controlnet"
    runs_after = ("lora",)

    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        controlnets = config.valid_controlnets()
        if not controlnets:
            return

        builder.add_node(CollectNode(id=CONTROL_NET_COLLECT))
        builder.connect(CONTROL_NET_COLLECT, "collection", anchor, "control")

        for cn in controlnets:
            node_id = f"control_net_{cn.control_net_id}"
            builder.add_node(ControlNetNode(
                id=node_id,
                image=cn.image,
                control_model=cn.model,
                control_weight=cn.weight,
                begin_step_percent=cn.begin_step_pct,
                end_step_percent=cn.end_step_pct,
                control_mode=cn.control_mode,
                resize_mode=cn.resize_mode,
            ))
            builder.connect(node_id, "control", CONTROL_NET_COLLECT, "item")
        logger.debug(f"{len(controlnets)} ControlNet(s) attached to '{anchor}'")

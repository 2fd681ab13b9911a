# canvasgraph/augmentations/lora.py
"""LoRA chain between the model loader and its consumers."""
from __future__ import annotations

import logging
from typing import Optional

from ..assemblers.constants import LORA_LOADER
from ..core.config import GenerationConfig
from ..core.graph.graph import EdgeEndpoint, GraphBuilder
from ..core.nodes.extensions import SDXLLoRALoaderNode
from .base import AugmentationStage

logger = logging.getLogger(__name__)

LORA_FIELDS = ("unet", "clip", "clip2")


class LoRAStage(AugmentationStage):
    """Chains one loader per configured LoRA.

    model_loader -> lora_0 -> lora_1 -> ... -> (every former consumer of the
    model loader's unet/clip/clip2). Nothing happens without LoRAs.
    """
    name = "lora"
    runs_after = ("refiner", "vae")

    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        if not config.loras:
            return
        if secondary_anchor is None:
            raise ValueError("LoRAStage needs the model loader id as secondary anchor")

        redirected = [
            e for e in builder.get_edges_from(secondary_anchor)
            if e.source.field in LORA_FIELDS
        ]

        previous = secondary_anchor
        for lora in config.loras:
            node_id = f"{LORA_LOADER}_{lora.model.model_name}"
            builder.add_node(SDXLLoRALoaderNode(id=node_id, lora=lora.model, weight=lora.weight))
            for field in LORA_FIELDS:
                builder.connect(previous, field, node_id, field)
            previous = node_id

        for edge in redirected:
            builder.rewire(edge.destination, EdgeEndpoint(previous, edge.source.field))
        logger.debug(
            f"{len(config.loras)} LoRA(s) chained for '{anchor}', "
            f"{len(redirected)} edge(s) re-pointed to {previous}"
        )

# canvasgraph/augmentations/vae.py
"""VAE source and precision for every node that encodes or decodes latents."""
from __future__ import annotations

import logging
from typing import Optional

from ..assemblers.constants import VAE_LOADER
from ..core.config import GenerationConfig
from ..core.graph.graph import GraphBuilder
from ..core.nodes.extensions import VAELoaderNode
from .base import AugmentationStage

logger = logging.getLogger(__name__)


class VAEStage(AugmentationStage):
    """Wires a VAE into each node with a ``vae`` input.

    The VAE comes from a dedicated loader when ``config.vae`` is set, else
    from the model loader given as the secondary anchor. Ports that already
    have a VAE writer are left alone.
    """
    name = "vae"
    runs_after = ("refiner",)

    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        if secondary_anchor is None:
            raise ValueError("VAEStage needs the model loader id as secondary anchor")

        source = secondary_anchor
        if config.vae is not None:
            builder.add_node(VAELoaderNode(id=VAE_LOADER, vae_model=config.vae))
            source = VAE_LOADER

        fp32 = config.vae_precision == "fp32"
        for node_id, node in list(builder.nodes.items()):
            if "vae" not in type(node).inputs:
                continue
            if "fp32" in type(node).model_fields:
                node.fp32 = fp32
            if builder.get_writer(node_id, "vae") is None:
                builder.connect(source, "vae", node_id, "vae")
                logger.debug(f"VAE {source} -> {node_id} (fp32={fp32})")

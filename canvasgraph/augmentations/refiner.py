# canvasgraph/augmentations/refiner.py
"""SDXL refiner: a second denoiser that finishes what the base one starts.

The base denoiser stops at ``refiner_start``; the refiner picks up its
latents from there to the end of the schedule and takes over the decoder's
``latents`` input.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..assemblers.constants import (
    SDXL_REFINER_DENOISE_LATENTS,
    SDXL_REFINER_MODEL_LOADER,
    SDXL_REFINER_NEGATIVE_CONDITIONING,
    SDXL_REFINER_POSITIVE_CONDITIONING,
)
from ..core.config import GenerationConfig
from ..core.graph.graph import EdgeEndpoint, GraphBuilder
from ..core.nodes.catalog import DenoiseLatentsNode
from ..core.nodes.extensions import SDXLRefinerCompelPromptNode, SDXLRefinerModelLoaderNode
from ..errors import ConfigurationError
from .base import AugmentationStage

logger = logging.getLogger(__name__)


class RefinerStage(AugmentationStage):
    name = "refiner"

    def is_enabled(self, config: GenerationConfig) -> bool:
        return config.should_use_sdxl_refiner

    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        if config.refiner_model is None:
            logger.error("Refiner is enabled but no refiner model is selected")
            raise ConfigurationError("Refiner is enabled but no refiner model is selected")

        # Consumers of the base latents switch over to the refiner output
        consumers = [e.destination for e in builder.get_edges_from(anchor, "latents")]

        positive_style, negative_style = config.style_prompts()
        builder.add_node(SDXLRefinerModelLoaderNode(id=SDXL_REFINER_MODEL_LOADER, model=config.refiner_model))
        builder.add_node(SDXLRefinerCompelPromptNode(
            id=SDXL_REFINER_POSITIVE_CONDITIONING,
            style=positive_style,
            aesthetic_score=config.refiner_positive_aesthetic_score,
        ))
        builder.add_node(SDXLRefinerCompelPromptNode(
            id=SDXL_REFINER_NEGATIVE_CONDITIONING,
            style=negative_style,
            aesthetic_score=config.refiner_negative_aesthetic_score,
        ))
        builder.add_node(DenoiseLatentsNode(
            id=SDXL_REFINER_DENOISE_LATENTS,
            steps=config.refiner_steps,
            cfg_scale=config.refiner_cfg_scale,
            scheduler=config.refiner_scheduler,
            denoising_start=config.refiner_start,
            denoising_end=1.0,
        ))

        builder.connect(SDXL_REFINER_MODEL_LOADER, "unet", SDXL_REFINER_DENOISE_LATENTS, "unet")
        builder.connect(SDXL_REFINER_MODEL_LOADER, "clip2", SDXL_REFINER_POSITIVE_CONDITIONING, "clip2")
        builder.connect(SDXL_REFINER_MODEL_LOADER, "clip2", SDXL_REFINER_NEGATIVE_CONDITIONING, "clip2")
        builder.connect(
            SDXL_REFINER_POSITIVE_CONDITIONING, "conditioning",
            SDXL_REFINER_DENOISE_LATENTS, "positive_conditioning",
        )
        builder.connect(
            SDXL_REFINER_NEGATIVE_CONDITIONING, "conditioning",
            SDXL_REFINER_DENOISE_LATENTS, "negative_conditioning",
        )
        builder.connect(anchor, "latents", SDXL_REFINER_DENOISE_LATENTS, "latents")

        # Same noise and mask as the base denoiser
        for field in ("noise", "mask"):
            writer = builder.get_writer(anchor, field)
            if writer is not None:
                builder.connect(writer.node_id, writer.field, SDXL_REFINER_DENOISE_LATENTS, field)

        refined = EdgeEndpoint(SDXL_REFINER_DENOISE_LATENTS, "latents")
        for destination in consumers:
            builder.rewire(destination, refined)
        logger.debug(f"Refiner attached after '{anchor}', {len(consumers)} consumer(s) re-pointed")

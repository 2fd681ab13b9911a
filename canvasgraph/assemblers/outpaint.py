# canvasgraph/assemblers/outpaint.py
"""SDXL canvas outpaint graph.

Base topology, in build order: model loader, positive and negative
conditioning, infill, image-to-latents, mask pipeline (alpha mask, combine
with the user mask, blur), noise, denoiser, latents-to-image, color
correction, paste-back over the infilled image (the output), and the
range/iterate pair that feeds one seed per iteration into the noise node.

The augmentation stages (refiner, VAE, LoRA, ControlNet, NSFW checker,
watermarker) are applied afterwards, in that order.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..augmentations.base import AugmentationPipeline, StageBinding
from ..augmentations.controlnet import ControlNetStage
from ..augmentations.lora import LoRAStage
from ..augmentations.nsfw import NSFWCheckerStage
from ..augmentations.refiner import RefinerStage
from ..augmentations.vae import VAEStage
from ..augmentations.watermark import WatermarkerStage
from ..core.config import GenerationConfig
from ..core.graph.graph import Graph, GraphBuilder
from ..core.nodes.catalog import (
    ColorCorrectNode,
    DenoiseLatentsNode,
    ImageBlurNode,
    ImagePasteNode,
    ImageResizeNode,
    ImageToLatentsNode,
    IterateNode,
    LatentsToImageNode,
    MaskCombineNode,
    MaskFromAlphaNode,
    NoiseNode,
    RangeOfSizeNode,
    SDXLCompelPromptNode,
    SDXLModelLoaderNode,
)
from ..errors import ConfigurationError
from . import register_graph_builder
from .constants import (
    CANVAS_OUTPUT,
    COLOR_CORRECT,
    INPAINT,
    INPAINT_GRAPH,
    INPAINT_IMAGE,
    INPAINT_IMAGE_RESIZE_DOWN,
    INPAINT_IMAGE_RESIZE_UP,
    INPAINT_INFILL,
    ITERATE,
    LATENTS_TO_IMAGE,
    MASK_BLUR,
    MASK_COMBINE,
    MASK_FROM_ALPHA,
    MASK_RESIZE_DOWN,
    MASK_RESIZE_UP,
    NEGATIVE_CONDITIONING,
    NOISE,
    OUTPAINT_ANCHORS,
    POSITIVE_CONDITIONING,
    RANGE_OF_SIZE,
    SDXL_MODEL_LOADER,
)
from .infill import make_infill_node
from .seed import apply_seed_strategy

logger = logging.getLogger(__name__)


def check_configuration(config: GenerationConfig) -> None:
    """Raise ConfigurationError for anything the graph cannot be built without."""
    if config.model is None:
        logger.error("No model found in configuration")
        raise ConfigurationError("No model found in configuration")
    if config.init_image is None:
        logger.error("No initial canvas image found in configuration")
        raise ConfigurationError("No initial canvas image found in configuration")
    if config.should_use_sdxl_refiner and config.refiner_model is None:
        logger.error("Refiner is enabled but no refiner model is selected")
        raise ConfigurationError("Refiner is enabled but no refiner model is selected")


def build_base_graph(config: GenerationConfig) -> GraphBuilder:
    """Build the fixed outpaint skeleton, seed strategy included.

    Raises:
        ConfigurationError: Before any node is created, if a required value
            is missing or the infill method is unknown.
    """
    check_configuration(config)
    infill = make_infill_node(config)

    width, height = config.bounding_box.width, config.bounding_box.height
    scaled = config.is_scaled
    if scaled:
        # Noise and denoising run at the scaled size
        noise_width = config.scaled_bounding_box.width
        noise_height = config.scaled_bounding_box.height
    else:
        noise_width, noise_height = width, height

    fp32 = config.vae_precision == "fp32"
    positive_style, negative_style = config.style_prompts()

    builder = GraphBuilder(INPAINT_GRAPH)

    # ==================== NODES ====================

    builder.add_node(SDXLModelLoaderNode(id=SDXL_MODEL_LOADER, model=config.model))
    builder.add_node(SDXLCompelPromptNode(
        id=POSITIVE_CONDITIONING,
        prompt=config.positive_prompt,
        style=positive_style,
    ))
    builder.add_node(SDXLCompelPromptNode(
        id=NEGATIVE_CONDITIONING,
        prompt=config.negative_prompt,
        style=negative_style,
    ))
    builder.add_node(infill)
    builder.add_node(ImageToLatentsNode(id=INPAINT_IMAGE, fp32=fp32))
    builder.add_node(MaskFromAlphaNode(id=MASK_FROM_ALPHA, image=config.init_image))
    builder.add_node(MaskCombineNode(id=MASK_COMBINE, mask2=config.mask_image))
    builder.add_node(ImageBlurNode(
        id=MASK_BLUR,
        radius=config.mask_blur,
        blur_type=config.mask_blur_method,
    ))
    builder.add_node(NoiseNode(
        id=NOISE,
        width=noise_width,
        height=noise_height,
        use_cpu=config.use_cpu_noise,
    ))
    builder.add_node(DenoiseLatentsNode(
        id=INPAINT,
        steps=config.steps,
        cfg_scale=config.cfg_scale,
        scheduler=config.scheduler,
        denoising_start=config.denoising_start,
        denoising_end=config.denoising_end,
    ))
    builder.add_node(LatentsToImageNode(id=LATENTS_TO_IMAGE, fp32=fp32))
    builder.add_node(ColorCorrectNode(id=COLOR_CORRECT))
    builder.add_node(ImagePasteNode(id=CANVAS_OUTPUT, is_intermediate=False))
    builder.add_node(RangeOfSizeNode(id=RANGE_OF_SIZE, size=config.iterations, step=1))
    builder.add_node(IterateNode(id=ITERATE))

    # ==================== EDGES ====================

    # Model loader -> UNet and both text encoders
    builder.connect(SDXL_MODEL_LOADER, "unet", INPAINT, "unet")
    for conditioning in (POSITIVE_CONDITIONING, NEGATIVE_CONDITIONING):
        builder.connect(SDXL_MODEL_LOADER, "clip", conditioning, "clip")
        builder.connect(SDXL_MODEL_LOADER, "clip2", conditioning, "clip2")

    # Mask from alpha, merged with the user-painted mask
    builder.connect(MASK_FROM_ALPHA, "mask", MASK_COMBINE, "mask1")

    if scaled:
        _wire_scaled(builder, config)
    else:
        builder.connect(INPAINT_INFILL, "image", INPAINT_IMAGE, "image")
        builder.connect(MASK_COMBINE, "image", MASK_BLUR, "image")

    # Everything into the denoiser
    builder.connect(POSITIVE_CONDITIONING, "conditioning", INPAINT, "positive_conditioning")
    builder.connect(NEGATIVE_CONDITIONING, "conditioning", INPAINT, "negative_conditioning")
    builder.connect(NOISE, "noise", INPAINT, "noise")
    builder.connect(INPAINT_IMAGE, "latents", INPAINT, "latents")
    builder.connect(MASK_BLUR, "image", INPAINT, "mask")

    # Iterate
    builder.connect(RANGE_OF_SIZE, "collection", ITERATE, "collection")
    builder.connect(ITERATE, "item", NOISE, "seed")

    # Decode
    builder.connect(INPAINT, "latents", LATENTS_TO_IMAGE, "latents")

    # Color correct and paste back over the infilled image
    output_mask = MASK_RESIZE_DOWN if scaled else MASK_BLUR
    if not scaled:
        builder.connect(LATENTS_TO_IMAGE, "image", COLOR_CORRECT, "image")
    builder.connect(INPAINT_INFILL, "image", COLOR_CORRECT, "reference")
    builder.connect(output_mask, "image", COLOR_CORRECT, "mask")
    builder.connect(INPAINT_INFILL, "image", CANVAS_OUTPUT, "base_image")
    builder.connect(COLOR_CORRECT, "image", CANVAS_OUTPUT, "image")
    builder.connect(output_mask, "image", CANVAS_OUTPUT, "mask")

    apply_seed_strategy(builder, config)
    return builder


def _wire_scaled(builder: GraphBuilder, config: GenerationConfig) -> None:
    """Resize image and mask up to the scaled box, and the result back down."""
    box, scaled_box = config.bounding_box, config.scaled_bounding_box

    builder.add_node(ImageResizeNode(
        id=INPAINT_IMAGE_RESIZE_UP, width=scaled_box.width, height=scaled_box.height,
    ))
    builder.add_node(ImageResizeNode(
        id=MASK_RESIZE_UP, width=scaled_box.width, height=scaled_box.height,
    ))
    builder.add_node(ImageResizeNode(
        id=INPAINT_IMAGE_RESIZE_DOWN, width=box.width, height=box.height,
    ))
    builder.add_node(ImageResizeNode(
        id=MASK_RESIZE_DOWN, width=box.width, height=box.height,
    ))

    builder.connect(INPAINT_INFILL, "image", INPAINT_IMAGE_RESIZE_UP, "image")
    builder.connect(INPAINT_IMAGE_RESIZE_UP, "image", INPAINT_IMAGE, "image")
    builder.connect(MASK_COMBINE, "image", MASK_RESIZE_UP, "image")
    builder.connect(MASK_RESIZE_UP, "image", MASK_BLUR, "image")
    builder.connect(MASK_BLUR, "image", MASK_RESIZE_DOWN, "image")
    builder.connect(LATENTS_TO_IMAGE, "image", INPAINT_IMAGE_RESIZE_DOWN, "image")
    builder.connect(INPAINT_IMAGE_RESIZE_DOWN, "image", COLOR_CORRECT, "image")


def default_outpaint_pipeline() -> AugmentationPipeline:
    """Augmentation stages in the order the outpaint graph applies them."""
    return AugmentationPipeline([
        StageBinding(RefinerStage(), INPAINT),
        StageBinding(VAEStage(), INPAINT, SDXL_MODEL_LOADER),
        StageBinding(LoRAStage(), INPAINT, SDXL_MODEL_LOADER),
        StageBinding(ControlNetStage(), INPAINT),
        StageBinding(NSFWCheckerStage(), CANVAS_OUTPUT),
        StageBinding(WatermarkerStage(), CANVAS_OUTPUT),
    ])


@register_graph_builder("sdxl_canvas_outpaint")
def build_canvas_outpaint_graph(
    config: GenerationConfig,
    pipeline: Optional[AugmentationPipeline] = None,
) -> Graph:
    """Assemble, augment and validate the canvas outpaint graph.

    Args:
        config: Generation settings.
        pipeline: Augmentation stages to apply; defaults to
                  :func:`default_outpaint_pipeline`.

    Returns:
        The finished, read-only graph.

    Raises:
        ConfigurationError: A required setting is missing (no node is built).
        GraphValidationError: The assembled graph breaks an invariant.
    """
    builder = build_base_graph(config)
    pipeline = pipeline if pipeline is not None else default_outpaint_pipeline()
    applied = pipeline.run(builder, config)
    graph = builder.finish(anchors=OUTPAINT_ANCHORS)
    logger.info(
        f"Assembled '{graph.id}': {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
        f"stages={applied}"
    )
    return graph

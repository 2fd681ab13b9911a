# canvasgraph/core/nodes/catalog.py
"""Core node types of the canvas outpaint pipeline.

This is the schema shared with the execution engine. Treat it as
append-only: add new node types or new optional fields, never rename or
change the meaning of an existing one.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .base import BaseNode, ImageField, MainModelField
from .port import InputPort, OutputPort, port_map
from .registry import register_node


# ==================== MODELS & CONDITIONING ====================

@register_node("sdxl_model_loader")
class SDXLModelLoaderNode(BaseNode):
    """Loads the base SDXL model and exposes its submodels."""
    type: Literal["sdxl_model_loader"] = "sdxl_model_loader"
    model: MainModelField

    outputs = port_map(
        OutputPort("unet", "unet"),
        OutputPort("clip", "clip"),
        OutputPort("clip2", "clip2"),
        OutputPort("vae", "vae"),
    )


@register_node("sdxl_compel_prompt")
class SDXLCompelPromptNode(BaseNode):
    """Dual text encoder: primary prompt plus style prompt."""
    type: Literal["sdxl_compel_prompt"] = "sdxl_compel_prompt"
    prompt: str = ""
    style: str = ""
    original_width: int = 1024
    original_height: int = 1024
    crop_top: int = 0
    crop_left: int = 0
    target_width: int = 1024
    target_height: int = 1024

    inputs = port_map(
        InputPort("clip", "clip"),
        InputPort("clip2", "clip2"),
    )
    outputs = port_map(OutputPort("conditioning", "conditioning"))


# ==================== INFILL ====================

@register_node("infill_tile")
class InfillTileNode(BaseNode):
    """Fills transparent areas by tiling the visible content."""
    type: Literal["infill_tile"] = "infill_tile"
    image: Optional[ImageField] = None
    tile_size: int = Field(32, ge=1)

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("image", "image"))


@register_node("infill_patchmatch")
class InfillPatchMatchNode(BaseNode):
    """Fills transparent areas with the PatchMatch algorithm."""
    type: Literal["infill_patchmatch"] = "infill_patchmatch"
    image: Optional[ImageField] = None

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("image", "image"))


# ==================== LATENTS ====================

@register_node("i2l")
class ImageToLatentsNode(BaseNode):
    type: Literal["i2l"] = "i2l"
    image: Optional[ImageField] = None
    fp32: bool = False
    tiled: bool = False

    inputs = port_map(
        InputPort("image", "image"),
        InputPort("vae", "vae"),
    )
    outputs = port_map(OutputPort("latents", "latents"))


@register_node("l2i")
class LatentsToImageNode(BaseNode):
    type: Literal["l2i"] = "l2i"
    fp32: bool = False
    tiled: bool = False

    inputs = port_map(
        InputPort("latents", "latents"),
        InputPort("vae", "vae"),
    )
    outputs = port_map(OutputPort("image", "image"))


@register_node("noise")
class NoiseNode(BaseNode):
    """Initial noise for the denoiser; ``seed`` is normally fed by the iterator."""
    type: Literal["noise"] = "noise"
    seed: Optional[int] = Field(None, ge=0)
    width: int = Field(512, ge=8)
    height: int = Field(512, ge=8)
    use_cpu: bool = True

    inputs = port_map(InputPort("seed", "integer"))
    outputs = port_map(OutputPort("noise", "noise"))


@register_node("denoise_latents")
class DenoiseLatentsNode(BaseNode):
    """Iterative latent denoiser between two fractions of the schedule."""
    type: Literal["denoise_latents"] = "denoise_latents"
    steps: int = Field(10, ge=1)
    cfg_scale: float = Field(7.5, ge=1.0)
    scheduler: str = "euler"
    denoising_start: float = Field(0.0, ge=0.0, le=1.0)
    denoising_end: float = Field(1.0, ge=0.0, le=1.0)

    inputs = port_map(
        InputPort("unet", "unet"),
        InputPort("positive_conditioning", "conditioning"),
        InputPort("negative_conditioning", "conditioning"),
        InputPort("noise", "noise", optional=True),
        InputPort("latents", "latents", optional=True),
        InputPort("mask", "image", optional=True),
        InputPort("control", "control", optional=True),
    )
    outputs = port_map(OutputPort("latents", "latents"))


# ==================== MASK & IMAGE OPS ====================

@register_node("tomask")
class MaskFromAlphaNode(BaseNode):
    """Extracts a mask from the alpha channel of an image."""
    type: Literal["tomask"] = "tomask"
    image: Optional[ImageField] = None
    invert: bool = False

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("mask", "image"))


@register_node("mask_combine")
class MaskCombineNode(BaseNode):
    """Logical OR of two masks."""
    type: Literal["mask_combine"] = "mask_combine"
    mask1: Optional[ImageField] = None
    mask2: Optional[ImageField] = None

    inputs = port_map(
        InputPort("mask1", "image"),
        InputPort("mask2", "image", optional=True),
    )
    outputs = port_map(OutputPort("image", "image"))


@register_node("img_blur")
class ImageBlurNode(BaseNode):
    type: Literal["img_blur"] = "img_blur"
    image: Optional[ImageField] = None
    radius: float = Field(8, ge=0)
    blur_type: Literal["gaussian", "box"] = "gaussian"

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("image", "image"))


@register_node("img_resize")
class ImageResizeNode(BaseNode):
    type: Literal["img_resize"] = "img_resize"
    image: Optional[ImageField] = None
    width: int = Field(512, ge=8)
    height: int = Field(512, ge=8)
    resample_mode: Literal["nearest", "box", "bilinear", "hamming", "bicubic", "lanczos"] = "bicubic"

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("image", "image"))


@register_node("color_correct")
class ColorCorrectNode(BaseNode):
    """Matches the colors of ``image`` to ``reference`` inside ``mask``."""
    type: Literal["color_correct"] = "color_correct"
    image: Optional[ImageField] = None
    reference: Optional[ImageField] = None
    mask: Optional[ImageField] = None
    mask_blur_radius: float = 8

    inputs = port_map(
        InputPort("image", "image"),
        InputPort("reference", "image"),
        InputPort("mask", "image", optional=True),
    )
    outputs = port_map(OutputPort("image", "image"))


@register_node("img_paste")
class ImagePasteNode(BaseNode):
    """Pastes ``image`` over ``base_image`` through ``mask``."""
    type: Literal["img_paste"] = "img_paste"
    base_image: Optional[ImageField] = None
    image: Optional[ImageField] = None
    mask: Optional[ImageField] = None
    x: int = 0
    y: int = 0

    inputs = port_map(
        InputPort("base_image", "image"),
        InputPort("image", "image"),
        InputPort("mask", "image", optional=True),
    )
    outputs = port_map(OutputPort("image", "image"))


# ==================== ITERATION & SEEDS ====================

@register_node("range_of_size")
class RangeOfSizeNode(BaseNode):
    """Integer collection ``start, start+step, ...`` of ``size`` items."""
    type: Literal["range_of_size"] = "range_of_size"
    start: Optional[int] = None
    size: int = Field(1, ge=1)
    step: int = 1

    inputs = port_map(InputPort("start", "integer"))
    outputs = port_map(OutputPort("collection", "collection"))


@register_node("iterate")
class IterateNode(BaseNode):
    """Fans a collection out, one graph execution per item."""
    type: Literal["iterate"] = "iterate"

    inputs = port_map(InputPort("collection", "collection"))
    outputs = port_map(OutputPort("item", "any"))


@register_node("rand_int")
class RandomIntNode(BaseNode):
    type: Literal["rand_int"] = "rand_int"
    low: int = 0
    high: int = 2147483647

    outputs = port_map(OutputPort("a", "integer"))

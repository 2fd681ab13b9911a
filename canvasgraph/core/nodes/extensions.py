# canvasgraph/core/nodes/extensions.py
"""Node types contributed by the augmentation stages.

Refiner, VAE override, LoRA, ControlNet, NSFW filter and watermark nodes.
They live in the same append-only catalog as the core types.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .base import BaseNode, ControlNetModelField, ImageField, LoRAModelField, MainModelField, VAEModelField
from .port import InputPort, OutputPort, port_map
from .registry import register_node


@register_node("sdxl_refiner_model_loader")
class SDXLRefinerModelLoaderNode(BaseNode):
    type: Literal["sdxl_refiner_model_loader"] = "sdxl_refiner_model_loader"
    model: MainModelField

    outputs = port_map(
        OutputPort("unet", "unet"),
        OutputPort("clip2", "clip2"),
        OutputPort("vae", "vae"),
    )


@register_node("sdxl_refiner_compel_prompt")
class SDXLRefinerCompelPromptNode(BaseNode):
    """Refiner text encoder: style prompt plus aesthetic score."""
    type: Literal["sdxl_refiner_compel_prompt"] = "sdxl_refiner_compel_prompt"
    style: str = ""
    original_width: int = 1024
    original_height: int = 1024
    crop_top: int = 0
    crop_left: int = 0
    aesthetic_score: float = Field(6.0, ge=1.0, le=10.0)

    inputs = port_map(InputPort("clip2", "clip2"))
    outputs = port_map(OutputPort("conditioning", "conditioning"))


@register_node("vae_loader")
class VAELoaderNode(BaseNode):
    type: Literal["vae_loader"] = "vae_loader"
    vae_model: VAEModelField

    outputs = port_map(OutputPort("vae", "vae"))


@register_node("sdxl_lora_loader")
class SDXLLoRALoaderNode(BaseNode):
    """Applies one LoRA to the unet and both text encoders passing through it."""
    type: Literal["sdxl_lora_loader"] = "sdxl_lora_loader"
    lora: LoRAModelField
    weight: float = 0.75

    inputs = port_map(
        InputPort("unet", "unet", optional=True),
        InputPort("clip", "clip", optional=True),
        InputPort("clip2", "clip2", optional=True),
    )
    outputs = port_map(
        OutputPort("unet", "unet"),
        OutputPort("clip", "clip"),
        OutputPort("clip2", "clip2"),
    )


@register_node("controlnet")
class ControlNetNode(BaseNode):
    type: Literal["controlnet"] = "controlnet"
    image: Optional[ImageField] = None
    control_model: ControlNetModelField
    control_weight: float = Field(1.0, ge=-1.0, le=2.0)
    begin_step_percent: float = Field(0.0, ge=0.0, le=1.0)
    end_step_percent: float = Field(1.0, ge=0.0, le=1.0)
    control_mode: Literal["balanced", "more_prompt", "more_control", "unbalanced"] = "balanced"
    resize_mode: Literal["just_resize", "crop_resize", "fill_resize", "just_resize_simple"] = "just_resize"

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("control", "control"))


@register_node("collect")
class CollectNode(BaseNode):
    """Gathers every value written to ``item`` into one collection."""
    type: Literal["collect"] = "collect"

    inputs = port_map(InputPort("item", "any", multiple=True))
    outputs = port_map(OutputPort("collection", "any"))


@register_node("img_nsfw")
class ImageNSFWBlurNode(BaseNode):
    """Blurs the image when the content filter flags it."""
    type: Literal["img_nsfw"] = "img_nsfw"
    image: Optional[ImageField] = None

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("image", "image"))


@register_node("img_watermark")
class ImageWatermarkNode(BaseNode):
    type: Literal["img_watermark"] = "img_watermark"
    image: Optional[ImageField] = None
    text: str = "InvokeAI"

    inputs = port_map(InputPort("image", "image"))
    outputs = port_map(OutputPort("image", "image"))

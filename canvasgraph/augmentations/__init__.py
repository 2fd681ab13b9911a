"""Augmentation stages spliced into an assembled base graph."""

from .base import AugmentationPipeline, AugmentationStage, StageBinding
from .controlnet import ControlNetStage
from .lora import LoRAStage
from .nsfw import NSFWCheckerStage
from .refiner import RefinerStage
from .vae import VAEStage
from .watermark import WatermarkerStage

__all__ = [
    "AugmentationPipeline",
    "AugmentationStage",
    "ControlNetStage",
    "LoRAStage",
    "NSFWCheckerStage",
    "RefinerStage",
    "StageBinding",
    "VAEStage",
    "WatermarkerStage",
]

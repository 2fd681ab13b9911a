# canvasgraph/core/config.py
"""Generation configuration: pydantic schema plus OmegaConf loading.

The configuration is the flat snapshot of generation settings that the
assembler turns into a graph. It can be given as a YAML file (with
``_base_`` inheritance), a dict or a DictConfig, and overridden with
``key=value`` dotlist entries.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigurationError
from .nodes.base import ControlNetModelField, ImageField, LoRAModelField, MainModelField, VAEModelField

logger = logging.getLogger(__name__)


# ==================== SUB-SECTIONS ====================

class BoundingBox(BaseModel):
    """Canvas bounding box dimensions in pixels."""
    model_config = ConfigDict(extra="forbid")

    width: int = Field(default=1024, ge=8, description="Bounding box width")
    height: int = Field(default=1024, ge=8, description="Bounding box height")


class LoRAConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    model: LoRAModelField
    weight: float = Field(default=0.75, ge=-1.0, le=2.0)


class ControlNetConfig(BaseModel):
    """One ControlNet adapter as configured by the user."""
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    control_net_id: str = Field(..., min_length=1)
    is_enabled: bool = True
    model: Optional[ControlNetModelField] = None
    control_image: Optional[ImageField] = None
    processed_control_image: Optional[ImageField] = None
    processor_type: str = "none"
    weight: float = Field(default=1.0, ge=-1.0, le=2.0)
    begin_step_pct: float = Field(default=0.0, ge=0.0, le=1.0)
    end_step_pct: float = Field(default=1.0, ge=0.0, le=1.0)
    control_mode: Literal["balanced", "more_prompt", "more_control", "unbalanced"] = "balanced"
    resize_mode: Literal["just_resize", "crop_resize", "fill_resize", "just_resize_simple"] = "just_resize"

    @property
    def image(self) -> Optional[ImageField]:
        """Image fed to the adapter: the processed one unless no processor is set."""
        if self.processor_type != "none":
            return self.processed_control_image
        return self.control_image

    @property
    def is_valid(self) -> bool:
        return self.is_enabled and self.model is not None and self.image is not None


# ==================== GENERATION CONFIG ====================

class GenerationConfig(BaseModel):
    """Everything the outpaint assembler reads.

    Only ``model`` and ``init_image`` have no usable default; the assembler
    raises ConfigurationError when either is missing.
    """
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    # Model
    model: Optional[MainModelField] = Field(default=None, description="Selected base model")
    vae: Optional[VAEModelField] = Field(default=None, description="VAE override; None uses the model's VAE")
    vae_precision: Literal["fp16", "fp32"] = "fp32"

    # Prompts
    positive_prompt: str = ""
    negative_prompt: str = ""
    positive_style_prompt: str = ""
    negative_style_prompt: str = ""
    should_concat_style_prompt: bool = True

    # Sampling
    cfg_scale: float = Field(default=7.5, ge=1.0, le=200.0, description="Guidance scale")
    scheduler: str = "euler"
    steps: int = Field(default=50, ge=1, le=1000)
    strength: float = Field(default=0.75, ge=0.0, le=1.0, description="Denoising strength")

    # Canvas
    init_image: Optional[ImageField] = None
    mask_image: Optional[ImageField] = None
    bounding_box: BoundingBox = Field(default_factory=BoundingBox)
    scaled_bounding_box: BoundingBox = Field(default_factory=BoundingBox)
    bounding_box_scale_method: Literal["none", "auto", "manual"] = "none"

    # Iterations & seed
    iterations: int = Field(default=1, ge=1)
    seed: int = Field(default=0, ge=0, le=4294967295)
    should_randomize_seed: bool = True

    # Noise
    should_use_noise_settings: bool = False
    should_use_cpu_noise: bool = True

    # Mask & infill
    mask_blur: int = Field(default=16, ge=0)
    mask_blur_method: Literal["box", "gaussian"] = "box"
    infill_method: str = "patchmatch"
    tile_size: int = Field(default=32, ge=1)

    # Refiner
    should_use_sdxl_refiner: bool = False
    refiner_model: Optional[MainModelField] = None
    refiner_start: float = Field(default=0.8, ge=0.0, le=1.0, description="Hand-off fraction to the refiner")
    refiner_steps: int = Field(default=20, ge=1)
    refiner_cfg_scale: float = Field(default=7.5, ge=1.0)
    refiner_scheduler: str = "euler"
    refiner_positive_aesthetic_score: float = Field(default=6.0, ge=1.0, le=10.0)
    refiner_negative_aesthetic_score: float = Field(default=2.5, ge=1.0, le=10.0)

    # Adapters
    loras: List[LoRAConfig] = Field(default_factory=list)
    is_controlnet_enabled: bool = False
    controlnets: List[ControlNetConfig] = Field(default_factory=list)

    # Post-processing
    should_use_nsfw_checker: bool = False
    should_use_watermarker: bool = False

    @field_validator("loras")
    @classmethod
    def _unique_loras(cls, value: List[LoRAConfig]) -> List[LoRAConfig]:
        names = [lora.model.model_name for lora in value]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"LoRA configured more than once: {duplicates}")
        return value

    @field_validator("controlnets")
    @classmethod
    def _unique_controlnets(cls, value: List[ControlNetConfig]) -> List[ControlNetConfig]:
        ids = [cn.control_net_id for cn in value]
        if len(ids) != len(set(ids)):
            raise ValueError("ControlNet ids must be unique")
        return value

    # ==================== DERIVED VALUES ====================

    def style_prompts(self) -> Tuple[str, str]:
        """(positive, negative) style prompts, concatenated to the prompts if requested."""
        if self.should_concat_style_prompt:
            return (
                f"{self.positive_prompt} {self.positive_style_prompt}",
                f"{self.negative_prompt} {self.negative_style_prompt}",
            )
        return self.positive_style_prompt, self.negative_style_prompt

    @property
    def use_cpu_noise(self) -> bool:
        """CPU noise flag; the user's choice applies with or without noise settings."""
        return self.should_use_cpu_noise

    @property
    def denoising_start(self) -> float:
        return 1 - self.strength

    @property
    def denoising_end(self) -> float:
        return self.refiner_start if self.should_use_sdxl_refiner else 1.0

    @property
    def is_scaled(self) -> bool:
        return self.bounding_box_scale_method != "none"

    def valid_controlnets(self) -> List[ControlNetConfig]:
        if not self.is_controlnet_enabled:
            return []
        return [cn for cn in self.controlnets if cn.is_valid]


# ==================== LOADING ====================

ConfigSource = Union[str, Path, Mapping[str, Any], DictConfig, GenerationConfig, None]


def _load_yaml(path: Union[str, Path]) -> DictConfig:
    """Load a YAML config, resolving ``_base_`` relative to the file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    cfg = OmegaConf.load(path)
    if "_base_" in cfg:
        base_path = Path(cfg._base_)
        if not base_path.is_absolute():
            base_path = path.parent / base_path
        base = _load_yaml(base_path)
        del cfg["_base_"]
        cfg = OmegaConf.merge(base, cfg)
    return cfg


def load_config(
    source: ConfigSource = None,
    overrides: Optional[Union[Sequence[str], Mapping[str, Any]]] = None,
) -> GenerationConfig:
    """Build a GenerationConfig from a file, mapping or DictConfig.

    Args:
        source: YAML path, plain mapping, DictConfig, an existing
                GenerationConfig, or None for all defaults.
        overrides: ``["steps=30", "model.model_name=x"]`` dotlist or a
                   mapping merged on top (last wins).

    Raises:
        ConfigurationError: If the file is missing or values fail validation.
    """
    if isinstance(source, GenerationConfig):
        cfg = OmegaConf.create(source.model_dump(mode="json"))
    elif source is None:
        cfg = OmegaConf.create({})
    elif isinstance(source, (str, Path)):
        cfg = _load_yaml(source)
    elif isinstance(source, DictConfig):
        cfg = source
    elif isinstance(source, Mapping):
        cfg = OmegaConf.create(dict(source))
    else:
        raise ConfigurationError(f"Unsupported config source: {type(source).__name__}")

    if overrides:
        if isinstance(overrides, Mapping):
            override_cfg = OmegaConf.create(dict(overrides))
        else:
            override_cfg = OmegaConf.from_dotlist(list(overrides))
        cfg = OmegaConf.merge(cfg, override_cfg)

    data = OmegaConf.to_container(cfg, resolve=True)
    try:
        return GenerationConfig.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid generation config: {e}")
        raise ConfigurationError(f"Invalid generation config:\n{e}") from e

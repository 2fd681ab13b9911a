"""Shared fixtures: a minimal valid generation config and a factory for variants."""
import pytest

from canvasgraph.core.config import GenerationConfig
from canvasgraph.core.nodes.base import ImageField, MainModelField


BASE_SETTINGS = {
    "model": MainModelField(model_name="stable-diffusion-xl-base-1.0"),
    "init_image": ImageField(image_name="canvas_init.png"),
    "mask_image": ImageField(image_name="canvas_mask.png"),
    "positive_prompt": "a lighthouse on a cliff",
    "negative_prompt": "blurry",
}


@pytest.fixture
def make_config():
    """Build a GenerationConfig from the base settings plus keyword overrides."""
    def factory(**overrides) -> GenerationConfig:
        settings = dict(BASE_SETTINGS)
        settings.update(overrides)
        return GenerationConfig(**settings)
    return factory


@pytest.fixture
def base_config(make_config) -> GenerationConfig:
    return make_config()

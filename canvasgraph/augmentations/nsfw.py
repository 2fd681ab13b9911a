# canvasgraph/augmentations/nsfw.py
from __future__ import annotations

import logging
from typing import Optional

from ..assemblers.constants import NSFW_CHECKER
from ..core.config import GenerationConfig
from ..core.graph.graph import GraphBuilder
from ..core.nodes.extensions import ImageNSFWBlurNode
from .base import AugmentationStage

logger = logging.getLogger(__name__)


class NSFWCheckerStage(AugmentationStage):
    """Content filter appended after the output image.

    Must run before the watermark so it inspects the unmarked image.
    """
    name = "nsfw_checker"
    runs_after = ("controlnet",)

    def is_enabled(self, config: GenerationConfig) -> bool:
        return config.should_use_nsfw_checker

    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        builder[anchor].is_intermediate = True
        builder.add_node(ImageNSFWBlurNode(id=NSFW_CHECKER, is_intermediate=False))
        builder.connect(anchor, "image", NSFW_CHECKER, "image")
        logger.debug(f"NSFW checker appended after '{anchor}'")

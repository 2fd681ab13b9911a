# canvasgraph/augmentations/watermark.py
from __future__ import annotations

import logging
from typing import Optional

from ..assemblers.constants import NSFW_CHECKER, WATERMARKER
from ..core.config import GenerationConfig
from ..core.graph.graph import GraphBuilder
from ..core.nodes.extensions import ImageWatermarkNode
from .base import AugmentationStage

logger = logging.getLogger(__name__)


class WatermarkerStage(AugmentationStage):
    """Invisible watermark on the final image; the last mutation of the graph.

    Reads from the NSFW checker when one is present, else from ``anchor``.
    """
    name = "watermarker"
    runs_after = ("nsfw_checker",)

    def is_enabled(self, config: GenerationConfig) -> bool:
        return config.should_use_watermarker

    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        source = NSFW_CHECKER if NSFW_CHECKER in builder else anchor
        builder[anchor].is_intermediate = True
        builder[source].is_intermediate = True
        builder.add_node(ImageWatermarkNode(id=WATERMARKER, is_intermediate=False))
        builder.connect(source, "image", WATERMARKER, "image")
        logger.debug(f"Watermarker appended after '{source}'")

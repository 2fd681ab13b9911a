# canvasgraph/assemblers/seed.py
"""Seed strategy: where the first seed of the iteration range comes from."""
from __future__ import annotations

import logging

from ..core.config import GenerationConfig
from ..core.graph.graph import GraphBuilder
from ..core.nodes.catalog import RandomIntNode
from .constants import RANDOM_INT, RANGE_OF_SIZE

logger = logging.getLogger(__name__)


def apply_seed_strategy(builder: GraphBuilder, config: GenerationConfig) -> None:
    """Feed ``range_of_size.start`` from a random integer or the configured seed.

    Exactly one of the two is ever applied.
    """
    if config.should_randomize_seed:
        builder.add_node(RandomIntNode(id=RANDOM_INT))
        builder.connect(RANDOM_INT, "a", RANGE_OF_SIZE, "start")
        logger.debug("Seed: randomized")
    else:
        builder[RANGE_OF_SIZE].start = config.seed
        logger.debug(f"Seed: fixed at {config.seed}")

# canvasgraph/augmentations/base.py
"""Augmentation stages and the ordered pipeline that applies them.

A stage splices extra nodes into an assembled base graph, anchored on a
node id chosen by the pipeline owner. Ordering between stages is declared
on the stages themselves (``runs_after``) and checked once, when the
pipeline is built, instead of being left to call-site comments.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..core.config import GenerationConfig
from ..core.graph.graph import GraphBuilder
from ..errors import StageOrderError

logger = logging.getLogger(__name__)


class AugmentationStage(ABC):
    """Mutator applied to a graph under construction.

    Attributes:
        name: Unique stage name, referenced by other stages' ``runs_after``.
        runs_after: Names of stages that must come earlier whenever both are
                    part of the same pipeline.
    """
    name: str = "stage"
    runs_after: Tuple[str, ...] = ()

    def is_enabled(self, config: GenerationConfig) -> bool:
        """Whether the pipeline should invoke this stage at all."""
        return True

    @abstractmethod
    def apply(
        self,
        builder: GraphBuilder,
        anchor: str,
        config: GenerationConfig,
        secondary_anchor: Optional[str] = None,
    ) -> None:
        """Mutate ``builder`` in place around ``anchor``."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.name}'>"


@dataclass(frozen=True)
class StageBinding:
    """A stage together with the anchors it is invoked with."""
    stage: AugmentationStage
    anchor: str
    secondary_anchor: Optional[str] = None

    @property
    def name(self) -> str:
        return self.stage.name


class AugmentationPipeline:
    """Fixed sequence of stage bindings, checked against ``runs_after``.

    Example::

        pipeline = AugmentationPipeline([
            StageBinding(NSFWCheckerStage(), CANVAS_OUTPUT),
            StageBinding(WatermarkerStage(), CANVAS_OUTPUT),
        ])
        pipeline.run(builder, config)
    """

    def __init__(self, bindings: Iterable[StageBinding]):
        self._bindings: List[StageBinding] = list(bindings)
        self._check_order()

    @property
    def stage_names(self) -> List[str]:
        return [b.name for b in self._bindings]

    @property
    def bindings(self) -> Sequence[StageBinding]:
        return tuple(self._bindings)

    def _check_order(self) -> None:
        position = {}
        for i, binding in enumerate(self._bindings):
            if binding.name in position:
                raise StageOrderError(f"Stage '{binding.name}' appears more than once")
            position[binding.name] = i
        for i, binding in enumerate(self._bindings):
            for earlier in binding.stage.runs_after:
                if earlier in position and position[earlier] > i:
                    raise StageOrderError(
                        f"Stage '{binding.name}' must run after '{earlier}', "
                        f"but is declared before it"
                    )

    def run(self, builder: GraphBuilder, config: GenerationConfig) -> List[str]:
        """Apply every enabled stage in order. Returns the names applied.

        Exceptions raised by a stage propagate unchanged.
        """
        applied = []
        for binding in self._bindings:
            if not binding.stage.is_enabled(config):
                logger.debug(f"Stage '{binding.name}' disabled, skipping")
                continue
            logger.debug(f"Applying stage '{binding.name}' at '{binding.anchor}'")
            binding.stage.apply(builder, binding.anchor, config, binding.secondary_anchor)
            applied.append(binding.name)
        return applied

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"<AugmentationPipeline stages={self.stage_names}>"

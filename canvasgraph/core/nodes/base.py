# canvasgraph/core/nodes/base.py
"""Base node model and the value types carried in node fields.

Every node type is a pydantic model with a ``type`` literal used as the
discriminator, the node ``id`` (identical to its key in the graph) and an
``is_intermediate`` marker. ``extra="forbid"`` keeps each variant to its own
fields, ``validate_assignment=True`` keeps later mutations (done by
augmentation stages) type-checked.
"""
from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .port import Port


# ==================== FIELD VALUE TYPES ====================

class ImageField(BaseModel):
    """Reference to an image known to the execution engine."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    image_name: str = Field(..., min_length=1)


class ModelIdentifier(BaseModel):
    """Identifier of a model known to the execution engine."""
    model_config = ConfigDict(extra="forbid", frozen=True, protected_namespaces=())

    model_name: str = Field(..., min_length=1)
    base_model: str = "sdxl"


class MainModelField(ModelIdentifier):
    model_type: str = "main"


class VAEModelField(ModelIdentifier):
    pass


class LoRAModelField(ModelIdentifier):
    pass


class ControlNetModelField(ModelIdentifier):
    pass


# ==================== BASE NODE ====================

class BaseNode(BaseModel):
    """Common shape of every node in the catalog.

    Subclasses override ``type`` with a ``Literal`` default and declare
    ``inputs`` / ``outputs`` port maps.
    """
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    type: str
    id: str = Field(..., min_length=1)
    is_intermediate: bool = True

    inputs: ClassVar[Dict[str, Port]] = {}
    outputs: ClassVar[Dict[str, Port]] = {}

    @classmethod
    def node_type(cls) -> str:
        return cls.model_fields["type"].default

    @classmethod
    def get_input_port(cls, name: str) -> Optional[Port]:
        return cls.inputs.get(name)

    @classmethod
    def get_output_port(cls, name: str) -> Optional[Port]:
        return cls.outputs.get(name)

    def literal_inputs(self) -> set:
        """Names of input ports whose backing field holds a literal value."""
        return {
            name for name in self.inputs
            if getattr(self, name, None) is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id='{self.id}' type='{self.type}'>"

"""Node catalog: typed node variants, their ports and the registry."""

from .base import (
    BaseNode,
    ControlNetModelField,
    ImageField,
    LoRAModelField,
    MainModelField,
    ModelIdentifier,
    VAEModelField,
)
from .port import InputPort, OutputPort, Port, PortValidator
from .registry import NodeRegistry, get_node_class, list_node_types, node_from_dict, register_node
from .catalog import (
    ColorCorrectNode,
    DenoiseLatentsNode,
    ImageBlurNode,
    ImagePasteNode,
    ImageResizeNode,
    ImageToLatentsNode,
    InfillPatchMatchNode,
    InfillTileNode,
    IterateNode,
    LatentsToImageNode,
    MaskCombineNode,
    MaskFromAlphaNode,
    NoiseNode,
    RandomIntNode,
    RangeOfSizeNode,
    SDXLCompelPromptNode,
    SDXLModelLoaderNode,
)
from .extensions import (
    CollectNode,
    ControlNetNode,
    ImageNSFWBlurNode,
    ImageWatermarkNode,
    SDXLLoRALoaderNode,
    SDXLRefinerCompelPromptNode,
    SDXLRefinerModelLoaderNode,
    VAELoaderNode,
)

__all__ = [
    "BaseNode",
    "CollectNode",
    "ColorCorrectNode",
    "ControlNetModelField",
    "ControlNetNode",
    "DenoiseLatentsNode",
    "ImageBlurNode",
    "ImageField",
    "ImageNSFWBlurNode",
    "ImagePasteNode",
    "ImageResizeNode",
    "ImageToLatentsNode",
    "ImageWatermarkNode",
    "InfillPatchMatchNode",
    "InfillTileNode",
    "InputPort",
    "IterateNode",
    "LatentsToImageNode",
    "LoRAModelField",
    "MainModelField",
    "MaskCombineNode",
    "MaskFromAlphaNode",
    "ModelIdentifier",
    "NodeRegistry",
    "NoiseNode",
    "OutputPort",
    "Port",
    "PortValidator",
    "RandomIntNode",
    "RangeOfSizeNode",
    "SDXLCompelPromptNode",
    "SDXLLoRALoaderNode",
    "SDXLModelLoaderNode",
    "SDXLRefinerCompelPromptNode",
    "SDXLRefinerModelLoaderNode",
    "VAELoaderNode",
    "VAEModelField",
    "get_node_class",
    "list_node_types",
    "node_from_dict",
    "register_node",
]

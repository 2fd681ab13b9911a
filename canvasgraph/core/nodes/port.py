# canvasgraph/core/nodes/port.py
"""Port system: typed input/output slots on node types.

A node type declares its ports as two class-level maps (``inputs`` and
``outputs``). The graph builder uses them to reject edges between ports
that do not exist or do not carry the same kind of value.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Tuple


@dataclass(frozen=True)
class Port:
    """Typed I/O slot of a node type.

    Attributes:
        name: Port name, unique per direction on a node type. Input ports
              share their name with the node field that holds a literal
              value when the port is left unconnected.
        direction: ``"input"`` or ``"output"``.
        data_type: Kind of value flowing through the port (``"image"``,
                   ``"latents"``, ``"unet"``, ...). ``"any"`` matches all.
        optional: Input may stay unconnected and without a literal value.
        multiple: Input accepts several incoming edges (collectors).
        description: Human readable text for tooling.
    """
    name: str
    direction: Literal["input", "output"]
    data_type: str = "any"
    optional: bool = False
    multiple: bool = False
    description: str = ""

    def is_compatible_with(self, other: Port) -> bool:
        """Whether this output port may feed ``other`` (an input port)."""
        if self.direction != "output" or other.direction != "input":
            return False
        if self.data_type != "any" and other.data_type != "any":
            if self.data_type != other.data_type:
                return False
        return True


def InputPort(
    name: str,
    data_type: str = "any",
    optional: bool = False,
    multiple: bool = False,
    description: str = "",
) -> Port:
    return Port(
        name=name,
        direction="input",
        data_type=data_type,
        optional=optional,
        multiple=multiple,
        description=description,
    )


def OutputPort(name: str, data_type: str = "any", description: str = "") -> Port:
    return Port(name=name, direction="output", data_type=data_type, description=description)


def port_map(*ports: Port) -> Dict[str, Port]:
    """Build a ``name -> Port`` map, rejecting duplicate names."""
    out: Dict[str, Port] = {}
    for port in ports:
        if port.name in out:
            raise ValueError(f"Duplicate port name '{port.name}'")
        out[port.name] = port
    return out


class PortValidator:
    """Checks for single connections and for required inputs."""

    @staticmethod
    def validate_connection(
        src_node_type: str,
        src_port: Port,
        dst_node_type: str,
        dst_port: Port,
    ) -> Tuple[bool, str]:
        """Return ``(is_valid, error_message)`` for ``src_port -> dst_port``."""
        if src_port.direction != "output":
            return False, f"Source port '{src_port.name}' on '{src_node_type}' is not an output port"

        if dst_port.direction != "input":
            return False, f"Destination port '{dst_port.name}' on '{dst_node_type}' is not an input port"

        if not src_port.is_compatible_with(dst_port):
            return False, (
                f"Incompatible ports: "
                f"'{src_node_type}.{src_port.name}' (data_type={src_port.data_type}) -> "
                f"'{dst_node_type}.{dst_port.name}' (data_type={dst_port.data_type})"
            )

        return True, ""

    @staticmethod
    def check_required_inputs(
        node_id: str,
        node_type: str,
        ports: Dict[str, Port],
        connected_inputs: Iterable[str],
        literal_inputs: Iterable[str],
    ) -> List[str]:
        """Return errors for required inputs that are neither connected nor set."""
        connected = set(connected_inputs)
        literal = set(literal_inputs)
        errors = []
        for port_name, port in ports.items():
            if port.direction != "input" or port.optional:
                continue
            if port_name not in connected and port_name not in literal:
                errors.append(
                    f"Required input port '{port_name}' on node '{node_id}' ({node_type}) "
                    f"is neither connected nor set"
                )
        return errors

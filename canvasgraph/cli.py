"""canvasgraph command line.

Usage:
    python -m canvasgraph build outpaint.yaml [--set steps=30 ...] [--format json|mermaid]
    python -m canvasgraph validate outpaint.yaml
    python -m canvasgraph list
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from canvasgraph.assemblers import get_graph_builder, list_graph_builders
from canvasgraph.core.config import load_config
from canvasgraph.core.nodes.registry import list_node_types
from canvasgraph.errors import CanvasGraphError

logger = logging.getLogger("canvasgraph.cli")

DEFAULT_GRAPH = "sdxl_canvas_outpaint"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canvasgraph",
        description="Assemble generation graphs for the inference engine",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_config_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("config", help="Path to generation config (YAML)")
        p.add_argument(
            "--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
            help="Override a config value (repeatable, dotted keys allowed)",
        )
        p.add_argument("--graph", default=DEFAULT_GRAPH, help=f"Graph builder (default: {DEFAULT_GRAPH})")

    build = sub.add_parser("build", help="Assemble and print a graph")
    add_config_args(build)
    build.add_argument("--format", "-f", choices=["json", "mermaid"], default="json")

    validate = sub.add_parser("validate", help="Assemble a graph and report whether it is valid")
    add_config_args(validate)

    sub.add_parser("list", help="List graph builders and node types")
    return parser


def _assemble(args: argparse.Namespace):
    config = load_config(args.config, overrides=args.overrides)
    builder = get_graph_builder(args.graph)
    return builder(config)


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "list":
        print("Graph builders:")
        for name in list_graph_builders():
            print(f"  {name}")
        print("Node types:")
        for node_type in list_node_types():
            print(f"  {node_type}")
        return 0

    try:
        graph = _assemble(args)
    except KeyError as e:
        logger.error(str(e))
        return 2
    except CanvasGraphError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    if args.command == "validate":
        print(f"Graph '{graph.id}' is valid: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
        return 0

    text = graph.to_json() if args.format == "json" else graph.visualize()
    sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())

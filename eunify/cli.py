"""Command line entry for the E-Unify graph service."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import uvicorn

from eunify.core.config import settings
from eunify.core.observability import configure_logging
from eunify.knowledge.graph.client import GraphServiceClient
from eunify.knowledge.graph.presets import PRESETS, Preset
from eunify.visualization.state import GraphViewController


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    from eunify.api.main import app

    uvicorn.run(app, host=host or settings.API_HOST, port=port or settings.API_PORT)


async def render_preset(preset: Preset) -> int:
    async with GraphServiceClient() as client:
        controller = GraphViewController(client)
        try:
            if not await controller.load_preset(preset):
                print(controller.error, file=sys.stderr)
                return 1
            print(json.dumps(controller.document(), indent=2, default=str))
        finally:
            controller.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eunify", description="E-Unify graph visualization service")
    subcommands = parser.add_subparsers(dest="command")

    serve = subcommands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    subcommands.add_parser("presets", help="List the named graph views")

    preset = subcommands.add_parser("preset", help="Print the Cytoscape.js document for one view")
    preset.add_argument("name", choices=[item.value for item in Preset])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    if args.command == "presets":
        for item, definition in PRESETS.items():
            print(f"{item.value:<28} {definition.title}")
        return 0
    if args.command == "preset":
        return asyncio.run(render_preset(Preset(args.name)))

    run_server(getattr(args, "host", None), getattr(args, "port", None))
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
MCP server exposing NKN address resolution for Ethereum addresses and ENS names.
"""

import argparse
import dataclasses
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_config
from .resolver import Resolver

server = FastMCP(
    name="nkn-eth-resolver",
    instructions="Resolve prefixed Ethereum addresses or ENS names (e.g. ETH:alice.eth) into NKN addresses.",
)

_resolver: Optional[Resolver] = None


def _get_resolver() -> Resolver:
    global _resolver
    if _resolver is None:
        # A mapping keeps explicit zero values through the merge.
        _resolver = Resolver(dataclasses.asdict(load_config()))
    return _resolver


@server.tool(
    name="resolve_address",
    title="Resolve NKN Address",
    description="Resolve a prefixed identifier (address or ENS name) into an NKN address via the NKN account contract.",
)
def resolve_address(identifier: str) -> dict:
    """
    Resolve an identifier; identifiers outside the configured prefix are reported as unhandled.
    """
    resolver = _get_resolver()
    address = resolver.resolve(identifier)
    return {
        "identifier": identifier,
        "address": address or None,
        "handled": bool(address),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the NKN ETH resolver MCP server.")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol for MCP.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for SSE/HTTP transports.",
    )
    parser.add_argument(
        "--mount-path",
        default="/",
        help="Mount path for SSE transport (only when transport=sse).",
    )
    args = parser.parse_args()

    logging.basicConfig()

    # FastMCP uses host/port only for SSE/HTTP transports; stdio ignores them.
    server.settings.host = args.host
    server.settings.port = args.port

    if args.transport == "sse":
        server.run(transport="sse", mount_path=args.mount_path)
    else:
        server.run(transport=args.transport)


if __name__ == "__main__":
    main()

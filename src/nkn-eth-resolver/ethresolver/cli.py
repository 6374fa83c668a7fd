import argparse
import dataclasses
import json
import logging
import sys
from typing import Any, Dict, Optional

from .config import env_overrides
from .resolver import Resolver


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--rpc-server",
        required=False,
        help="Ethereum JSON-RPC endpoint. Defaults to ETH_RPC_SERVER env.",
    )
    parser.add_argument(
        "--contract-address",
        required=False,
        help="NKN account contract address. Defaults to NKN_CONTRACT_ADDRESS env.",
    )
    parser.add_argument(
        "--prefix",
        required=False,
        help="Identifier prefix handled by this resolver. Defaults to ETH_RESOLVER_PREFIX env or ETH:.",
    )
    parser.add_argument(
        "--dial-timeout",
        required=False,
        type=int,
        help="Connection timeout in milliseconds. Use 0 to disable.",
    )
    parser.add_argument(
        "--call-timeout",
        required=False,
        type=int,
        help="Per-call timeout in milliseconds for ENS and contract queries. Use 0 to disable.",
    )
    parser.add_argument(
        "--cache-timeout",
        required=False,
        type=float,
        help="Cache entry lifetime in seconds. Use 0 or a negative value to never expire.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve Ethereum addresses and ENS names into NKN addresses.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve one or more identifiers")
    resolve_parser.add_argument(
        "identifier",
        nargs="+",
        help="Prefixed identifier, e.g. ETH:0x... or ETH:alice.eth.",
    )
    _add_config_arguments(resolve_parser)

    check_parser = subparsers.add_parser("check", help="Verify node connectivity and contract presence")
    _add_config_arguments(check_parser)

    return parser


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    # Command line flags win over environment variables.
    overrides = env_overrides()
    flags = {
        "rpc_server": args.rpc_server,
        "contract_address": args.contract_address,
        "prefix": args.prefix,
        "dial_timeout": args.dial_timeout,
        "call_timeout": args.call_timeout,
        "cache_timeout": args.cache_timeout,
    }
    overrides.update({name: value for name, value in flags.items() if value is not None})
    return overrides


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        with Resolver(_overrides_from_args(args)) as resolver:
            if args.command == "resolve":
                for identifier in args.identifier:
                    address = resolver.resolve(identifier)
                    result = {"identifier": identifier, "address": address or None}
                    print(json.dumps(result, indent=2))
            elif args.command == "check":
                result = {"status": "ok", "config": dataclasses.asdict(resolver.config)}
                print(json.dumps(result, indent=2))
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

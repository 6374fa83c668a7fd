"""Classify resolver input and translate ENS names into Ethereum addresses."""

import logging
import re
from typing import Optional

from web3 import Web3

from .errors import NameResolutionError
from .rpc_client import RpcConnection

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^(0[xX])?[a-fA-F0-9]{40}$")
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def is_hex_address(value: str) -> bool:
    """Return True if value is a 20-byte hex address, with or without 0x.

    Checksum casing is not validated.
    """
    return isinstance(value, str) and ADDRESS_PATTERN.match(value) is not None


def to_address(value: str) -> str:
    """Normalize a hex address into its checksummed 0x form."""
    body = value[2:] if value[:2] in ("0x", "0X") else value
    return Web3.to_checksum_address("0x" + body.lower())


def resolve_name(connection: RpcConnection, name: str) -> str:
    """Resolve an ENS name over ``connection`` into a checksummed address."""
    logger.debug("Resolving ENS name %s", name)
    try:
        address: Optional[str] = connection.web3.ens.address(name)
    except Exception as exc:  # pylint: disable=broad-except
        raise NameResolutionError(f"Failed to resolve ENS name '{name}': {exc}") from exc

    if not address or str(address).lower() == ZERO_ADDRESS:
        raise NameResolutionError(f"ENS name '{name}' does not resolve to an address.")
    return str(address)


def resolve_target(connection: RpcConnection, key: str) -> str:
    """Use ``key`` as-is when it is a raw address, otherwise resolve it via ENS."""
    if is_hex_address(key):
        return to_address(key)
    return resolve_name(connection, key)

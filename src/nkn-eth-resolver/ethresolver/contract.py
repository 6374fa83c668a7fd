import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from web3.exceptions import Web3Exception

from .errors import ContractBindError, ContractCallError, NodeConnectionError
from .naming import is_hex_address, to_address
from .rpc_client import RpcConnection

logger = logging.getLogger(__name__)

PUBLIC_KEY_SIZE = 32

# Read-only subset of the NKN account contract ABI.
NKN_ACCOUNT_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "getNKNAddr",
        "stateMutability": "view",
        "inputs": [{"name": "addr", "type": "address"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "internalType": "struct NKNAccount.NKNAddress",
                "components": [
                    {"name": "identifier", "type": "string"},
                    {"name": "publicKey", "type": "bytes32"},
                ],
            }
        ],
    }
]


@dataclass(frozen=True)
class NknRecord:
    public_key: bytes
    identifier: str = ""


@dataclass(frozen=True)
class CallOptions:
    """Options for a read-only contract call.

    The defaults query the latest block with no sender override.
    """

    pending: bool = False
    sender: Optional[str] = None
    block_number: Optional[int] = None

    def transaction(self) -> Dict[str, Any]:
        if self.sender:
            return {"from": to_address(self.sender)}
        return {}

    def block_identifier(self) -> Any:
        if self.pending:
            return "pending"
        if self.block_number is not None:
            return self.block_number
        return "latest"


DEFAULT_CALL_OPTIONS = CallOptions()


class NknAccountContract:
    """Handle on a deployed NKN account contract."""

    def __init__(self, address: str, connection: RpcConnection, contract: Any) -> None:
        self.address = address
        self.connection = connection
        self._contract = contract

    def has_code(self) -> bool:
        try:
            code = self.connection.web3.eth.get_code(self.address)
        except requests.RequestException as exc:
            raise NodeConnectionError(f"Failed to reach node reading {self.address}: {exc}") from exc
        except (Web3Exception, ValueError) as exc:
            raise ContractBindError(f"Failed to read code at {self.address}: {exc}") from exc
        return len(code) > 0

    def get_nkn_addr(
        self, address: str, options: CallOptions = DEFAULT_CALL_OPTIONS
    ) -> NknRecord:
        logger.debug("Calling getNKNAddr(%s) on %s", address, self.address)
        try:
            result = self._contract.functions.getNKNAddr(address).call(
                options.transaction(),
                block_identifier=options.block_identifier(),
            )
        except (Web3Exception, requests.RequestException, ValueError) as exc:
            raise ContractCallError(f"getNKNAddr({address}) failed: {exc}") from exc
        return decode_record(result)


def decode_record(result: Any) -> NknRecord:
    """Turn the decoded (identifier, publicKey) tuple into an NknRecord."""
    if not isinstance(result, (list, tuple)) or len(result) != 2:
        raise ContractCallError("getNKNAddr returned malformed data.")

    identifier, public_key = result
    if not isinstance(identifier, str):
        raise ContractCallError("getNKNAddr returned a non-string identifier.")
    if not isinstance(public_key, (bytes, bytearray)) or len(public_key) != PUBLIC_KEY_SIZE:
        raise ContractCallError(
            f"getNKNAddr returned a public key that is not {PUBLIC_KEY_SIZE} bytes."
        )
    return NknRecord(public_key=bytes(public_key), identifier=identifier)


def bind_contract(address: str, connection: RpcConnection) -> NknAccountContract:
    """Bind the NKN account contract at ``address`` using ``connection``."""
    if not is_hex_address(address):
        raise ContractBindError(f"Invalid contract address '{address}'.")

    checksummed = to_address(address)
    try:
        contract = connection.web3.eth.contract(address=checksummed, abi=NKN_ACCOUNT_ABI)
    except (Web3Exception, ValueError, TypeError) as exc:
        raise ContractBindError(f"Failed to bind contract at {checksummed}: {exc}") from exc
    return NknAccountContract(checksummed, connection, contract)

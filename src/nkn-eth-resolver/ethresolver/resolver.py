import logging
from typing import Any, Mapping, Optional, Union

from .cache import DEFAULT_CLEANUP_INTERVAL, DEFAULT_EXPIRATION, ExpiringCache
from .config import Config, merge_config
from .contract import NknRecord, bind_contract
from .errors import ContractBindError
from .naming import resolve_target
from .rpc_client import RpcConnection, dial

logger = logging.getLogger(__name__)

IDENTIFIER_SEPARATOR = "."


def compose_nkn_address(record: NknRecord) -> str:
    """Format a record as ``identifier.publickeyhex`` or just ``publickeyhex``."""
    address = record.public_key.hex()
    if record.identifier:
        return record.identifier + IDENTIFIER_SEPARATOR + address
    return address


class Resolver:
    """Resolve prefixed Ethereum addresses or ENS names into NKN addresses."""

    def __init__(self, config: Optional[Union[Config, Mapping[str, Any]]] = None) -> None:
        self.config = merge_config(config)
        self._health_check()
        self.cache = ExpiringCache(
            default_ttl=self.config.cache_timeout,
            cleanup_interval=DEFAULT_CLEANUP_INTERVAL,
        )
        logger.info(
            "Resolver ready for prefix %r via %s (contract %s)",
            self.config.prefix,
            self.config.rpc_server,
            self.config.contract_address,
        )

    def _connect(self) -> RpcConnection:
        return dial(
            self.config.rpc_server,
            timeout=self.config.dial_timeout_seconds,
            call_timeout=self.config.call_timeout_seconds,
        )

    def _health_check(self) -> None:
        with self._connect() as conn:
            contract = bind_contract(self.config.contract_address, conn)
            if not contract.has_code():
                raise ContractBindError(f"No contract deployed at {contract.address}.")

    def resolve(self, identifier: str) -> str:
        """Return the NKN address for ``identifier``.

        Identifiers without the configured prefix are not handled and yield "".
        """
        prefix = self.config.prefix
        if not identifier.startswith(prefix):
            return ""
        key = identifier[len(prefix):]

        cached, found = self.cache.get(key)
        if found:
            logger.debug("Cache hit for %s", key)
            return cached

        with self._connect() as conn:
            target = resolve_target(conn, key)
            contract = bind_contract(self.config.contract_address, conn)
            record = contract.get_nkn_addr(target)

        nkn_addr = compose_nkn_address(record)
        self.cache.set(key, nkn_addr, DEFAULT_EXPIRATION)
        return nkn_addr

    def close(self) -> None:
        self.cache.close()

    def __enter__(self) -> "Resolver":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

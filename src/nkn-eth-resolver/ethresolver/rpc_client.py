import logging
from typing import Any, Dict, List, Optional

import requests
from web3 import HTTPProvider, Web3

from .errors import NodeConnectionError

logger = logging.getLogger(__name__)


class RpcConnection:
    """Request-scoped connection to an EVM node (JSON-RPC over HTTP POST).

    Owns one ``requests.Session``; the ``web3`` handle used for ENS and
    contract calls shares that session, so ``close()`` releases everything.
    """

    def __init__(
        self,
        rpc_url: str,
        call_timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        url = (rpc_url or "").strip()
        if not url:
            raise ValueError("rpc_url must be a non-empty string.")

        self.rpc_url = url
        self.call_timeout = call_timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if headers:
            self.session.headers.update(dict(headers))
        self._next_id = 1
        self._web3: Optional[Web3] = None

    @property
    def web3(self) -> Web3:
        if self._web3 is None:
            provider = HTTPProvider(
                self.rpc_url,
                request_kwargs={"timeout": self.call_timeout},
                session=self.session,
                exception_retry_configuration=None,
            )
            self._web3 = Web3(provider)
        return self._web3

    def call(
        self,
        method: str,
        params: Optional[List[Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        if not isinstance(method, str) or not method.strip():
            raise ValueError("method must be a non-empty string.")
        if params is None:
            params = []
        if not isinstance(params, list):
            raise ValueError("params must be a list.")

        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        self._next_id += 1

        response = self.session.post(self.rpc_url, json=payload, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("Unexpected JSON-RPC response (non-object).")

        error_obj = data.get("error")
        if isinstance(error_obj, dict):
            code = error_obj.get("code")
            message = error_obj.get("message")
            err_data = error_obj.get("data")
            parts: list[str] = []
            if code is not None:
                parts.append(f"code {code}")
            if message:
                parts.append(str(message))
            if err_data:
                parts.append(str(err_data))
            detail = ": ".join(parts) if parts else "unknown error"
            raise ValueError(f"RPC error: {detail}.")

        if "result" not in data:
            raise ValueError("Unexpected JSON-RPC response (missing result).")
        return data.get("result")

    def chain_id(self, timeout: Optional[float] = None) -> int:
        result = self.call("eth_chainId", [], timeout=timeout)
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ValueError("RPC error: eth_chainId returned unexpected result.")
        return int(result, 16)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RpcConnection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def dial(
    endpoint: str,
    timeout: Optional[float] = None,
    call_timeout: Optional[float] = None,
) -> RpcConnection:
    """Open a connection to ``endpoint`` and probe it within ``timeout`` seconds.

    ``None`` means the probe waits as long as the transport does.
    """
    try:
        conn = RpcConnection(endpoint, call_timeout=call_timeout)
    except ValueError as exc:
        raise NodeConnectionError(f"Invalid RPC endpoint: {exc}") from exc

    try:
        chain_id = conn.chain_id(timeout=timeout)
    except (requests.RequestException, ValueError) as exc:
        conn.close()
        raise NodeConnectionError(f"Failed to connect to {conn.rpc_url}: {exc}") from exc

    logger.debug("Connected to %s (chain id %d)", conn.rpc_url, chain_id)
    return conn

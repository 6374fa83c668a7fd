"""
Shared fixtures for resolver tests.

Provides a fake request-scoped connection and a patched pipeline so Resolver
behavior can be exercised without a live Ethereum node.
"""

from unittest.mock import Mock, patch

import pytest

from ethresolver.contract import NknRecord

CONTRACT_ADDRESS = "0x1111111111111111111111111111111111111111"
RAW_ADDRESS = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"
PUBLIC_KEY = bytes.fromhex("1122" * 16)


class FakeConnection:
    """Stands in for RpcConnection; records how many times it was closed."""

    def __init__(self) -> None:
        self.web3 = Mock()
        self.closed = 0

    def close(self) -> None:
        self.closed += 1

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeDialer:
    """Callable replacing dial(); hands out a fresh FakeConnection per call."""

    def __init__(self) -> None:
        self.connections = []
        self.calls = []

    def __call__(self, endpoint, timeout=None, call_timeout=None):
        self.calls.append((endpoint, timeout, call_timeout))
        conn = FakeConnection()
        self.connections.append(conn)
        return conn


@pytest.fixture
def dialer():
    fake = FakeDialer()
    with patch("ethresolver.resolver.dial", fake):
        yield fake


@pytest.fixture
def contract():
    handle = Mock()
    handle.address = CONTRACT_ADDRESS
    handle.has_code.return_value = True
    handle.get_nkn_addr.return_value = NknRecord(public_key=PUBLIC_KEY, identifier="")
    return handle


@pytest.fixture
def bind(contract):
    with patch("ethresolver.resolver.bind_contract", return_value=contract) as mock_bind:
        yield mock_bind


@pytest.fixture
def resolve_name():
    with patch("ethresolver.naming.resolve_name") as mock_resolve:
        mock_resolve.return_value = "0x2222222222222222222222222222222222222222"
        yield mock_resolve


@pytest.fixture
def resolver_config():
    return {
        "prefix": "ETH:",
        "rpc_server": "http://node.invalid:8545",
        "contract_address": CONTRACT_ADDRESS,
    }

"""RPC client wrapper and address/block helpers."""
from __future__ import annotations

import os
from typing import Any
from urllib.parse import urlparse

from eth_utils import is_hex_address, to_checksum_address
from web3 import Web3

from state_errors import AddressError, ConfigError, EndpointUnresolved

RPC_TIMEOUT = float(os.getenv("RPC_TIMEOUT", "30"))
BLOCK_TAGS = ("latest", "finalized", "safe", "earliest", "pending")
URL_SCHEMES = ("http", "https")

__all__ = [
    "RPC_TIMEOUT",
    "is_url",
    "resolve_endpoint",
    "open_client",
    "is_address",
    "checksum",
    "as_block_id",
    "network_name",
]


def is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in URL_SCHEMES and bool(parsed.netloc)


def resolve_endpoint(endpoint: str) -> str:
    """
    A literal URL is used verbatim; anything else is the name of an
    environment variable holding the URL.
    """
    if is_url(endpoint):
        return endpoint
    value = os.environ.get(endpoint) if isinstance(endpoint, str) and endpoint else None
    if not value:
        raise EndpointUnresolved(str(endpoint))
    if not is_url(value):
        raise EndpointUnresolved(endpoint, f"environment variable value {value!r} is not an http(s) URL")
    return value


def open_client(endpoint: str, timeout: float = RPC_TIMEOUT) -> Web3:
    """Read-only client with response caching and provider retries disabled."""
    url = resolve_endpoint(endpoint)
    provider = Web3.HTTPProvider(
        url,
        request_kwargs={"timeout": timeout},
        exception_retry_configuration=None,
        cache_allowed_requests=False,
    )
    return Web3(provider)


def is_address(value: Any) -> bool:
    """Any-case 0x-prefixed 20-byte hex string; checksum is not enforced."""
    return isinstance(value, str) and value.startswith(("0x", "0X")) and is_hex_address(value)


def checksum(value: Any, field: str = "address") -> str:
    if not is_address(value):
        raise AddressError(field, value)
    return to_checksum_address(value)


def as_block_id(s: str | int | None) -> str | int:
    """
    Accept either an integer-like string (decimal / 0xHEX) or a tag:
    latest | finalized | safe | earliest | pending
    """
    if s is None:
        return "latest"
    if isinstance(s, int):
        return s
    low = s.lower()
    if low in BLOCK_TAGS:
        return low
    try:
        return int(s, 0)
    except ValueError:
        raise ConfigError(f"Invalid block identifier: {s!r}") from None


def network_name(chain_id: int) -> str:
    networks = {
        1: "Ethereum Mainnet",
        17000: "Holesky Testnet",
        11155111: "Sepolia Testnet",
        10: "Optimism",
        42161: "Arbitrum One",
        8453: "Base",
        137: "Polygon",
    }
    return networks.get(chain_id, f"Unknown (chain ID {chain_id})")

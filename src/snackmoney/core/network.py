"""
Network and credential resolution.

The CLI signs payments either on Base (with ``EVM_PRIVATE_KEY``) or on Solana
(with ``SVM_PRIVATE_KEY``). The choice is made once per invocation:

==========  =====  =====  ==================================
flag        evm?   svm?   outcome
==========  =====  =====  ==================================
base        yes    any    Base
base        no     any    MissingCredentialError
solana      any    yes    Solana
solana      any    no     MissingCredentialError
(none)      yes    yes    AmbiguousNetworkError
(none)      yes    no     Base
(none)      no     yes    Solana
(none)      no     no     NoCredentialError
==========  =====  =====  ==================================
"""

from __future__ import annotations

import enum
import ipaddress
import logging
from typing import Optional
from urllib.parse import urlparse

from .config import ClientConfig
from .errors import (
    AmbiguousNetworkError,
    InvalidNetworkError,
    MissingCredentialError,
    NoCredentialError,
)

__all__ = [
    "Network",
    "SOLANA_DEVNET",
    "is_local_endpoint",
    "network_display_name",
    "payment_network_id",
    "resolve_network",
    "select_network",
    "transaction_url",
]

SOLANA_DEVNET = "solana-devnet"


class Network(str, enum.Enum):
    BASE = "base"
    SOLANA = "solana"

    @property
    def credential_variable(self) -> str:
        return "EVM_PRIVATE_KEY" if self is Network.BASE else "SVM_PRIVATE_KEY"

    @classmethod
    def parse(cls, raw: str) -> "Network":
        try:
            return cls(raw.strip().lower())
        except (ValueError, AttributeError) as exc:
            raise InvalidNetworkError(raw) from exc


def select_network(
    flag: Optional[str],
    *,
    has_evm_key: bool,
    has_svm_key: bool,
) -> Network:
    if flag is not None:
        network = Network.parse(flag)
        has_key = has_evm_key if network is Network.BASE else has_svm_key
        if not has_key:
            raise MissingCredentialError(network.value, network.credential_variable)
        return network

    if has_evm_key and has_svm_key:
        raise AmbiguousNetworkError()
    if has_svm_key:
        logging.info("Auto-detected network: Solana (based on SVM_PRIVATE_KEY)")
        return Network.SOLANA
    if has_evm_key:
        logging.info("Auto-detected network: Base (based on EVM_PRIVATE_KEY)")
        return Network.BASE
    raise NoCredentialError()


def resolve_network(config: ClientConfig, flag: Optional[str] = None) -> Network:
    return select_network(
        flag,
        has_evm_key=config.has_evm_key,
        has_svm_key=config.has_svm_key,
    )


def is_local_endpoint(url: str) -> bool:
    """True when ``url`` points at ``localhost`` or a loopback address."""
    host = urlparse(url).hostname
    if not host:
        return False
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def payment_network_id(network: Network, resource_server_url: str) -> str:
    """
    Return the x402 network identifier the signer must pay on.

    Solana payments against a local resource server go to devnet.
    """
    if network is Network.BASE:
        return Network.BASE.value
    if is_local_endpoint(resource_server_url):
        return SOLANA_DEVNET
    return Network.SOLANA.value


def network_display_name(network: Network, resource_server_url: str) -> str:
    network_id = payment_network_id(network, resource_server_url)
    return {
        "base": "Base",
        "solana": "Solana Mainnet",
        SOLANA_DEVNET: "Solana Devnet",
    }[network_id]


def transaction_url(network_id: str, transaction: str) -> Optional[str]:
    if network_id == SOLANA_DEVNET:
        return f"https://solscan.io/tx/{transaction}?cluster=devnet"
    if network_id == "solana":
        return f"https://solscan.io/tx/{transaction}"
    if network_id == "base":
        return f"https://basescan.org/tx/{transaction}"
    if network_id == "base-sepolia":
        return f"https://sepolia.basescan.org/tx/{transaction}"
    return None

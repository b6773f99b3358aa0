import logging

import pytest

from snackmoney.core.config import ClientConfig
from snackmoney.core.errors import (
    AmbiguousNetworkError,
    InvalidNetworkError,
    MissingCredentialError,
    NoCredentialError,
)
from snackmoney.core.network import (
    Network,
    is_local_endpoint,
    network_display_name,
    payment_network_id,
    resolve_network,
    select_network,
    transaction_url,
)


@pytest.mark.parametrize(
    "flag, has_evm, has_svm, expected",
    [
        ("base", True, False, Network.BASE),
        ("base", True, True, Network.BASE),
        ("solana", False, True, Network.SOLANA),
        ("solana", True, True, Network.SOLANA),
        ("SOLANA", False, True, Network.SOLANA),
        (None, True, False, Network.BASE),
        (None, False, True, Network.SOLANA),
    ],
)
def test_select_network(flag, has_evm, has_svm, expected):
    assert select_network(flag, has_evm_key=has_evm, has_svm_key=has_svm) is expected


def test_flag_without_matching_key():
    with pytest.raises(MissingCredentialError) as excinfo:
        select_network("base", has_evm_key=False, has_svm_key=True)
    assert excinfo.value.variable == "EVM_PRIVATE_KEY"

    with pytest.raises(MissingCredentialError) as excinfo:
        select_network("solana", has_evm_key=True, has_svm_key=False)
    assert excinfo.value.variable == "SVM_PRIVATE_KEY"


def test_both_keys_without_flag_is_ambiguous():
    with pytest.raises(AmbiguousNetworkError):
        select_network(None, has_evm_key=True, has_svm_key=True)


def test_no_keys():
    with pytest.raises(NoCredentialError):
        select_network(None, has_evm_key=False, has_svm_key=False)


def test_invalid_flag_is_reported_before_credentials():
    with pytest.raises(InvalidNetworkError):
        select_network("ethereum", has_evm_key=False, has_svm_key=False)


def test_auto_detection_is_logged(caplog):
    with caplog.at_level(logging.INFO):
        select_network(None, has_evm_key=False, has_svm_key=True)
    assert "Auto-detected network: Solana" in caplog.text


def test_resolve_network_reads_config():
    config = ClientConfig(svm_private_key="key")
    assert resolve_network(config) is Network.SOLANA


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://localhost:3000", True),
        ("http://127.0.0.1:8080", True),
        ("http://[::1]:8080", True),
        ("https://api.snack.money", False),
        ("https://localhost.example.com", False),
        ("not a url", False),
    ],
)
def test_is_local_endpoint(url, expected):
    assert is_local_endpoint(url) is expected


def test_payment_network_id():
    assert payment_network_id(Network.BASE, "http://localhost:3000") == "base"
    assert payment_network_id(Network.SOLANA, "https://api.snack.money") == "solana"
    assert payment_network_id(Network.SOLANA, "http://localhost:3000") == "solana-devnet"


def test_network_display_name():
    assert network_display_name(Network.BASE, "https://api.snack.money") == "Base"
    assert network_display_name(Network.SOLANA, "https://api.snack.money") == "Solana Mainnet"
    assert network_display_name(Network.SOLANA, "http://127.0.0.1") == "Solana Devnet"


def test_transaction_url():
    assert transaction_url("base", "0xabc") == "https://basescan.org/tx/0xabc"
    assert transaction_url("solana", "sig") == "https://solscan.io/tx/sig"
    assert transaction_url("solana-devnet", "sig") == "https://solscan.io/tx/sig?cluster=devnet"
    assert transaction_url("unknown", "sig") is None

import base64
import json

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import to_bytes_versioned
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from snackmoney.core.config import ClientConfig
from snackmoney.core.errors import ConfigError
from snackmoney.core.network import Network
from snackmoney.core.payloads import PaymentRequirements
from snackmoney.core.signers import (
    EvmPaymentSigner,
    SvmPaymentSigner,
    create_signer,
)

EVM_KEY = "0x" + "22" * 32
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def test_evm_signer_header():
    signer = EvmPaymentSigner(EVM_KEY)
    requirements = PaymentRequirements(
        scheme="exact",
        network="base",
        max_amount_required=10000,
        pay_to="0x209693bc6afc0c5328ba36faf03c514ef312287c",
        asset="0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",
    )

    header = json.loads(base64.b64decode(signer.create_payment_header(requirements)))

    assert header["network"] == "base"
    assert header["payload"]["authorization"]["from"] == signer.address
    assert header["payload"]["signature"].startswith("0x")


def test_svm_signer_partially_signs_for_fee_payer():
    owner = Keypair()
    fee_payer = Keypair()
    receiver = Keypair()
    signer = SvmPaymentSigner(str(owner), network="solana-devnet", rpc_url="http://localhost:8899")
    signer._latest_blockhash = lambda: Hash.default()
    requirements = PaymentRequirements(
        scheme="exact",
        network="solana-devnet",
        max_amount_required=10000,
        pay_to=str(receiver.pubkey()),
        asset=USDC_MINT,
        extra={"feePayer": str(fee_payer.pubkey())},
    )

    transaction = VersionedTransaction.from_bytes(signer.build_transaction(requirements))

    keys = transaction.message.account_keys
    assert keys[0] == fee_payer.pubkey()
    assert transaction.signatures[0] == Signature.default()
    owner_index = list(keys).index(owner.pubkey())
    assert transaction.signatures[owner_index].verify(
        owner.pubkey(), to_bytes_versioned(transaction.message)
    )
    assert signer.address == str(owner.pubkey())


def test_svm_signer_rejects_bad_key():
    with pytest.raises(ConfigError):
        SvmPaymentSigner("not-a-key", network="solana")
    with pytest.raises(ConfigError):
        SvmPaymentSigner("abc", network="solana")


def test_create_signer_picks_devnet_for_local_server():
    config = ClientConfig(
        resource_server_url="http://localhost:3000",
        svm_private_key=str(Keypair()),
    )

    signer = create_signer(config, Network.SOLANA)

    assert isinstance(signer, SvmPaymentSigner)
    assert signer.network == "solana-devnet"
    assert signer.rpc_url == "https://api.devnet.solana.com"


def test_create_signer_for_base():
    signer = create_signer(ClientConfig(evm_private_key=EVM_KEY), Network.BASE)
    assert isinstance(signer, EvmPaymentSigner)
    assert signer.network == "base"


def test_create_signer_without_key():
    with pytest.raises(ConfigError):
        create_signer(ClientConfig(), Network.BASE)


def test_svm_signer_loads_base58_keypair():
    keypair = Keypair()
    signer = SvmPaymentSigner(f"  {keypair}\n", network="solana")
    assert signer.address == str(keypair.pubkey())

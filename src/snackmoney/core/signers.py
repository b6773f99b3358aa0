"""
Payment signers: the on-chain half of the x402 handshake.

The client only needs :class:`PaymentSigner`; tests substitute their own
implementation so no keys or RPC endpoints are involved.
"""

from __future__ import annotations

import abc
import base64
import logging
import re
from typing import Optional

from eth_account import Account
from solana.rpc.api import Client
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    get_associated_token_address,
    transfer_checked,
)

from .config import ClientConfig
from .errors import ConfigError
from .network import Network, SOLANA_DEVNET, payment_network_id
from .payloads import (
    X402_VERSION,
    PaymentRequirements,
    build_authorization_payload,
    encode_payment_header,
)

__all__ = [
    "EvmPaymentSigner",
    "PaymentSigner",
    "SOLANA_RPC_URLS",
    "SvmPaymentSigner",
    "create_signer",
]

SOLANA_RPC_URLS = {
    "solana": "https://api.mainnet-beta.solana.com",
    SOLANA_DEVNET: "https://api.devnet.solana.com",
}

_COMPUTE_UNIT_LIMIT = 200_000
_COMPUTE_UNIT_PRICE_MICROLAMPORTS = 1

# a 64-byte keypair in base58; solders panics rather than raising on other shapes
_KEYPAIR_RE = re.compile(r"[1-9A-HJ-NP-Za-km-z]{86,88}")


class PaymentSigner(abc.ABC):
    """
    Produces the ``X-PAYMENT`` header that satisfies a 402 response.
    """

    #: x402 network identifier the signer pays on, e.g. ``base``.
    network: str

    @property
    @abc.abstractmethod
    def address(self) -> str:
        """Public address of the paying account."""

    @abc.abstractmethod
    def create_payment_header(
        self,
        requirements: PaymentRequirements,
        *,
        x402_version: int = X402_VERSION,
    ) -> str:
        """Sign a payment for ``requirements`` and return the header value."""


class EvmPaymentSigner(PaymentSigner):
    def __init__(self, private_key: str, *, network: str = "base") -> None:
        self.network = network
        self._private_key = private_key
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def create_payment_header(
        self,
        requirements: PaymentRequirements,
        *,
        x402_version: int = X402_VERSION,
    ) -> str:
        payload = build_authorization_payload(self._private_key, requirements)
        return encode_payment_header(requirements, payload, x402_version=x402_version)


class SvmPaymentSigner(PaymentSigner):
    """
    Signs an SPL ``TransferChecked`` transaction for the Solana ``exact`` scheme.

    When the requirements name a ``feePayer`` the transaction is only partially
    signed; the facilitator adds the fee payer signature before submitting it.
    """

    def __init__(
        self,
        private_key: str,
        *,
        network: str = "solana",
        rpc_url: Optional[str] = None,
    ) -> None:
        self.network = network
        self.rpc_url = rpc_url or SOLANA_RPC_URLS[network]
        key = private_key.strip()
        try:
            if not _KEYPAIR_RE.fullmatch(key):
                raise ValueError("not a base58 encoded 64-byte keypair")
            self._keypair = Keypair.from_base58_string(key)
        except ValueError as exc:
            raise ConfigError("SVM_PRIVATE_KEY must be a base58 encoded keypair") from exc

    @property
    def address(self) -> str:
        return str(self._keypair.pubkey())

    def _latest_blockhash(self):
        logging.debug("Fetching latest blockhash from %s", self.rpc_url)
        return Client(self.rpc_url).get_latest_blockhash().value.blockhash

    def build_transaction(self, requirements: PaymentRequirements) -> bytes:
        owner = self._keypair.pubkey()
        mint = Pubkey.from_string(requirements.asset)
        pay_to = Pubkey.from_string(requirements.pay_to)
        fee_payer_raw = requirements.extra.get("feePayer")
        fee_payer = Pubkey.from_string(fee_payer_raw) if fee_payer_raw else owner
        decimals = int(requirements.extra.get("decimals", 6))

        transfer = transfer_checked(
            TransferCheckedParams(
                program_id=TOKEN_PROGRAM_ID,
                source=get_associated_token_address(owner, mint),
                mint=mint,
                dest=get_associated_token_address(pay_to, mint),
                owner=owner,
                amount=requirements.max_amount_required,
                decimals=decimals,
            )
        )
        message = MessageV0.try_compile(
            fee_payer,
            [
                set_compute_unit_limit(_COMPUTE_UNIT_LIMIT),
                set_compute_unit_price(_COMPUTE_UNIT_PRICE_MICROLAMPORTS),
                transfer,
            ],
            [],
            self._latest_blockhash(),
        )

        own_signature = self._keypair.sign_message(to_bytes_versioned(message))
        signer_keys = message.account_keys[: message.header.num_required_signatures]
        signatures = [
            own_signature if key == owner else Signature.default() for key in signer_keys
        ]
        return bytes(VersionedTransaction.populate(message, signatures))

    def create_payment_header(
        self,
        requirements: PaymentRequirements,
        *,
        x402_version: int = X402_VERSION,
    ) -> str:
        transaction = self.build_transaction(requirements)
        payload = {"transaction": base64.b64encode(transaction).decode("ascii")}
        return encode_payment_header(requirements, payload, x402_version=x402_version)


def create_signer(config: ClientConfig, network: Network) -> PaymentSigner:
    """
    Build the signer backing ``network`` from the configured private key.
    """
    network_id = payment_network_id(network, config.resource_server_url)
    if network is Network.BASE:
        if config.evm_private_key is None:
            raise ConfigError("EVM_PRIVATE_KEY is required for Base payments")
        logging.info("Creating Base signer...")
        signer: PaymentSigner = EvmPaymentSigner(config.evm_private_key, network=network_id)
    else:
        if config.svm_private_key is None:
            raise ConfigError("SVM_PRIVATE_KEY is required for Solana payments")
        logging.info("Creating Solana signer...")
        signer = SvmPaymentSigner(
            config.svm_private_key,
            network=network_id,
            rpc_url=config.solana_rpc_url,
        )
    logging.info("Signer ready for %s (%s)", network_id, signer.address)
    return signer

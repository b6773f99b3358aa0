"""
Helpers for the x402 payment headers exchanged with the payment API.

A 402 response advertises :class:`PaymentRequirements`; the client answers with
an ``X-PAYMENT`` header and the server confirms settlement through the
``X-PAYMENT-RESPONSE`` header.
"""

from __future__ import annotations

import base64
import binascii
import json
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import is_hex_address, to_checksum_address
from hexbytes import HexBytes

__all__ = [
    "EVM_CHAIN_IDS",
    "PAYMENT_HEADER",
    "PAYMENT_RESPONSE_HEADER",
    "X402_VERSION",
    "PaymentRequirements",
    "SettlementResult",
    "build_authorization_payload",
    "decode_payment_response",
    "encode_payment_header",
    "parse_accepts",
]

X402_VERSION = 1
PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"

EVM_CHAIN_IDS = {
    "base": 8453,
    "base-sepolia": 84532,
}


@dataclass(frozen=True)
class PaymentRequirements:
    scheme: str
    network: str
    max_amount_required: int
    pay_to: str
    asset: str
    resource: str = ""
    description: str = ""
    mime_type: str = ""
    max_timeout_seconds: int = 60
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PaymentRequirements":
        try:
            return cls(
                scheme=str(values["scheme"]),
                network=str(values["network"]),
                max_amount_required=int(values["maxAmountRequired"]),
                pay_to=str(values["payTo"]),
                asset=str(values["asset"]),
                resource=str(values.get("resource") or ""),
                description=str(values.get("description") or ""),
                mime_type=str(values.get("mimeType") or ""),
                max_timeout_seconds=int(values.get("maxTimeoutSeconds") or 60),
                extra=dict(values.get("extra") or {}),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed payment requirements: {values!r}") from exc


def parse_accepts(body: Any) -> List[Dict[str, Any]]:
    """Return the ``accepts`` entries of a 402 body (empty when absent)."""
    if not isinstance(body, dict):
        return []
    accepts = body.get("accepts")
    if not isinstance(accepts, list):
        return []
    return [entry for entry in accepts if isinstance(entry, dict)]


def build_authorization_payload(
    private_key: str,
    requirements: PaymentRequirements,
    *,
    now: Optional[int] = None,
    nonce: Optional[bytes] = None,
) -> Dict[str, Any]:
    """
    Construct and sign the ERC-3009 TransferWithAuthorization payload.
    """
    try:
        chain_id = EVM_CHAIN_IDS[requirements.network]
    except KeyError as exc:
        raise ValueError(f"Unsupported EVM network '{requirements.network}'") from exc
    if not is_hex_address(requirements.pay_to) or not is_hex_address(requirements.asset):
        raise ValueError("payTo and asset must be EVM addresses")

    account = Account.from_key(private_key)
    pay_to = to_checksum_address(requirements.pay_to)
    asset = to_checksum_address(requirements.asset)

    now = int(time.time()) if now is None else now
    nonce_bytes = nonce if nonce is not None else secrets.token_bytes(32)
    # backdated so small clock skew does not invalidate the authorization
    valid_after = now - 600
    valid_before = now + requirements.max_timeout_seconds

    message = {
        "from": account.address,
        "to": pay_to,
        "value": requirements.max_amount_required,
        "validAfter": valid_after,
        "validBefore": valid_before,
        "nonce": HexBytes(nonce_bytes),
    }
    domain = {
        "name": requirements.extra.get("name", "USD Coin"),
        "version": requirements.extra.get("version", "2"),
        "chainId": chain_id,
        "verifyingContract": asset,
    }
    typed_data = {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "TransferWithAuthorization": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "validAfter", "type": "uint256"},
                {"name": "validBefore", "type": "uint256"},
                {"name": "nonce", "type": "bytes32"},
            ],
        },
        "primaryType": "TransferWithAuthorization",
        "domain": domain,
        "message": message,
    }

    signable = encode_typed_data(full_message=typed_data)
    signature = account.sign_message(signable).signature

    return {
        "signature": "0x" + bytes(signature).hex(),
        "authorization": {
            "from": account.address,
            "to": pay_to,
            "value": str(requirements.max_amount_required),
            "validAfter": str(valid_after),
            "validBefore": str(valid_before),
            "nonce": "0x" + nonce_bytes.hex(),
        },
    }


def encode_payment_header(
    requirements: PaymentRequirements,
    payload: Dict[str, Any],
    *,
    x402_version: int = X402_VERSION,
) -> str:
    """Serialize a signed payload into the base64 ``X-PAYMENT`` header value."""
    document = {
        "x402Version": x402_version,
        "scheme": requirements.scheme,
        "network": requirements.network,
        "payload": payload,
    }
    raw = json.dumps(document, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


@dataclass(frozen=True)
class SettlementResult:
    success: bool
    network: Optional[str]
    transaction: Optional[str]
    payer: Optional[str]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "SettlementResult":
        return cls(
            success=bool(payload.get("success")),
            network=payload.get("network"),
            transaction=payload.get("transaction"),
            payer=payload.get("payer"),
            raw=payload,
        )


def decode_payment_response(header: str) -> SettlementResult:
    """Decode the base64 JSON ``X-PAYMENT-RESPONSE`` header."""
    try:
        payload = json.loads(base64.b64decode(header, validate=False).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Malformed {PAYMENT_RESPONSE_HEADER} header") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Malformed {PAYMENT_RESPONSE_HEADER} header")
    return SettlementResult.from_response(payload)

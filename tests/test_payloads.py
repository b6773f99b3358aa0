import base64
import json

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from snackmoney.core.payloads import (
    PaymentRequirements,
    build_authorization_payload,
    decode_payment_response,
    encode_payment_header,
    parse_accepts,
)

PRIVATE_KEY = "0x" + "11" * 32
USDC_BASE = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
PAY_TO = "0x209693bc6afc0c5328ba36faf03c514ef312287c"

ACCEPT = {
    "scheme": "exact",
    "network": "base",
    "maxAmountRequired": "500000",
    "resource": "https://api.snack.money/payments/x/pay",
    "description": "Payment",
    "mimeType": "application/json",
    "payTo": PAY_TO,
    "maxTimeoutSeconds": 120,
    "asset": USDC_BASE,
    "extra": {"name": "USD Coin", "version": "2"},
}


def test_requirements_from_mapping():
    requirements = PaymentRequirements.from_mapping(ACCEPT)

    assert requirements.max_amount_required == 500000
    assert requirements.pay_to == PAY_TO
    assert requirements.max_timeout_seconds == 120
    assert requirements.extra["name"] == "USD Coin"


def test_requirements_missing_field():
    broken = dict(ACCEPT)
    del broken["payTo"]
    with pytest.raises(ValueError):
        PaymentRequirements.from_mapping(broken)


def test_parse_accepts_ignores_garbage():
    assert parse_accepts({"accepts": [ACCEPT, "junk"]}) == [ACCEPT]
    assert parse_accepts({"error": "nope"}) == []
    assert parse_accepts(None) == []


def test_authorization_signature_recovers_payer():
    requirements = PaymentRequirements.from_mapping(ACCEPT)
    nonce = bytes(range(32))

    payload = build_authorization_payload(PRIVATE_KEY, requirements, now=1_700_000_000, nonce=nonce)

    authorization = payload["authorization"]
    assert authorization["from"] == Account.from_key(PRIVATE_KEY).address
    assert authorization["value"] == "500000"
    assert authorization["validAfter"] == str(1_700_000_000 - 600)
    assert authorization["validBefore"] == str(1_700_000_000 + 120)
    assert authorization["nonce"] == "0x" + nonce.hex()

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
        "domain": {
            "name": "USD Coin",
            "version": "2",
            "chainId": 8453,
            "verifyingContract": USDC_BASE,
        },
        "message": {
            "from": authorization["from"],
            "to": PAY_TO,
            "value": 500000,
            "validAfter": 1_700_000_000 - 600,
            "validBefore": 1_700_000_000 + 120,
            "nonce": nonce,
        },
    }
    recovered = Account.recover_message(
        encode_typed_data(full_message=typed_data),
        signature=payload["signature"],
    )
    assert recovered == authorization["from"]


def test_authorization_rejects_unknown_network():
    requirements = PaymentRequirements.from_mapping(dict(ACCEPT, network="polygon"))
    with pytest.raises(ValueError):
        build_authorization_payload(PRIVATE_KEY, requirements)


def test_payment_header_is_base64_json():
    requirements = PaymentRequirements.from_mapping(ACCEPT)

    header = encode_payment_header(requirements, {"signature": "0xabc"})

    assert json.loads(base64.b64decode(header)) == {
        "x402Version": 1,
        "scheme": "exact",
        "network": "base",
        "payload": {"signature": "0xabc"},
    }


def test_decode_payment_response():
    header = base64.b64encode(
        json.dumps(
            {"success": True, "transaction": "0xfeed", "network": "base", "payer": "0xme"}
        ).encode()
    ).decode()

    settlement = decode_payment_response(header)

    assert settlement.success is True
    assert settlement.transaction == "0xfeed"
    assert settlement.network == "base"
    assert settlement.payer == "0xme"


def test_decode_malformed_payment_response():
    with pytest.raises(ValueError):
        decode_payment_response("bm90IGpzb24=")

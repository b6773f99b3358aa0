"""
HTTP client for the Snack Money payment API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import ClientConfig
from .errors import RemoteRequestError
from .models import (
    BatchDescriptor,
    CampaignDescriptor,
    PaymentInstruction,
    json_amount,
)
from .payloads import (
    PAYMENT_HEADER,
    PAYMENT_RESPONSE_HEADER,
    X402_VERSION,
    PaymentRequirements,
    SettlementResult,
    decode_payment_response,
    parse_accepts,
)
from .signers import PaymentSigner

__all__ = ["ApiResponse", "SnackMoneyClient"]

CURRENCY = "USDC"


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(body: Any, response: requests.Response, default: str) -> str:
    if isinstance(body, dict):
        for key in ("msg", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"{default} (HTTP {response.status_code})"


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    data: Any
    settlement: Optional[SettlementResult] = None

    def _field(self, name: str) -> Any:
        if not isinstance(self.data, dict):
            return None
        if self.data.get(name):
            return self.data[name]
        nested = self.data.get("data")
        if isinstance(nested, dict):
            return nested.get(name)
        return None

    @property
    def message(self) -> Optional[str]:
        return self._field("msg")

    @property
    def transaction_id(self) -> Optional[str]:
        return self._field("txn_id")

    @property
    def receipt(self) -> Optional[str]:
        return self._field("receipt")

    def receipts(self) -> List[Dict[str, Any]]:
        """Per-receiver receipts returned by batch payments."""
        if not isinstance(self.data, dict):
            return []
        for key in ("data", "receipts"):
            value = self.data.get(key)
            if isinstance(value, list):
                return [
                    item if isinstance(item, dict) else {"receipt": item} for item in value
                ]
        return []


class SnackMoneyClient:
    """
    Thin wrapper around the payment API endpoints.

    Every call is attempted without payment first; a 402 answer is satisfied
    with ``signer`` and retried exactly once.
    """

    def __init__(
        self,
        config: ClientConfig,
        signer: PaymentSigner,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.signer = signer
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.config.resource_server_url

    def _send(
        self,
        url: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        try:
            return self.session.post(
                url, json=body, headers=headers, timeout=self.config.timeout_seconds
            )
        except requests.RequestException as exc:
            raise RemoteRequestError(f"Request to {url} failed: {exc}") from exc

    def _select_requirements(self, accepts: List[Dict[str, Any]]) -> PaymentRequirements:
        for entry in accepts:
            if entry.get("network") == self.signer.network and entry.get("scheme", "exact") == "exact":
                try:
                    return PaymentRequirements.from_mapping(entry)
                except ValueError as exc:
                    raise RemoteRequestError(
                        str(exc), status_code=402, accepts=accepts
                    ) from exc
        raise RemoteRequestError(
            f"No payment option for network '{self.signer.network}'",
            status_code=402,
            accepts=accepts,
        )

    def post(self, path: str, body: Dict[str, Any], *, action: str = "Request") -> ApiResponse:
        """
        POST ``body`` to ``path``, paying through the x402 handshake if asked to.
        """
        url = f"{self.base_url}{path}"
        logging.info("Using endpoint: %s", url)
        response = self._send(url, body)

        if response.status_code == 402:
            payment_required = _json_or_none(response)
            accepts = parse_accepts(payment_required)
            requirements = self._select_requirements(accepts)
            version = X402_VERSION
            if isinstance(payment_required, dict):
                version = int(payment_required.get("x402Version") or X402_VERSION)
            logging.info(
                "Payment required: %s atomic units to %s on %s",
                requirements.max_amount_required,
                requirements.pay_to,
                requirements.network,
            )
            header = self.signer.create_payment_header(requirements, x402_version=version)
            response = self._send(
                url,
                body,
                headers={
                    PAYMENT_HEADER: header,
                    "Access-Control-Expose-Headers": PAYMENT_RESPONSE_HEADER,
                },
            )

        data = _json_or_none(response)
        if response.status_code >= 400:
            raise RemoteRequestError(
                _error_message(data, response, f"{action} failed"),
                status_code=response.status_code,
                accepts=parse_accepts(data) if response.status_code == 402 else None,
                payload=data if data is not None else response.text,
            )

        settlement = None
        header_value = response.headers.get(PAYMENT_RESPONSE_HEADER)
        if header_value:
            try:
                settlement = decode_payment_response(header_value)
            except ValueError:
                logging.warning("Ignoring malformed %s header", PAYMENT_RESPONSE_HEADER)

        return ApiResponse(status_code=response.status_code, data=data, settlement=settlement)

    def pay(
        self,
        instruction: PaymentInstruction,
        *,
        description: Optional[str] = None,
    ) -> ApiResponse:
        body = {
            "amount": json_amount(instruction.amount),
            "currency": CURRENCY,
            "receiver": instruction.receiver,
            "description": instruction.description or description or "Payment via X402",
        }
        logging.info(
            "Sending payment to %s:%s (%s USDC)",
            instruction.platform,
            instruction.receiver,
            instruction.amount,
        )
        return self.post(f"/payments/{instruction.platform}/pay", body, action="Payment")

    def batch_pay(
        self,
        descriptor: BatchDescriptor,
        *,
        sender_username: Optional[str] = None,
    ) -> ApiResponse:
        body = {
            "currency": CURRENCY,
            "type": "social-network",
            "sender_username": sender_username or self.config.sender_username,
            "receivers": descriptor.as_receivers(),
        }
        logging.info(
            "Sending batch payment to %d recipients on %s",
            len(descriptor.payments),
            descriptor.platform,
        )
        return self.post(
            f"/payments/{descriptor.platform}/batch-pay", body, action="Batch payment"
        )

    def create_campaign(self, descriptor: CampaignDescriptor) -> ApiResponse:
        logging.info("Creating campaign on %s", descriptor.platform.upper())
        return self.post(
            f"/campaigns/{descriptor.platform}/create",
            descriptor.as_request_body(),
            action="Campaign creation",
        )

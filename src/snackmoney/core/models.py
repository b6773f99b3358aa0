"""
Canonical value objects produced by the parsers and consumed by the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

__all__ = [
    "BatchDescriptor",
    "BatchPayment",
    "CampaignDescriptor",
    "PaymentInstruction",
    "PaymentTarget",
    "Sponsor",
    "json_amount",
]


def json_amount(amount: Decimal) -> Any:
    """
    Render ``amount`` as a JSON number (int when integral, float otherwise).

    :func:`~snackmoney.core.amounts.parse_amount` rejects fractions a float
    cannot hold exactly, so parsed amounts are never rounded here.
    """
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


@dataclass(frozen=True)
class PaymentTarget:
    platform: str
    receiver: str


@dataclass(frozen=True)
class PaymentInstruction:
    platform: str
    receiver: str
    amount: Decimal
    description: Optional[str] = None

    def describe(self) -> str:
        return f"{self.amount} USDC → @{self.receiver} ({self.platform})"


@dataclass(frozen=True)
class BatchPayment:
    receiver: str
    amount: Decimal

    def as_record(self) -> Dict[str, Any]:
        return {"receiver": self.receiver, "amount": json_amount(self.amount)}


@dataclass(frozen=True)
class BatchDescriptor:
    """
    A single-platform list of receiver/amount pairs.

    The order of ``payments`` is the order in which the user listed them.
    """

    platform: str
    payments: Tuple[BatchPayment, ...]

    @property
    def total_amount(self) -> Decimal:
        return sum((payment.amount for payment in self.payments), Decimal(0))

    def as_receivers(self) -> List[Dict[str, Any]]:
        return [payment.as_record() for payment in self.payments]


@dataclass(frozen=True)
class Sponsor:
    name: str
    handle: str
    url: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"name": self.name, "handle": self.handle}
        if self.url is not None:
            body["url"] = self.url
        return body


@dataclass(frozen=True)
class CampaignDescriptor:
    platform: str
    name: str
    description: str
    total_cookies: int
    sponsor: Sponsor

    def as_request_body(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "totalCookies": self.total_cookies,
            "sponsor": self.sponsor.as_dict(),
        }

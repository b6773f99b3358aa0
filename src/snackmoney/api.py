"""
Public, high-level helpers for sending payments through the Snack Money API.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

import requests

from .core.agent import (
    InstructionExtractor,
    batch_payments,
    group_by_platform,
    select_language_model,
)
from .core.amounts import AmountLike, parse_amount
from .core.batch import parse_batch_input
from .core.campaign import load_campaign_input, validate_campaign
from .core.client import ApiResponse, SnackMoneyClient
from .core.config import ClientConfig, load_client_config
from .core.models import BatchDescriptor, CampaignDescriptor, PaymentInstruction
from .core.network import resolve_network
from .core.platforms import parse_payment_target
from .core.signers import PaymentSigner, create_signer

__all__ = [
    "build_instruction",
    "create_campaign",
    "create_client",
    "create_extractor",
    "execute_instructions",
    "pay_with_prompt",
    "send_batch_payment",
    "send_payment",
]


def create_client(
    *,
    config: Optional[ClientConfig] = None,
    network: Optional[str] = None,
    signer: Optional[PaymentSigner] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
) -> SnackMoneyClient:
    """
    Construct a :class:`SnackMoneyClient`.

    Callers can pass a ready-made :class:`ClientConfig` or let the helper load
    one from the environment. Without an explicit ``signer`` the network is
    resolved from ``network`` and the configured private keys.
    """
    if config is not None:
        if overrides or base:
            raise ValueError(
                "Provide either a pre-built ClientConfig or environment overrides, not both."
            )
        cfg = config
    else:
        cfg = load_client_config(env_file=env_file, overrides=overrides, base=base)

    if signer is None:
        signer = create_signer(cfg, resolve_network(cfg, network))
    return SnackMoneyClient(cfg, signer, session=session)


def build_instruction(
    target: str,
    amount: AmountLike,
    *,
    description: Optional[str] = None,
) -> PaymentInstruction:
    """
    Build a validated instruction from ``platform/receiver`` and an amount token.
    """
    parsed = parse_payment_target(target)
    return PaymentInstruction(
        platform=parsed.platform,
        receiver=parsed.receiver,
        amount=parse_amount(amount),
        description=description,
    )


def send_payment(
    target: str,
    amount: AmountLike,
    *,
    client: SnackMoneyClient,
    description: Optional[str] = None,
) -> ApiResponse:
    instruction = build_instruction(target, amount, description=description)
    return client.pay(instruction)


def send_batch_payment(
    source: str,
    *,
    client: SnackMoneyClient,
    sender_username: Optional[str] = None,
) -> ApiResponse:
    descriptor = parse_batch_input(
        source, session=client.session, timeout=client.config.timeout_seconds
    )
    return client.batch_pay(descriptor, sender_username=sender_username)


def create_extractor(
    config: ClientConfig,
    *,
    session: Optional[requests.Session] = None,
) -> InstructionExtractor:
    return InstructionExtractor(select_language_model(config, session=session))


def execute_instructions(
    instructions: Sequence[PaymentInstruction],
    *,
    client: SnackMoneyClient,
    sender_username: Optional[str] = None,
    description: Optional[str] = None,
) -> List[ApiResponse]:
    """
    Submit instructions one platform at a time.

    A platform with a single instruction gets a plain payment, several become
    one batch payment. The first failure propagates and stops the run.
    """
    responses: List[ApiResponse] = []
    for platform, group in group_by_platform(instructions).items():
        if len(group) == 1:
            responses.append(client.pay(group[0], description=description))
            continue
        descriptor = BatchDescriptor(platform=platform, payments=tuple(batch_payments(group)))
        responses.append(client.batch_pay(descriptor, sender_username=sender_username))
    return responses


def pay_with_prompt(
    prompt: str,
    *,
    client: SnackMoneyClient,
    extractor: Optional[InstructionExtractor] = None,
    sender_username: str = "ai-payment-agent",
) -> List[ApiResponse]:
    """
    Extract instructions from ``prompt`` and pay them.

    Returns an empty list when nothing could be understood.
    """
    extractor = extractor or create_extractor(client.config, session=client.session)
    instructions = extractor.extract(prompt)
    if not instructions:
        logging.warning("No valid payment instructions found in prompt")
        return []
    return execute_instructions(
        instructions,
        client=client,
        sender_username=sender_username,
        description="Payment via AI Agent",
    )


def create_campaign(
    source: Any,
    *,
    client: SnackMoneyClient,
) -> ApiResponse:
    """
    Validate and create a campaign from a raw object or a JSON source string.
    """
    if isinstance(source, CampaignDescriptor):
        descriptor = source
    else:
        if isinstance(source, str):
            source = load_campaign_input(
                source, session=client.session, timeout=client.config.timeout_seconds
            )
        descriptor = validate_campaign(source)
    return client.create_campaign(descriptor)

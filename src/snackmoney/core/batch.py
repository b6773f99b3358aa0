"""
Parsing of batch payment descriptors.

A batch input is one string whose shape decides how it is read:

1. ``http://`` / ``https://`` URL -> fetched, parsed as JSON
2. ``file:`` prefix or ``.json`` suffix -> read from disk, parsed as JSON
3. starts with ``{`` -> inline JSON
4. anything else -> compact form ``platform/user1:1¢,user2:$0.5``

JSON documents look like::

    {"platform": "x", "payments": [{"receiver": "alice", "amount": "5¢"}]}
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests

from .amounts import parse_amount
from .errors import BatchParseError, SourceError
from .models import BatchDescriptor, BatchPayment
from .platforms import normalize_platform, validate_receiver
from .sources import (
    FILE_PREFIX,
    is_url,
    load_json_file,
    load_json_text,
    load_json_url,
)

__all__ = [
    "parse_batch_document",
    "parse_batch_input",
    "parse_comma_separated",
]


def parse_comma_separated(source: str) -> BatchDescriptor:
    """
    Parse ``platform/receiver1:amount1,receiver2:amount2``.

    Each pair is split on its last ``:`` so amounts never leak into receivers.
    """
    platform_raw, separator, receivers_raw = source.partition("/")
    if not separator:
        raise BatchParseError(
            source,
            SourceError.MALFORMED,
            "expected platform/receiver1:amount1,receiver2:amount2",
        )

    platform = normalize_platform(platform_raw)
    payments: List[BatchPayment] = []
    for pair in receivers_raw.split(","):
        receiver, colon, amount_raw = pair.strip().rpartition(":")
        if not colon:
            raise BatchParseError(
                source, SourceError.MALFORMED, f"missing amount for {pair!r} (use receiver:amount)"
            )
        validate_receiver(platform, receiver)
        payments.append(BatchPayment(receiver=receiver, amount=parse_amount(amount_raw)))

    return BatchDescriptor(platform=platform, payments=tuple(payments))


def parse_batch_document(data: Any, *, source: str = "<json>") -> BatchDescriptor:
    """
    Validate an already-decoded JSON batch document.
    """
    if not isinstance(data, dict):
        raise BatchParseError(source, SourceError.MALFORMED, "JSON must be an object")
    if not data.get("platform"):
        raise BatchParseError(
            source, SourceError.MISSING_FIELD, 'JSON must contain "platform" field'
        )
    payments_raw = data.get("payments")
    if not isinstance(payments_raw, list):
        raise BatchParseError(
            source, SourceError.MISSING_FIELD, 'JSON must contain "payments" array'
        )
    if not payments_raw:
        raise BatchParseError(
            source, SourceError.MISSING_FIELD, '"payments" array must not be empty'
        )

    platform = normalize_platform(data["platform"])
    payments: List[BatchPayment] = []
    for index, record in enumerate(payments_raw):
        if not isinstance(record, dict):
            raise BatchParseError(
                source, SourceError.MALFORMED, f"payment #{index + 1} must be an object"
            )
        if not record.get("receiver"):
            raise BatchParseError(
                source,
                SourceError.MISSING_FIELD,
                f'payment #{index + 1} must have "receiver" field',
            )
        if record.get("amount") is None:
            raise BatchParseError(
                source,
                SourceError.MISSING_FIELD,
                f'payment #{index + 1} must have "amount" field',
            )
        receiver = validate_receiver(platform, record["receiver"])
        payments.append(BatchPayment(receiver=receiver, amount=parse_amount(record["amount"])))

    return BatchDescriptor(platform=platform, payments=tuple(payments))


def parse_batch_input(
    source: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: int = 30,
) -> BatchDescriptor:
    """
    Parse any of the four batch input shapes into a :class:`BatchDescriptor`.
    """
    source = source.strip()
    if not source:
        raise BatchParseError("<empty>", SourceError.MALFORMED, "batch input must not be empty")

    label = source
    if is_url(source):
        data = load_json_url(source, session=session, timeout=timeout, error_cls=BatchParseError)
    elif source.startswith(FILE_PREFIX) or source.endswith(".json"):
        data = load_json_file(source, error_cls=BatchParseError)
    elif source.startswith("{"):
        label = "inline JSON"
        data = load_json_text(source, source=label, error_cls=BatchParseError)
    else:
        descriptor = parse_comma_separated(source)
        logging.debug("Parsed %d payment(s) from compact batch input", len(descriptor.payments))
        return descriptor

    descriptor = parse_batch_document(data, source=label)
    logging.debug("Parsed %d payment(s) from %s", len(descriptor.payments), label)
    return descriptor

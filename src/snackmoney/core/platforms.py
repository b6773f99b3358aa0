"""
Platform aliases, receiver grammars and ``platform/receiver`` targets.
"""

from __future__ import annotations

import re
from typing import Dict, Pattern, Tuple

from .errors import (
    InvalidReceiverError,
    MalformedTargetError,
    UnknownPlatformError,
)
from .models import PaymentTarget

__all__ = [
    "PLATFORMS",
    "PLATFORM_ALIASES",
    "normalize_platform",
    "parse_payment_target",
    "validate_receiver",
]

PLATFORMS: Tuple[str, ...] = ("x", "farcaster", "github", "email", "web")

PLATFORM_ALIASES: Dict[str, str] = {
    "x": "x",
    "x.com": "x",
    "twitter": "x",
    "twitter.com": "x",
    "farcaster": "farcaster",
    "farcaster.xyz": "farcaster",
    "github": "github",
    "github.com": "github",
    "email": "email",
    "web": "web",
}

_GITHUB_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,37}[A-Za-z0-9])?$")

_RECEIVER_RULES: Dict[str, Tuple[Pattern[str], str]] = {
    "x": (
        re.compile(r"^[A-Za-z0-9_]{1,15}$"),
        "Must be 1-15 alphanumeric characters or underscores.",
    ),
    "farcaster": (
        re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,15}$"),
        "Must be 1-16 characters, start with alphanumeric, contain only letters, "
        "numbers, hyphens, and underscores.",
    ),
    "github": (
        _GITHUB_RE,
        "Must be 1-39 alphanumeric characters or hyphens, cannot start/end with "
        "hyphen or have consecutive hyphens.",
    ),
    "email": (
        re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"),
        "Must look like local@domain.tld.",
    ),
    "web": (
        re.compile(r"^(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"),
        "Must be a valid domain name (e.g., snack.money).",
    ),
}


def normalize_platform(platform: str) -> str:
    """
    Map an alias such as ``twitter.com`` onto its canonical platform (``x``).
    """
    if not isinstance(platform, str):
        raise UnknownPlatformError(platform, sorted(PLATFORM_ALIASES))
    normalized = PLATFORM_ALIASES.get(platform.strip().lower())
    if normalized is None:
        raise UnknownPlatformError(platform, sorted(PLATFORM_ALIASES))
    return normalized


def validate_receiver(platform: str, receiver: str) -> str:
    """
    Check ``receiver`` against the handle grammar of ``platform``.

    ``platform`` must already be canonical. The receiver is returned unchanged.
    """
    try:
        pattern, rule = _RECEIVER_RULES[platform]
    except KeyError as exc:
        raise UnknownPlatformError(platform, PLATFORMS) from exc

    if not isinstance(receiver, str) or not pattern.fullmatch(receiver):
        raise InvalidReceiverError(platform, receiver, rule)
    if platform == "github" and "--" in receiver:
        raise InvalidReceiverError(platform, receiver, rule)
    return receiver


def parse_payment_target(target: str) -> PaymentTarget:
    """
    Parse ``platform/receiver`` (for example ``x.com/jessepollak``).
    """
    parts = target.split("/")
    if len(parts) != 2:
        raise MalformedTargetError(target)

    platform_raw, receiver = parts
    platform = normalize_platform(platform_raw)
    validate_receiver(platform, receiver)
    return PaymentTarget(platform=platform, receiver=receiver)

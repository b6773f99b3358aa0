"""
Validation and pricing of cookie campaigns.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional
from urllib.parse import urlparse

import requests

from .config import ClientConfig
from .errors import CampaignValidationError, SourceError, UnknownPlatformError
from .models import CampaignDescriptor, Sponsor
from .platforms import normalize_platform
from .sources import is_url, load_json_file, load_json_text, load_json_url

__all__ = [
    "CAMPAIGN_PLATFORMS",
    "campaign_cost",
    "cookie_unit_price",
    "load_campaign_input",
    "validate_campaign",
]

CAMPAIGN_PLATFORMS = ("x", "farcaster")


def _check_text(
    errors: List[str],
    value: Any,
    field: str,
    minimum: int,
    maximum: int,
) -> None:
    unit = "character" if minimum == 1 else "characters"
    if value is None or value == "":
        errors.append(f"{field} is required")
    elif not isinstance(value, str):
        errors.append(f"{field} must be a string")
    elif len(value) < minimum:
        errors.append(f"{field} must be at least {minimum} {unit}")
    elif len(value) > maximum:
        errors.append(f"{field} must be at most {maximum} characters")


def _check_total_cookies(errors: List[str], value: Any) -> Optional[int]:
    if value is None:
        errors.append("totalCookies is required")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append("totalCookies must be a number")
        return None
    if isinstance(value, float) and not value.is_integer():
        errors.append("totalCookies must be an integer")
        return None
    cookies = int(value)
    if cookies < 3:
        errors.append("totalCookies must be at least 3")
    elif cookies > 10:
        errors.append("totalCookies must be at most 10")
    return cookies


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def validate_campaign(data: Any) -> CampaignDescriptor:
    """
    Validate a raw campaign object, reporting every problem at once.

    Raises :class:`CampaignValidationError` listing all violations.
    """
    if not isinstance(data, dict):
        raise CampaignValidationError(["campaign must be a JSON object"])

    errors: List[str] = []

    platform: Optional[str] = None
    platform_raw = data.get("platform")
    if not platform_raw:
        errors.append("platform is required (must be 'x' or 'farcaster')")
    else:
        try:
            platform = normalize_platform(platform_raw)
        except UnknownPlatformError:
            platform = None
        if platform not in CAMPAIGN_PLATFORMS:
            errors.append(f"platform must be 'x' or 'farcaster', got: {platform_raw}")

    _check_text(errors, data.get("name"), "name", 3, 100)
    _check_text(errors, data.get("description"), "description", 10, 500)
    total_cookies = _check_total_cookies(errors, data.get("totalCookies"))

    sponsor = data.get("sponsor")
    if not sponsor:
        errors.append("sponsor is required")
    elif not isinstance(sponsor, dict):
        errors.append("sponsor must be an object")
    else:
        _check_text(errors, sponsor.get("name"), "sponsor.name", 1, 100)
        _check_text(errors, sponsor.get("handle"), "sponsor.handle", 1, 50)
        url = sponsor.get("url")
        if url is not None:
            if not isinstance(url, str):
                errors.append("sponsor.url must be a string")
            elif not _is_absolute_url(url):
                errors.append(f"sponsor.url must be a valid URL: {url}")

    if errors:
        raise CampaignValidationError(errors)

    return CampaignDescriptor(
        platform=platform,
        name=data["name"],
        description=data["description"],
        total_cookies=total_cookies,
        sponsor=Sponsor(
            name=sponsor["name"],
            handle=sponsor["handle"],
            url=sponsor.get("url"),
        ),
    )


def load_campaign_input(
    source: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: int = 30,
) -> Any:
    """
    Load a raw campaign object from inline JSON, a URL, or a file path.
    """
    source = source.strip()
    if source.startswith("{"):
        return load_json_text(source, source="inline JSON")
    if is_url(source):
        return load_json_url(source, session=session, timeout=timeout)
    if not source:
        raise SourceError("<empty>", SourceError.MALFORMED, "campaign input must not be empty")
    return load_json_file(source)


def cookie_unit_price(config: Optional[ClientConfig] = None) -> Decimal:
    """
    USDC value of a single cookie.

    The API has no pricing endpoint yet, so this is a configured constant.
    """
    if config is None:
        return Decimal("1")
    return config.cookie_price


def campaign_cost(descriptor: CampaignDescriptor, unit_price: Decimal) -> Decimal:
    return descriptor.total_cookies * unit_price

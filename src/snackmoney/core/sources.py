"""
Loading JSON documents from a URL, a local file, or an inline string.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Type

import requests

from .errors import SourceError

__all__ = [
    "FILE_PREFIX",
    "is_url",
    "load_json_file",
    "load_json_text",
    "load_json_url",
    "strip_file_prefix",
]

FILE_PREFIX = "file:"


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def strip_file_prefix(source: str) -> str:
    return source[len(FILE_PREFIX):] if source.startswith(FILE_PREFIX) else source


def load_json_text(
    text: str,
    *,
    source: str,
    error_cls: Type[SourceError] = SourceError,
) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise error_cls(source, SourceError.INVALID_JSON, f"invalid JSON ({exc})") from exc


def load_json_file(
    source: str,
    *,
    error_cls: Type[SourceError] = SourceError,
) -> Any:
    path = Path(strip_file_prefix(source)).expanduser().resolve()
    logging.debug("Reading JSON document from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise error_cls(source, SourceError.UNREADABLE_FILE, f"file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise error_cls(
            source, SourceError.UNREADABLE_FILE, f"failed to read file: {exc}"
        ) from exc
    return load_json_text(text, source=source, error_cls=error_cls)


def load_json_url(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: int = 30,
    error_cls: Type[SourceError] = SourceError,
) -> Any:
    if session is None:
        with requests.Session() as owned:
            return load_json_url(url, session=owned, timeout=timeout, error_cls=error_cls)

    http = session
    logging.info("Fetching JSON document from %s", url)
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise error_cls(url, SourceError.UNREACHABLE_URL, f"failed to fetch: {exc}") from exc
    if response.status_code >= 400:
        raise error_cls(
            url,
            SourceError.UNREACHABLE_URL,
            f"failed to fetch: server responded with {response.status_code}",
        )
    return load_json_text(response.text, source=url, error_cls=error_cls)

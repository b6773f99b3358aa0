"""
Natural-language payment requests.

A prompt such as ``"Send 1 USDC to @toly on Farcaster and 0.5 USDC to
@aeyakovenko on X"`` is turned into :class:`PaymentInstruction` objects. A
language model does the heavy lifting when one is configured; three regular
expression templates cover the common phrasings otherwise.
"""

from __future__ import annotations

import abc
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import requests

from .amounts import parse_amount
from .config import ClientConfig
from .errors import InputError, LanguageModelError
from .models import BatchPayment, PaymentInstruction
from .platforms import PLATFORMS, normalize_platform, validate_receiver

__all__ = [
    "AnthropicMessagesModel",
    "InstructionExtractor",
    "LanguageModel",
    "OpenAIChatModel",
    "SYSTEM_INSTRUCTION",
    "batch_payments",
    "extract_json_array",
    "fallback_instructions",
    "group_by_platform",
    "select_language_model",
]

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

SYSTEM_INSTRUCTION = f"""You are a payment assistant. Parse payment requests and extract structured payment instructions.

Supported platforms: {", ".join(PLATFORMS)}

Return ONLY valid JSON array of payment instructions. Each instruction must have:
- receiver: username (without @ prefix)
- amount: number
- platform: one of the supported platforms
- description: optional string

Example output:
[
  {{"receiver": "alice", "amount": 0.5, "platform": "farcaster", "description": "Thanks for the help!"}},
  {{"receiver": "bob", "amount": 1.0, "platform": "x"}}
]

If you cannot parse valid payment instructions, return an empty array []."""

_PLATFORM_GROUP = "(x|farcaster|web|email|github)"
_AMOUNT_GROUP = r"(\d+\.?\d*)"

# (pattern, receiver group, amount group, platform group)
_FALLBACK_TEMPLATES = (
    (
        re.compile(
            rf"send\s+{_AMOUNT_GROUP}\s+usdc\s+to\s+@?(\w+)\s+on\s+{_PLATFORM_GROUP}\b",
            re.IGNORECASE | re.ASCII,
        ),
        2,
        1,
        3,
    ),
    (
        re.compile(
            rf"pay\s+@?(\w+)\s+{_AMOUNT_GROUP}\s+usdc\s+on\s+{_PLATFORM_GROUP}\b",
            re.IGNORECASE | re.ASCII,
        ),
        1,
        2,
        3,
    ),
    (
        re.compile(
            rf"@?(\w+)\s+on\s+{_PLATFORM_GROUP}\s+{_AMOUNT_GROUP}\s+usdc",
            re.IGNORECASE | re.ASCII,
        ),
        1,
        3,
        2,
    ),
)


class LanguageModel(abc.ABC):
    """A text-in, text-out completion provider."""

    name = "model"

    @abc.abstractmethod
    def complete(self, system: str, prompt: str) -> str:
        """Return the model's text reply to ``prompt``."""


def _post_model(
    session: requests.Session,
    provider: str,
    url: str,
    *,
    headers: Dict[str, str],
    body: Dict[str, Any],
    timeout: int,
) -> Dict[str, Any]:
    try:
        response = session.post(url, headers=headers, json=body, timeout=timeout)
    except requests.RequestException as exc:
        raise LanguageModelError(f"{provider} request failed: {exc}") from exc
    if response.status_code >= 400:
        raise LanguageModelError(
            f"{provider} API error: {response.status_code} {response.text}"
        )
    try:
        return response.json()
    except ValueError as exc:
        raise LanguageModelError(f"{provider} response was not JSON") from exc


class OpenAIChatModel(LanguageModel):
    name = "OpenAI"

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o-mini",
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.session = session or requests.Session()
        self.timeout = timeout

    def complete(self, system: str, prompt: str) -> str:
        data = _post_model(
            self.session,
            self.name,
            OPENAI_API_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            body={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": f'Request: "{prompt}"'},
                ],
                "temperature": 0.1,
                "max_tokens": 500,
            },
            timeout=self.timeout,
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise LanguageModelError("OpenAI response had no message content") from exc


class AnthropicMessagesModel(LanguageModel):
    name = "Claude"

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "claude-3-5-sonnet-20241022",
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.session = session or requests.Session()
        self.timeout = timeout

    def complete(self, system: str, prompt: str) -> str:
        data = _post_model(
            self.session,
            self.name,
            ANTHROPIC_API_URL,
            headers={
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            body={
                "model": self.model,
                "max_tokens": 1024,
                "system": system,
                "messages": [{"role": "user", "content": f'Request: "{prompt}"'}],
            },
            timeout=self.timeout,
        )
        try:
            blocks = data["content"]
            return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
        except (KeyError, TypeError, AttributeError) as exc:
            raise LanguageModelError("Claude response had no text content") from exc


def select_language_model(
    config: ClientConfig,
    *,
    session: Optional[requests.Session] = None,
) -> Optional[LanguageModel]:
    """
    Pick the configured provider, preferring OpenAI over Anthropic.
    """
    if config.openai_api_key:
        return OpenAIChatModel(
            config.openai_api_key,
            model=config.openai_model,
            session=session,
            timeout=config.timeout_seconds,
        )
    if config.anthropic_api_key:
        return AnthropicMessagesModel(
            config.anthropic_api_key,
            model=config.anthropic_model,
            session=session,
            timeout=config.timeout_seconds,
        )
    return None


def extract_json_array(text: str) -> Optional[List[Any]]:
    """
    Return the first well-formed JSON array embedded in ``text``.

    Surrounding prose and markdown code fences are ignored.
    """
    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)
    return None


def _instruction_from_record(record: Any) -> PaymentInstruction:
    if not isinstance(record, dict):
        raise InputError(f"Payment instruction must be an object, got {record!r}")
    platform = normalize_platform(record.get("platform", ""))
    receiver = str(record.get("receiver", "")).strip().lstrip("@")
    validate_receiver(platform, receiver)
    description = record.get("description")
    return PaymentInstruction(
        platform=platform,
        receiver=receiver,
        amount=parse_amount(record.get("amount")),
        description=str(description) if description else None,
    )


def fallback_instructions(prompt: str) -> List[PaymentInstruction]:
    """
    Extract instructions with the fixed phrasing templates.

    Every non-overlapping match of every template is collected, template by
    template, in the order they appear in the prompt. Matches are validated
    like model output, so a handle the platform does not allow raises.
    """
    instructions: List[PaymentInstruction] = []
    for pattern, receiver_group, amount_group, platform_group in _FALLBACK_TEMPLATES:
        for match in pattern.finditer(prompt):
            instructions.append(
                _instruction_from_record(
                    {
                        "platform": match.group(platform_group),
                        "receiver": match.group(receiver_group),
                        "amount": match.group(amount_group),
                    }
                )
            )
    return instructions


class InstructionExtractor:
    """
    Turn free text into payment instructions.

    ``model`` may be ``None``, in which case only the templates are used.
    """

    def __init__(self, model: Optional[LanguageModel] = None) -> None:
        self.model = model

    def extract(self, prompt: str) -> List[PaymentInstruction]:
        if self.model is None:
            logging.warning(
                "Using regex parser. Set OPENAI_API_KEY or ANTHROPIC_API_KEY for AI parsing."
            )
            return self._fallback(prompt)

        logging.info("%s parsing...", self.model.name)
        try:
            content = self.model.complete(SYSTEM_INSTRUCTION, prompt)
        except LanguageModelError as exc:
            logging.warning("%s unavailable (%s); using regex fallback", self.model.name, exc)
            return self._fallback(prompt)

        records = extract_json_array(content)
        if records is None:
            logging.warning(
                "Could not parse %s response; using regex fallback. Raw response: %s",
                self.model.name,
                content,
            )
            return self._fallback(prompt)

        instructions = [_instruction_from_record(record) for record in records]
        self._log_found(instructions)
        return instructions

    def _fallback(self, prompt: str) -> List[PaymentInstruction]:
        instructions = fallback_instructions(prompt)
        self._log_found(instructions)
        return instructions

    @staticmethod
    def _log_found(instructions: Sequence[PaymentInstruction]) -> None:
        if instructions:
            logging.info(
                "Found %d payment(s): %s",
                len(instructions),
                ", ".join(instruction.describe() for instruction in instructions),
            )


def group_by_platform(
    instructions: Sequence[PaymentInstruction],
) -> Dict[str, List[PaymentInstruction]]:
    """
    Group instructions by platform, keeping the order platforms first appear in.
    """
    groups: Dict[str, List[PaymentInstruction]] = {}
    for instruction in instructions:
        groups.setdefault(instruction.platform, []).append(instruction)
    return groups


def batch_payments(instructions: Sequence[PaymentInstruction]) -> List[BatchPayment]:
    return [
        BatchPayment(receiver=instruction.receiver, amount=instruction.amount)
        for instruction in instructions
    ]

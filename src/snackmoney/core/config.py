"""
Configuration objects and helpers for the snackmoney client.

A :class:`ClientConfig` is built once at process start and passed explicitly to
every component that needs credentials or endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from .environment import ClientEnvironment, build_environment
from .errors import ConfigError

__all__ = [
    "DEFAULT_RESOURCE_SERVER_URL",
    "ClientConfig",
    "load_client_config",
]

DEFAULT_RESOURCE_SERVER_URL = "https://api.snack.money"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_SENDER_USERNAME = "snackmoney-agent-x402"

_PARAMETER_TO_ENV_KEY = {
    "evm_private_key": "EVM_PRIVATE_KEY",
    "svm_private_key": "SVM_PRIVATE_KEY",
    "resource_server_url": "RESOURCE_SERVER_URL",
    "openai_api_key": "OPENAI_API_KEY",
    "openai_model": "OPENAI_MODEL",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "anthropic_model": "ANTHROPIC_MODEL",
    "solana_rpc_url": "SOLANA_RPC_URL",
    "timeout_seconds": "SNACKMONEY_TIMEOUT_SECONDS",
    "cookie_price": "SNACKMONEY_COOKIE_PRICE",
    "sender_username": "SNACKMONEY_SENDER_USERNAME",
}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _collect_parameter_overrides(explicit: Mapping[str, Any]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:  # pragma: no cover
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def _normalize_private_key(raw_key: str) -> str:
    key = raw_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    if len(key) != 66:
        raise ConfigError("EVM_PRIVATE_KEY must be 32 bytes (64 hex chars)")
    try:
        int(key[2:], 16)
    except ValueError as exc:
        raise ConfigError("EVM_PRIVATE_KEY must be hexadecimal") from exc
    return key


def _normalize_url(raw_url: str, field_name: str) -> str:
    url = raw_url.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ConfigError(f"{field_name} must start with http:// or https://")
    return url


def _positive_int(raw: str, field_name: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{field_name} must be greater than zero")
    return value


def _positive_decimal(raw: str, field_name: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigError(
            f"{field_name} must be a valid decimal number, got '{raw}'"
        ) from exc
    if not value.is_finite() or value <= 0:
        raise ConfigError(f"{field_name} must be greater than zero")
    return value


@dataclass(frozen=True)
class ClientConfig:
    resource_server_url: str = DEFAULT_RESOURCE_SERVER_URL
    evm_private_key: Optional[str] = None
    svm_private_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    solana_rpc_url: Optional[str] = None
    timeout_seconds: int = 30
    cookie_price: Decimal = Decimal("1")
    sender_username: str = DEFAULT_SENDER_USERNAME

    @property
    def has_evm_key(self) -> bool:
        return self.evm_private_key is not None

    @property
    def has_svm_key(self) -> bool:
        return self.svm_private_key is not None

    @property
    def has_language_model(self) -> bool:
        return self.openai_api_key is not None or self.anthropic_api_key is not None

    def __repr__(self) -> str:
        # keep private keys out of logs and tracebacks
        return (
            f"ClientConfig(resource_server_url={self.resource_server_url!r}, "
            f"has_evm_key={self.has_evm_key}, has_svm_key={self.has_svm_key}, "
            f"has_language_model={self.has_language_model})"
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ClientConfig":
        environment = (
            values if isinstance(values, ClientEnvironment) else ClientEnvironment(values)
        )

        evm_raw = environment.get("EVM_PRIVATE_KEY")
        evm_private_key = _normalize_private_key(evm_raw) if evm_raw else None

        resource_server_url = _normalize_url(
            environment.get("RESOURCE_SERVER_URL", DEFAULT_RESOURCE_SERVER_URL),
            "RESOURCE_SERVER_URL",
        )

        solana_rpc_raw = environment.get("SOLANA_RPC_URL")
        solana_rpc_url = (
            _normalize_url(solana_rpc_raw, "SOLANA_RPC_URL") if solana_rpc_raw else None
        )

        return cls(
            resource_server_url=resource_server_url,
            evm_private_key=evm_private_key,
            svm_private_key=environment.get("SVM_PRIVATE_KEY"),
            openai_api_key=environment.get("OPENAI_API_KEY"),
            openai_model=environment.get("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            anthropic_api_key=environment.get("ANTHROPIC_API_KEY"),
            anthropic_model=environment.get("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
            solana_rpc_url=solana_rpc_url,
            timeout_seconds=_positive_int(
                environment.get("SNACKMONEY_TIMEOUT_SECONDS", "30"),
                "SNACKMONEY_TIMEOUT_SECONDS",
            ),
            cookie_price=_positive_decimal(
                environment.get("SNACKMONEY_COOKIE_PRICE", "1"),
                "SNACKMONEY_COOKIE_PRICE",
            ),
            sender_username=environment.get(
                "SNACKMONEY_SENDER_USERNAME", DEFAULT_SENDER_USERNAME
            ),
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        **parameters: Any,
    ) -> "ClientConfig":
        merged_overrides = dict(overrides or {})
        merged_overrides.update(_collect_parameter_overrides(parameters))

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment)


def load_client_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    evm_private_key: Optional[str] = None,
    svm_private_key: Optional[str] = None,
    resource_server_url: Optional[str] = None,
    openai_api_key: Optional[str] = None,
    anthropic_api_key: Optional[str] = None,
    solana_rpc_url: Optional[str] = None,
    timeout_seconds: Optional[int | str] = None,
    cookie_price: Optional[Decimal | str] = None,
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    Settings can come from the environment, a ``.env`` file, keyword
    arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        evm_private_key=evm_private_key,
        svm_private_key=svm_private_key,
        resource_server_url=resource_server_url,
        openai_api_key=openai_api_key,
        anthropic_api_key=anthropic_api_key,
        solana_rpc_url=solana_rpc_url,
        timeout_seconds=timeout_seconds,
        cookie_price=cookie_price,
    )

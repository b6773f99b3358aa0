"""
Exception hierarchy shared by every snackmoney component.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

__all__ = [
    "AmbiguousNetworkError",
    "BatchParseError",
    "CampaignValidationError",
    "ConfigError",
    "InputError",
    "InvalidAmountError",
    "InvalidNetworkError",
    "InvalidReceiverError",
    "LanguageModelError",
    "MalformedTargetError",
    "MissingCredentialError",
    "NetworkSelectionError",
    "NoCredentialError",
    "RemoteRequestError",
    "ShellExpansionHazardError",
    "SnackMoneyError",
    "SourceError",
    "UnknownPlatformError",
]


class SnackMoneyError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(SnackMoneyError):
    """Raised when the supplied configuration is invalid."""


class InputError(SnackMoneyError):
    """Raised when user supplied input cannot be parsed or validated."""


class InvalidAmountError(InputError):
    def __init__(self, raw: Any, reason: Optional[str] = None) -> None:
        self.raw = raw
        message = f"Invalid amount: {raw}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ShellExpansionHazardError(InvalidAmountError):
    """
    A ``$N`` amount was given where ``N`` is a bare integer.

    Shells expand ``$1``, ``$2`` ... as positional parameters, so the value the
    program receives is rarely the one the user typed.
    """

    def __init__(self, raw: str, dollars: int) -> None:
        self.raw = raw
        self.dollars = dollars
        self.suggestion = f"{dollars * 100}¢"
        InputError.__init__(
            self,
            f"Dollar amounts like ${dollars} can be interpreted as shell variables. "
            f"Please use {self.suggestion} instead (or quote as '\\${dollars}').",
        )


class UnknownPlatformError(InputError):
    def __init__(self, raw: Any, accepted: Sequence[str] = ()) -> None:
        self.raw = raw
        self.accepted = tuple(accepted)
        message = f"Unknown platform: {raw}"
        if self.accepted:
            message = f"{message}. Supported: {', '.join(self.accepted)}"
        super().__init__(message)


class InvalidReceiverError(InputError):
    def __init__(self, platform: str, raw: Any, rule: str) -> None:
        self.platform = platform
        self.raw = raw
        self.rule = rule
        super().__init__(f"Invalid {platform} receiver: {raw}. {rule}")


class MalformedTargetError(InputError):
    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(
            f"Invalid payment target format: {raw}. Expected format: platform/username"
        )


class SourceError(InputError):
    """Raised when a JSON document cannot be loaded from a URL, file or string."""

    UNREACHABLE_URL = "unreachable-url"
    UNREADABLE_FILE = "unreadable-file"
    INVALID_JSON = "invalid-json"
    MISSING_FIELD = "missing-field"
    MALFORMED = "malformed"

    def __init__(self, source: str, reason: str, detail: str) -> None:
        self.source = source
        self.reason = reason
        self.detail = detail
        super().__init__(f"{source}: {detail}")


class BatchParseError(SourceError):
    """Raised when a batch descriptor has the wrong shape or cannot be loaded."""


class CampaignValidationError(InputError):
    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: List[str] = list(errors)
        lines = "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(f"Validation failed:\n{lines}")


class NetworkSelectionError(SnackMoneyError):
    """Base class for network and credential resolution failures."""


class InvalidNetworkError(NetworkSelectionError):
    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"network must be either 'base' or 'solana', got '{raw}'")


class MissingCredentialError(NetworkSelectionError):
    def __init__(self, network: str, variable: str) -> None:
        self.network = network
        self.variable = variable
        super().__init__(
            f"Missing {variable} environment variable (needed for --network {network})"
        )


class AmbiguousNetworkError(NetworkSelectionError):
    def __init__(self) -> None:
        super().__init__(
            "Both EVM_PRIVATE_KEY and SVM_PRIVATE_KEY environment variables are set. "
            "Please specify which network to use with --network <base|solana>"
        )


class NoCredentialError(NetworkSelectionError):
    def __init__(self) -> None:
        super().__init__(
            "No private keys found in environment variables. "
            "Set either EVM_PRIVATE_KEY (for Base) or SVM_PRIVATE_KEY (for Solana)"
        )


class RemoteRequestError(SnackMoneyError):
    """
    Raised when the payment API answers with a non-2xx status or cannot be reached.

    ``status_code`` is ``None`` for transport failures. ``accepts`` holds the
    payment options advertised by a 402 response.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        accepts: Optional[Sequence[Dict[str, Any]]] = None,
        payload: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.accepts: List[Dict[str, Any]] = list(accepts or ())
        self.payload = payload
        super().__init__(message)

    @property
    def is_payment_required(self) -> bool:
        return self.status_code == 402


class LanguageModelError(SnackMoneyError):
    """Raised when a language model provider call fails."""

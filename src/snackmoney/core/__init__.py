"""
Core primitives: input parsing, network resolution and the x402 payment client.
"""

from .agent import (
    AnthropicMessagesModel,
    InstructionExtractor,
    LanguageModel,
    OpenAIChatModel,
    extract_json_array,
    fallback_instructions,
    group_by_platform,
    select_language_model,
)
from .amounts import parse_amount
from .batch import parse_batch_document, parse_batch_input, parse_comma_separated
from .campaign import (
    campaign_cost,
    cookie_unit_price,
    load_campaign_input,
    validate_campaign,
)
from .client import ApiResponse, SnackMoneyClient
from .config import ClientConfig, load_client_config
from .environment import ClientEnvironment, build_environment
from .errors import (
    AmbiguousNetworkError,
    BatchParseError,
    CampaignValidationError,
    ConfigError,
    InputError,
    InvalidAmountError,
    InvalidNetworkError,
    InvalidReceiverError,
    LanguageModelError,
    MalformedTargetError,
    MissingCredentialError,
    NetworkSelectionError,
    NoCredentialError,
    RemoteRequestError,
    ShellExpansionHazardError,
    SnackMoneyError,
    SourceError,
    UnknownPlatformError,
)
from .models import (
    BatchDescriptor,
    BatchPayment,
    CampaignDescriptor,
    PaymentInstruction,
    PaymentTarget,
    Sponsor,
)
from .network import (
    Network,
    is_local_endpoint,
    network_display_name,
    payment_network_id,
    resolve_network,
    select_network,
    transaction_url,
)
from .payloads import PaymentRequirements, SettlementResult, decode_payment_response
from .platforms import normalize_platform, parse_payment_target, validate_receiver
from .signers import EvmPaymentSigner, PaymentSigner, SvmPaymentSigner, create_signer

__all__ = [
    "AmbiguousNetworkError",
    "AnthropicMessagesModel",
    "ApiResponse",
    "BatchDescriptor",
    "BatchParseError",
    "BatchPayment",
    "CampaignDescriptor",
    "CampaignValidationError",
    "ClientConfig",
    "ClientEnvironment",
    "ConfigError",
    "EvmPaymentSigner",
    "InputError",
    "InstructionExtractor",
    "InvalidAmountError",
    "InvalidNetworkError",
    "InvalidReceiverError",
    "LanguageModel",
    "LanguageModelError",
    "MalformedTargetError",
    "MissingCredentialError",
    "Network",
    "NetworkSelectionError",
    "NoCredentialError",
    "OpenAIChatModel",
    "PaymentInstruction",
    "PaymentRequirements",
    "PaymentSigner",
    "PaymentTarget",
    "RemoteRequestError",
    "SettlementResult",
    "ShellExpansionHazardError",
    "SnackMoneyClient",
    "SnackMoneyError",
    "SourceError",
    "Sponsor",
    "SvmPaymentSigner",
    "UnknownPlatformError",
    "build_environment",
    "campaign_cost",
    "cookie_unit_price",
    "create_signer",
    "decode_payment_response",
    "extract_json_array",
    "fallback_instructions",
    "group_by_platform",
    "is_local_endpoint",
    "load_campaign_input",
    "load_client_config",
    "network_display_name",
    "normalize_platform",
    "parse_amount",
    "parse_batch_document",
    "parse_batch_input",
    "parse_comma_separated",
    "parse_payment_target",
    "payment_network_id",
    "resolve_network",
    "select_language_model",
    "select_network",
    "transaction_url",
    "validate_campaign",
    "validate_receiver",
]

"""
Public facade for the snackmoney package.

The most useful pieces are re-exported here so integrators can
``from snackmoney import ...`` without navigating the package.
"""

__version__ = "0.1.0"

from .api import (
    build_instruction,
    create_campaign,
    create_client,
    create_extractor,
    execute_instructions,
    pay_with_prompt,
    send_batch_payment,
    send_payment,
)
from .core import (
    ApiResponse,
    BatchDescriptor,
    CampaignDescriptor,
    ClientConfig,
    ConfigError,
    InputError,
    InstructionExtractor,
    Network,
    NetworkSelectionError,
    PaymentInstruction,
    PaymentSigner,
    RemoteRequestError,
    SettlementResult,
    SnackMoneyClient,
    SnackMoneyError,
    load_client_config,
    normalize_platform,
    parse_amount,
    parse_batch_input,
    parse_payment_target,
    select_network,
    validate_campaign,
    validate_receiver,
)

__all__ = (
    "ApiResponse",
    "BatchDescriptor",
    "CampaignDescriptor",
    "ClientConfig",
    "ConfigError",
    "InputError",
    "InstructionExtractor",
    "Network",
    "NetworkSelectionError",
    "PaymentInstruction",
    "PaymentSigner",
    "RemoteRequestError",
    "SettlementResult",
    "SnackMoneyClient",
    "SnackMoneyError",
    "__version__",
    "build_instruction",
    "create_campaign",
    "create_client",
    "create_extractor",
    "execute_instructions",
    "load_client_config",
    "normalize_platform",
    "parse_amount",
    "parse_batch_input",
    "parse_payment_target",
    "pay_with_prompt",
    "select_network",
    "send_batch_payment",
    "send_payment",
    "validate_campaign",
    "validate_receiver",
)

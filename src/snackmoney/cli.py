"""
Command-line interface for sending Snack Money payments.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from . import __version__
from .api import build_instruction, create_client, create_extractor, execute_instructions
from .core.batch import parse_batch_input
from .core.campaign import (
    campaign_cost,
    cookie_unit_price,
    load_campaign_input,
    validate_campaign,
)
from .core.client import ApiResponse, SnackMoneyClient
from .core.config import ClientConfig, load_client_config
from .core.errors import ConfigError, RemoteRequestError, SnackMoneyError
from .core.models import PaymentInstruction
from .core.network import network_display_name, resolve_network, transaction_url
from .core.payloads import SettlementResult
from .core.signers import create_signer

AGENT_SENDER_USERNAME = "ai-payment-agent"

_CAMPAIGN_FIELDS = (
    ("campaignId", "Campaign ID"),
    ("status", "Status"),
    ("queuePosition", "Queue Position"),
    ("estimatedStartDate", "Estimated Start"),
    ("fundingStatus", "Funding Status"),
    ("fundingTxnId", "Funding Transaction"),
    ("detailPageUrl", "Detail Page"),
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def _add_network_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--network",
        default=None,
        metavar="{base,solana}",
        help="Network to pay on (auto-detected from the configured private key)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snackmoney",
        description="Send USDC to social identities through the Snack Money API",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing private keys and API settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    send = subparsers.add_parser(
        "send",
        help="Send a payment, e.g. snackmoney send x.com/jessepollak 50¢",
    )
    send.add_argument("target", help="platform/receiver, e.g. farcaster/toly")
    send.add_argument("amount", help="Amount as 0.5, $0.5 or 50¢")
    _add_network_argument(send)
    send.set_defaults(handler=_cmd_send)

    pay = subparsers.add_parser("pay", help="Send a payment with explicit fields")
    pay.add_argument(
        "--receiver-identity",
        required=True,
        help="Platform: x, farcaster, github, email or web",
    )
    pay.add_argument("--receiver", required=True, help="Receiver handle on the platform")
    pay.add_argument("--amount", required=True, help="Amount as 0.5, $0.5 or 50¢")
    pay.add_argument("--description", default=None, help="Payment description")
    _add_network_argument(pay)
    pay.set_defaults(handler=_cmd_pay)

    batch = subparsers.add_parser(
        "batch-pay",
        help="Pay several receivers on one platform",
    )
    batch.add_argument(
        "input",
        help="URL, JSON file, inline JSON or platform/user1:amount1,user2:amount2",
    )
    _add_network_argument(batch)
    batch.set_defaults(handler=_cmd_batch_pay)

    agent = subparsers.add_parser("ai-agent", help="Pay from a natural-language request")
    agent.add_argument("--prompt", required=True, help="e.g. 'Send 0.5 USDC to alice on farcaster'")
    _add_network_argument(agent)
    agent.set_defaults(handler=_cmd_ai_agent)

    cookie = subparsers.add_parser(
        "sponsor-a-cookie",
        help="Create a cookie campaign from inline JSON, a URL or a file",
    )
    cookie.add_argument("input", help="Campaign JSON (inline, URL or file path)")
    cookie.add_argument(
        "--yes",
        action="store_true",
        help="Skip the cost confirmation prompt",
    )
    _add_network_argument(cookie)
    cookie.set_defaults(handler=_cmd_sponsor_a_cookie)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    try:
        config = load_client_config(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    session = requests.Session()
    try:
        return args.handler(args, config, session)
    except RemoteRequestError as exc:
        _log_remote_error(exc)
        return 1
    except SnackMoneyError as exc:
        logging.error("%s", exc)
        return 1
    except Exception as exc:  # noqa: BLE001
        logging.error("Unexpected error: %s", exc)
        return 1
    finally:
        session.close()


def main() -> None:
    sys.exit(run_cli())


def _connect(
    config: ClientConfig,
    network_flag: Optional[str],
    session: requests.Session,
) -> SnackMoneyClient:
    network = resolve_network(config, network_flag)
    logging.info(
        "Using network: %s", network_display_name(network, config.resource_server_url)
    )
    signer = create_signer(config, network)
    return create_client(config=config, signer=signer, session=session)


def _pay_one(
    instruction: PaymentInstruction,
    network_flag: Optional[str],
    config: ClientConfig,
    session: requests.Session,
) -> int:
    # input is fully validated before any key is loaded or request sent
    client = _connect(config, network_flag, session)
    response = client.pay(instruction)
    return _report_payment(response, client.signer.network)


def _cmd_send(args: argparse.Namespace, config: ClientConfig, session: requests.Session) -> int:
    instruction = build_instruction(args.target, args.amount)
    return _pay_one(instruction, args.network, config, session)


def _cmd_pay(args: argparse.Namespace, config: ClientConfig, session: requests.Session) -> int:
    instruction = build_instruction(
        f"{args.receiver_identity}/{args.receiver}",
        args.amount,
        description=args.description,
    )
    return _pay_one(instruction, args.network, config, session)


def _cmd_batch_pay(
    args: argparse.Namespace, config: ClientConfig, session: requests.Session
) -> int:
    descriptor = parse_batch_input(
        args.input, session=session, timeout=config.timeout_seconds
    )
    logging.info(
        "Batch of %d payment(s) on %s totalling %s USDC",
        len(descriptor.payments),
        descriptor.platform,
        descriptor.total_amount,
    )
    for payment in descriptor.payments:
        logging.info("  %s: %s USDC", payment.receiver, payment.amount)

    client = _connect(config, args.network, session)
    response = client.batch_pay(descriptor)
    return _report_payment(response, client.signer.network)


def _cmd_ai_agent(
    args: argparse.Namespace, config: ClientConfig, session: requests.Session
) -> int:
    client = _connect(config, args.network, session)
    extractor = create_extractor(config, session=session)

    instructions = extractor.extract(args.prompt)
    if not instructions:
        logging.error("Could not understand any payment instructions.")
        logging.info("Try: 'Send 0.5 USDC to alice on farcaster'")
        return 1

    responses = execute_instructions(
        instructions,
        client=client,
        sender_username=AGENT_SENDER_USERNAME,
        description="Payment via AI Agent",
    )
    exit_code = 0
    for response in responses:
        exit_code = max(exit_code, _report_payment(response, client.signer.network))
    logging.info("All payments processed!")
    return exit_code


def _confirm(question: str) -> bool:
    try:
        answer = input(f"{question} (yes/no): ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _cmd_sponsor_a_cookie(
    args: argparse.Namespace, config: ClientConfig, session: requests.Session
) -> int:
    raw = load_campaign_input(args.input, session=session, timeout=config.timeout_seconds)
    descriptor = validate_campaign(raw)
    logging.info("Campaign data validated successfully")
    logging.info("Platform: %s", descriptor.platform.upper())
    logging.info("Name: %s", descriptor.name)
    logging.info("Description: %s", descriptor.description)
    logging.info("Total Cookies: %d", descriptor.total_cookies)
    logging.info("Sponsor: %s (@%s)", descriptor.sponsor.name, descriptor.sponsor.handle)
    if descriptor.sponsor.url:
        logging.info("Sponsor URL: %s", descriptor.sponsor.url)

    unit_price = cookie_unit_price(config)
    total = campaign_cost(descriptor, unit_price)
    logging.info(
        "Total Cost: %d x %.2f = %.2f USDC", descriptor.total_cookies, unit_price, total
    )

    client = _connect(config, args.network, session)
    if not args.yes and not _confirm(f"Fund this campaign with {total:.2f} USDC?"):
        logging.info("Campaign creation cancelled")
        return 0

    response = client.create_campaign(descriptor)
    logging.info("Campaign created successfully!")
    details = _response_details(response)
    for key, label in _CAMPAIGN_FIELDS:
        if details.get(key) is not None:
            logging.info("%s: %s", label, details[key])
    return _handle_settlement(response.settlement, client.signer.network)


def _response_details(response: ApiResponse) -> Dict[str, Any]:
    data = response.data
    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        return data["data"]
    return data if isinstance(data, dict) else {}


def _report_payment(response: ApiResponse, network_id: str) -> int:
    logging.info("%s", response.message or "Payment sent")
    if response.transaction_id:
        logging.info("Transaction ID: %s", response.transaction_id)
    if response.receipt:
        logging.info("Receipt: %s", response.receipt)
    for receipt in response.receipts():
        logging.info("Receipt: %s", receipt)
    return _handle_settlement(response.settlement, network_id)


def _handle_settlement(settlement: Optional[SettlementResult], network_id: str) -> int:
    if settlement is None:
        return 0
    if not settlement.success:
        logging.error("Settlement failed: %s", settlement.raw)
        return 1

    network = settlement.network or network_id
    link = transaction_url(network, settlement.transaction) if settlement.transaction else None
    logging.info(
        "Payment settled on %s. Transaction: %s",
        network,
        link or settlement.transaction,
    )
    return 0


def _log_remote_error(exc: RemoteRequestError) -> None:
    logging.error("%s", exc.message)
    payload = exc.payload
    if isinstance(payload, dict) and isinstance(payload.get("errors"), dict):
        for field, messages in payload["errors"].items():
            if isinstance(messages, list):
                messages = ", ".join(str(message) for message in messages)
            logging.error("  %s: %s", field, messages)
    if exc.is_payment_required:
        options: List[Dict[str, Any]] = exc.accepts
        for index, accept in enumerate(options, start=1):
            logging.error(
                "  Payment option %d: %s - Pay to: %s",
                index,
                accept.get("network"),
                accept.get("payTo"),
            )

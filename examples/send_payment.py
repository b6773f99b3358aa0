"""
Minimal script that uses the public API to send a single payment.
"""

from __future__ import annotations

import argparse
import logging
import sys

from snackmoney import (
    SnackMoneyError,
    create_client,
    load_client_config,
    send_payment,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a Snack Money payment using the SDK API")
    parser.add_argument("target", help="platform/receiver, e.g. x.com/jessepollak")
    parser.add_argument("amount", help="Amount as 0.5, $0.5 or 50¢")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing EVM_PRIVATE_KEY or SVM_PRIVATE_KEY",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--network", help="base or solana (auto-detected by default)")
    parser.add_argument("--description", help="Payment description")
    parser.add_argument(
        "--resource-server-url",
        help="Override the API base URL (default: https://api.snack.money)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = load_client_config(
            env_file=args.env_file,
            resource_server_url=args.resource_server_url,
        )
        client = create_client(config=config, network=args.network)
        response = send_payment(
            args.target,
            args.amount,
            client=client,
            description=args.description,
        )
    except SnackMoneyError as exc:
        logging.error("Payment failed: %s", exc)
        return 1

    logging.info("%s", response.message or "Payment sent")
    if response.settlement is not None:
        logging.info(
            "Settled on %s. Transaction hash: %s",
            response.settlement.network,
            response.settlement.transaction,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())

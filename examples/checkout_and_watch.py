"""
Minimal script that uses the public API to create a QRPH payment and follow it.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Tuple

from qrph_payments import ConfigError, create_payment_client, load_client_config, watch_payment


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a QRPH payment and wait for it")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing QRPH_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--amount", required=True, help="Amount in pesos (e.g. 149.50)")
    parser.add_argument("--description", default="Order payment")
    parser.add_argument("--checkout-file", required=True, help="JSON checkout data")
    parser.add_argument(
        "--cancel-on-timeout",
        action="store_true",
        help="Cancel the payment if it expires without being paid",
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
            overrides=_build_overrides(args.set or ()),
        )
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    checkout = json.loads(Path(args.checkout_file).read_text(encoding="utf-8"))

    with create_payment_client(config=config) as client:
        created = client.create_intent(args.amount, args.description, {}, checkout)
        if not created.success or created.payment is None:
            logging.error("Payment creation failed: %s", created.error)
            return 1

        payment_id = created.payment.id
        qr_url = created.payment.qr_code_url or client.fetch_qr_url(
            created.payment.payment_intent_id
        )
        logging.info("Scan to pay: %s", qr_url)

        final = asyncio.run(
            watch_payment(
                client,
                payment_id,
                on_change=lambda status, _: logging.info("Status: %s", status),
            )
        )
        if final == "succeeded":
            logging.info("Payment %s succeeded", payment_id)
            return 0

        if final == "expired" and args.cancel_on_timeout:
            cancelled = client.cancel(payment_id)
            if not cancelled.success:
                logging.error("Cancellation failed: %s", cancelled.error)

        logging.error("Payment %s ended with status %s", payment_id, final)
        return 1


if __name__ == "__main__":
    sys.exit(main())

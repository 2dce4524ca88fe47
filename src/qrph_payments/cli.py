"""
Command-line interface for exercising the QRPH payment APIs.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Sequence, Tuple

import requests

from .api import ConfigError, create_payment_client, watch_payment
from .core.client import PaymentIntentClient
from .core.config import load_client_config


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


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrph-payments",
        description="Create, inspect and cancel QRPH payment intents",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing QRPH_* settings (default: .env)",
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
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create a payment intent")
    create.add_argument("--amount", required=True, help="Amount in major units (e.g. 149.50)")
    create.add_argument("--description", default="", help="Description shown to the payer")
    create.add_argument(
        "--checkout-file",
        required=True,
        help="JSON file with the checkout data (must contain items)",
    )
    create.add_argument("--metadata-file", help="Optional JSON file with metadata")
    create.add_argument(
        "--watch",
        action="store_true",
        help="Poll the new payment until it reaches a final status",
    )

    status = commands.add_parser("status", help="Show the current status of a payment")
    status.add_argument("payment_id")

    cancel = commands.add_parser("cancel", help="Cancel a payment")
    cancel.add_argument("payment_id")

    qr = commands.add_parser("qr", help="Print the QR code URL of a payment intent")
    qr.add_argument("payment_intent_id")

    download = commands.add_parser("download-qr", help="Save the QR code image of a payment")
    download.add_argument("payment_id")
    download.add_argument("--output", required=True, help="Destination file")

    watch = commands.add_parser("watch", help="Poll a payment until it reaches a final status")
    watch.add_argument("payment_id")
    watch.add_argument("--interval", type=float, help="Seconds between checks")
    watch.add_argument("--timeout", type=float, help="Seconds before giving up")
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    try:
        config = load_client_config(env_file=args.env_file, overrides=overrides)
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    session = requests.Session()
    client = create_payment_client(config=config, session=session)
    try:
        return _COMMANDS[args.command](client, args)
    finally:
        session.close()


def _create(client: PaymentIntentClient, args: argparse.Namespace) -> int:
    try:
        checkout = _load_json(args.checkout_file)
        metadata = _load_json(args.metadata_file) if args.metadata_file else None
    except (OSError, ValueError) as exc:
        logging.error("Could not read input file: %s", exc)
        return 1

    result = client.create_intent(args.amount, args.description, metadata, checkout)
    if not result.success or result.payment is None:
        logging.error("Payment creation failed: %s", result.error)
        return 1

    payment = result.payment
    logging.info("Payment %s created with status %s", payment.id, payment.status)
    if payment.qr_code_url:
        logging.info("QR code: %s", payment.qr_code_url)
    if result.checkout_url:
        logging.info("Checkout URL: %s", result.checkout_url)

    if args.watch:
        return _report_final(asyncio.run(watch_payment(client, payment.id, on_change=_log_change)))
    return 0


def _status(client: PaymentIntentClient, args: argparse.Namespace) -> int:
    result = client.query_status(args.payment_id)
    if not result.success:
        logging.error("Status check failed: %s", result.error)
        return 1
    logging.info("Payment %s status: %s", args.payment_id, result.status)
    return 0


def _cancel(client: PaymentIntentClient, args: argparse.Namespace) -> int:
    result = client.cancel(args.payment_id)
    if not result.success:
        logging.error("Cancellation failed: %s", result.error)
        return 1
    return 0


def _qr(client: PaymentIntentClient, args: argparse.Namespace) -> int:
    url = client.fetch_qr_url(args.payment_intent_id)
    if url is None:
        logging.info("No QR code available for %s", args.payment_intent_id)
        return 0
    print(url)
    return 0


def _download_qr(client: PaymentIntentClient, args: argparse.Namespace) -> int:
    result = client.download_qr(args.payment_id)
    if not result.success or result.content is None:
        logging.error("QR download failed: %s", result.error)
        return 1
    Path(args.output).write_bytes(result.content)
    logging.info("Saved QR code to %s", args.output)
    return 0


def _watch(client: PaymentIntentClient, args: argparse.Namespace) -> int:
    final = asyncio.run(
        watch_payment(
            client,
            args.payment_id,
            on_change=_log_change,
            interval_seconds=args.interval,
            timeout_seconds=args.timeout,
        )
    )
    return _report_final(final)


def _log_change(status: str, payload: Any) -> None:
    logging.info("Status changed to %s", status)


def _report_final(status: str) -> int:
    if status == "succeeded":
        logging.info("Payment succeeded")
        return 0
    logging.error("Payment ended with status %s", status)
    return 1


_COMMANDS = {
    "create": _create,
    "status": _status,
    "cancel": _cancel,
    "qr": _qr,
    "download-qr": _download_qr,
    "watch": _watch,
}


def main() -> None:
    raise SystemExit(run_cli())

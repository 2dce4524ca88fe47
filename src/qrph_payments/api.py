"""
Public, high-level helpers for interacting with the QRPH payment API.
"""

from __future__ import annotations

from typing import Mapping, Optional

import requests

from .core.auth import AuthProvider
from .core.client import PaymentIntentClient
from .core.config import (
    ClientConfig,
    ClientParameters,
    ConfigError,
    load_client_config,
)
from .core.idempotency import IdempotencyKeyStore
from .core.poller import StatusCallback, StatusPoller
from .core.status import map_backend_status

__all__ = [
    "ConfigError",
    "create_payment_client",
    "create_status_poller",
    "watch_payment",
]


def create_payment_client(
    *,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    auth: Optional[AuthProvider] = None,
    key_store: Optional[IdempotencyKeyStore] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    api_base_url: Optional[str] = None,
    auth_token: Optional[str] = None,
    csrf_token: Optional[str] = None,
    currency: Optional[str] = None,
    payment_method: Optional[str] = None,
    request_timeout_seconds: Optional[float | int | str] = None,
    poll_interval_seconds: Optional[float | int | str] = None,
    poll_timeout_seconds: Optional[float | int | str] = None,
    idempotency_store: Optional[str] = None,
    idempotency_max_age_seconds: Optional[float | int | str] = None,
) -> PaymentIntentClient:
    """
    Construct a :class:`PaymentIntentClient`.

    Callers can either supply a ready-made :class:`ClientConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            api_base_url,
            auth_token,
            csrf_token,
            currency,
            payment_method,
            request_timeout_seconds,
            poll_interval_seconds,
            poll_timeout_seconds,
            idempotency_store,
            idempotency_max_age_seconds,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_client_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            api_base_url=api_base_url,
            auth_token=auth_token,
            csrf_token=csrf_token,
            currency=currency,
            payment_method=payment_method,
            request_timeout_seconds=request_timeout_seconds,
            poll_interval_seconds=poll_interval_seconds,
            poll_timeout_seconds=poll_timeout_seconds,
            idempotency_store=idempotency_store,
            idempotency_max_age_seconds=idempotency_max_age_seconds,
        )
    return PaymentIntentClient(cfg, session=session, auth=auth, key_store=key_store)


def create_status_poller(
    client: PaymentIntentClient,
    *,
    interval_seconds: Optional[float] = None,
    timeout_seconds: Optional[float] = None,
) -> StatusPoller:
    """
    Build a :class:`StatusPoller` using the client's configured cadence.
    """
    if interval_seconds is None:
        interval_seconds = client.config.poll_interval_seconds
    if timeout_seconds is None:
        timeout_seconds = client.config.poll_timeout_seconds
    return StatusPoller(
        client,
        interval_seconds=interval_seconds,
        timeout_seconds=timeout_seconds,
    )


async def watch_payment(
    client: PaymentIntentClient,
    payment_id: str,
    *,
    on_change: Optional[StatusCallback] = None,
    interval_seconds: Optional[float] = None,
    timeout_seconds: Optional[float] = None,
) -> str:
    """
    Poll ``payment_id`` until it reaches a terminal status and return it.
    """
    poller = create_status_poller(
        client,
        interval_seconds=interval_seconds,
        timeout_seconds=timeout_seconds,
    )

    def _forward(status, payload):
        if on_change is not None:
            on_change(status, payload)

    poller.start(payment_id, _forward)
    try:
        final = await poller.wait(payment_id)
    finally:
        poller.dispose()
    return map_backend_status(final)

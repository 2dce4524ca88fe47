"""
Public facade for the QRPH payment client package.

The module re-exports the most useful pieces for integrators so they can
``from qrph_payments import ...`` without navigating the package.
"""

from .api import create_payment_client, create_status_poller, watch_payment
from .core import (
    AuthProvider,
    CallableAuthProvider,
    CancelResult,
    CheckoutData,
    CheckoutItem,
    ClientConfig,
    ClientParameters,
    ConfigError,
    FileSessionStorage,
    IdempotencyKeyStore,
    IntentResult,
    MemorySessionStorage,
    PaymentIntent,
    PaymentIntentClient,
    PaymentStatus,
    PollSession,
    QrDownloadResult,
    ShippingAddress,
    StaticAuthProvider,
    StatusPoller,
    StatusResult,
    TERMINAL_STATUSES,
    is_terminal,
    load_client_config,
    map_backend_status,
)

__all__ = (
    "AuthProvider",
    "CallableAuthProvider",
    "CancelResult",
    "CheckoutData",
    "CheckoutItem",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "FileSessionStorage",
    "IdempotencyKeyStore",
    "IntentResult",
    "MemorySessionStorage",
    "PaymentIntent",
    "PaymentIntentClient",
    "PaymentStatus",
    "PollSession",
    "QrDownloadResult",
    "ShippingAddress",
    "StaticAuthProvider",
    "StatusPoller",
    "StatusResult",
    "TERMINAL_STATUSES",
    "create_payment_client",
    "create_status_poller",
    "is_terminal",
    "load_client_config",
    "map_backend_status",
    "watch_payment",
)

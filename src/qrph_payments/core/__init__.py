"""
Core primitives for the QRPH payment intent lifecycle.
"""

from .auth import AuthProvider, CallableAuthProvider, StaticAuthProvider
from .client import PaymentIntentClient
from .config import ClientConfig, ClientParameters, ConfigError, load_client_config
from .environment import ClientEnvironment, build_environment, load_env_file
from .errors import ClientError, StorageError, TransportError, ValidationError
from .idempotency import IdempotencyKeyStore
from .models import (
    CancelResult,
    CheckoutData,
    CheckoutItem,
    IntentResult,
    PaymentIntent,
    QrDownloadResult,
    ShippingAddress,
    StatusResult,
)
from .payloads import build_checkout_request, to_minor_units
from .poller import PollSession, StatusPoller
from .status import TERMINAL_STATUSES, PaymentStatus, is_terminal, map_backend_status
from .storage import FileSessionStorage, MemorySessionStorage, SessionStorage

__all__ = [
    "AuthProvider",
    "CallableAuthProvider",
    "CancelResult",
    "CheckoutData",
    "CheckoutItem",
    "ClientConfig",
    "ClientEnvironment",
    "ClientError",
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
    "SessionStorage",
    "ShippingAddress",
    "StaticAuthProvider",
    "StatusPoller",
    "StatusResult",
    "StorageError",
    "TERMINAL_STATUSES",
    "TransportError",
    "ValidationError",
    "build_checkout_request",
    "build_environment",
    "is_terminal",
    "load_client_config",
    "load_env_file",
    "map_backend_status",
    "to_minor_units",
]

"""
Canonical payment statuses and the mapping from backend vocabulary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, FrozenSet

__all__ = [
    "PaymentStatus",
    "TERMINAL_STATUSES",
    "is_terminal",
    "map_backend_status",
]


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


TERMINAL_STATUSES: FrozenSet[str] = frozenset(
    {
        PaymentStatus.SUCCEEDED.value,
        PaymentStatus.FAILED.value,
        PaymentStatus.EXPIRED.value,
    }
)

_BACKEND_ALIASES = {
    "awaiting_payment": PaymentStatus.PENDING.value,
    "paid": PaymentStatus.SUCCEEDED.value,
    "succeeded": PaymentStatus.SUCCEEDED.value,
}


def map_backend_status(raw: Any) -> str:
    """
    Translate a backend status into the canonical vocabulary.

    Unknown values pass through untouched so new non-terminal states are not
    mistaken for failures. ``None`` means the backend did not say, which is
    reported as ``pending``.
    """
    if raw is None:
        return PaymentStatus.PENDING.value
    value = raw.value if isinstance(raw, Enum) else str(raw)
    return _BACKEND_ALIASES.get(value, value)


def is_terminal(status: Any) -> bool:
    """True for statuses after which the payment can no longer change."""
    return map_backend_status(status) in TERMINAL_STATUSES

"""
Idempotency tokens for mutating payment operations.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from .errors import StorageError, ValidationError
from .storage import MemorySessionStorage, SessionStorage

__all__ = [
    "IdempotencyKeyStore",
    "generate_token",
]

_KEY_PREFIX = "idem"


def generate_token() -> str:
    """Return a 128-bit random token, hex encoded."""
    return secrets.token_hex(16)


class IdempotencyKeyStore:
    """
    Hands out one token per logical attempt of an operation.

    A token stays in storage across retries of the same attempt and must be
    cleared once the server has confirmed the operation; the next call for the
    same scope then starts a new attempt with a fresh token.
    """

    def __init__(self, storage: Optional[SessionStorage] = None) -> None:
        self.storage: SessionStorage = storage if storage is not None else MemorySessionStorage()

    @staticmethod
    def scope_key(operation: str, resource_id: str) -> str:
        if not operation or not resource_id:
            raise ValidationError("operation and resource_id must not be empty")
        return f"{_KEY_PREFIX}.{operation}.{resource_id}"

    def get_or_create(self, scope_key: str) -> str:
        """
        Return the token for ``scope_key``, issuing one if none is stored.

        Raises :class:`StorageError` when the backing storage is unusable.
        """
        try:
            existing = self.storage.get(scope_key)
            if existing:
                logging.debug("Reusing idempotency token for %s", scope_key)
                return existing
            token = generate_token()
            self.storage.set(scope_key, token)
        except OSError as exc:
            raise StorageError(f"Could not store idempotency token: {exc}") from exc
        logging.debug("Issued idempotency token for %s", scope_key)
        return token

    def peek(self, scope_key: str) -> Optional[str]:
        return self.storage.get(scope_key) or None

    def clear(self, scope_key: str) -> None:
        try:
            self.storage.remove(scope_key)
        except OSError as exc:
            raise StorageError(f"Could not clear idempotency token: {exc}") from exc
        logging.debug("Cleared idempotency token for %s", scope_key)
